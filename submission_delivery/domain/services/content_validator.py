"""Content validator for text leaving the system.

Every piece of generated or citizen-edited text passes through
sanitize_and_validate() before it is placed in a document or an email.
The function either returns clean text or raises a ContentRejectedError
subclass; it never truncates or rewrites content beyond the sanitising
step.

Sanitising (always applied):
1. Remove zero-width characters (U+200B-U+200D, U+FEFF)
2. Replace em dashes with a hyphen
3. Collapse whitespace runs to a single space and trim

Rejections (checked in order on the sanitised text):
1. Emoji (extended pictographic characters)
2. Em dash (cannot survive step 2, kept as a guard)
3. AI-disclosure phrasing
4. URLs outside the allow-list
5. Markdown links
6. Word count above the limit

The output of sanitize_and_validate() is a fixed point: validating it
again with the same rules returns it unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final

from submission_delivery.domain.errors.content import (
    AIDisclosureContentError,
    DisallowedLinkContentError,
    EmDashContentError,
    EmojiContentError,
    WordLimitExceededError,
)

DEFAULT_MAX_WORDS: Final[int] = 600

ZERO_WIDTH_PATTERN: Final[re.Pattern[str]] = re.compile("[\u200b-\u200d\ufeff]")
WHITESPACE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s+")
EM_DASH: Final[str] = "\u2014"

# The Extended_Pictographic property table; the stdlib re module has no
# \p{} classes. Neighbouring symbols such as U+2300 and U+2713 are not in it.
EMOJI_PATTERN: Final[re.Pattern[str]] = re.compile(
    "["
    "\u00a9\u00ae\u203c\u2049\u2122\u2139\u2194-\u2199\u21a9\u21aa"
    "\u231a\u231b\u2328\u2388\u23cf\u23e9-\u23f3\u23f8-\u23fa"
    "\u24c2\u25aa\u25ab\u25b6\u25c0\u25fb-\u25fe"
    "\u2600-\u2605\u2607-\u2612\u2614-\u2685\u2690-\u2705"
    "\u2708-\u2712\u2714\u2716\u271d\u2721\u2728\u2733\u2734"
    "\u2744\u2747\u274c\u274e\u2753-\u2755\u2757\u2763-\u2767"
    "\u2795-\u2797\u27a1\u27b0\u27bf\u2934\u2935"
    "\u2b05-\u2b07\u2b1b\u2b1c\u2b50\u2b55"
    "\u3030\u303d\u3297\u3299"
    "\U0001f000-\U0001f0ff\U0001f10d-\U0001f10f\U0001f12f"
    "\U0001f16c-\U0001f171\U0001f17e\U0001f17f\U0001f18e"
    "\U0001f191-\U0001f19a\U0001f1ad-\U0001f1e5"
    "\U0001f201-\U0001f20f\U0001f21a\U0001f22f\U0001f232-\U0001f23a"
    "\U0001f23c-\U0001f23f\U0001f249-\U0001f3fa"
    "\U0001f400-\U0001f53d\U0001f546-\U0001f64f\U0001f680-\U0001f6ff"
    "\U0001f774-\U0001f77f\U0001f7d5-\U0001f7ff"
    "\U0001f80c-\U0001f80f\U0001f848-\U0001f84f\U0001f85a-\U0001f85f"
    "\U0001f888-\U0001f88f\U0001f8ae-\U0001f8ff"
    "\U0001f90c-\U0001f93a\U0001f93c-\U0001f945\U0001f947-\U0001faff"
    "\U0001fc00-\U0001fffd"
    "]"
)

AI_DISCLOSURE_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"\bit['\u2019]s not just\b", re.IGNORECASE),
    re.compile(r"\bas an ai\b", re.IGNORECASE),
    re.compile(r"\bi cannot\b", re.IGNORECASE),
    re.compile(r"\bi['\u2019]m unable\b", re.IGNORECASE),
)

URL_PATTERN: Final[re.Pattern[str]] = re.compile(r"https?://[^\s)]+", re.IGNORECASE)
MARKDOWN_LINK_PATTERN: Final[re.Pattern[str]] = re.compile(r"\[[^\]]+\]\([^)]+\)")

# Sentence punctuation that commonly trails a URL in prose
_URL_TRAILING_PUNCTUATION: Final[str] = ".,;:!?'\""


@dataclass(frozen=True)
class ContentRules:
    """Validation options.

    Attributes:
        max_words: Maximum words allowed in the sanitised text.
        allowed_links: URLs that may appear verbatim in the text.
    """

    max_words: int = DEFAULT_MAX_WORDS
    allowed_links: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate rule values."""
        if self.max_words < 1:
            raise ValueError(f"max_words must be positive, got {self.max_words}")


def sanitize_basic(text: str) -> str:
    """Apply the sanitising step only.

    Args:
        text: Raw text.

    Returns:
        Text without zero-width characters or em dashes, with whitespace
        collapsed and trimmed.
    """
    cleaned = ZERO_WIDTH_PATTERN.sub("", text)
    cleaned = cleaned.replace(EM_DASH, "-")
    cleaned = WHITESPACE_PATTERN.sub(" ", cleaned)
    return cleaned.strip()


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len([word for word in text.split() if word])


def _normalise_url(url: str) -> str:
    return url.rstrip(_URL_TRAILING_PUNCTUATION)


def sanitize_and_validate(text: str, rules: ContentRules | None = None) -> str:
    """Sanitise text and enforce content rules.

    Args:
        text: Raw text from a provider or a citizen edit.
        rules: Validation options (defaults apply when omitted).

    Returns:
        The sanitised text.

    Raises:
        EmojiContentError: Text contains emoji.
        EmDashContentError: Text still contains an em dash.
        AIDisclosureContentError: Text discloses machine authorship.
        DisallowedLinkContentError: Text contains a markdown link or a URL
            outside the allow-list.
        WordLimitExceededError: Text is longer than rules.max_words.
    """
    rules = rules or ContentRules()
    cleaned = sanitize_basic(text)

    if EMOJI_PATTERN.search(cleaned):
        raise EmojiContentError()

    if EM_DASH in cleaned:
        raise EmDashContentError()

    for pattern in AI_DISCLOSURE_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            raise AIDisclosureContentError(match.group(0))

    allowed = {_normalise_url(link) for link in rules.allowed_links}
    for match in URL_PATTERN.finditer(cleaned):
        url = _normalise_url(match.group(0))
        if url not in allowed:
            raise DisallowedLinkContentError(url)

    markdown = MARKDOWN_LINK_PATTERN.search(cleaned)
    if markdown:
        raise DisallowedLinkContentError(markdown.group(0))

    word_count = count_words(cleaned)
    if word_count > rules.max_words:
        raise WordLimitExceededError(word_count=word_count, max_words=rules.max_words)

    return cleaned
