"""Content validation errors.

Raised by the content validator when text must not leave the system.
All are USER errors: they are surfaced immediately and never retried.
"""

from __future__ import annotations

from submission_delivery.domain.errors.base import (
    DeliveryPipelineError,
    ErrorCode,
    ErrorType,
)


class ContentRejectedError(DeliveryPipelineError):
    """Base error for rejected content.

    Attributes:
        reason: Short machine-readable rejection reason.
    """

    error_type = ErrorType.USER
    error_code = ErrorCode.CONTENT_REJECTED
    reason = "content_rejected"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class EmojiContentError(ContentRejectedError):
    """Text contains emoji characters."""

    reason = "emoji"

    def __init__(self) -> None:
        super().__init__("Emojis are not allowed in submission text")


class EmDashContentError(ContentRejectedError):
    """Text contains an em dash after sanitisation."""

    reason = "em_dash"

    def __init__(self) -> None:
        super().__init__("Em dashes are not allowed in submission text")


class AIDisclosureContentError(ContentRejectedError):
    """Text contains phrasing that discloses machine authorship.

    Attributes:
        phrase: The offending phrase as matched.
    """

    reason = "ai_disclosure"

    def __init__(self, phrase: str) -> None:
        self.phrase = phrase
        super().__init__(f"Disallowed AI phrasing detected: {phrase!r}")


class DisallowedLinkContentError(ContentRejectedError):
    """Text contains a markdown link or a URL outside the allow-list.

    Attributes:
        link: The offending link.
    """

    reason = "disallowed_link"

    def __init__(self, link: str) -> None:
        self.link = link
        super().__init__(f"Link not permitted in submission text: {link}")


class WordLimitExceededError(ContentRejectedError):
    """Text is longer than the configured word limit.

    Attributes:
        word_count: Words counted in the sanitised text.
        max_words: Configured limit.
    """

    reason = "word_limit"

    def __init__(self, word_count: int, max_words: int) -> None:
        self.word_count = word_count
        self.max_words = max_words
        super().__init__(
            f"Submission text has {word_count} words, limit is {max_words}"
        )


class MissingSubmissionTextError(ContentRejectedError):
    """No submission text was supplied and none could be generated."""

    error_code = ErrorCode.VALIDATION_FAILED
    reason = "missing_text"

    def __init__(self) -> None:
        super().__init__("Submission text is required when AI generation is disabled")
