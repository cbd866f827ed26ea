"""Submission Delivery - pathway orchestration and resilient council delivery.

Drives citizen objection submissions through the direct, review and draft
pathways, validates generated content before it leaves the system, and
delivers the resulting emails through a persistent retrying queue guarded
by per-dependency circuit breakers.
"""

__version__ = "0.1.0"
