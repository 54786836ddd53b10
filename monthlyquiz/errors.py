"""
Error types raised by the exam core.

All of them are recoverable: the session degrades to a visible message
instead of stopping the process.
"""

from typing import Optional


class LoadError(Exception):
    """Paper source unreachable, unreadable or not valid JSON."""

    def __init__(self, subject_id: str, path: Optional[str], reason: str):
        self.subject_id = subject_id
        self.path = path
        self.reason = reason
        super().__init__(f"Could not load papers for '{subject_id}' ({path}): {reason}")


class SchemaError(Exception):
    """Paper source parsed but has no usable papers/sets or questions."""

    def __init__(self, subject_id: str, reason: str):
        self.subject_id = subject_id
        self.reason = reason
        super().__init__(f"Invalid paper data for '{subject_id}': {reason}")


class SubmissionError(Exception):
    """The storage/relay collaborator failed to record a submission."""
