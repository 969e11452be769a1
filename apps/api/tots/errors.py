"""Domain errors raised by the tracker and its collections."""
from __future__ import annotations


class DuplicateEventError(ValueError):
    """An event with the same id is already in the store."""


class EventNotFoundError(ValueError):
    pass


class DuplicateWordError(ValueError):
    """The word is already in the vocabulary (case-insensitive)."""


class WordNotFoundError(ValueError):
    pass


class MilestoneNotFoundError(ValueError):
    pass


class RemoteFeedError(RuntimeError):
    """The remote event feed answered with an error status or an unexpected body."""
