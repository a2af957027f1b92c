"""
Result types for tag and message operations.

User-input problems (bad tag names, stale IDs) are ordinary outcomes, so they
are reported through these result objects instead of exceptions. Front ends
check `ok` and show `message` inline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from triage.models import Email, Tag

TAG_NAME_MIN_LENGTH = 2
TAG_NAME_MAX_LENGTH = 50
MAX_INSTRUCTIONS = 5


class TagError(Enum):
    """Reasons a tag or message operation was rejected."""
    EMPTY_NAME = "Tag name cannot be empty"
    NAME_TOO_SHORT = f"Tag name must be at least {TAG_NAME_MIN_LENGTH} characters"
    NAME_TOO_LONG = f"Tag name cannot exceed {TAG_NAME_MAX_LENGTH} characters"
    DUPLICATE_NAME = "A tag with this name already exists"
    TOO_MANY_INSTRUCTIONS = f"A tag can have at most {MAX_INSTRUCTIONS} instructions"
    TAG_NOT_FOUND = "Tag not found"
    MESSAGE_NOT_FOUND = "Message not found"

    @property
    def message(self) -> str:
        return self.value


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a tag name check."""
    error: Optional[TagError] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""


@dataclass(frozen=True)
class TagResult:
    """Outcome of a registry mutation: the stored tag, or why it was refused."""
    tag: Optional[Tag] = None
    error: Optional[TagError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of a coordinated message/registry edit.

    Attributes:
        emails: The resulting message list (the original list when rejected)
        tag: The tag as stored after the edit, if the registry was touched
        error: Reason for rejection, or None on success
    """
    emails: List[Email] = field(default_factory=list)
    tag: Optional[Tag] = None
    error: Optional[TagError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
