"""
Tag registry: the single source of truth for tag identity and metadata.

A registry is an ordinary object that callers construct and pass around;
there is no module-level instance. Every mutating call notifies subscribers
synchronously, after the change is applied, in subscription order.

Usage:
    from triage.registry import TagRegistry

    registry = TagRegistry(default_tags())
    unsubscribe = registry.subscribe(lambda tags: print(len(tags)))
    result = registry.add_tag("Receipts")
    if not result.ok:
        print(result.error.message)
"""

import logging
import uuid
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Set

from triage.errors import (
    MAX_INSTRUCTIONS,
    TAG_NAME_MAX_LENGTH,
    TAG_NAME_MIN_LENGTH,
    TagError,
    TagResult,
    ValidationResult,
)
from triage.models import Tag

logger = logging.getLogger(__name__)

TagCallback = Callable[[List[Tag]], None]


def _new_tag_id() -> str:
    return f"tag-{uuid.uuid4().hex[:12]}"


class _Subscription:
    """One subscribe() call; the same callback may hold several."""

    def __init__(self, callback: TagCallback):
        self.callback = callback
        self.active = True


class TagRegistry:
    """
    Owns the ordered set of tags, validates names and publishes changes.

    Attributes:
        id_factory: Callable producing candidate IDs for new tags. Candidates
            that were ever issued in this registry are skipped.

    Example:
        registry = TagRegistry()
        tag = registry.add_tag("Work").tag
        registry.get_tag(tag.id).name  # "Work"
    """

    def __init__(
        self,
        tags: Optional[Iterable[Tag]] = None,
        id_factory: Callable[[], str] = _new_tag_id,
    ):
        """
        Initialize the registry.

        Args:
            tags: Seed tags, kept in the given order. Later duplicates of an
                ID are dropped.
            id_factory: Generator for new tag IDs
        """
        self.id_factory = id_factory
        self._tags: List[Tag] = []
        self._issued_ids: Set[str] = set()
        self._subscribers: List[_Subscription] = []

        for tag in tags or []:
            if tag.id in self._issued_ids:
                logger.warning(f"Ignoring duplicate seed tag id {tag.id!r}")
                continue
            self._tags.append(tag)
            self._issued_ids.add(tag.id)

    # --- Queries ---

    def list_tags(self) -> List[Tag]:
        """Return the current tags in registry order."""
        return list(self._tags)

    def get_tag(self, tag_id: str) -> Optional[Tag]:
        """Look up a tag by ID. Returns None for unknown or deleted IDs."""
        for tag in self._tags:
            if tag.id == tag_id:
                return tag
        return None

    def get_tags(self, tag_ids: Iterable[str]) -> List[Tag]:
        """Resolve IDs to tags in the given order, skipping dangling IDs."""
        resolved = []
        for tag_id in tag_ids:
            tag = self.get_tag(tag_id)
            if tag is not None:
                resolved.append(tag)
        return resolved

    def search_tags(self, query: str) -> List[Tag]:
        """Case-insensitive substring search on tag names, in registry order."""
        needle = query.lower()
        return [tag for tag in self._tags if needle in tag.name.lower()]

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag_id: object) -> bool:
        return any(tag.id == tag_id for tag in self._tags)

    # --- Validation ---

    def validate_name(self, name: str, exclude_id: Optional[str] = None) -> ValidationResult:
        """
        Check a candidate tag name.

        Args:
            name: Raw name as typed by the user (trimmed before checking)
            exclude_id: Tag whose own name is ignored by the duplicate check,
                used when renaming

        Returns:
            ValidationResult carrying the first failing reason, if any
        """
        trimmed = (name or "").strip()
        if not trimmed:
            return ValidationResult(TagError.EMPTY_NAME)
        if len(trimmed) < TAG_NAME_MIN_LENGTH:
            return ValidationResult(TagError.NAME_TOO_SHORT)
        if len(trimmed) > TAG_NAME_MAX_LENGTH:
            return ValidationResult(TagError.NAME_TOO_LONG)

        folded = trimmed.lower()
        for tag in self._tags:
            if tag.id != exclude_id and tag.name.strip().lower() == folded:
                return ValidationResult(TagError.DUPLICATE_NAME)

        return ValidationResult()

    # --- Mutations ---

    def add_tag(self, name: str, instructions: Optional[List[str]] = None) -> TagResult:
        """
        Create a tag with a freshly generated ID and append it.

        Args:
            name: Display name
            instructions: Optional free-text instructions (at most 5)

        Returns:
            TagResult with the created tag, or the validation error
        """
        validation = self.validate_name(name)
        if not validation.is_valid:
            return TagResult(error=validation.error)
        if instructions and len(instructions) > MAX_INSTRUCTIONS:
            return TagResult(error=TagError.TOO_MANY_INSTRUCTIONS)

        tag = Tag(id=self._next_id(), name=name.strip(), instructions=list(instructions or []))
        self._commit(self._tags + [tag])
        logger.debug(f"Added tag {tag.id} ({tag.name})")
        return TagResult(tag=tag)

    def update_tag(self, tag: Tag) -> TagResult:
        """
        Replace the stored tag with the same ID.

        The name is re-validated only when it changed. Instructions, examples
        and negative examples are taken from `tag`. The instruction limit is
        checked only when the instructions change, so a stored tag carrying
        more than the limit still accepts other edits.

        Returns:
            TagResult with the stored tag, TAG_NOT_FOUND, or a validation error
        """
        index = self._index_of(tag.id)
        if index is None:
            return TagResult(error=TagError.TAG_NOT_FOUND)

        current = self._tags[index]
        trimmed = (tag.name or "").strip()
        if trimmed != current.name:
            validation = self.validate_name(trimmed, exclude_id=current.id)
            if not validation.is_valid:
                return TagResult(error=validation.error)
        instructions_changed = list(tag.instructions) != list(current.instructions)
        if instructions_changed and len(tag.instructions) > MAX_INSTRUCTIONS:
            return TagResult(error=TagError.TOO_MANY_INSTRUCTIONS)

        updated = replace(
            current,
            name=trimmed,
            instructions=list(tag.instructions),
            examples=list(tag.examples),
            negative_examples=list(tag.negative_examples),
        )
        tags = list(self._tags)
        tags[index] = updated
        self._commit(tags)
        logger.debug(f"Updated tag {updated.id} ({updated.name})")
        return TagResult(tag=updated)

    def delete_tag(self, tag_id: str) -> bool:
        """
        Remove a tag. Views and messages that still reference it are left as
        they are; their references simply stop matching anything known.
        """
        index = self._index_of(tag_id)
        if index is None:
            return False
        removed = self._tags[index]
        self._commit(self._tags[:index] + self._tags[index + 1:])
        logger.debug(f"Deleted tag {removed.id} ({removed.name})")
        return True

    def move_tag(self, tag_id: str, new_index: int) -> bool:
        """Move a tag to `new_index` (clamped), as drag-and-drop reordering does."""
        index = self._index_of(tag_id)
        if index is None:
            return False
        new_index = max(0, min(new_index, len(self._tags) - 1))
        if new_index != index:
            tags = list(self._tags)
            tags.insert(new_index, tags.pop(index))
            self._commit(tags)
        return True

    # --- Subscriptions ---

    def subscribe(self, callback: TagCallback) -> Callable[[], None]:
        """
        Register a callback that receives the full tag list after each change.

        Returns:
            A function that removes this subscription. Calling it more than
            once, or from inside a notification, is safe.
        """
        subscription = _Subscription(callback)
        self._subscribers.append(subscription)

        def unsubscribe() -> None:
            if subscription.active:
                subscription.active = False
                self._subscribers.remove(subscription)

        return unsubscribe

    def _notify(self) -> None:
        # Iterate over a copy so callbacks may unsubscribe themselves.
        for subscription in list(self._subscribers):
            if subscription.active:
                subscription.callback(self.list_tags())

    def _commit(self, tags: List[Tag]) -> None:
        """Swap in a new tag list and notify. A failing subscriber restores the old list."""
        previous = self._tags
        self._tags = tags
        try:
            self._notify()
        except Exception as e:
            self._tags = previous
            logger.error(f"Tag change rolled back, subscriber failed: {e}")
            raise

    # --- Internals ---

    def _index_of(self, tag_id: str) -> Optional[int]:
        for i, tag in enumerate(self._tags):
            if tag.id == tag_id:
                return i
        return None

    def _next_id(self) -> str:
        candidate = self.id_factory()
        while candidate in self._issued_ids:
            candidate = self.id_factory()
        self._issued_ids.add(candidate)
        return candidate
