"""
User edits to the message/tag graph.

Message lists are treated as immutable: every operation returns a new list in
which only the edited message is a new object. Operations that also touch
the tag registry check every precondition first, so a rejected call leaves
both the messages and the registry as they were.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from triage.errors import MutationResult, TagError
from triage.models import Email, MessageId, NegativeExample
from triage.registry import TagRegistry

logger = logging.getLogger(__name__)


def _same_id(a: MessageId, b: MessageId) -> bool:
    # Sources may hand out numeric IDs while front ends pass strings.
    return a == b or str(a) == str(b)


def find_email(emails: Sequence[Email], message_id: MessageId) -> Optional[Email]:
    """Look up a message by ID. Returns None when absent."""
    for email in emails:
        if _same_id(email.id, message_id):
            return email
    return None


def add_tags_to_message(
    emails: Sequence[Email],
    message_id: MessageId,
    tag_ids: Iterable[str],
) -> List[Email]:
    """
    Union `tag_ids` into one message's tags.

    Tags already present are left alone. If nothing changes, or the message
    is not in the list, the original message objects are returned.
    """
    tag_ids = list(tag_ids)
    updated = []
    for email in emails:
        if _same_id(email.id, message_id):
            merged = list(dict.fromkeys(list(email.tags) + tag_ids))
            if merged != list(email.tags):
                email = replace(email, tags=merged)
        updated.append(email)
    return updated


def remove_tag_from_message(
    emails: Sequence[Email],
    message_id: MessageId,
    tag_id: str,
) -> List[Email]:
    """Drop `tag_id` from one message. No-op when the tag is not on it."""
    updated = []
    for email in emails:
        if _same_id(email.id, message_id) and tag_id in email.tags:
            email = replace(email, tags=[t for t in email.tags if t != tag_id])
        updated.append(email)
    return updated


def remove_tag_with_negative_example(
    emails: Sequence[Email],
    registry: TagRegistry,
    message_id: MessageId,
    tag_id: str,
    record_negative: bool,
    now: Optional[datetime] = None,
) -> MutationResult:
    """
    Remove a tag from a message, optionally recording it as a counter-example.

    When `record_negative` is set, a snapshot of the message's subject and
    preview, stamped with the current time, is appended to the tag's
    negative examples through the registry.

    Args:
        emails: Current message list
        registry: Registry owning the tag
        message_id: Message to edit
        tag_id: Tag to remove
        record_negative: Whether to record the negative example
        now: Override for the snapshot time (defaults to now, UTC)

    Returns:
        MutationResult with the new message list and the stored tag, or the
        original list and MESSAGE_NOT_FOUND / TAG_NOT_FOUND
    """
    original = list(emails)
    email = find_email(original, message_id)
    if email is None:
        return MutationResult(emails=original, error=TagError.MESSAGE_NOT_FOUND)

    if not record_negative:
        return MutationResult(emails=remove_tag_from_message(original, message_id, tag_id))

    tag = registry.get_tag(tag_id)
    if tag is None:
        return MutationResult(emails=original, error=TagError.TAG_NOT_FOUND)

    candidate = replace(
        tag,
        negative_examples=list(tag.negative_examples) + [NegativeExample.capture(email, now)],
    )
    result = registry.update_tag(candidate)
    if not result.ok:
        return MutationResult(emails=original, error=result.error)

    logger.debug(f"Recorded negative example for tag {tag_id} from message {message_id}")
    return MutationResult(
        emails=remove_tag_from_message(original, message_id, tag_id),
        tag=result.tag,
    )


def create_tag_on_message(
    emails: Sequence[Email],
    registry: TagRegistry,
    message_id: MessageId,
    name: str,
) -> MutationResult:
    """
    Create a new tag and attach it to a message in one step.

    The message is looked up and the name validated before the registry is
    changed, so a rejected call has no effect.
    """
    original = list(emails)
    if find_email(original, message_id) is None:
        return MutationResult(emails=original, error=TagError.MESSAGE_NOT_FOUND)

    validation = registry.validate_name(name)
    if not validation.is_valid:
        return MutationResult(emails=original, error=validation.error)

    result = registry.add_tag(name)
    if not result.ok:
        return MutationResult(emails=original, error=result.error)

    return MutationResult(
        emails=add_tags_to_message(original, message_id, [result.tag.id]),
        tag=result.tag,
    )
