"""
View condition matching.

Pure predicates deciding whether a message belongs to a view. A view is a
list of conditions AND-ed together; each condition compares its own tag list
against the message's tags using its matching mode:

    includes-any   at least one of the condition's tags is on the message
    includes-all   every one of the condition's tags is on the message
    excludes-any   none of the condition's tags is on the message

A condition with no tags is vacuously true. A view with no conditions, or
whose conditions are all empty, matches nothing.

Tag IDs are compared as plain strings, so IDs of deleted tags behave like any
other unknown string and never raise.

Usage:
    from triage.conditions import matches_view

    view = View.from_dict({
        "id": "work", "name": "Work",
        "conditions": [
            {"type": "includes-any", "tags": ["work", "business"]},
            {"type": "excludes-any", "tags": ["spam"]},
        ],
    })
    matches_view(email, view)
"""

from typing import FrozenSet, Iterable

from triage.models import Condition, ConditionType, Email, View


def _matches_tags(message_tags: FrozenSet[str], condition: Condition) -> bool:
    if not condition.tags:
        return True

    if condition.type is ConditionType.INCLUDES_ANY:
        return any(tag in message_tags for tag in condition.tags)
    if condition.type is ConditionType.INCLUDES_ALL:
        return all(tag in message_tags for tag in condition.tags)
    if condition.type is ConditionType.EXCLUDES_ANY:
        return not any(tag in message_tags for tag in condition.tags)

    raise ValueError(f"Unknown condition type: {condition.type!r}")


def matches_condition(email: Email, condition: Condition) -> bool:
    """
    Check a single condition against a message.

    Args:
        email: Message whose tags are tested
        condition: Condition to evaluate

    Returns:
        True if the message satisfies the condition (always True when the
        condition has no tags)

    Raises:
        ValueError: If the condition carries a mode outside ConditionType
    """
    return _matches_tags(email.tag_set, condition)


def has_effective_conditions(conditions: Iterable[Condition]) -> bool:
    """True if at least one condition names a tag."""
    return any(condition.tags for condition in conditions)


def matches_conditions(email: Email, conditions: Iterable[Condition]) -> bool:
    """AND a list of conditions together, with the empty-view guard."""
    conditions = list(conditions)
    if not has_effective_conditions(conditions):
        return False

    message_tags = email.tag_set
    return all(_matches_tags(message_tags, condition) for condition in conditions)


def matches_view(email: Email, view: View) -> bool:
    """
    Check whether a message belongs to a view.

    Returns:
        False for views without any non-empty condition, otherwise True iff
        every condition matches.
    """
    return matches_conditions(email, view.conditions)
