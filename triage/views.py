"""
Projection of a message list through saved views.

All helpers are stateless: the same messages and views always give the same
result, in the original message order.
"""

from typing import Dict, List, Optional, Sequence

from triage.conditions import matches_view
from triage.models import Email, View


def filter_by_view(emails: Sequence[Email], view: Optional[View]) -> List[Email]:
    """
    Return the messages that belong to `view`, keeping their relative order.

    Args:
        emails: Messages to filter
        view: View to apply, or None for the unfiltered inbox

    Returns:
        New list of matching messages (all messages when view is None)
    """
    if view is None:
        return list(emails)
    return [email for email in emails if matches_view(email, view)]


def count_for_view(emails: Sequence[Email], view: Optional[View]) -> int:
    """Number of messages `filter_by_view` would return, without building the list."""
    if view is None:
        return len(emails)
    return sum(1 for email in emails if matches_view(email, view))


def count_all_views(emails: Sequence[Email], views: Sequence[View]) -> Dict[str, int]:
    """Match count per view ID, for navigation badges."""
    return {view.id: count_for_view(emails, view) for view in views}


def visible_views(views: Sequence[View]) -> List[View]:
    """Views shown in navigation. Hidden views stay usable by ID."""
    return [view for view in views if view.visible]


def find_view(views: Sequence[View], view_id: Optional[str]) -> Optional[View]:
    """Look up a view by ID. Returns None for unknown IDs and for None."""
    if view_id is None:
        return None
    for view in views:
        if view.id == view_id:
            return view
    return None


def referenced_tag_ids(views: Sequence[View]) -> List[str]:
    """All tag IDs used by any condition, in first-seen order."""
    seen: Dict[str, None] = {}
    for view in views:
        for condition in view.conditions:
            for tag_id in condition.tags:
                seen.setdefault(tag_id, None)
    return list(seen)


def views_referencing(views: Sequence[View], tag_id: str) -> List[View]:
    """Views with at least one condition naming `tag_id` (checked before deleting a tag)."""
    return [
        view for view in views
        if any(tag_id in condition.tags for condition in view.conditions)
    ]
