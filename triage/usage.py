"""
Tag usage statistics derived from the message list.
"""

from typing import Dict, List, Sequence

from triage.models import Email, Tag


def tag_usage_counts(emails: Sequence[Email], tags: Sequence[Tag]) -> Dict[str, int]:
    """
    Count how many messages carry each tag.

    Every tag in `tags` appears in the result, with 0 when unused, so callers
    can tell "unused" apart from "unknown". Tag IDs on messages that are not
    in `tags` are ignored.

    Args:
        emails: Messages to scan
        tags: Tags to count

    Returns:
        Dict mapping tag ID to number of messages carrying it
    """
    counts = {tag.id: 0 for tag in tags}
    for email in emails:
        for tag_id in email.tag_set:
            if tag_id in counts:
                counts[tag_id] += 1
    return counts


def sort_tags_by_usage(tags: Sequence[Tag], counts: Dict[str, int]) -> List[Tag]:
    """Most-used tags first; ties keep their registry order."""
    return sorted(tags, key=lambda tag: counts.get(tag.id, 0), reverse=True)
