"""
Core triage module.

Provides the tag registry, the view condition matching engine, usage
statistics and the coordinated message/tag edits shared by every front end.
"""

from triage.models import Condition, ConditionType, Email, NegativeExample, Tag, View
from triage.errors import MutationResult, TagError, TagResult, ValidationResult
from triage.registry import TagRegistry
from triage.conditions import matches_condition, matches_conditions, matches_view
from triage.views import (
    count_all_views,
    count_for_view,
    filter_by_view,
    find_view,
    referenced_tag_ids,
    views_referencing,
    visible_views,
)
from triage.usage import sort_tags_by_usage, tag_usage_counts
from triage.mutations import (
    add_tags_to_message,
    create_tag_on_message,
    find_email,
    remove_tag_from_message,
    remove_tag_with_negative_example,
)
from triage.seed import default_tags, default_views
from triage.store import JsonStore, open_store
from triage.config import Config, load_config, create_sample_config

__all__ = [
    "Condition",
    "ConditionType",
    "Email",
    "NegativeExample",
    "Tag",
    "View",
    "MutationResult",
    "TagError",
    "TagResult",
    "ValidationResult",
    "TagRegistry",
    "matches_condition",
    "matches_conditions",
    "matches_view",
    "count_all_views",
    "count_for_view",
    "filter_by_view",
    "find_view",
    "referenced_tag_ids",
    "views_referencing",
    "visible_views",
    "sort_tags_by_usage",
    "tag_usage_counts",
    "add_tags_to_message",
    "create_tag_on_message",
    "find_email",
    "remove_tag_from_message",
    "remove_tag_with_negative_example",
    "default_tags",
    "default_views",
    "JsonStore",
    "open_store",
    "Config",
    "load_config",
    "create_sample_config",
]
