"""
Default tags and views a fresh workspace starts with.

Tag IDs here are short readable slugs; tags created later get generated IDs.
"""

from typing import Any, Dict, List

from triage.models import Tag, View

DEFAULT_TAGS: Dict[str, str] = {
    "document": "Document",
    "official": "Official",
    "living": "Living",
    "home": "Home",
    "utilities": "Utilities",
    "banking": "Banking",
    "finance": "Finance",
    "work": "Work",
    "education": "Education",
    "school": "School",
    "business": "Business",
    "gov": "Government",
    "tax": "Tax",
    "health-ins": "Health Insurance",
    "invest": "Investment",
    "housing": "Housing",
    "job": "Job",
    "prof": "Professional",
}

DEFAULT_VIEWS: List[Dict[str, Any]] = [
    {
        "id": "docs",
        "name": "Official Documents",
        "icon": "file-text",
        "conditions": [{"type": "includes-any", "tags": ["document", "official"]}],
    },
    {
        "id": "living",
        "name": "Living",
        "icon": "home",
        "conditions": [{"type": "includes-any", "tags": ["living", "home", "utilities"]}],
    },
    {
        "id": "banking",
        "name": "Banking",
        "icon": "landmark",
        "conditions": [{"type": "includes-any", "tags": ["banking", "finance"]}],
    },
    {
        "id": "work",
        "name": "Work",
        "icon": "briefcase",
        "conditions": [{"type": "includes-any", "tags": ["work"]}],
    },
    {
        "id": "education",
        "name": "Education",
        "icon": "graduation-cap",
        "conditions": [{"type": "includes-any", "tags": ["education", "school"]}],
    },
    {
        "id": "business",
        "name": "Business",
        "icon": "building",
        "conditions": [{"type": "includes-any", "tags": ["business"]}],
    },
]


def default_tags() -> List[Tag]:
    return [Tag(id=tag_id, name=name) for tag_id, name in DEFAULT_TAGS.items()]


def default_views() -> List[View]:
    return [View.from_dict(data) for data in DEFAULT_VIEWS]
