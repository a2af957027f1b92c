"""
Data models for tag-based email triage.

Provides the record types shared by the tag registry, the view matching
engine and the mail sources. Records round-trip through plain dicts so that
storage adapters and fixtures can stay format-agnostic.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

MessageId = Union[str, int]

DEFAULT_VIEW_ICON = "folder"


class ConditionType(Enum):
    """How a condition's tag list is compared against a message's tags."""
    INCLUDES_ANY = "includes-any"
    INCLUDES_ALL = "includes-all"
    EXCLUDES_ANY = "excludes-any"


@dataclass(frozen=True)
class NegativeExample:
    """
    Snapshot of a message recorded against a tag as a counter-example.

    Attributes:
        subject: Subject of the message at removal time
        preview: Preview snippet of the message at removal time
        timestamp: ISO-8601 time the tag was removed
    """
    subject: str
    preview: str
    timestamp: str

    @classmethod
    def capture(cls, email: "Email", when: Optional[datetime] = None) -> "NegativeExample":
        """Snapshot an email, stamped with `when` (defaults to now, UTC)."""
        when = when or datetime.now(timezone.utc)
        return cls(subject=email.subject, preview=email.preview, timestamp=when.isoformat())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NegativeExample":
        return cls(
            subject=data.get("subject", ""),
            preview=data.get("preview", ""),
            timestamp=data.get("timestamp", ""),
        )

    def to_dict(self) -> Dict[str, str]:
        return {"subject": self.subject, "preview": self.preview, "timestamp": self.timestamp}


@dataclass(frozen=True)
class Tag:
    """
    A named label that can be attached to messages.

    The ID is assigned by the registry and never changes; the name is what
    users see and edit.

    Attributes:
        id: Stable identifier, unique within a session
        name: Display name (trimmed, 2-50 chars, unique ignoring case)
        instructions: Free-text classification hints (at most 5)
        examples: References to example messages
        negative_examples: Messages explicitly flagged as not matching
    """
    id: str
    name: str
    instructions: List[str] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)
    negative_examples: List[NegativeExample] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        """Build a Tag from a stored record (accepts the web app's camelCase keys)."""
        if "id" not in data or "name" not in data:
            raise ValueError(f"Tag record needs 'id' and 'name': {data!r}")

        instructions = data.get("instructions", data.get("llmInstructions")) or []
        if isinstance(instructions, str):
            instructions = [instructions]
        examples = data.get("examples", data.get("exampleEmails")) or []
        negatives = data.get("negative_examples", data.get("negativeExamples")) or []

        return cls(
            id=str(data["id"]),
            name=data["name"],
            instructions=list(instructions),
            examples=list(examples),
            negative_examples=[NegativeExample.from_dict(n) for n in negatives],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "instructions": list(self.instructions),
            "examples": list(self.examples),
            "negative_examples": [n.to_dict() for n in self.negative_examples],
        }


@dataclass(frozen=True)
class Condition:
    """
    A single rule inside a view.

    Attributes:
        type: Matching mode for this condition's tag list
        tags: Tag IDs the condition refers to (order kept only for display)
    """
    type: ConditionType
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        # ConditionType() raises ValueError on an unknown mode.
        return cls(type=ConditionType(data["type"]), tags=[str(t) for t in data.get("tags", [])])

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "tags": list(self.tags)}


@dataclass(frozen=True)
class View:
    """
    A saved filter over tags.

    Attributes:
        id: Stable identifier
        name: Display name
        visible: Hidden views stay computable but are left out of navigation
        icon: Icon token used by front ends
        conditions: Conditions AND-ed together when matching
    """
    id: str
    name: str
    visible: bool = True
    icon: str = DEFAULT_VIEW_ICON
    conditions: List[Condition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "View":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            visible=bool(data.get("visible", True)),
            icon=data.get("icon") or DEFAULT_VIEW_ICON,
            conditions=[Condition.from_dict(c) for c in data.get("conditions", [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "visible": self.visible,
            "icon": self.icon,
            "conditions": [c.to_dict() for c in self.conditions],
        }


@dataclass(frozen=True)
class Email:
    """
    Provider-agnostic message record as shown in the triage list.

    Attributes:
        id: Source-specific identifier (string or numeric)
        sender: The 'From' header value
        subject: The 'Subject' header value
        preview: Short body snippet
        date: Display date as supplied by the source
        tags: Tag IDs attached to the message (set semantics)
    """
    id: MessageId
    sender: str
    subject: str
    preview: str = ""
    date: str = ""
    tags: List[str] = field(default_factory=list)

    @property
    def tag_set(self) -> frozenset:
        return frozenset(self.tags)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Email":
        if "id" not in data:
            raise ValueError(f"Email record needs an 'id': {data!r}")
        return cls(
            id=data["id"],
            sender=data.get("sender", ""),
            subject=data.get("subject", ""),
            preview=data.get("preview", ""),
            date=data.get("date", ""),
            tags=list(dict.fromkeys(str(t) for t in data.get("tags", []))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sender": self.sender,
            "subject": self.subject,
            "preview": self.preview,
            "date": self.date,
            "tags": list(self.tags),
        }
