"""
Local persistence for tags, views and messages.

Stores each collection under a key in a single JSON document, the way the
web front end keeps them in browser storage. The core never calls this
module itself; front ends load records from it and attach it to a registry
for write-through.
"""

import json
import logging
import os
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from triage.models import Email, Tag, View
from triage.registry import TagRegistry

logger = logging.getLogger(__name__)

TAGS_KEY = "tags"
VIEWS_KEY = "views"
EMAILS_KEY = "emails"


class JsonStore:
    """
    JSON-file key-value store.

    A missing or unreadable file behaves like an empty store; read errors are
    logged rather than raised so a corrupt file never blocks start-up.

    Attributes:
        filename: Path to the JSON document
        data: In-memory copy of the document

    Example:
        store = JsonStore("triage.json")
        registry = TagRegistry(store.load_tags() or default_tags())
        store.attach(registry)  # every tag change is written back
    """

    def __init__(self, filename: str):
        self.filename = filename
        self.data = self._load()

    def _load(self) -> Dict[str, Any]:
        """Load the document from disk, or return an empty one."""
        if os.path.exists(self.filename):
            try:
                with open(self.filename, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.error(f"Ignoring store file {self.filename}: top level is not an object")
            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse store file {self.filename}: {e}")
            except OSError as e:
                logger.error(f"Failed to read store file {self.filename}: {e}")
        return {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a key and write the whole document to disk."""
        self.data[key] = value
        self.data["updated_at"] = datetime.now().isoformat()
        self._save()

    def remove(self, key: str) -> None:
        if key in self.data:
            del self.data[key]
            self._save()

    def _save(self) -> None:
        try:
            directory = os.path.dirname(self.filename)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.filename, "w", encoding="utf-8") as f:
                json.dump(self.data, f, indent=2)
        except (OSError, TypeError) as e:
            logger.error(f"Failed to save store to {self.filename}: {e}")

    # --- Typed collections ---

    def load_tags(self) -> List[Tag]:
        return self._load_records(TAGS_KEY, Tag.from_dict)

    def save_tags(self, tags: List[Tag]) -> None:
        self.set(TAGS_KEY, [tag.to_dict() for tag in tags])

    def load_views(self) -> List[View]:
        return self._load_records(VIEWS_KEY, View.from_dict)

    def save_views(self, views: List[View]) -> None:
        self.set(VIEWS_KEY, [view.to_dict() for view in views])

    def load_emails(self) -> List[Email]:
        return self._load_records(EMAILS_KEY, Email.from_dict)

    def save_emails(self, emails: List[Email]) -> None:
        self.set(EMAILS_KEY, [email.to_dict() for email in emails])

    def _load_records(self, key: str, parse: Callable[[Dict[str, Any]], Any]) -> List[Any]:
        records = []
        for raw in self.get(key) or []:
            try:
                records.append(parse(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Skipping malformed {key} record in {self.filename}: {e}")
        return records

    def has(self, key: str) -> bool:
        return key in self.data

    # --- Registry write-through ---

    def attach(self, registry: TagRegistry) -> Callable[[], None]:
        """Persist the tag list after every registry change. Returns the unsubscribe function."""
        return registry.subscribe(self.save_tags)


def open_store(path: Optional[str]) -> JsonStore:
    """Open the store at `path`, expanding `~`."""
    return JsonStore(os.path.expanduser(path or "triage.json"))
