"""
Mail source backed by a local JSON fixture.

The fixture format is the one the web front end bundles:
    {"emails": [{"id": ..., "sender": ..., "subject": ..., "preview": ...,
                 "date": ..., "tags": [...]}, ...]}
A bare list of records is accepted as well.
"""

import json
import logging
import os
from typing import List

from sources.base import MailSource
from triage.models import Email

logger = logging.getLogger(__name__)


class FixtureSource(MailSource):
    """Reads message records from a JSON file, keeping any tags they carry."""

    name = "fixture"

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def fetch_messages(self, limit: int = 50) -> List[Email]:
        """
        Load records from the fixture file.

        Raises:
            FileNotFoundError: If the fixture does not exist
            ValueError: If the file is not valid fixture JSON
        """
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid fixture file {self.path}: {e}") from e

        records = data.get("emails", []) if isinstance(data, dict) else data
        if not isinstance(records, list):
            raise ValueError(f"Invalid fixture file {self.path}: 'emails' must be a list")

        emails = [Email.from_dict(record) for record in records[:limit]]
        logger.info(f"Loaded {len(emails)} messages from {self.path}")
        return emails
