"""
Abstract base class for mail sources.

A mail source hands the triage core a flat list of message records. Sources
never see tags or views; tagging happens locally after messages are loaded.
"""

from abc import ABC, abstractmethod
from typing import List, Tuple

from triage.models import Email


class MailSource(ABC):
    """
    Interface implemented by every mail source.

    Supports the context manager protocol for connection handling.

    Example:
        with FixtureSource("emails.json") as source:
            emails = source.fetch_messages(limit=50)

    Attributes:
        name: Human-readable source name
    """

    name: str = "abstract"

    def __enter__(self) -> "MailSource":
        """Context manager entry - establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.disconnect()

    def connect(self) -> None:
        """Establish connection. Default is a no-op for local sources."""

    def disconnect(self) -> None:
        """Close connection. Must be safe to call more than once."""

    @abstractmethod
    def fetch_messages(self, limit: int = 50) -> List[Email]:
        """
        Fetch up to `limit` recent messages.

        Returns:
            Email records with empty tag lists unless the source stores tags
        """
        pass

    def health_check(self) -> Tuple[bool, str]:
        """
        Verify the source is reachable.

        Returns:
            Tuple of (is_healthy, status_message)
        """
        try:
            self.fetch_messages(limit=1)
            return True, "OK"
        except Exception as e:
            return False, str(e)
