"""
Mail sources.

Adapters that produce message records for the triage core. All implement the
abstract MailSource interface.

Supported Sources:
    - FixtureSource: local JSON fixture file
    - GmailSource: Gmail API (google-api-python-client)
"""

from sources.base import MailSource
from sources.fixture import FixtureSource

__all__ = [
    "MailSource",
    "FixtureSource",
]


# Lazy import so the Google client stack loads only when Gmail is used
def get_gmail_source():
    from sources.gmail import GmailSource
    return GmailSource
