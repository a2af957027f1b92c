"""
Shared test fixtures for mail triage tests
"""

import itertools
from typing import Dict, List, Optional

import pytest
from googleapiclient.errors import HttpError

from triage.models import Email, Tag, View
from triage.registry import TagRegistry


# === Sample Data ===

def make_email(email_id, tags: List[str], subject: str = "Subject", preview: str = "Preview") -> Email:
    """Helper to create an Email with just the fields tests care about"""
    return Email(
        id=email_id,
        sender=f"sender-{email_id}@example.com",
        subject=subject,
        preview=preview,
        date="2024-01-01",
        tags=list(tags),
    )


def make_view(view_id: str, *conditions, visible: bool = True) -> View:
    """Helper to build a View from (type, tags) pairs"""
    return View.from_dict({
        "id": view_id,
        "name": view_id.title(),
        "visible": visible,
        "conditions": [{"type": t, "tags": list(tags)} for t, tags in conditions],
    })


@pytest.fixture
def counter_ids():
    """Deterministic tag ID factory: tag-1, tag-2, ..."""
    counter = itertools.count(1)
    return lambda: f"tag-{next(counter)}"


@pytest.fixture
def seed_tags() -> List[Tag]:
    return [
        Tag(id="work", name="Work"),
        Tag(id="business", name="Business"),
        Tag(id="spam", name="Spam"),
        Tag(id="urgent", name="Urgent"),
    ]


@pytest.fixture
def registry(seed_tags, counter_ids) -> TagRegistry:
    return TagRegistry(seed_tags, id_factory=counter_ids)


@pytest.fixture
def sample_emails() -> List[Email]:
    return [
        make_email("m1", ["work", "urgent"], subject="Quarterly report", preview="Numbers attached"),
        make_email("m2", ["work", "spam"], subject="Win a prize"),
        make_email("m3", ["business"], subject="Invoice"),
        make_email("m4", [], subject="Hello"),
        make_email(5, ["spam"], subject="Numeric id"),
    ]


# === Mock Gmail API Service ===

class MockExecute:
    """Mock for the .execute() call that returns stored data"""
    def __init__(self, data):
        self._data = data

    def execute(self):
        return self._data


class MockRaise:
    """Mock for an .execute() call that raises"""
    def __init__(self, error: Exception):
        self._error = error

    def execute(self):
        raise self._error


class MockHttpResponse:
    """Mock HTTP response for HttpError"""
    def __init__(self, status: int, reason: str):
        self.status = status
        self.reason = reason


def http_error(status: int, reason: str = "Error") -> HttpError:
    return HttpError(resp=MockHttpResponse(status, reason), content=reason.encode())


class MockMessages:
    """Mock for users().messages(); failures map an ID to statuses or (status, reason) pairs"""
    def __init__(self, messages: List[dict], failures: Dict[str, list]):
        self._messages = messages
        self._by_id = {m["id"]: m for m in messages}
        self._failures = {k: list(v) for k, v in failures.items()}
        self.list_calls: List[dict] = []
        self.get_calls: List[str] = []

    def list(self, userId: str, q: str = "", maxResults: int = 100, pageToken: Optional[str] = None):
        self.list_calls.append({"q": q, "maxResults": maxResults, "pageToken": pageToken})
        start = int(pageToken) if pageToken else 0
        end = min(start + maxResults, len(self._messages))
        result = {"messages": [{"id": m["id"]} for m in self._messages[start:end]]}
        if end < len(self._messages):
            result["nextPageToken"] = str(end)
        return MockExecute(result)

    def get(self, userId: str, id: str, format: str = None, metadataHeaders: List[str] = None):
        self.get_calls.append(id)
        pending = self._failures.get(id)
        if pending:
            failure = pending.pop(0)
            status, reason = failure if isinstance(failure, tuple) else (failure, "Error")
            return MockRaise(http_error(status, reason))
        if id not in self._by_id:
            return MockRaise(http_error(404, "Not Found"))
        return MockExecute(self._by_id[id])


class MockUsers:
    def __init__(self, messages: MockMessages):
        self._messages = messages

    def messages(self):
        return self._messages


class MockGmailService:
    """Mock Gmail API service exposing users().messages().list/get"""
    def __init__(self, messages: List[dict], failures: Optional[Dict[str, list]] = None):
        self.messages = MockMessages(messages, failures or {})

    def users(self):
        return MockUsers(self.messages)


def make_gmail_message(msg_id: str, sender: Optional[str], subject: Optional[str],
                       snippet: str = "", internal_date: str = "1704067200000") -> dict:
    """Create a Gmail messages.get (metadata) response"""
    headers = []
    if sender is not None:
        headers.append({"name": "From", "value": sender})
    if subject is not None:
        headers.append({"name": "Subject", "value": subject})
    return {
        "id": msg_id,
        "snippet": snippet,
        "internalDate": internal_date,
        "payload": {"headers": headers},
    }


@pytest.fixture
def gmail_messages() -> List[dict]:
    return [
        make_gmail_message("g1", "Alice <alice@example.com>", "Lunch?", "Are you free"),
        make_gmail_message("g2", "Bob <bob@example.com>", None, "No subject here"),
        make_gmail_message("g3", None, "Anonymous", ""),
    ]


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append
