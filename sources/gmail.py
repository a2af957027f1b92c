"""
Gmail API mail source.

Wraps the Gmail API (google-api-python-client) to load recent inbox messages
as triage records. Read-only: tags live in the local store, not in Gmail.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from googleapiclient.errors import HttpError

from sources.base import MailSource
from triage.models import Email

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

LIST_PAGE_SIZE = 500       # Max messages per list page (API max)
BASE_BACKOFF_SECONDS = 2   # Initial backoff delay for rate limits

RATE_LIMIT_REASONS = (
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "quotaExceeded",
)

NO_SUBJECT = "No Subject"
UNKNOWN_SENDER = "Unknown"


class GmailSource(MailSource):
    """
    Loads messages through the Gmail REST API.

    Details are fetched in small batches with a pause in between to stay
    under per-user rate limits.

    Example:
        from sources.gmail import GmailSource

        with GmailSource(query="in:inbox") as gmail:
            emails = gmail.fetch_messages(limit=50)
    """

    name = "gmail"

    def __init__(
        self,
        query: str = "in:inbox",
        scopes: Optional[List[str]] = None,
        client_secrets_file: Optional[str] = None,
        token_file: Optional[str] = None,
        batch_size: int = 5,
        batch_delay_seconds: float = 1.0,
        service: Optional[Any] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the Gmail source.

        Args:
            query: Gmail search query selecting messages to load
            scopes: OAuth scopes (defaults to gmail.readonly)
            client_secrets_file: OAuth client secrets JSON
            token_file: Cached user token JSON
            batch_size: Messages fetched between pauses
            batch_delay_seconds: Pause between detail batches
            service: Optional pre-built Gmail service for testing
            sleep: Sleep function, replaceable in tests
        """
        self.query = query
        self.scopes = scopes or DEFAULT_SCOPES
        self.client_secrets_file = client_secrets_file
        self.token_file = token_file
        self.batch_size = max(1, batch_size)
        self.batch_delay_seconds = batch_delay_seconds
        self._service = service
        self._sleep = sleep

    def connect(self) -> None:
        """Build the API client via OAuth unless one was injected."""
        if self._service is not None:
            return

        import gmail_auth
        self._service = gmail_auth.build_gmail_service(
            scopes=self.scopes,
            client_secrets_file=self.client_secrets_file,
            token_file=self.token_file,
        )
        logger.info("Gmail source connected")

    def disconnect(self) -> None:
        """Disconnect (no-op for Gmail API)."""
        logger.debug("Gmail source disconnected")

    def _execute_with_backoff(
        self,
        func: Callable[[], Any],
        description: str,
        max_retries: int = 5,
    ) -> Any:
        """Execute an API call with exponential backoff on rate limits."""
        delay = BASE_BACKOFF_SECONDS
        for attempt in range(1, max_retries + 1):
            try:
                return func()
            except HttpError as e:
                message = str(e)
                status = getattr(e.resp, "status", None)
                rate_limited = status == 429 or (status == 403 and any(
                    reason in message for reason in RATE_LIMIT_REASONS
                ))
                if rate_limited:
                    logger.warning(
                        f"{description} rate limited (attempt {attempt}/{max_retries}); "
                        f"sleeping {delay:.1f}s"
                    )
                    self._sleep(delay)
                    delay *= 2
                    continue
                raise
        raise RuntimeError(f"{description} failed after {max_retries} retries due to rate limits.")

    def _list_message_ids(self, limit: int) -> List[str]:
        ids: List[str] = []
        page_token = None
        while len(ids) < limit:
            page_size = min(limit - len(ids), LIST_PAGE_SIZE)
            results = self._execute_with_backoff(
                lambda: self._service.users().messages().list(
                    userId="me",
                    q=self.query,
                    maxResults=page_size,
                    pageToken=page_token,
                ).execute(),
                "list messages",
            )
            ids.extend(msg["id"] for msg in results.get("messages", []))
            page_token = results.get("nextPageToken")
            if not page_token:
                break
        return ids[:limit]

    def get_message(self, message_id: str) -> Optional[Email]:
        """Fetch one message. Returns None if Gmail no longer has it."""
        try:
            data = self._execute_with_backoff(
                lambda: self._service.users().messages().get(
                    userId="me",
                    id=message_id,
                    format="metadata",
                    metadataHeaders=["From", "Subject"],
                ).execute(),
                f"get message {message_id}",
            )
        except HttpError as e:
            if getattr(e.resp, "status", None) == 404:
                logger.warning(f"Message {message_id} disappeared before it could be fetched")
                return None
            raise
        return parse_message(data)

    def fetch_messages(self, limit: int = 50) -> List[Email]:
        """Fetch up to `limit` messages matching the configured query."""
        message_ids = self._list_message_ids(limit)
        logger.info(f"Fetching details for {len(message_ids)} messages")

        emails: List[Email] = []
        for start in range(0, len(message_ids), self.batch_size):
            if start:
                self._sleep(self.batch_delay_seconds)
            for message_id in message_ids[start:start + self.batch_size]:
                email = self.get_message(message_id)
                if email is not None:
                    emails.append(email)

        return emails


def _header(headers: List[Dict[str, str]], name: str) -> Optional[str]:
    for h in headers:
        if h.get("name", "").lower() == name:
            return h.get("value")
    return None


def parse_message(data: Dict[str, Any]) -> Optional[Email]:
    """
    Convert a Gmail `messages.get` response into an Email record.

    Missing headers become "No Subject" / "Unknown"; the date is the
    message's internal date as YYYY-MM-DD (UTC). New messages carry no tags.
    """
    if not data or "id" not in data:
        return None

    headers = data.get("payload", {}).get("headers", [])
    date = ""
    internal_date = data.get("internalDate")
    if internal_date:
        date = datetime.fromtimestamp(int(internal_date) / 1000, tz=timezone.utc).strftime("%Y-%m-%d")

    return Email(
        id=data["id"],
        sender=_header(headers, "from") or UNKNOWN_SENDER,
        subject=_header(headers, "subject") or NO_SUBJECT,
        preview=data.get("snippet", ""),
        date=date,
        tags=[],
    )
