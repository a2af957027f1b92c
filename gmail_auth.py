"""
Gmail authentication helpers for the Gmail mail source.
Loads the OAuth client config and cached token from env or JSON files.
"""

import json
import logging
import os
from typing import Optional

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]


def _load_json(env_var: str, path: Optional[str]) -> Optional[dict]:
    raw = os.getenv(env_var)
    source = env_var
    if not raw and path:
        path = os.path.expanduser(path)
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
            source = path
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid JSON in {source}.") from exc


def load_client_config(client_secrets_file: Optional[str] = None) -> dict:
    config = _load_json("GMAIL_OAUTH_JSON", client_secrets_file)
    if not config:
        raise RuntimeError(
            "Missing Gmail OAuth client config. "
            "Set GMAIL_OAUTH_JSON or point gmail.client_secrets_file at a client secret file."
        )
    return config


def load_token_info(token_file: Optional[str] = None) -> Optional[dict]:
    return _load_json("GMAIL_TOKEN_JSON", token_file)


def store_token_info(creds: Credentials, token_file: Optional[str]) -> None:
    if not token_file:
        logger.warning("No token file configured; the next run will ask for consent again")
        return
    path = os.path.expanduser(token_file)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(creds.to_json())


def get_credentials(
    scopes: Optional[list] = None,
    client_secrets_file: Optional[str] = None,
    token_file: Optional[str] = None,
) -> Credentials:
    scopes = scopes or DEFAULT_SCOPES
    token_info = load_token_info(token_file)
    creds = None
    if token_info:
        creds = Credentials.from_authorized_user_info(token_info, scopes=scopes)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            flow = InstalledAppFlow.from_client_config(load_client_config(client_secrets_file), scopes)
            creds = flow.run_local_server(port=0)
        store_token_info(creds, token_file)

    return creds


def build_gmail_service(
    scopes: Optional[list] = None,
    client_secrets_file: Optional[str] = None,
    token_file: Optional[str] = None,
):
    creds = get_credentials(scopes, client_secrets_file, token_file)
    return build("gmail", "v1", credentials=creds)
