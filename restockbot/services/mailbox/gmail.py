"""Gmail REST adapter for the mailbox capability.

Credentials live under the working directory:

- ``client_secret.json``: the OAuth application secret (installed app format)
- ``tokens/<account>.json``: the persisted refresh token and cached access token

The interactive consent flow that produces the first refresh token is not
part of the bot; the token file must exist before the first run.
"""

import asyncio
import base64
import functools
import json
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import aiohttp
from loguru import logger

from ...constants import Timeouts
from ...core.exceptions import ConfigurationError, MailboxError
from ...core.retry import get_mailbox_retry
from .base import MAX_RECENT_MESSAGES, MailboxReader, decode_message_body

GMAIL_API_URL = "https://gmail.googleapis.com/gmail/v1/users"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
SECRET_FILE = "client_secret.json"
TOKENS_DIR = "tokens"

# Refresh slightly before the access token actually expires
EXPIRY_MARGIN_SECONDS = 60

T = TypeVar("T")


def _transport_errors_as_mailbox_error(
    func: Callable[..., Awaitable[T]]
) -> Callable[..., Awaitable[T]]:
    """Surface transport and payload failures left after retrying as ``MailboxError``."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError, KeyError) as e:
            raise MailboxError(
                f"Gmail request failed: {type(e).__name__}: {e}",
                details={"operation": func.__name__},
            ) from e

    return wrapper


class GmailMailbox(MailboxReader):
    """Reads messages through the Gmail REST API with a read-only token."""

    def __init__(self, working_dir: Path, http_session: Optional[aiohttp.ClientSession] = None):
        self.working_dir = Path(working_dir)
        self._session = http_session
        self._owns_session = http_session is None
        self._secret: Optional[Dict[str, str]] = None
        self._tokens: Dict[str, Dict[str, Any]] = {}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=Timeouts.MAILBOX_REQUEST_SECONDS)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _token_path(self, account: str) -> Path:
        safe_name = account.replace("/", "_").replace("@", "_at_")
        return self.working_dir / TOKENS_DIR / f"{safe_name}.json"

    @staticmethod
    def _read_json(path: Path) -> Dict[str, Any]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise ConfigurationError(f"Malformed JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a JSON object in {path}")
        return data

    def _load_secret(self) -> Dict[str, str]:
        if self._secret is not None:
            return self._secret

        path = self.working_dir / SECRET_FILE
        if not path.exists():
            raise ConfigurationError(
                f"Gmail application secret not found: {path}", details={"path": str(path)}
            )
        data = self._read_json(path)
        secret = data.get("installed") or data.get("web") or data
        if not secret.get("client_id") or not secret.get("client_secret"):
            raise ConfigurationError(f"Gmail application secret is incomplete: {path}")
        self._secret = {
            "client_id": secret["client_id"],
            "client_secret": secret["client_secret"],
            "token_uri": secret.get("token_uri", DEFAULT_TOKEN_URI),
        }
        return self._secret

    def _load_token(self, account: str) -> Dict[str, Any]:
        if account in self._tokens:
            return self._tokens[account]

        path = self._token_path(account)
        if not path.exists():
            raise ConfigurationError(
                f"No Gmail refresh token for account '{account}': {path}",
                details={"path": str(path)},
            )
        token = self._read_json(path)
        if not token.get("refresh_token"):
            raise ConfigurationError(f"Gmail token file has no refresh_token: {path}")
        self._tokens[account] = token
        return token

    def _save_token(self, account: str, token: Dict[str, Any]) -> None:
        path = self._token_path(account)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(token, indent=2), encoding="utf-8")
        self._tokens[account] = token

    @get_mailbox_retry()
    async def _refresh(self, account: str, token: Dict[str, Any]) -> Dict[str, Any]:
        secret = self._load_secret()
        session = await self._get_session()
        form = {
            "grant_type": "refresh_token",
            "refresh_token": token["refresh_token"],
            "client_id": secret["client_id"],
            "client_secret": secret["client_secret"],
        }
        async with session.post(secret["token_uri"], data=form) as response:
            payload = await response.json(content_type=None)
            if response.status != 200:
                raise MailboxError(
                    f"Gmail token refresh failed ({response.status}): "
                    f"{payload.get('error', 'unknown error')}",
                    recoverable=False,
                )

        if not payload.get("access_token"):
            raise MailboxError("Gmail token refresh returned no access token", recoverable=False)

        refreshed = dict(token)
        refreshed["access_token"] = payload["access_token"]
        refreshed["expires_at"] = time.time() + int(payload.get("expires_in", 3600))
        if payload.get("refresh_token"):
            refreshed["refresh_token"] = payload["refresh_token"]
        self._save_token(account, refreshed)
        logger.debug("Gmail access token refreshed")
        return refreshed

    async def _access_token(self, account: str) -> str:
        token = self._load_token(account)
        expires_at = float(token.get("expires_at", 0))
        if not token.get("access_token") or expires_at - EXPIRY_MARGIN_SECONDS <= time.time():
            token = await self._refresh(account, token)
        return token["access_token"]

    @get_mailbox_retry()
    async def _get_json(self, account: str, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        session = await self._get_session()
        headers = {"Authorization": f"Bearer {await self._access_token(account)}"}
        url = f"{GMAIL_API_URL}/{account}/{path}"
        async with session.get(url, params=params, headers=headers) as response:
            if response.status == 401:
                # Cached token was revoked early; force a refresh on the next call
                self._tokens.get(account, {}).pop("access_token", None)
                raise MailboxError("Gmail rejected the access token")
            if response.status != 200:
                text = await response.text()
                raise MailboxError(f"Gmail request failed ({response.status}): {text[:200]}")
            return await response.json()

    @_transport_errors_as_mailbox_error
    async def list_recent_messages(self, account: str, query: str) -> List[str]:
        data = await self._get_json(
            account,
            "messages",
            {
                "q": query,
                "maxResults": str(MAX_RECENT_MESSAGES),
                "includeSpamTrash": "false",
            },
        )
        return [m["id"] for m in data.get("messages", [])]

    @_transport_errors_as_mailbox_error
    async def get_body(self, account: str, message_id: str) -> str:
        data = await self._get_json(account, f"messages/{message_id}", {"format": "raw"})
        raw = data.get("raw")
        if not raw:
            raise MailboxError(f"Gmail message {message_id} has no raw content")
        padded = raw + "=" * (-len(raw) % 4)
        return decode_message_body(base64.urlsafe_b64decode(padded))
