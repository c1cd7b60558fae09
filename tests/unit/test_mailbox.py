"""Tests for mailbox readers."""

import base64
import json
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from restockbot.core.config.config_models import MailboxConfig
from restockbot.core.exceptions import ConfigurationError, MailboxError
from restockbot.services.mailbox import GmailMailbox, ImapMailbox, create_mailbox
from restockbot.services.mailbox.base import decode_message_body

ACCOUNT = "shopper@example.com"


def _html_email(code: str) -> bytes:
    msg = MIMEMultipart("alternative")
    msg["From"] = "BestBuy <no-reply@bestbuy.com>"
    msg["Subject"] = "Your BestBuy verification code"
    msg.attach(MIMEText(f"Your code is {code}", "plain"))
    msg.attach(MIMEText(f'<p>Code</p><span class="code">{code}</span>', "html", "utf-8"))
    return msg.as_bytes()


def _response(status: int, payload=None, text: str = ""):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)
    response.text = AsyncMock(return_value=text)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


@pytest.fixture
def gmail_dir(tmp_path):
    """Working directory with a client secret and a valid token."""
    (tmp_path / "client_secret.json").write_text(
        json.dumps(
            {
                "installed": {
                    "client_id": "cid",
                    "client_secret": "csecret",
                    "token_uri": "https://oauth2.example.com/token",
                }
            }
        )
    )
    tokens = tmp_path / "tokens"
    tokens.mkdir()
    (tokens / "shopper_at_example.com.json").write_text(
        json.dumps(
            {"refresh_token": "refresh", "access_token": "access", "expires_at": time.time() + 3600}
        )
    )
    return tmp_path


@pytest.fixture
def http_session():
    """aiohttp session mock."""
    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    return session


class TestDecodeMessageBody:
    """Tests for decode_message_body."""

    def test_prefers_html_part(self):
        """Test the HTML alternative is returned so span markup survives."""
        body = decode_message_body(_html_email("482913"))
        assert '<span class="code">482913</span>' in body

    def test_base64_transfer_encoding_is_undone(self):
        """Test base64-encoded parts are decoded."""
        msg = MIMEText("<span>123456</span>", "html", "utf-8")
        assert msg["Content-Transfer-Encoding"] == "base64"
        assert "<span>123456</span>" in decode_message_body(msg.as_bytes())

    def test_plain_text_fallback(self):
        """Test a text-only message returns its text."""
        msg = MIMEText("plain body", "plain")
        assert decode_message_body(msg.as_bytes()).strip() == "plain body"


class TestGmailMailbox:
    """Tests for the Gmail REST adapter."""

    @pytest.mark.asyncio
    async def test_list_recent_messages(self, gmail_dir, http_session):
        """Test listing passes the sender query and returns ids newest first."""
        http_session.get = MagicMock(
            return_value=_response(200, {"messages": [{"id": "m2"}, {"id": "m1"}]})
        )
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)

        ids = await mailbox.list_recent_messages(ACCOUNT, "BestBuy")

        assert ids == ["m2", "m1"]
        _, kwargs = http_session.get.call_args
        assert kwargs["params"]["q"] == "BestBuy"
        assert kwargs["params"]["maxResults"] == "20"
        assert kwargs["params"]["includeSpamTrash"] == "false"
        assert kwargs["headers"]["Authorization"] == "Bearer access"

    @pytest.mark.asyncio
    async def test_list_with_no_messages(self, gmail_dir, http_session):
        """Test an empty result list."""
        http_session.get = MagicMock(return_value=_response(200, {"resultSizeEstimate": 0}))
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)
        assert await mailbox.list_recent_messages(ACCOUNT, "BestBuy") == []

    @pytest.mark.asyncio
    async def test_get_body_decodes_raw_message(self, gmail_dir, http_session):
        """Test the unpadded base64url raw message is decoded to its HTML body."""
        raw = base64.urlsafe_b64encode(_html_email("482913")).decode().rstrip("=")
        http_session.get = MagicMock(return_value=_response(200, {"id": "m1", "raw": raw}))
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)

        body = await mailbox.get_body(ACCOUNT, "m1")

        assert "482913" in body
        _, kwargs = http_session.get.call_args
        assert kwargs["params"] == {"format": "raw"}

    @pytest.mark.asyncio
    async def test_expired_token_is_refreshed_and_persisted(self, gmail_dir, http_session):
        """Test an expired access token is refreshed before the request."""
        token_file = gmail_dir / "tokens" / "shopper_at_example.com.json"
        token_file.write_text(json.dumps({"refresh_token": "refresh", "expires_at": 0}))
        http_session.post = MagicMock(
            return_value=_response(200, {"access_token": "fresh", "expires_in": 3600})
        )
        http_session.get = MagicMock(return_value=_response(200, {"messages": []}))
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)

        await mailbox.list_recent_messages(ACCOUNT, "BestBuy")

        args, kwargs = http_session.post.call_args
        assert args[0] == "https://oauth2.example.com/token"
        assert kwargs["data"]["grant_type"] == "refresh_token"
        saved = json.loads(token_file.read_text())
        assert saved["access_token"] == "fresh"
        assert saved["refresh_token"] == "refresh"
        _, get_kwargs = http_session.get.call_args
        assert get_kwargs["headers"]["Authorization"] == "Bearer fresh"

    @pytest.mark.asyncio
    async def test_rejected_refresh_raises(self, gmail_dir, http_session):
        """Test a failed refresh raises a non-recoverable MailboxError."""
        token_file = gmail_dir / "tokens" / "shopper_at_example.com.json"
        token_file.write_text(json.dumps({"refresh_token": "refresh", "expires_at": 0}))
        http_session.post = MagicMock(return_value=_response(400, {"error": "invalid_grant"}))
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)

        with pytest.raises(MailboxError) as exc_info:
            await mailbox.list_recent_messages(ACCOUNT, "BestBuy")
        assert "invalid_grant" in exc_info.value.message
        assert exc_info.value.recoverable is False

    @pytest.mark.asyncio
    async def test_http_error_raises_mailbox_error(self, gmail_dir, http_session):
        """Test a non-200 response raises MailboxError."""
        http_session.get = MagicMock(return_value=_response(500, text="backend error"))
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)
        with pytest.raises(MailboxError):
            await mailbox.list_recent_messages(ACCOUNT, "BestBuy")

    @pytest.mark.asyncio
    async def test_connection_error_after_retries_is_mailbox_error(
        self, gmail_dir, http_session
    ):
        """Test a connection error that outlasts the retries is raised as MailboxError."""
        http_session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("reset"))
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)

        with pytest.raises(MailboxError, match="ClientConnectionError") as exc_info:
            await mailbox.list_recent_messages(ACCOUNT, "BestBuy")

        assert http_session.get.call_count == 3
        assert exc_info.value.recoverable is True

    @pytest.mark.asyncio
    async def test_malformed_json_is_mailbox_error(self, gmail_dir, http_session):
        """Test an unparseable response body is raised as MailboxError."""
        response = _response(200)
        response.__aenter__.return_value.json.side_effect = json.JSONDecodeError("bad", "", 0)
        http_session.get = MagicMock(return_value=response)
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)

        with pytest.raises(MailboxError):
            await mailbox.get_body(ACCOUNT, "m1")

    @pytest.mark.asyncio
    async def test_refresh_without_access_token(self, gmail_dir, http_session):
        """Test a refresh response lacking an access token is a non-recoverable MailboxError."""
        token_file = gmail_dir / "tokens" / "shopper_at_example.com.json"
        token_file.write_text(json.dumps({"refresh_token": "refresh", "expires_at": 0}))
        http_session.post = MagicMock(return_value=_response(200, {"expires_in": 3600}))
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)

        with pytest.raises(MailboxError) as exc_info:
            await mailbox.list_recent_messages(ACCOUNT, "BestBuy")
        assert exc_info.value.recoverable is False

    @pytest.mark.asyncio
    async def test_malformed_token_file(self, gmail_dir, http_session):
        """Test a token file that is not JSON is a configuration error."""
        token_file = gmail_dir / "tokens" / "shopper_at_example.com.json"
        token_file.write_text("{not json")
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)
        with pytest.raises(ConfigurationError, match="Malformed JSON"):
            await mailbox.list_recent_messages(ACCOUNT, "BestBuy")

    @pytest.mark.asyncio
    async def test_missing_token_file(self, gmail_dir, http_session):
        """Test an account without a token file is a configuration error."""
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)
        with pytest.raises(ConfigurationError):
            await mailbox.list_recent_messages("other@example.com", "BestBuy")

    @pytest.mark.asyncio
    async def test_missing_client_secret(self, gmail_dir, http_session):
        """Test refreshing without client_secret.json is a configuration error."""
        (gmail_dir / "client_secret.json").unlink()
        token_file = gmail_dir / "tokens" / "shopper_at_example.com.json"
        token_file.write_text(json.dumps({"refresh_token": "refresh"}))
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)
        with pytest.raises(ConfigurationError):
            await mailbox.list_recent_messages(ACCOUNT, "BestBuy")

    @pytest.mark.asyncio
    async def test_close_keeps_injected_session(self, gmail_dir, http_session):
        """Test an injected session is not closed by the mailbox."""
        mailbox = GmailMailbox(gmail_dir, http_session=http_session)
        await mailbox.close()
        http_session.close.assert_not_awaited()


class TestImapMailbox:
    """Tests for the IMAP adapter."""

    @pytest.mark.asyncio
    async def test_search_returns_newest_first(self):
        """Test UIDs are reversed so the newest message comes first."""
        mail = MagicMock()
        mail.uid.return_value = ("OK", [b"1003 1007 1009"])
        with patch("restockbot.services.mailbox.imap.imaplib.IMAP4_SSL", return_value=mail):
            mailbox = ImapMailbox("imap.example.com", 993, "app-pass")
            ids = await mailbox.list_recent_messages(ACCOUNT, "BestBuy")

        assert ids == ["1009", "1007", "1003"]
        mail.login.assert_called_once_with(ACCOUNT, "app-pass")
        command, charset, criteria = mail.uid.call_args[0]
        assert (command, charset) == ("SEARCH", None)
        assert 'FROM "BestBuy"' in criteria
        mail.search.assert_not_called()
        mail.logout.assert_called_once()

    @pytest.mark.asyncio
    async def test_fetch_body_by_uid(self):
        """Test a message is fetched by UID and its RFC 822 body decoded."""
        mail = MagicMock()
        mail.uid.return_value = ("OK", [(b"4 (UID 1009 RFC822)", _html_email("654321"))])
        with patch("restockbot.services.mailbox.imap.imaplib.IMAP4_SSL", return_value=mail):
            body = await ImapMailbox("imap.example.com", 993, "pw").get_body(ACCOUNT, "1009")

        assert "654321" in body
        mail.uid.assert_called_once_with("FETCH", "1009", "(RFC822)")
        mail.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_uid(self):
        """Test a UID that no longer exists raises MailboxError."""
        mail = MagicMock()
        mail.uid.return_value = ("OK", [None])
        with patch("restockbot.services.mailbox.imap.imaplib.IMAP4_SSL", return_value=mail):
            with pytest.raises(MailboxError, match="not found"):
                await ImapMailbox("imap.example.com", 993, "pw").get_body(ACCOUNT, "1009")

    @pytest.mark.asyncio
    async def test_connection_failure(self):
        """Test connection errors surface as MailboxError."""
        with patch(
            "restockbot.services.mailbox.imap.imaplib.IMAP4_SSL",
            side_effect=OSError("connection refused"),
        ):
            with pytest.raises(MailboxError):
                await ImapMailbox("imap.example.com", 993, "pw").list_recent_messages(
                    ACCOUNT, "BestBuy"
                )


class TestCreateMailbox:
    """Tests for the mailbox factory."""

    def test_gmail_is_default(self, tmp_path):
        """Test the Gmail adapter is built by default."""
        assert isinstance(create_mailbox(MailboxConfig(), tmp_path), GmailMailbox)

    def test_imap_provider(self, tmp_path):
        """Test the IMAP adapter is built for provider imap."""
        config = MailboxConfig(provider="imap", imap_host="imap.example.com")
        mailbox = create_mailbox(config, tmp_path)
        assert isinstance(mailbox, ImapMailbox)
        assert mailbox.host == "imap.example.com"
