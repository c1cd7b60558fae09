"""Mailbox capability used to read verification emails."""

from abc import ABC, abstractmethod
from email import message_from_bytes
from typing import List

from loguru import logger

MAX_RECENT_MESSAGES = 20


def decode_message_body(raw: bytes) -> str:
    """
    Return the body of an RFC 822 message, preferring the HTML part.

    Transfer encodings (base64, quoted-printable) are undone so that markup
    like ``<span>123456</span>`` survives intact.
    """
    msg = message_from_bytes(raw)
    html_body = ""
    text_body = ""

    for part in msg.walk():
        if part.is_multipart():
            continue
        if "attachment" in str(part.get("Content-Disposition")):
            continue
        payload = part.get_payload(decode=True)
        if payload is None:
            continue
        charset = part.get_content_charset() or "utf-8"
        try:
            decoded = payload.decode(charset, errors="ignore")
        except LookupError:
            decoded = payload.decode("utf-8", errors="ignore")

        content_type = part.get_content_type()
        if content_type == "text/html" and not html_body:
            html_body = decoded
        elif content_type == "text/plain" and not text_body:
            text_body = decoded

    body = html_body or text_body
    if not body:
        logger.debug("Message has no decodable text part, returning raw content")
        body = raw.decode("utf-8", errors="ignore")
    return body


class MailboxReader(ABC):
    """Lists and reads messages of a mail account."""

    @abstractmethod
    async def list_recent_messages(self, account: str, query: str) -> List[str]:
        """
        List ids of recent messages matching a sender/subject filter.

        Returns:
            Message ids, newest first, at most ``MAX_RECENT_MESSAGES``
        """

    @abstractmethod
    async def get_body(self, account: str, message_id: str) -> str:
        """Return the decoded body of a message."""

    async def close(self) -> None:
        """Release network resources."""
