"""IMAP adapter for the mailbox capability."""

import asyncio
import imaplib
import logging
from typing import List, Optional

from ...core.exceptions import MailboxError
from .base import MAX_RECENT_MESSAGES, MailboxReader, decode_message_body

logger = logging.getLogger(__name__)


class ImapMailbox(MailboxReader):
    """Reads messages over IMAP with an app password.

    ``imaplib`` is blocking, so every call runs in a worker thread. A fresh
    connection is opened per call; verification lookups are rare.
    """

    def __init__(self, host: str, port: int, app_password: str, folder: str = "INBOX"):
        self.host = host
        self.port = port
        self.folder = folder
        self._app_password = app_password

    def _connect(self, account: str) -> imaplib.IMAP4_SSL:
        try:
            mail = imaplib.IMAP4_SSL(self.host, self.port)
            mail.login(account, self._app_password)
            mail.select(self.folder, readonly=True)
            logger.debug(f"IMAP connection established to {self.host}")
            return mail
        except (imaplib.IMAP4.error, OSError) as e:
            raise MailboxError(f"IMAP connection failed: {e}") from e

    @staticmethod
    def _disconnect(mail: Optional[imaplib.IMAP4_SSL]) -> None:
        if mail is None:
            return
        try:
            mail.close()
            mail.logout()
        except (imaplib.IMAP4.error, OSError) as e:
            logger.debug(f"Error closing IMAP connection: {e}")

    def _search(self, account: str, query: str) -> List[str]:
        mail = None
        try:
            mail = self._connect(account)
            quoted = query.replace('"', "")
            criteria = f'(OR FROM "{quoted}" SUBJECT "{quoted}")'
            _, data = mail.uid("SEARCH", None, criteria)
            uids = data[0].split() if data and data[0] else []
            # UIDs are stable across sessions and grow with arrival time
            newest_first = [uid.decode() for uid in reversed(uids)]
            return newest_first[:MAX_RECENT_MESSAGES]
        except (imaplib.IMAP4.abort, imaplib.IMAP4.error) as e:
            raise MailboxError(f"IMAP search failed: {e}") from e
        finally:
            self._disconnect(mail)

    def _fetch(self, account: str, message_id: str) -> str:
        mail = None
        try:
            mail = self._connect(account)
            _, msg_data = mail.uid("FETCH", message_id, "(RFC822)")
            if not msg_data or not isinstance(msg_data[0], tuple):
                raise MailboxError(f"IMAP message {message_id} not found")
            return decode_message_body(msg_data[0][1])
        except (imaplib.IMAP4.abort, imaplib.IMAP4.error) as e:
            raise MailboxError(f"IMAP fetch failed: {e}") from e
        finally:
            self._disconnect(mail)

    async def list_recent_messages(self, account: str, query: str) -> List[str]:
        return await asyncio.to_thread(self._search, account, query)

    async def get_body(self, account: str, message_id: str) -> str:
        return await asyncio.to_thread(self._fetch, account, message_id)
