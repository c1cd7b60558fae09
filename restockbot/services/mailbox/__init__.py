"""Mailbox readers and verification code extraction."""

from pathlib import Path

from ...core.config.config_models import MailboxConfig
from .base import MailboxReader, decode_message_body
from .gmail import GmailMailbox
from .imap import ImapMailbox
from .pattern_matcher import VerificationCodeExtractor


def create_mailbox(config: MailboxConfig, working_dir: Path) -> MailboxReader:
    """Build the mailbox reader selected by ``mailbox.provider``."""
    if config.provider == "imap":
        return ImapMailbox(
            host=config.imap_host,
            port=config.imap_port,
            app_password=config.app_password.get_secret_value(),
            folder=config.imap_folder,
        )
    return GmailMailbox(working_dir)


__all__ = [
    "GmailMailbox",
    "ImapMailbox",
    "MailboxReader",
    "VerificationCodeExtractor",
    "create_mailbox",
    "decode_message_body",
]
