"""Utility functions for masking sensitive data in logs."""


def mask_email(email: str) -> str:
    """
    Mask email address for logging purposes.

    Example: user@example.com -> u***@e***.com
    """
    if not email or "@" not in email:
        return "***"

    local, _, domain = email.partition("@")
    masked_local = local[0] + "***" if local else "***"

    domain_parts = domain.split(".")
    if len(domain_parts) >= 2 and domain_parts[0]:
        masked_domain = domain_parts[0][0] + "***." + ".".join(domain_parts[1:])
    else:
        masked_domain = "***"

    return f"{masked_local}@{masked_domain}"


def mask_card_number(card_number: str) -> str:
    """
    Mask credit card number showing only last 4 digits.

    Example: 1234567890123456 -> ************3456
    """
    digits = "".join(ch for ch in (card_number or "") if ch.isdigit())
    if len(digits) < 4:
        return "****"
    return "*" * (len(digits) - 4) + digits[-4:]


def mask_code(code: str) -> str:
    """Mask a verification code completely."""
    if not code:
        return "****"
    return "*" * len(code)


def mask_cookie_value(value: str) -> str:
    """Keep only the first four characters of a cookie value."""
    if not value or len(value) <= 4:
        return "****"
    return value[:4] + "..."
