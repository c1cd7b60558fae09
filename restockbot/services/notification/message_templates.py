"""Message templates - separates formatting from transport."""

from typing import Optional

from ...models.product import ProductTarget


def _describe(target: ProductTarget) -> str:
    if target.name and target.name != target.id:
        return f"{target.name} ({target.id})"
    return target.id


def _price(price: Optional[float]) -> str:
    return f"${price:.2f}" if price is not None else "unknown price"


class NotificationTemplates:
    """Static message templates for each notification event type."""

    @staticmethod
    def in_stock(target: ProductTarget) -> tuple[str, str]:
        return "In Stock", f"{_describe(target)} for {_price(target.last_price)}"

    @staticmethod
    def purchased(target: ProductTarget) -> tuple[str, str]:
        return "Purchased", f"{_describe(target)} for {_price(target.last_price)}"

    @staticmethod
    def error(error_type: str, details: str) -> tuple[str, str]:
        return f"Error: {error_type}", details

    @staticmethod
    def bot_started(product_count: int, dry_run: bool) -> tuple[str, str]:
        mode = " (dry run)" if dry_run else ""
        return "RestockBot Started", f"Monitoring {product_count} product(s){mode}"

    @staticmethod
    def bot_stopped() -> tuple[str, str]:
        return "RestockBot Stopped", "The bot has been stopped."
