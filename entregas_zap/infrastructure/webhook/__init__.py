from .client import WebhookClient, get_webhook_client, normalize_phone

__all__ = ["WebhookClient", "get_webhook_client", "normalize_phone"]
