"""
Notification webhook client
Posts rendered WhatsApp messages to the building's automation webhook
(which delivers them to the resident). Only the HTTP status matters; the
response body is logged.
"""
from typing import Any, Dict, Optional

import httpx
import structlog

from entregas_zap.config import settings

logger = structlog.get_logger()

BRAZIL_COUNTRY_CODE = "55"


def normalize_phone(phone: str) -> str:
    """Digits only, with the Brazilian country code in front.

    "(11) 99999-2222" -> "5511999992222"; numbers already starting with 55
    are left alone, so applying this twice changes nothing.
    """
    digits = "".join(c for c in phone if c.isdigit())

    if digits.startswith(BRAZIL_COUNTRY_CODE):
        return digits

    return BRAZIL_COUNTRY_CODE + digits


class WebhookClient:
    """Client for per-building notification webhooks"""

    def __init__(
        self,
        default_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.default_url = default_url or settings.default_webhook_url
        self.timeout = timeout if timeout is not None else settings.webhook_timeout_seconds
        self.headers = {"Content-Type": "application/json"}
        self._transport = transport

    def resolve_url(self, webhook_url: Optional[str]) -> str:
        """Building override when configured, default webhook otherwise"""
        if webhook_url and webhook_url.strip():
            return webhook_url.strip()
        return self.default_url

    async def post(self, url: str, payload: Dict[str, Any]) -> bool:
        """
        POST a JSON payload

        Returns:
            True on a 2xx response. Network errors and non-2xx responses are
            logged and reported as False; they never raise.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, headers=self.headers, json=payload)

            if response.is_success:
                logger.info(
                    "webhook_sent",
                    url=url,
                    status=response.status_code,
                    phone=payload.get("telefone"),
                    body=response.text[:200],
                )
                return True

            logger.error(
                "webhook_rejected",
                url=url,
                status=response.status_code,
                phone=payload.get("telefone"),
                body=response.text[:500],
            )
            return False

        except httpx.HTTPError as e:
            logger.error("webhook_request_failed", url=url, error=str(e), phone=payload.get("telefone"))
            return False


# Singleton instance
_client: Optional[WebhookClient] = None


def get_webhook_client() -> WebhookClient:
    """Get or create webhook client singleton"""
    global _client
    if _client is None:
        _client = WebhookClient()
    return _client
