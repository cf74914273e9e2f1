"""
Payment gateway order lookup.

Confirmation source for the fallback poller. Asks the gateway's order
endpoint about the session's external reference and maps the order
status to a payment outcome.
"""

import logging
from typing import Optional

import httpx

from shared.exceptions import ExternalServiceError
from .models import PaymentOutcome, PaymentSession

logger = logging.getLogger(__name__)

# Gateway order statuses that settle a session; anything else is still open
ORDER_STATUS_OUTCOMES: dict[str, PaymentOutcome] = {
    "paid": PaymentOutcome.COMPLETED,
    "completed": PaymentOutcome.COMPLETED,
    "succeeded": PaymentOutcome.COMPLETED,
    "failed": PaymentOutcome.FAILED,
    "declined": PaymentOutcome.FAILED,
    "cancelled": PaymentOutcome.CANCELLED,
    "canceled": PaymentOutcome.CANCELLED,
    "abandoned": PaymentOutcome.CANCELLED,
}


class GatewayConfirmationSource:
    """
    Looks up gateway orders over HTTP.

    Sessions without an external reference have no order yet and are
    reported as unconfirmed.
    """

    SERVICE = "payment_gateway"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def check(self, session: PaymentSession) -> Optional[PaymentOutcome]:
        """
        Return the gateway's verdict on a session, or None if it has none yet.

        Raises:
            ExternalServiceError: If the gateway cannot be reached or answers
                with an error
        """
        if not session.external_reference:
            return None

        try:
            response = await self._client.get(f"/orders/{session.external_reference}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"Gateway returned {e.response.status_code}",
                service=self.SERVICE,
                code="GATEWAY_HTTP_ERROR",
                details={"status_code": e.response.status_code},
            )
        except httpx.RequestError as e:
            raise ExternalServiceError(
                f"Gateway request failed: {e}",
                service=self.SERVICE,
                code="GATEWAY_UNREACHABLE",
            )
        except ValueError:
            raise ExternalServiceError(
                "Gateway returned a non-JSON body",
                service=self.SERVICE,
                code="GATEWAY_BAD_RESPONSE",
            )

        status = str(data.get("status", "")).lower()
        outcome = ORDER_STATUS_OUTCOMES.get(status)
        logger.debug(
            "Gateway order %s for session %s is %s",
            session.external_reference,
            session.id,
            status or "unknown",
        )
        return outcome
