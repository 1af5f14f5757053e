"""Async client for the Resend email API.

Thin wrapper around httpx. Used for two calls only:
- POST /emails                      send a customer notification
- GET  /emails/receiving/{email_id} fetch an inbound email's body (the
                                    webhook payload may omit it)

One client is created per process by the FastAPI lifespan and shared by
handlers through a dependency. Errors surface as EmailProviderError so
callers never deal with httpx types.
"""

import logging
from urllib.parse import quote
from typing import Any

import httpx

from src.errors.domain import EmailProviderError
from src.services.email_settings import EmailSettings
from src.utils.redaction import mask_email, sanitize_error_message

logger = logging.getLogger(__name__)


class ResendClient:
    """Resend REST client bound to one httpx.AsyncClient.

    Args:
        settings: Email settings (API key, base URL, timeout).
        http_client: Optional pre-built httpx.AsyncClient (tests inject a
            MockTransport-backed client here).
    """

    def __init__(
        self,
        settings: EmailSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = http_client or httpx.AsyncClient(
            base_url=settings.api_url,
            timeout=settings.timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        """True when an API key is available."""
        return self._settings.provider_configured

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _raise_for_status(self, resp: httpx.Response, action: str) -> None:
        """Raise EmailProviderError on non-2xx responses."""
        if resp.status_code < 400:
            return
        try:
            body = resp.json()
            detail = body.get("message") or body.get("error") or resp.text
        except Exception:
            detail = resp.text
        raise EmailProviderError(
            f"Resend {action} failed ({resp.status_code}): "
            f"{sanitize_error_message(str(detail), max_length=500)}",
            status_code=resp.status_code,
        )

    async def _request(self, method: str, path: str, action: str, **kwargs: Any) -> dict:
        if not self.configured:
            raise EmailProviderError(f"Resend {action} skipped: RESEND_API_KEY is not set")
        try:
            resp = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.RequestError as e:
            raise EmailProviderError(
                f"Resend {action} failed: {type(e).__name__}: "
                f"{sanitize_error_message(str(e), max_length=500)}"
            ) from e
        self._raise_for_status(resp, action)
        try:
            return resp.json()
        except ValueError as e:
            raise EmailProviderError(
                f"Resend {action} returned a non-JSON body", status_code=resp.status_code
            ) from e

    async def send_email(
        self,
        to: str | list[str],
        subject: str,
        html: str,
        reply_to: str | None = None,
        text: str | None = None,
    ) -> str:
        """Send an email.

        Args:
            to: Recipient address or list of addresses.
            subject: Subject line.
            html: HTML body.
            reply_to: Reply-To address (per-order reply address).
            text: Optional plain-text alternative.

        Returns:
            The provider's email id.

        Raises:
            EmailProviderError: Transport failure or non-2xx response.
        """
        recipients = [to] if isinstance(to, str) else list(to)
        payload: dict[str, Any] = {
            "from": self._settings.from_address,
            "to": recipients,
            "subject": subject,
            "html": html,
        }
        if reply_to:
            payload["reply_to"] = reply_to
        if text:
            payload["text"] = text

        data = await self._request("POST", "/emails", "send", json=payload)
        email_id = str(data.get("id", ""))
        logger.info(
            "Email %s sent to %s",
            email_id or "<no id>",
            ", ".join(mask_email(r) for r in recipients),
        )
        return email_id

    async def get_received_email(self, email_id: str) -> dict[str, Any]:
        """Fetch an inbound email by id.

        Returns:
            Provider JSON including ``text``/``html``/``subject`` when present.

        Raises:
            EmailProviderError: Transport failure or non-2xx response.
        """
        path = "/emails/receiving/" + quote(email_id, safe="")
        return await self._request("GET", path, "receive lookup")

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()
