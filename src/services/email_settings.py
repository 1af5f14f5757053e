"""Email provider configuration.

All Resend-related settings are read from the environment once per
process (at lifespan startup) into a frozen EmailSettings. Handlers never
read os.environ directly; they receive the settings object through
FastAPI dependencies.
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.resend.com"
DEFAULT_FROM_ADDRESS = "PrintPalooza <orders@resend.dev>"
DEFAULT_REPLY_DOMAIN = "reply.printpalooza.com"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_WEBHOOK_TOLERANCE_SECONDS = 300


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class EmailSettings:
    """Resolved email provider settings.

    Attributes:
        api_key: Resend API key; empty disables outbound notifications and
            inbound body retrieval.
        api_url: Resend API base URL.
        from_address: Sender for customer notifications.
        reply_domain: Domain of per-order reply addresses.
        webhook_secret: Svix signing secret (``whsec_...``); empty skips
            webhook verification.
        webhook_tolerance_seconds: Max age of a signed delivery; 0 disables
            the timestamp check.
        timeout_seconds: Provider HTTP timeout.
    """

    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    from_address: str = DEFAULT_FROM_ADDRESS
    reply_domain: str = DEFAULT_REPLY_DOMAIN
    webhook_secret: str = ""
    webhook_tolerance_seconds: int = DEFAULT_WEBHOOK_TOLERANCE_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def provider_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def webhook_verification_enabled(self) -> bool:
        return bool(self.webhook_secret)

    @classmethod
    def from_env(cls) -> "EmailSettings":
        """Build settings from environment variables."""
        return cls(
            api_key=os.environ.get("RESEND_API_KEY", "").strip(),
            api_url=os.environ.get("RESEND_API_URL", "").strip().rstrip("/")
            or DEFAULT_API_URL,
            from_address=os.environ.get("EMAIL_FROM_ADDRESS", "").strip()
            or DEFAULT_FROM_ADDRESS,
            reply_domain=os.environ.get("REPLY_DOMAIN", "").strip().lower()
            or DEFAULT_REPLY_DOMAIN,
            webhook_secret=os.environ.get("RESEND_WEBHOOK_SECRET", "").strip(),
            webhook_tolerance_seconds=int(
                _float_env(
                    "RESEND_WEBHOOK_TOLERANCE_SECONDS",
                    DEFAULT_WEBHOOK_TOLERANCE_SECONDS,
                )
            ),
            timeout_seconds=_float_env("RESEND_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        )


def log_settings_warnings(settings: EmailSettings) -> None:
    """Log startup warnings for insecure or degraded email configuration."""
    if not settings.webhook_verification_enabled:
        logger.warning(
            "RESEND_WEBHOOK_SECRET is not set: inbound webhook deliveries will "
            "be accepted WITHOUT signature verification. Set the secret from "
            "the Resend dashboard for any internet-facing deployment."
        )
    if not settings.provider_configured:
        logger.info(
            "RESEND_API_KEY is not set: customer notifications are disabled and "
            "inbound replies fall back to the webhook payload body."
        )
