"""Pydantic schemas for inbound email-provider webhooks.

Resend envelopes look like ``{"type": ..., "created_at": ..., "data": {...}}``.
Only ``email.received`` is consumed; it is parsed into a strict model.
Every other event type collapses into IgnoredEvent without inspecting its
data, so new provider event types never break ingestion.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
)

EMAIL_RECEIVED = "email.received"


class EmailReceivedData(BaseModel):
    """The ``data`` block of an email.received event."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    email_id: str | None = None
    to: list[str] = Field(default_factory=list)
    cc: list[str] = Field(default_factory=list)
    from_address: str | None = Field(default=None, alias="from")
    subject: str | None = None
    text: str | None = None
    html: str | None = None

    @field_validator("to", "cc", mode="before")
    @classmethod
    def _coerce_address_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @property
    def recipients(self) -> list[str]:
        """To addresses first, then Cc."""
        return [*self.to, *self.cc]


class EmailReceivedEvent(BaseModel):
    """A new inbound email arrived at one of our addresses."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["email.received"]
    created_at: str | None = None
    data: EmailReceivedData = Field(default_factory=EmailReceivedData)


class IgnoredEvent(BaseModel):
    """Any event type the ingestion path does not act on."""

    model_config = ConfigDict(extra="ignore")

    type: str = ""


def _event_kind(value: Any) -> str:
    event_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return "received" if event_type == EMAIL_RECEIVED else "ignored"


WebhookEvent = Annotated[
    Union[
        Annotated[EmailReceivedEvent, Tag("received")],
        Annotated[IgnoredEvent, Tag("ignored")],
    ],
    Discriminator(_event_kind),
]

_webhook_event_adapter: TypeAdapter[WebhookEvent] = TypeAdapter(WebhookEvent)


def parse_webhook_event(payload: Any) -> EmailReceivedEvent | IgnoredEvent:
    """Validate a decoded webhook envelope.

    Raises:
        pydantic.ValidationError: Envelope is malformed (e.g. not an object,
            or an email.received event with a badly typed data block).
    """
    return _webhook_event_adapter.validate_python(payload)


class WebhookAck(BaseModel):
    """Acknowledgement body returned to the provider."""

    status: Literal[
        "saved",
        "ignored",
        "no_email_id",
        "no_order_id",
        "order_not_found",
        "duplicate",
        "error",
        "invalid_signature",
    ]
    order_id: str | None = None
    message_id: int | None = None
