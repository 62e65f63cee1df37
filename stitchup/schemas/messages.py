from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

Sender = Literal["customer", "tailor"]


def format_price(value: Decimal | float | int | str) -> str:
    number = Decimal(str(value))
    if number == number.to_integral_value():
        return str(int(number))
    return f"{number.normalize():f}"


class _MessageContent(BaseModel):
    # Fields that belong to another variant are dropped on construction.
    model_config = ConfigDict(extra="ignore", frozen=True)

    text: str


class PlainMessage(_MessageContent):
    type: Literal["plain"] = "plain"
    sender: Sender

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message text is required")
        return value


class PricingDetails(BaseModel):
    service: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)


class PricingMessage(_MessageContent):
    type: Literal["pricing"] = "pricing"
    sender: Literal["tailor"] = "tailor"
    pricing: PricingDetails

    @classmethod
    def offer(cls, service: str, price: Decimal) -> "PricingMessage":
        return cls(
            text=f"Custom pricing: {service} - ₹{format_price(price)}",
            pricing=PricingDetails(service=service, price=price),
        )


class RejectionMessage(_MessageContent):
    type: Literal["rejection"] = "rejection"
    sender: Literal["tailor"] = "tailor"
    reason: str = Field(..., min_length=1)

    @classmethod
    def because(cls, reason: str) -> "RejectionMessage":
        return cls(text=f"Order rejected: {reason}", reason=reason)


class SystemMessage(_MessageContent):
    type: Literal["system"] = "system"
    sender: Literal["system"] = "system"
    order_id: str


class VoiceMessage(_MessageContent):
    type: Literal["voice"] = "voice"
    sender: Sender
    text: str = "Voice message"
    audio_url: str = Field(..., min_length=1)
    duration_seconds: Optional[int] = Field(default=None, ge=0)


MessageContent = Annotated[
    Union[PlainMessage, PricingMessage, RejectionMessage, SystemMessage, VoiceMessage],
    Field(discriminator="type"),
]

message_content_adapter: TypeAdapter = TypeAdapter(MessageContent)


class SendMessagePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["plain", "voice"] = "plain"
    text: Optional[str] = None
    audio_url: Optional[str] = None
    duration_seconds: Optional[int] = Field(default=None, ge=0)
    client_id: Optional[int] = None

    @model_validator(mode="after")
    def _check_body(self) -> "SendMessagePayload":
        if self.type == "voice" and not (self.audio_url or "").strip():
            raise ValueError("audio_url is required for voice messages")
        if self.type == "plain" and not (self.text or "").strip():
            raise ValueError("Message text is required")
        return self

    def to_content(self, sender: str) -> Union[PlainMessage, VoiceMessage]:
        if self.type == "voice":
            return VoiceMessage(
                sender=sender,
                audio_url=self.audio_url or "",
                duration_seconds=self.duration_seconds,
            )
        return PlainMessage(sender=sender, text=self.text or "")


class PricingPayload(BaseModel):
    service: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    client_id: Optional[int] = None


class AcceptPayload(BaseModel):
    service: Optional[str] = None
    price: Optional[Union[str, float]] = None
    work_type: Literal["light", "heavy"] = "light"


class RejectPayload(BaseModel):
    reason: Optional[str] = None
