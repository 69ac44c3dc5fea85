from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class JsonLogEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: str = Field(min_length=1)
    message: str
    timestamp: datetime = Field(validation_alias=AliasChoices("@timestamp", "timestamp"))
    logger_name: str


class CallbackStatus(BaseModel):
    id: str = Field(min_length=1)
    status: str
    biz_opaque_callback_data: str | None = None


class CallbackMetadata(BaseModel):
    phone_number_id: str = Field(min_length=1)

    @field_validator("phone_number_id", mode="before")
    @classmethod
    def _stringify_number(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CallbackValue(BaseModel):
    metadata: CallbackMetadata | None = None
    statuses: list[CallbackStatus] = Field(default_factory=list)


class CallbackChange(BaseModel):
    value: CallbackValue


class CallbackEntry(BaseModel):
    changes: list[CallbackChange] = Field(min_length=1)


class CallbackPayload(BaseModel):
    """Webhook status callback as embedded in the consumer's log message."""

    entry: list[CallbackEntry] = Field(min_length=1)

    @property
    def value(self) -> CallbackValue:
        return self.entry[0].changes[0].value
