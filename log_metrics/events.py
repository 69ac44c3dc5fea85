from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class LogLine:
    timestamp: datetime | None
    level: str
    raw_timestamp: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class JobCompleted:
    timestamp: datetime | None
    job_id: str


@dataclass(frozen=True)
class MessageSent:
    timestamp: datetime | None
    waba_number: str
    wamid: str
    message_id: str | None
    identifier: str | None = None


@dataclass(frozen=True)
class MessageStored:
    timestamp: datetime | None
    waba_number: str
    wamid: str
    message_id: str | None


@dataclass(frozen=True)
class CacheHit:
    timestamp: datetime | None
    waba_number: str


Event = Union[LogLine, JobCompleted, MessageSent, MessageStored, CacheHit]
