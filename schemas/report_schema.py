from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Duration(_ReportModel):
    milliseconds: int = Field(ge=0)
    seconds: float = Field(ge=0)
    minutes: float = Field(ge=0)


class MessageSummary(_ReportModel):
    total: int = Field(ge=0)
    per_second: float
    success_rate: float = Field(ge=0)


class JobSummary(_ReportModel):
    total: int = Field(ge=0)
    unique: int = Field(ge=0)
    per_second: float


class WabaShare(_ReportModel):
    messages: int = Field(ge=0)
    unique_message_ids: int = Field(ge=0)
    unique_wamids: int = Field(ge=0)
    percent_of_total: float = Field(ge=0)


class WabaSummary(_ReportModel):
    numbers: list[str] = Field(default_factory=list, alias="list")
    count: int = Field(ge=0)
    message_distribution: dict[str, WabaShare] = Field(default_factory=dict)


class CacheSummary(_ReportModel):
    hits: int = Field(ge=0)
    hits_per_waba_number: float = Field(ge=0)


class IdentifierSummary(_ReportModel):
    unique: int = Field(ge=0)
    ratio: float = Field(ge=0)


class ProcessingSummary(_ReportModel):
    avg_time_ms: float | None = None
    min_time_ms: float | None = None
    max_time_ms: float | None = None
    measured_messages: int = Field(ge=0)


class IntervalStats(_ReportModel):
    time_window: str
    messages: int = Field(ge=0)
    cache_hits: int = Field(ge=0)
    jobs: int = Field(ge=0)
    stores: int = Field(ge=0)


class ThroughputSummary(_ReportModel):
    peak_messages_per_minute: int = Field(ge=0)
    peak_interval: str | None = None
    intervals: list[IntervalStats] = Field(default_factory=list)


class LogEntry(_ReportModel):
    timestamp: str | None = None
    message: str


class ParseFailureSummary(_ReportModel):
    lines: int = Field(ge=0)
    nested_payloads: int = Field(ge=0)


class MetricsReport(_ReportModel):
    start_time: str
    end_time: str
    duration: Duration
    messages: MessageSummary
    jobs: JobSummary
    waba_numbers: WabaSummary
    cache_metrics: CacheSummary
    store_operations: int = Field(ge=0)
    message_ids: IdentifierSummary
    wamids: IdentifierSummary
    processing: ProcessingSummary
    throughput: ThroughputSummary
    log_levels: dict[str, int] = Field(default_factory=dict)
    errors: list[LogEntry] = Field(default_factory=list)
    warnings: list[LogEntry] = Field(default_factory=list)
    parse_failures: ParseFailureSummary
    pending_messages: int = Field(ge=0)
    lines_scanned: int = Field(ge=0)

    def to_json(self, *, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)
