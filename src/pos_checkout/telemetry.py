from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

from .config import env_flag

EVENT_CATEGORIES = ("checkout", "promo_code", "stock_check", "commit_result", "error")
# customer identity never leaves the till through telemetry
_PII_KEYS = frozenset({"phone", "customer_name", "name", "email", "document", "token", "authorization", "notes"})


@dataclass(frozen=True)
class TelemetryEvent:
    category: str
    name: str
    timestamp_utc: str
    success: bool | None = None
    error_code: str | None = None
    duration_ms: int | None = None
    trace_id: str | None = None
    context: Mapping[str, Any] = field(default_factory=dict)

    def as_record(self, app_name: str) -> dict[str, Any]:
        record: dict[str, Any] = {
            "app_name": app_name,
            "category": self.category,
            "name": self.name,
            "timestamp_utc": self.timestamp_utc,
        }
        for key in ("success", "error_code", "duration_ms", "trace_id"):
            value = getattr(self, key)
            if value is not None:
                record[key] = value
        if self.context:
            record["context"] = dict(self.context)
        return record


def build_event(
    category: str,
    name: str,
    *,
    success: bool | None = None,
    error_code: str | None = None,
    duration_ms: int | None = None,
    trace_id: str | None = None,
    context: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> TelemetryEvent:
    if category not in EVENT_CATEGORIES:
        raise ValueError(f"Unsupported telemetry category: {category}")
    leaked = sorted(key for key in (context or {}) if key.lower() in _PII_KEYS)
    if leaked:
        raise ValueError(f"PII-like keys are forbidden in telemetry context: {leaked}")
    return TelemetryEvent(
        category=category,
        name=name,
        timestamp_utc=(now or datetime.now(timezone.utc)).isoformat(),
        success=success,
        error_code=error_code,
        duration_ms=duration_ms,
        trace_id=trace_id,
        context=dict(context or {}),
    )


class TelemetryLogger:
    """Appends checkout events as JSON lines.

    Off unless ``enabled`` is passed or ``POS_TELEMETRY_ENABLED`` is truthy.
    ``echo`` receives a copy of every line, which is handy on a dev terminal.
    """

    def __init__(
        self,
        *,
        app_name: str = "pos_checkout",
        enabled: bool | None = None,
        log_file: str | Path | None = None,
        echo: TextIO | None = None,
    ) -> None:
        self.app_name = app_name
        self.enabled = env_flag("POS_TELEMETRY_ENABLED") if enabled is None else enabled
        self.log_file = Path(log_file) if log_file else Path("artifacts", "telemetry", f"{app_name}.jsonl")
        self.echo = echo

    def emit(self, event: TelemetryEvent) -> bool:
        if not self.enabled:
            return False
        line = json.dumps(event.as_record(self.app_name), sort_keys=True, default=str) + "\n"
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as fp:
            fp.write(line)
        if self.echo is not None:
            self.echo.write(line)
            self.echo.flush()
        return True
