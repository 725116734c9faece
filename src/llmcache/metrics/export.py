"""Raw sample export (JSON / CSV)."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence

from llmcache.metrics.models import MetricSample
from llmcache.types import ExportFormat

CSV_COLUMNS = [
    "timestamp",
    "provider",
    "model",
    "operation",
    "latency_ms",
    "success",
    "cached",
    "prompt_tokens",
    "completion_tokens",
    "total_tokens",
    "cost_usd",
    "error",
]


def export_samples(samples: Sequence[MetricSample], fmt: ExportFormat | str = "json") -> str:
    try:
        fmt = ExportFormat(fmt)
    except ValueError:
        raise ValueError(
            f"Unsupported export format: {fmt!r} (expected one of: "
            f"{', '.join(f.value for f in ExportFormat)})"
        ) from None
    if fmt == ExportFormat.JSON:
        return to_json(samples)
    return to_csv(samples)


def to_json(samples: Sequence[MetricSample]) -> str:
    return json.dumps([s.model_dump(mode="json") for s in samples], indent=2)


def to_csv(samples: Sequence[MetricSample]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for s in samples:
        tokens = s.tokens
        writer.writerow([
            s.timestamp,
            s.provider,
            s.model,
            s.operation,
            s.latency_ms,
            s.success,
            s.cached,
            tokens.prompt_tokens if tokens else 0,
            tokens.completion_tokens if tokens else 0,
            tokens.total_tokens if tokens else 0,
            s.cost_usd or 0,
            s.error or "",
        ])
    return buffer.getvalue()
