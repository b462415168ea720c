"""Serialize analysis reports to plain JSON."""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any

from repopulse.models import AnalysisReport


def _plain(value: Any) -> Any:
    """Convert enums and datetimes inside an ``asdict`` tree to JSON values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def report_to_dict(report: AnalysisReport, *, include_metadata: bool = True) -> dict[str, Any]:
    """Convert a report to a JSON-compatible dict.

    ``include_metadata=False`` drops the timing fields, leaving only values
    that are fully determined by the input.
    """
    data = _plain(asdict(report))
    data["degraded"] = report.degraded
    if not include_metadata:
        data.pop("metadata")
    return data


def format_json(report: AnalysisReport, *, include_metadata: bool = True, indent: int = 2) -> str:
    return json.dumps(
        report_to_dict(report, include_metadata=include_metadata),
        indent=indent,
        sort_keys=True,
        ensure_ascii=False,
    )
