"""CSV rendering for activity log downloads."""
from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from datetime import datetime

from gallery_admin.models.activity import ActivityEvent
from gallery_admin.utils.time import as_utc

CSV_MEDIA_TYPE = "text/csv"
CSV_HEADERS = [
    "Date",
    "Time",
    "User Email",
    "User Role",
    "Action",
    "Image Title",
    "Details",
    "Suspicious",
]


def export_filename(now: datetime) -> str:
    return f"activity-logs-{as_utc(now).date().isoformat()}.csv"


def csv_row(event: ActivityEvent) -> list[str]:
    """Flatten one event into the fixed export column order."""

    created_at = as_utc(event.created_at)
    return [
        created_at.strftime("%Y-%m-%d"),
        created_at.strftime("%H:%M:%S"),
        event.actor.email,
        event.actor.role.value,
        event.action,
        event.subject.title if event.subject is not None else "",
        json.dumps(event.details or {}, separators=(",", ":"), ensure_ascii=False),
        "Yes" if event.is_suspicious else "No",
    ]


def render_activity_csv(events: Iterable[ActivityEvent]) -> str:
    """Header row as-is, then every data field quoted."""

    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADERS)
    rows = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for event in events:
        rows.writerow(csv_row(event))
    return buffer.getvalue()


__all__ = ["CSV_HEADERS", "CSV_MEDIA_TYPE", "csv_row", "export_filename", "render_activity_csv"]
