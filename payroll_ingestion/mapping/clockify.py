"""Clockify payload mappers (time entries and projects)."""

from __future__ import annotations

from typing import Any

from payroll_ingestion.mapping.common import maps_payload, text_or_none
from payroll_kernel.domain.records import Project, RawTimeEntry, TimeInterval
from payroll_kernel.domain.values import parse_flag, parse_timestamp
from payroll_kernel.exceptions import SourceRecordError

SOURCE = "clockify"

DEFAULT_DESCRIPTION = "Imported from Clockify"


def tag_names(tags: Any) -> tuple[str, ...]:
    """Tag names in order; a tag without a name falls back to its id."""
    names: list[str] = []
    for tag in tags or ():
        if isinstance(tag, dict):
            names.append(str(tag.get("name") or tag.get("id") or ""))
        else:
            names.append(str(tag))
    return tuple(names)


@maps_payload(SOURCE, "id")
def map_time_entry(payload: dict[str, Any]) -> RawTimeEntry:
    entry_id = str(payload["id"])
    interval = payload.get("timeInterval")
    if not isinstance(interval, dict) or not interval.get("start"):
        raise SourceRecordError(SOURCE, entry_id, "missing timeInterval.start")
    if not payload.get("userId") or not payload.get("projectId"):
        raise SourceRecordError(SOURCE, entry_id, "missing userId or projectId")

    end = interval.get("end")
    return RawTimeEntry(
        id=entry_id,
        user_id=str(payload["userId"]),
        project_id=str(payload["projectId"]),
        billable=parse_flag(payload.get("billable", False)),
        description=text_or_none(payload.get("description")) or DEFAULT_DESCRIPTION,
        tags=tag_names(payload.get("tags")),
        time_interval=TimeInterval(
            start=parse_timestamp(interval["start"]),
            end=parse_timestamp(end) if end else None,
            duration=interval.get("duration") or "",
        ),
    )


@maps_payload(SOURCE, "id")
def map_project(payload: dict[str, Any]) -> Project:
    return Project(id=str(payload["id"]), name=text_or_none(payload.get("name")) or "")
