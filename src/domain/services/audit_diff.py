"""Audit diff synthesizer.

Builds the structured details of ``update`` audit entries from the task
as it was before and after the update. Three categories are computed
independently:

- basic info: labelled scalar fields, with "" and None both normalised to
  EMPTY_SENTINEL before comparison, so a blank-to-null edit is no change
- notes: a single before/after pair for the free-text notes field
- payload: shallow comparison of top-level payload keys; lists and nested
  maps are shown as compact JSON strings. Nested structures are compared
  as whole values, never recursively.

Unchanged fields never appear in the output.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from src.domain.models.admin_task import AdminTask
from src.domain.models.audit_details import (
    FieldChange,
    NotesChange,
    PayloadChange,
    UpdateDiffDetails,
)
from src.domain.models.task_payload import (
    PayloadValue,
    display_payload_value,
    payload_value_to_json,
)

EMPTY_SENTINEL = "(empty)"

# Labelled scalar fields shown in basicInfoChanges, in display order
BASIC_INFO_FIELDS: dict[str, str] = {
    "title": "Title",
    "task_type": "Task type",
    "applicant_name": "Applicant name",
    "processor_name": "Processor name",
    "deadline": "Deadline",
    "approval_route": "Approval route",
}


def normalize_value(value: Any) -> Any:
    """Normalise a scalar for comparison and display.

    None and "" become EMPTY_SENTINEL; enums become their value;
    datetimes become ISO 8601 strings.
    """
    if value is None or value == "":
        return EMPTY_SENTINEL
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def diff_basic_info(
    before: Mapping[str, Any],
    after: Mapping[str, Any],
    labels: Mapping[str, str] = BASIC_INFO_FIELDS,
) -> tuple[FieldChange, ...]:
    """Compare labelled scalar fields of two field mappings."""
    changes: list[FieldChange] = []
    for name, label in labels.items():
        old = normalize_value(before.get(name))
        new = normalize_value(after.get(name))
        if old != new:
            changes.append(
                FieldChange(field=name, field_label=label, old_value=old, new_value=new)
            )
    return tuple(changes)


def diff_notes(before: str | None, after: str | None) -> NotesChange | None:
    """Compare the notes field; None when unchanged after normalisation."""
    old = normalize_value(before)
    new = normalize_value(after)
    if old == new:
        return None
    return NotesChange(old_value=old, new_value=new)


def _canonical(value: PayloadValue) -> str:
    # JSON keeps 1, 1.0 and true apart where == does not
    return json.dumps(payload_value_to_json(value), ensure_ascii=False, sort_keys=True)


def diff_payload(
    before: Mapping[str, PayloadValue],
    after: Mapping[str, PayloadValue],
) -> tuple[PayloadChange, ...]:
    """Shallow top-level comparison of two payload field mappings.

    Keys are reported in first-seen order: keys of ``before``, then keys
    only present in ``after``. A key present on one side only is always a
    change, even when the present value is None; its missing side reads
    as None. Values are equal only when their JSON forms match, so
    ``1 -> True`` and ``0 -> 0.0`` are changes.
    """
    keys = list(before.keys()) + [k for k in after.keys() if k not in before]
    changes: list[PayloadChange] = []
    for key in keys:
        old = before.get(key)
        new = after.get(key)
        if key in before and key in after and _canonical(old) == _canonical(new):
            continue
        changes.append(
            PayloadChange(
                field=key,
                old_value=display_payload_value(old),
                new_value=display_payload_value(new),
            )
        )
    return tuple(changes)


def _basic_info_of(task: AdminTask) -> dict[str, Any]:
    return {name: getattr(task, name) for name in BASIC_INFO_FIELDS}


def synthesize_update_diff(before: AdminTask, after: AdminTask) -> UpdateDiffDetails:
    """Build the details of an ``update`` entry for a task edit."""
    before_payload = before.payload.fields if before.payload is not None else {}
    after_payload = after.payload.fields if after.payload is not None else {}
    return UpdateDiffDetails(
        basic_info_changes=diff_basic_info(_basic_info_of(before), _basic_info_of(after)),
        notes_change=diff_notes(before.notes, after.notes),
        payload_changes=diff_payload(before_payload, after_payload),
    )
