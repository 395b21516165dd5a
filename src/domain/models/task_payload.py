"""Typed per-task-type payload envelope.

Each task type carries its own form data (a branch opening, a file
creation request, and so on). Instead of an untyped map the payload is an
envelope of ``task_type`` plus a flat mapping of top-level fields whose
values belong to a small closed set:

    str | int | float | bool | None | list[PayloadValue] | NestedValue

Nested mappings are kept intact inside ``NestedValue`` but are treated as
opaque by the diff synthesizer, which compares top-level keys only.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class NestedValue:
    """An opaque nested mapping inside a payload.

    Attributes:
        data: The nested mapping, JSON-compatible.
    """

    data: Mapping[str, Any]

    def display(self) -> str:
        """Render as compact JSON for audit display."""
        return json.dumps(dict(self.data), ensure_ascii=False, sort_keys=True)


PayloadValue = Union[str, int, float, bool, None, tuple, NestedValue]


def coerce_payload_value(value: Any) -> PayloadValue:
    """Convert a JSON-compatible value into a PayloadValue.

    Lists become tuples so the envelope stays hashable and immutable;
    dicts become NestedValue.

    Raises:
        TypeError: If the value is not JSON-compatible.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, NestedValue):
        return value
    if isinstance(value, Mapping):
        return NestedValue(data=dict(value))
    if isinstance(value, (list, tuple)):
        return tuple(coerce_payload_value(item) for item in value)
    raise TypeError(f"Unsupported payload value type: {type(value).__name__}")


def payload_value_to_json(value: PayloadValue) -> Any:
    """Convert a PayloadValue back to its plain JSON form."""
    if isinstance(value, NestedValue):
        return dict(value.data)
    if isinstance(value, tuple):
        return [payload_value_to_json(item) for item in value]
    return value


def display_payload_value(value: PayloadValue) -> PayloadValue | str:
    """Return the display form of a value for diff output.

    Scalars are returned unchanged; lists and nested maps are serialized
    to a compact JSON string.
    """
    if isinstance(value, NestedValue):
        return value.display()
    if isinstance(value, tuple):
        return json.dumps(
            payload_value_to_json(value), ensure_ascii=False, sort_keys=True
        )
    return value


@dataclass(frozen=True)
class TaskPayload:
    """Payload envelope for an admin task.

    Attributes:
        task_type: Task type code the payload belongs to.
        fields: Top-level payload fields.
    """

    task_type: str
    fields: Mapping[str, PayloadValue] = field(default_factory=dict)

    @classmethod
    def from_json(cls, task_type: str, data: Mapping[str, Any] | None) -> TaskPayload:
        """Build an envelope from a plain JSON object."""
        coerced = {
            str(key): coerce_payload_value(value) for key, value in (data or {}).items()
        }
        return cls(task_type=task_type, fields=coerced)

    def to_json(self) -> dict[str, Any]:
        """Return the plain JSON object form of the fields."""
        return {key: payload_value_to_json(value) for key, value in self.fields.items()}

    def get(self, key: str, default: PayloadValue = None) -> PayloadValue:
        return self.fields.get(key, default)

    def keys(self) -> list[str]:
        return list(self.fields.keys())
