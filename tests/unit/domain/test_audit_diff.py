"""Unit tests for the audit diff synthesizer."""

from __future__ import annotations

from datetime import datetime, timezone

from src.domain.models.admin_task import AdminTask, ApprovalRoute
from src.domain.models.task_payload import TaskPayload
from src.domain.services.audit_diff import (
    EMPTY_SENTINEL,
    diff_basic_info,
    diff_notes,
    diff_payload,
    normalize_value,
    synthesize_update_diff,
)


def make_task(**overrides) -> AdminTask:
    fields = {
        "id": 1,
        "task_no": "AT-20260304-0001",
        "task_type": "CREATE_FILE",
        "title": "Open file",
        "applicant_id": "alice",
    }
    fields.update(overrides)
    return AdminTask(**fields)


class TestNormalizeValue:
    def test_blank_and_none_are_the_same(self) -> None:
        assert normalize_value(None) == EMPTY_SENTINEL
        assert normalize_value("") == EMPTY_SENTINEL

    def test_enum_and_datetime(self) -> None:
        assert normalize_value(ApprovalRoute.DEFAULT) == "DEFAULT"
        when = datetime(2026, 3, 4, tzinfo=timezone.utc)
        assert normalize_value(when) == "2026-03-04T00:00:00+00:00"


class TestBasicInfo:
    def test_changed_field_is_labelled(self) -> None:
        changes = diff_basic_info({"title": "A"}, {"title": "B"})
        assert len(changes) == 1
        assert changes[0].to_dict() == {
            "field": "title",
            "fieldLabel": "Title",
            "oldValue": "A",
            "newValue": "B",
        }

    def test_blank_to_null_is_no_change(self) -> None:
        assert diff_basic_info({"applicant_name": ""}, {"applicant_name": None}) == ()

    def test_set_from_nothing_shows_sentinel(self) -> None:
        (change,) = diff_basic_info({}, {"processor_name": "Bob"})
        assert change.old_value == EMPTY_SENTINEL
        assert change.new_value == "Bob"


class TestNotes:
    def test_unchanged(self) -> None:
        assert diff_notes("same", "same") is None
        assert diff_notes(None, "") is None

    def test_changed(self) -> None:
        change = diff_notes(None, "call back")
        assert change is not None
        assert change.to_dict() == {"oldValue": EMPTY_SENTINEL, "newValue": "call back"}


class TestPayload:
    def test_only_changed_keys(self) -> None:
        before = TaskPayload.from_json("X", {"a": 1, "b": "x"}).fields
        after = TaskPayload.from_json("X", {"a": 2, "b": "x"}).fields
        changes = diff_payload(before, after)
        assert [c.to_dict() for c in changes] == [
            {"field": "a", "oldValue": 1, "newValue": 2}
        ]

    def test_added_and_removed_keys(self) -> None:
        before = TaskPayload.from_json("X", {"gone": "y"}).fields
        after = TaskPayload.from_json("X", {"new": True}).fields
        changes = {c.field: c for c in diff_payload(before, after)}
        assert changes["gone"].new_value is None
        assert changes["new"].old_value is None
        assert changes["new"].new_value is True

    def test_nested_values_compared_whole_and_shown_as_json(self) -> None:
        before = TaskPayload.from_json("X", {"addr": {"city": "Oslo", "zip": "0150"}}).fields
        after = TaskPayload.from_json("X", {"addr": {"city": "Bergen", "zip": "0150"}}).fields
        (change,) = diff_payload(before, after)
        assert change.field == "addr"
        assert change.old_value == '{"city": "Oslo", "zip": "0150"}'
        assert change.new_value == '{"city": "Bergen", "zip": "0150"}'

    def test_lists_shown_as_json(self) -> None:
        before = TaskPayload.from_json("X", {"tags": ["a"]}).fields
        after = TaskPayload.from_json("X", {"tags": ["a", "b"]}).fields
        (change,) = diff_payload(before, after)
        assert change.new_value == '["a", "b"]'

    def test_bool_and_int_are_different_values(self) -> None:
        before = TaskPayload.from_json("X", {"urgent": 1, "count": 0, "ratio": 1}).fields
        after = TaskPayload.from_json("X", {"urgent": True, "count": False, "ratio": 1.0}).fields
        changes = {c.field: c for c in diff_payload(before, after)}
        assert set(changes) == {"urgent", "count", "ratio"}
        assert changes["urgent"].old_value == 1
        assert changes["urgent"].new_value is True
        assert changes["count"].new_value is False

    def test_nested_bool_and_int_are_different_values(self) -> None:
        before = TaskPayload.from_json("X", {"flags": {"a": 1}, "ids": [0]}).fields
        after = TaskPayload.from_json("X", {"flags": {"a": True}, "ids": [False]}).fields
        assert [c.field for c in diff_payload(before, after)] == ["flags", "ids"]

    def test_removed_none_valued_key_is_a_change(self) -> None:
        before = TaskPayload.from_json("X", {"keep": "x", "memo": None}).fields
        after = TaskPayload.from_json("X", {"keep": "x"}).fields
        (change,) = diff_payload(before, after)
        assert change.field == "memo"
        assert change.old_value is None
        assert change.new_value is None

    def test_added_none_valued_key_is_a_change(self) -> None:
        before = TaskPayload.from_json("X", {}).fields
        after = TaskPayload.from_json("X", {"memo": None}).fields
        assert [c.field for c in diff_payload(before, after)] == ["memo"]

    def test_equal_values_of_same_type_are_unchanged(self) -> None:
        payload = {"n": 1, "flag": False, "tags": ["a"], "addr": {"city": "Oslo"}}
        before = TaskPayload.from_json("X", payload).fields
        after = TaskPayload.from_json("X", dict(payload)).fields
        assert diff_payload(before, after) == ()


class TestSynthesizeUpdateDiff:
    def test_identical_tasks_give_empty_diff(self) -> None:
        task = make_task(notes="n")
        assert synthesize_update_diff(task, task).is_empty()

    def test_three_categories_are_independent(self) -> None:
        before = make_task(
            notes="old",
            payload=TaskPayload.from_json("CREATE_FILE", {"dept": "Sales"}),
        )
        after = make_task(
            title="Open file now",
            notes="new",
            payload=TaskPayload.from_json("CREATE_FILE", {"dept": "Ops"}),
        )
        diff = synthesize_update_diff(before, after)
        assert [c.field for c in diff.basic_info_changes] == ["title"]
        assert diff.notes_change is not None
        assert [c.field for c in diff.payload_changes] == ["dept"]
        assert set(diff.to_dict()) == {"basicInfoChanges", "notesChange", "payloadChanges"}

    def test_notes_only_change_omits_other_keys(self) -> None:
        diff = synthesize_update_diff(make_task(), make_task(notes="x"))
        assert set(diff.to_dict()) == {"notesChange"}
