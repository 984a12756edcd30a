"""Tests for pocketcal.models."""

import datetime

import pytest
from pydantic import ValidationError

from pocketcal.models import (
    SHARED_EVENT_FIELDS,
    BaseEvent,
    EventData,
    EventPatch,
    Occurrence,
    Recurrence,
    RecurrenceType,
    parse_local_date,
    parse_local_timestamp,
)

pytestmark = pytest.mark.unit


class TestParseLocalDate:
    def test_date_passes_through(self):
        assert parse_local_date(datetime.date(2024, 3, 5)) == datetime.date(2024, 3, 5)

    def test_naive_datetime_takes_date(self):
        assert parse_local_date(datetime.datetime(2024, 3, 5, 23, 59)) == datetime.date(2024, 3, 5)

    def test_iso_string(self):
        assert parse_local_date("2024-03-05") == datetime.date(2024, 3, 5)

    def test_iso_datetime_string_without_offset(self):
        assert parse_local_date("2024-03-05T10:00:00") == datetime.date(2024, 3, 5)

    @pytest.mark.parametrize("bad", ["", "   ", None, 12, "not-a-date"])
    def test_rejects_garbage(self, bad):
        with pytest.raises(ValueError):
            parse_local_date(bad)


class TestParseLocalTimestamp:
    def test_date_becomes_midnight(self):
        assert parse_local_timestamp(datetime.date(2024, 1, 2)) == datetime.datetime(2024, 1, 2)

    def test_aware_value_becomes_naive(self):
        aware = datetime.datetime(2024, 1, 2, 12, 0, tzinfo=datetime.timezone.utc)
        result = parse_local_timestamp(aware)
        assert result.tzinfo is None
        assert result == aware.astimezone().replace(tzinfo=None)

    def test_iso_string_with_z_suffix(self):
        result = parse_local_timestamp("2024-01-02T12:00:00.000Z")
        assert result.tzinfo is None


class TestRecurrence:
    def test_defaults_to_none_type(self):
        rule = Recurrence()
        assert rule.type == "none"
        assert rule.is_active is False

    def test_type_is_normalized(self):
        assert Recurrence(type=" Weekly ").kind is RecurrenceType.WEEKLY
        assert Recurrence(type=RecurrenceType.MONTHLY).type == "monthly"

    def test_unknown_type_is_kept_but_has_no_kind(self):
        rule = Recurrence(type="yearly")
        assert rule.type == "yearly"
        assert rule.kind is None
        assert rule.is_active is True

    def test_camel_case_aliases(self):
        rule = Recurrence.model_validate(
            {"type": "daily", "endDate": "2024-01-05", "daysOfWeek": [1, 3]}
        )
        assert rule.end_date == datetime.date(2024, 1, 5)
        assert rule.days_of_week == [1, 3]

    def test_null_type_means_no_recurrence(self):
        rule = Recurrence.model_validate({"type": None})
        assert rule.type == "none"
        assert rule.is_active is False

    def test_empty_end_date_is_none(self):
        assert Recurrence.model_validate({"type": "daily", "endDate": ""}).end_date is None

    @pytest.mark.parametrize(
        "type_, interval, expected",
        [
            ("daily", None, 1),
            ("weekly", None, 1),
            ("monthly", None, 1),
            ("custom", None, 7),
            ("custom", 3, 3),
            ("daily", 0, 1),
            ("weekly", -4, 1),
            ("monthly", 2, 2),
        ],
    )
    def test_effective_interval(self, type_, interval, expected):
        assert Recurrence(type=type_, interval=interval).effective_interval == expected


class TestBaseEvent:
    def test_record_uses_camel_case_and_drops_none(self, make_event):
        event = make_event(recurrence=Recurrence(type="weekly"))
        record = event.to_record()

        assert record["id"] == "1"
        assert record["date"] == "2024-01-01"
        assert record["createdAt"] == "2024-01-01T09:00:00"
        assert record["updatedAt"] == "2024-01-01T09:00:00"
        assert record["recurrence"] == {"type": "weekly"}
        assert "description" not in record
        assert "created_at" not in record

    def test_record_revives_to_equal_event(self, make_event):
        event = make_event(description="notes", time="10:00", color="blue")
        assert BaseEvent.model_validate(event.to_record()) == event

    def test_legacy_utc_date_is_accepted(self):
        event = BaseEvent.model_validate(
            {
                "id": "1",
                "title": "Old",
                "date": "2024-01-01T12:00:00.000Z",
                "createdAt": "2024-01-01T12:00:00.000Z",
                "updatedAt": "2024-01-01T12:00:00.000Z",
            }
        )
        assert isinstance(event.date, datetime.date)

    def test_rejects_occurrence_id(self, make_event):
        with pytest.raises(ValidationError):
            make_event(event_id="1-recurring-0")

    def test_missing_title_is_invalid(self):
        with pytest.raises(ValidationError):
            BaseEvent.model_validate(
                {"id": "1", "date": "2024-01-01", "createdAt": "2024-01-01", "updatedAt": "2024-01-01"}
            )

    def test_is_frozen(self, make_event):
        event = make_event()
        with pytest.raises(ValidationError):
            event.title = "changed"

    def test_identity_properties(self, make_event):
        event = make_event(event_id="42")
        assert event.base_id == "42"
        assert event.is_occurrence is False
        assert event.ref.id == "42"

    def test_is_recurring(self, make_event):
        assert make_event().is_recurring is False
        assert make_event(recurrence=Recurrence(type="none")).is_recurring is False
        assert make_event(recurrence=Recurrence(type="daily")).is_recurring is True


class TestOccurrence:
    def test_id_is_derived_from_base_and_index(self, make_event):
        base = make_event(event_id="7")
        shared = {name: getattr(base, name) for name in SHARED_EVENT_FIELDS}
        occ = Occurrence(**shared, date=datetime.date(2024, 1, 8), base_id="7", index=2)

        assert occ.id == "7-recurring-2"
        assert occ.base_id == "7"
        assert occ.is_occurrence is True
        assert occ.model_dump()["id"] == "7-recurring-2"

    def test_negative_index_is_invalid(self, make_event):
        base = make_event()
        shared = {name: getattr(base, name) for name in SHARED_EVENT_FIELDS}
        with pytest.raises(ValidationError):
            Occurrence(**shared, date=datetime.date(2024, 1, 8), base_id="1", index=-1)

    def test_shared_fields_exclude_date(self):
        assert "date" not in SHARED_EVENT_FIELDS
        assert {"title", "recurrence", "created_at", "updated_at"} <= set(SHARED_EVENT_FIELDS)


class TestEventData:
    def test_ignores_identity_keys(self):
        data = EventData.model_validate(
            {"id": "x", "title": "T", "date": "2024-02-02", "createdAt": "whatever"}
        )
        assert data.title == "T"
        assert data.date == datetime.date(2024, 2, 2)

    def test_requires_title_and_date(self):
        with pytest.raises(ValidationError):
            EventData.model_validate({"title": "T"})


class TestEventPatch:
    def test_only_explicit_fields_are_changes(self):
        assert EventPatch(title="New").changes() == {"title": "New"}

    def test_none_clears_optional_field(self):
        assert EventPatch(description=None).changes() == {"description": None}

    def test_none_for_required_field_is_dropped(self):
        assert EventPatch(title=None, date=None).changes() == {}

    def test_whole_event_payload_keeps_identity_out(self, make_event):
        payload = make_event().to_record()
        changes = EventPatch.model_validate(payload).changes()

        assert "id" not in changes
        assert "created_at" not in changes
        assert changes["date"] == datetime.date(2024, 1, 1)

    def test_recurrence_mapping_is_typed(self):
        changes = EventPatch.model_validate({"recurrence": {"type": "weekly", "interval": 2}}).changes()
        assert changes["recurrence"] == Recurrence(type="weekly", interval=2)
