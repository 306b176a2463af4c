import pytest

from barbershop.exceptions import ValidationException
from barbershop.templates import NO_OVERRIDE, Override, WorkingHoursTemplate, normalize_slots, parse_day


def test_normalize_sorts_and_dedupes():
    assert normalize_slots(["14:00", "09:00", "14:00", "10:30"]) == ["09:00", "10:30", "14:00"]


@pytest.mark.parametrize("bad", ["9:00", "24:00", "12:60", "noon", "", 900])
def test_normalize_rejects_bad_slots(bad):
    with pytest.raises(ValidationException):
        normalize_slots([bad])


@pytest.mark.parametrize("bad", ["2026-4-01", "2026-02-30", "01/04/2026", ""])
def test_parse_day_rejects_bad_dates(bad):
    with pytest.raises(ValidationException):
        parse_day(bad)


def test_missing_override_is_distinct_from_empty_override():
    template = WorkingHoursTemplate(staff_id=1, default_slots=["10:00"])
    template.set_override("2026-04-02", [])

    assert template.override_for("2026-04-01") is NO_OVERRIDE
    blocked = template.override_for("2026-04-02")
    assert isinstance(blocked, Override)
    assert blocked.blocks_day
    assert blocked.slots == ()


def test_clear_override_removes_key():
    template = WorkingHoursTemplate(staff_id=1)
    template.set_override("2026-04-01", ["11:00"])

    assert template.clear_override("2026-04-01") is True
    assert template.override_for("2026-04-01") is NO_OVERRIDE
    assert template.clear_override("2026-04-01") is False
    assert template.to_record() == {"default": [], "dates": {}}


def test_record_round_trip_keeps_empty_override():
    record = {"default": ["11:00", "10:00"], "dates": {"2026-04-02": [], "2026-04-01": ["12:00"]}}
    template = WorkingHoursTemplate.from_record(7, record)

    assert template.default_slots == ["10:00", "11:00"]
    assert template.overridden_dates() == ["2026-04-01", "2026-04-02"]
    assert template.to_record()["dates"]["2026-04-02"] == []


def test_from_missing_record_is_empty():
    template = WorkingHoursTemplate.from_record(3, None)
    assert template == WorkingHoursTemplate.empty(3)
