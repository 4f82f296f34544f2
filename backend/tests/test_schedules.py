from datetime import datetime

import pytest

from app.models.candidate import School
from app.models.schedule import TheoryLesson
from app.services.errors import ScheduleValidationError
from app.services.schedules import expand_pairs, group_key, plan_rows, slot_times


START = datetime(2025, 4, 1, 17, 30)


def test_group_key_pairs_codes():
    assert group_key("T8-1") == "T6-1+T8-1"
    assert group_key("T6-1") == "T6-1+T8-1"
    assert group_key("T1-1") == "T1-1"


def test_expand_pairs_adds_peer_once():
    assert expand_pairs(["T8-1", "T1-1", "T6-1"]) == ["T8-1", "T6-1", "T1-1"]


def test_slot_times_step_and_length():
    assert slot_times(START, 0) == ("17:30", "18:15")
    assert slot_times(START, 2) == ("19:20", "20:05")


def test_plan_rows_groups_in_selection_order():
    rows = plan_rows([(5, "T1-1"), (8, "T8-1"), (6, "T6-1"), (3, "T3-1")], START)

    assert [r.label for r in rows] == ["T1-1", "T6-1 + T8-1", "T3-1"]
    assert rows[1].lesson_ids == [8, 6]
    assert [(r.start, r.end) for r in rows] == [("17:30", "18:15"), ("18:25", "19:10"), ("19:20", "20:05")]


def test_plan_rows_limits_groups():
    with pytest.raises(ScheduleValidationError):
        plan_rows([(1, "T1-1"), (2, "T2-1"), (3, "T3-1"), (4, "T4-1")], START)


def _seed_catalogue(db):
    school = School(name="Autoškola Start")
    db.add(school)
    for code in ("T1-1", "T6-1", "T8-1", "T10-1", "T11-1", "T3-1"):
        db.add(TheoryLesson(code=code, is_special=False))
    db.commit()
    return school


def test_create_and_get_schedule(client, db, admin_headers):
    school = _seed_catalogue(db)

    r = client.post(
        "/schedules",
        json={
            "school_id": school.id,
            "starts_at": "2025-04-01T17:30:00",
            "description": " Grupa A ",
            "lesson_codes": ["T6-1", "T1-1"],
        },
        headers=admin_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["description"] == "Grupa A"
    assert [row["label"] for row in body["rows"]] == ["T6-1 + T8-1", "T1-1"]
    assert [row["slot"] for row in body["rows"]] == [1, 2]

    again = client.get(f"/schedules/{body['id']}", headers=admin_headers).json()
    assert again["rows"] == body["rows"]


def test_schedule_rejects_fourth_group(client, db, admin_headers):
    _seed_catalogue(db)
    r = client.post(
        "/schedules/preview",
        json={"starts_at": "2025-04-01T08:00:00", "lesson_codes": ["T1-1", "T6-1", "T10-1", "T3-1"]},
        headers=admin_headers,
    )
    assert r.status_code == 400


def test_schedule_rejects_unknown_school_and_lessons(client, db, admin_headers):
    school = _seed_catalogue(db)
    r1 = client.post(
        "/schedules",
        json={"school_id": school.id + 100, "starts_at": "2025-04-01T08:00:00", "lesson_codes": ["T1-1"]},
        headers=admin_headers,
    )
    r2 = client.post(
        "/schedules/preview",
        json={"starts_at": "2025-04-01T08:00:00", "lesson_codes": ["X-9"]},
        headers=admin_headers,
    )
    r3 = client.post(
        "/schedules/preview",
        json={"starts_at": "2025-04-01T08:00:00", "lesson_codes": []},
        headers=admin_headers,
    )
    assert (r1.status_code, r2.status_code, r3.status_code) == (400, 400, 400)
