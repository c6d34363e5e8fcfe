from datetime import datetime, timedelta, timezone

from db import database

MEETING = datetime(2031, 3, 3, 18, 0)


def _iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%S")


def _create_group(client, **overrides):
    payload = {
        "name": "Algorithms Crew",
        "description": "Weekly problem sets",
        "location": "Library 2F",
        "meetingDate": _iso(MEETING) + "Z",
        "endDate": _iso(MEETING + timedelta(hours=2)) + "Z",
        "isRecurring": True,
        "recurringPattern": "weekly",
    }
    payload.update(overrides)
    response = client.post("/api/study-groups", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def _group_events(client, group_id):
    events = client.get("/api/calendar/events").json()
    return [event for event in events if event["studyGroupId"] == group_id]


def test_weekly_group_materializes_nine_events_for_creator(make_client):
    creator = make_client("Ada")

    group = _create_group(creator)

    events = _group_events(creator, group["id"])
    assert len(events) == 9
    assert [event["startDate"] for event in events] == [_iso(MEETING + timedelta(days=7 * i)) for i in range(9)]
    assert [event["endDate"] for event in events] == [
        _iso(MEETING + timedelta(days=7 * i, hours=2)) for i in range(9)
    ]
    assert all(event["type"] == "study_group" for event in events)
    assert all(event["title"] == "Algorithms Crew - Study Session" for event in events)
    assert all(event["reminderMinutes"] == 30 for event in events)
    assert events[0]["studyGroup"]["name"] == "Algorithms Crew"


def test_non_recurring_group_creates_single_event(make_client):
    creator = make_client("Ada")

    group = _create_group(creator, name="Chem Lab Prep", isRecurring=False, recurringPattern=None)

    events = _group_events(creator, group["id"])
    assert len(events) == 1
    assert events[0]["type"] == "study_group"
    assert "Chem Lab Prep" in events[0]["title"]


def test_schedule_only_group_gets_placeholder_next_week(make_client):
    creator = make_client("Ada")

    group = _create_group(creator, meetingDate=None, endDate=None, isRecurring=False, schedule="Mondays 6pm")

    events = _group_events(creator, group["id"])
    assert len(events) == 1
    start = datetime.strptime(events[0]["startDate"], "%Y-%m-%dT%H:%M:%S")
    assert timedelta(days=6) < start - datetime.now(timezone.utc).replace(tzinfo=None) < timedelta(days=8)


def test_creator_is_member_and_listing_counts_members(make_client):
    creator = make_client("Ada")
    group = _create_group(creator)

    listing = make_client().get("/api/study-groups").json()
    mine = creator.get("/api/study-groups/my").json()
    members = creator.get(f"/api/study-groups/{group['id']}/members").json()

    assert listing[0]["memberCount"] == 1
    assert listing[0]["creator"]["firstName"] == "Ada"
    assert "password" not in listing[0]["creator"]
    assert [g["id"] for g in mine] == [group["id"]]
    assert [m["firstName"] for m in members] == ["Ada"]


def test_join_copies_future_events_as_not_completed(make_client):
    creator = make_client("Ada")
    joiner = make_client("Bob")
    group = _create_group(creator)
    first_event = _group_events(creator, group["id"])[0]
    creator.patch(f"/api/calendar/events/{first_event['id']}/complete", json={"completed": True})

    response = joiner.post(f"/api/study-groups/{group['id']}/join")

    assert response.json() == {"message": "Joined study group successfully"}
    copies = _group_events(joiner, group["id"])
    assert len(copies) == 9
    assert all(event["isCompleted"] is False for event in copies)
    assert all(event["userId"] == joiner.user["id"] for event in copies)
    assert joiner.post(f"/api/study-groups/{group['id']}/join").status_code == 400


def test_join_skips_past_sessions(make_client):
    creator = make_client("Ada")
    joiner = make_client("Bob")
    group = _create_group(creator, meetingDate="2020-01-06T18:00:00Z", endDate=None)
    scheduled = creator.post(
        f"/api/study-groups/{group['id']}/sessions",
        json={"title": "Final review", "startDate": "2031-06-01T15:00:00Z"},
    )
    assert scheduled.json() == {"message": "Study session scheduled successfully"}

    joiner.post(f"/api/study-groups/{group['id']}/join")

    copies = _group_events(joiner, group["id"])
    assert [event["title"] for event in copies] == ["Final review"]
    assert copies[0]["location"] == "Library 2F"


def test_leave_removes_only_the_leaving_members_events(make_client):
    creator = make_client("Ada")
    joiner = make_client("Bob")
    group = _create_group(creator)
    joiner.post(f"/api/study-groups/{group['id']}/join")

    response = joiner.delete(f"/api/study-groups/{group['id']}/leave")

    assert response.json() == {"message": "Left study group successfully"}
    assert _group_events(joiner, group["id"]) == []
    assert len(_group_events(creator, group["id"])) == 9
    with database.get_conn() as conn:
        remaining = conn.execute(
            "SELECT COUNT(*) FROM study_group_members WHERE group_id = ?", (group["id"],)
        ).fetchone()[0]
    assert remaining == 1
    assert joiner.delete(f"/api/study-groups/{group['id']}/leave").status_code == 404


def test_only_creator_can_edit_group(make_client):
    creator = make_client("Ada")
    other = make_client("Bob")
    group = _create_group(creator)

    forbidden = other.patch(f"/api/study-groups/{group['id']}", json={"name": "Hijacked"})
    assert forbidden.status_code == 403

    updated = creator.patch(f"/api/study-groups/{group['id']}", json={"description": "Now with snacks"})
    assert updated.status_code == 200
    assert updated.json()["description"] == "Now with snacks"
    assert updated.json()["name"] == "Algorithms Crew"


def test_sessions_require_membership(make_client):
    creator = make_client("Ada")
    outsider = make_client("Eve")
    group = _create_group(creator)

    response = outsider.post(
        f"/api/study-groups/{group['id']}/sessions",
        json={"title": "Crash it", "startDate": "2031-06-01T15:00:00Z"},
    )

    assert response.status_code == 403
    assert outsider.post("/api/study-groups/999/join").status_code == 404
    assert outsider.get("/api/study-groups/999/members").status_code == 404


def test_group_validation(make_client):
    client = make_client("Ada")

    assert client.post("/api/study-groups", json={"name": "   "}).status_code == 400
    assert client.post("/api/study-groups", json={"name": "Tiny", "maxMembers": 1}).status_code == 400
    assert client.post("/api/study-groups", json={"name": "X", "courseId": 999}).status_code == 404


def test_join_ignores_group_events_owned_by_non_members(make_client):
    creator = make_client("Ada")
    outsider = make_client("Eve")
    joiner = make_client("Bob")
    group = _create_group(creator, isRecurring=False, recurringPattern=None)
    with database.get_conn() as conn:
        conn.execute(
            """
            INSERT INTO calendar_events (title, type, start_date, user_id, study_group_id)
            VALUES (?, 'study_group', ?, ?, ?)
            """,
            ("Buy crypto", _iso(MEETING), outsider.user["id"], group["id"]),
        )
        conn.commit()

    joiner.post(f"/api/study-groups/{group['id']}/join")

    assert [event["title"] for event in _group_events(joiner, group["id"])] == ["Algorithms Crew - Study Session"]


def test_calendar_failure_does_not_undo_group_creation(make_client, monkeypatch, caplog):
    creator = make_client("Ada")

    def broken_insert(conn, user_id, data):
        conn.execute("INSERT INTO calendar_events (title, type, start_date, user_id) VALUES ('x', 'meeting', 'now', ?)", (user_id,))
        raise RuntimeError("calendar offline")

    monkeypatch.setattr("storage.study_groups.insert_event", broken_insert)

    group = _create_group(creator)

    assert group["name"] == "Algorithms Crew"
    assert [m["firstName"] for m in creator.get(f"/api/study-groups/{group['id']}/members").json()] == ["Ada"]
    assert creator.get("/api/calendar/events").json() == []
    assert "Failed to create calendar events for study group" in caplog.text
