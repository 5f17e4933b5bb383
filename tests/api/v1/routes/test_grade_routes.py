from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from classroom.models.submission import Submission

pytestmark = pytest.mark.anyio


async def _submission(db_session, exercise, student, minutes=0, answer="dereference"):
    submission = Submission(
        exercise_id=exercise.id,
        student_id=student.id,
        submitted_at=datetime(2025, 6, 1, 10, tzinfo=timezone.utc) + timedelta(minutes=minutes),
        duration_seconds=95,
        answer_text=answer,
    )
    db_session.add(submission)
    await db_session.commit()
    return submission


async def test_teacher_grades_once_then_updates(client, act_as, users, db_session, seed_exercise):
    exercise = await seed_exercise()
    submission = await _submission(db_session, exercise, users["student"])
    act_as(users["teacher"])

    resp = await client.post(f"/api/v1/submissions/{submission.id}/grade", json={"grade": 4, "feedback": "Close"})
    assert resp.status_code == 201, resp.text
    grade = resp.json()["data"]
    assert grade["grade"] == 4

    resp = await client.post(f"/api/v1/submissions/{submission.id}/grade", json={"grade": 5})
    assert resp.status_code == 409

    resp = await client.patch(f"/api/v1/grades/{grade['id']}", json={"grade": 5})
    assert resp.json()["data"]["grade"] == 5
    assert resp.json()["data"]["feedback"] == "Close"


@pytest.mark.parametrize("value", [0, 6, -1])
async def test_grades_outside_one_to_five_are_rejected(client, act_as, users, db_session, seed_exercise, value):
    exercise = await seed_exercise()
    submission = await _submission(db_session, exercise, users["student"])
    act_as(users["teacher"])

    resp = await client.post(f"/api/v1/submissions/{submission.id}/grade", json={"grade": value})
    assert resp.status_code == 422


async def test_students_see_only_their_own_grades(client, act_as, users, db_session, seed_exercise):
    exercise = await seed_exercise()
    submission = await _submission(db_session, exercise, users["student"])
    act_as(users["teacher"])
    await client.post(f"/api/v1/submissions/{submission.id}/grade", json={"grade": 2})

    act_as(users["student"])
    assert (await client.get(f"/api/v1/submissions/{submission.id}/grade")).json()["data"]["grade"] == 2
    assert (await client.post(f"/api/v1/submissions/{submission.id}/grade", json={"grade": 5})).status_code == 403

    act_as(users["other_student"])
    assert (await client.get(f"/api/v1/submissions/{submission.id}/grade")).status_code == 403
    assert (await client.get(f"/api/v1/submissions/{submission.id}")).status_code == 403


async def test_teacher_submission_listings(client, act_as, users, db_session, seed_exercise):
    exercise = await seed_exercise()
    sam, olga = users["student"], users["other_student"]
    await _submission(db_session, exercise, sam, minutes=1, answer="first try")
    latest = await _submission(db_session, exercise, sam, minutes=5, answer="second try")
    await _submission(db_session, exercise, olga, minutes=3, answer="olga")
    url = f"/api/v1/exercises/{exercise.id}/submissions"

    act_as(sam)
    assert (await client.get(url)).status_code == 403

    act_as(users["teacher"])
    everything = (await client.get(url)).json()["data"]
    assert [s["answer_text"] for s in everything] == ["second try", "olga", "first try"]

    latest_only = (await client.get(url, params={"latest_only": True})).json()["data"]
    assert [s["id"] for s in latest_only][0] == str(latest.id)
    assert len(latest_only) == 2

    grouped = (await client.get(url, params={"grouped": True})).json()["data"]
    assert [g["student_id"] for g in grouped] == [str(sam.id), str(olga.id)]
    assert len(grouped[0]["submissions"]) == 2

    history = (await client.get(f"/api/v1/exercises/{exercise.id}/students/{olga.id}/submissions")).json()["data"]
    assert [s["answer_text"] for s in history] == ["olga"]


async def test_review_is_available_to_teachers(client, act_as, users, db_session, seed_exercise):
    exercise = await seed_exercise()
    submission = await _submission(db_session, exercise, users["student"])
    act_as(users["teacher"])

    review = (await client.get(f"/api/v1/submissions/{submission.id}/review")).json()["data"]

    assert review["read_only"] is True
    assert review["is_owner"] is False
    assert review["answer"]["text"] == "dereference"
    assert (await client.get("/api/v1/submissions/not-an-id/review")).status_code == 404
