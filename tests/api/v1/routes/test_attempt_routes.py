from __future__ import annotations

import pytest

from classroom.api.dependencies.attempts import get_submission_repository
from classroom.utils.enums import ExerciseKind

pytestmark = pytest.mark.anyio


def _url(exercise, suffix=""):
    return f"/api/v1/exercises/{exercise.id}/attempt{suffix}"


async def _start(client, exercise):
    resp = await client.post(_url(exercise, "/start"))
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["state"] == "confirming"
    resp = await client.post(_url(exercise, "/confirm"))
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


async def test_free_text_attempt_from_start_to_submission(client, act_as, users, seed_exercise):
    exercise = await seed_exercise(time_limit_minutes=5)
    act_as(users["student"])

    view = await _start(client, exercise)
    assert view["state"] == "running"
    assert view["remaining_seconds"] == 300
    assert view["read_only"] is False

    resp = await client.put(_url(exercise, "/answer"), json={"text": "  it reads the pointee  "})
    assert resp.json()["data"]["answer"]["text"] == "  it reads the pointee  "

    resp = await client.post(_url(exercise, "/submit"))
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    assert data["state"] == "completed"
    assert data["read_only"] is True

    mine = (await client.get(f"/api/v1/exercises/{exercise.id}/submissions/mine")).json()["data"]
    assert len(mine) == 1
    assert mine[0]["id"] == data["submission_id"]
    assert mine[0]["answer_text"] == "it reads the pointee"


async def test_time_up_submits_the_draft(client, act_as, users, seed_exercise, registry, clock):
    exercise = await seed_exercise(time_limit_minutes=1)
    act_as(users["student"])
    await _start(client, exercise)
    attempt = registry.get(str(users["student"].id), str(exercise.id))

    await clock.advance(61)
    await attempt.join()

    mine = (await client.get(f"/api/v1/exercises/{exercise.id}/submissions/mine")).json()["data"]
    assert len(mine) == 1
    assert mine[0]["duration_seconds"] == 60
    assert mine[0]["duration"] == "1min 0s"
    assert mine[0]["preview"] == "No answer"
    assert registry.get(str(users["student"].id), str(exercise.id)) is None


async def test_multiple_choice_hides_correctness_until_review(client, act_as, users, seed_exercise):
    exercise = await seed_exercise(
        kind=ExerciseKind.multiple_choice,
        options=[("&x", False), ("*p", True), ("p->x", False)],
    )
    correct = next(o for o in exercise.options if o.is_correct)
    act_as(users["student"])

    view = await _start(client, exercise)
    assert all("is_correct" not in option for option in view["exercise"]["options"])
    assert view["exercise"]["allows_multiple"] is False

    resp = await client.put(_url(exercise, "/answer"), json={"option_id": str(correct.id)})
    assert resp.json()["data"]["answer"]["selected_options"] == [str(correct.id)]

    submitted = (await client.post(_url(exercise, "/submit"))).json()["data"]
    review = (await client.get(f"/api/v1/submissions/{submitted['submission_id']}/review")).json()["data"]

    assert review["read_only"] is True
    assert review["is_owner"] is True
    flags = {o["option_text"]: (o["is_selected"], o["is_correct"]) for o in review["exercise"]["options"]}
    assert flags == {"&x": (False, False), "*p": (True, True), "p->x": (False, False)}


async def test_code_answer_language_is_checked(client, act_as, users, seed_exercise):
    exercise = await seed_exercise(kind=ExerciseKind.code)
    act_as(users["student"])
    await _start(client, exercise)

    resp = await client.put(_url(exercise, "/answer"), json={"code": "fn main() {}", "language": "rust"})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "ANSWER_INVALID"

    resp = await client.put(_url(exercise, "/answer"), json={"code": "int main(void) { return 0; }"})
    assert resp.json()["data"]["answer"]["language"] == "c"


async def test_answer_update_needs_exactly_one_edit(client, act_as, users, seed_exercise):
    exercise = await seed_exercise()
    act_as(users["student"])
    await _start(client, exercise)

    resp = await client.put(_url(exercise, "/answer"), json={"text": "a", "code": "b"})
    assert resp.status_code == 422


async def test_empty_submission_is_refused(client, act_as, users, seed_exercise):
    exercise = await seed_exercise()
    act_as(users["student"])
    await _start(client, exercise)

    resp = await client.post(_url(exercise, "/submit"))

    assert resp.status_code == 400
    assert resp.json()["error_code"] == "ANSWER_INVALID"
    assert (await client.get(_url(exercise))).json()["data"]["state"] == "running"


async def test_store_failure_is_reported_as_retryable(client, act_as, users, seed_exercise, test_app, store):
    exercise = await seed_exercise()
    test_app.dependency_overrides[get_submission_repository] = lambda: store
    store.fail_next = 1
    act_as(users["student"])
    await _start(client, exercise)
    await client.put(_url(exercise, "/answer"), json={"text": "answer"})

    resp = await client.post(_url(exercise, "/submit"))
    assert resp.status_code == 503
    body = resp.json()
    assert body["error_code"] == "PERSISTENCE_FAILED"
    assert body["data"]["retryable"] is True

    view = (await client.get(_url(exercise))).json()["data"]
    assert view["state"] == "running"
    assert view["answer"]["text"] == "answer"

    resp = await client.post(_url(exercise, "/submit"))
    assert resp.status_code == 201
    assert len(store.records) == 1


async def test_cancel_and_abandon_leave_nothing_behind(client, act_as, users, seed_exercise, clock):
    exercise = await seed_exercise(time_limit_minutes=1)
    act_as(users["student"])

    await client.post(_url(exercise, "/start"))
    resp = await client.post(_url(exercise, "/cancel"))
    assert resp.status_code == 200
    assert (await client.get(_url(exercise))).status_code == 404

    await _start(client, exercise)
    await client.put(_url(exercise, "/answer"), json={"text": "draft"})
    resp = await client.delete(_url(exercise))
    assert resp.status_code == 200
    await clock.advance(120)

    assert (await client.get(_url(exercise))).status_code == 404
    mine = (await client.get(f"/api/v1/exercises/{exercise.id}/submissions/mine")).json()["data"]
    assert mine == []

    view = await _start(client, exercise)
    assert view["answer"]["text"] == ""
    assert view["remaining_seconds"] == 60


async def test_state_conflicts_and_missing_exercises(client, act_as, users, seed_exercise):
    exercise = await seed_exercise()
    act_as(users["student"])

    resp = await client.post(_url(exercise, "/confirm"))
    assert resp.status_code == 409

    await _start(client, exercise)
    resp = await client.post(_url(exercise, "/start"))
    assert resp.status_code == 409
    assert resp.json()["error_code"] == "ATTEMPT_STATE_CONFLICT"

    resp = await client.post("/api/v1/exercises/6f1c1a4e-0000-4000-8000-000000000000/attempt/start")
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "EXERCISE_NOT_FOUND"


async def test_repeated_start_while_confirming_keeps_the_pending_attempt(client, act_as, users, seed_exercise):
    exercise = await seed_exercise(time_limit_minutes=2)
    act_as(users["student"])

    first = await client.post(_url(exercise, "/start"))
    again = await client.post(_url(exercise, "/start"))

    assert first.status_code == again.status_code == 200
    assert again.json()["data"]["state"] == "confirming"
    resp = await client.post(_url(exercise, "/confirm"))
    assert resp.json()["data"]["state"] == "running"
    assert resp.json()["data"]["remaining_seconds"] == 120


async def test_only_students_attempt_exercises(client, act_as, users, seed_exercise):
    exercise = await seed_exercise()
    act_as(users["teacher"])

    resp = await client.post(_url(exercise, "/start"))

    assert resp.status_code == 403
    assert resp.json()["error_code"] == "PERMISSION_DENIED"
