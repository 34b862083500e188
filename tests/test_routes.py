import pytest

from app import routes
from app.coach import CoachError
from timer.preferences import ACTIVE_PLAN_KEY


def create_plan(client, name="Bach Invention"):
    response = client.post("/api/plans", json={"name": name})
    assert response.status_code == 201
    return response.get_json()["plan"]


def test_dashboard(client):
    response = client.get("/")
    assert response.status_code == 200
    assert b"Sessions today" in response.data


@pytest.mark.parametrize("window", ["1w", "1m", "3m"])
def test_dashboard_windows(client, window):
    assert client.get(f"/?window={window}").status_code == 200


def test_get_timer(client):
    timer = client.get("/api/timer").get_json()["timer"]
    assert timer["mode"] == "STUDY"
    assert timer["time_left"] == 900
    assert timer["status"] == "idle"


def test_select_mode(client):
    response = client.post("/api/timer/mode", json={"mode": "short_break"})
    timer = response.get_json()["timer"]
    assert timer["mode"] == "SHORT_BREAK"
    assert timer["time_left"] == 300


def test_select_invalid_mode(client):
    response = client.post("/api/timer/mode", json={"mode": "LONG_BREAK"})
    assert response.status_code == 400
    assert client.get("/api/timer").get_json()["timer"]["mode"] == "STUDY"


def test_toggle_and_reset(client, scheduler):
    timer = client.post("/api/timer/toggle").get_json()["timer"]
    assert timer["status"] == "running"

    scheduler.advance(10)
    assert client.get("/api/timer").get_json()["timer"]["time_left"] == 890

    timer = client.post("/api/timer/reset").get_json()["timer"]
    assert timer["time_left"] == 900
    assert timer["status"] == "idle"


def test_durations(client):
    response = client.put("/api/timer/durations/PRACTICE", json={"minutes": 25})
    assert response.get_json()["saved"] is True

    durations = client.get("/api/timer/durations").get_json()
    assert durations["durations"]["PRACTICE"] == 25
    assert durations["durations"]["STUDY"] is None
    assert durations["effective"]["STUDY"] == 15

    timer = client.post("/api/timer/mode", json={"mode": "PRACTICE"}).get_json()["timer"]
    assert timer["time_left"] == 1500


@pytest.mark.parametrize("minutes", [0, -5, "abc", None, 1000])
def test_invalid_duration(client, minutes):
    response = client.put("/api/timer/durations/STUDY", json={"minutes": minutes})
    assert response.status_code == 400


def test_notification_permission(client):
    response = client.put("/api/notifications", json={"permission": "bogus"})
    assert response.status_code == 400
    assert "permission" in client.get("/api/notifications").get_json()


def test_create_plan_selects_it(client, app):
    plan = create_plan(client)
    assert plan["name"] == "Bach Invention"
    assert len(plan["steps"]) == 1

    listing = client.get("/api/plans").get_json()
    assert listing["active_plan_id"] == str(plan["id"])


def test_create_plan_needs_name(client):
    assert client.post("/api/plans", json={"name": "  "}).status_code == 400


def test_update_plan(client):
    plan = create_plan(client)
    response = client.put(f"/api/plans/{plan['id']}", json={"name": "Czerny", "total_duration": 45})
    updated = response.get_json()["plan"]
    assert updated["name"] == "Czerny"
    assert updated["total_duration"] == 45


def test_missing_plan(client):
    assert client.get("/api/plans/999").status_code == 404


def test_step_crud(client):
    plan = create_plan(client)
    plan = client.post(
        f"/api/plans/{plan['id']}/steps",
        json={"duration": "8", "action": "Sight reading", "type": "study"},
    ).get_json()["plan"]
    assert [s["action"] for s in plan["steps"]] == ["First block", "Sight reading"]

    step_id = plan["steps"][1]["id"]
    step = client.put(
        f"/api/plans/{plan['id']}/steps/{step_id}",
        json={"duration": "12"},
    ).get_json()["step"]
    assert step["duration"] == "12"

    plan = client.delete(f"/api/plans/{plan['id']}/steps/{plan['steps'][0]['id']}").get_json()["plan"]
    assert len(plan["steps"]) == 1
    assert plan["steps"][0]["position"] == 0


def test_step_rejects_unknown_type(client):
    plan = create_plan(client)
    response = client.post(f"/api/plans/{plan['id']}/steps", json={"type": "jam"})
    assert response.status_code == 400


def test_step_from_other_plan_is_404(client):
    first = create_plan(client, "One")
    second = create_plan(client, "Two")
    step_id = first["steps"][0]["id"]
    assert client.post(f"/api/plans/{second['id']}/steps/{step_id}/start").status_code == 404


def test_start_step_drives_timer(client):
    plan = create_plan(client)
    plan = client.post(
        f"/api/plans/{plan['id']}/steps",
        json={"duration": "abc", "action": "Breathing", "type": "break"},
    ).get_json()["plan"]
    step = plan["steps"][1]

    timer = client.post(f"/api/plans/{plan['id']}/steps/{step['id']}/start").get_json()["timer"]
    assert timer["mode"] == "SHORT_BREAK"
    assert timer["time_left"] == 300
    assert timer["label"] == "Breathing"
    assert timer["status"] == "running"


def test_completed_step_is_recorded(client, scheduler, player):
    plan = create_plan(client)
    step = plan["steps"][0]
    client.put(f"/api/plans/{plan['id']}/steps/{step['id']}", json={"duration": "1"})
    client.post(f"/api/plans/{plan['id']}/steps/{step['id']}/start")

    scheduler.advance(60)

    timer = client.get("/api/timer").get_json()["timer"]
    assert timer["status"] == "alarming"
    assert len(player.plays) == 1

    today = client.get("/api/sessions/today").get_json()
    assert today["count"] == 1
    assert today["sessions"][0]["mode"] == "STUDY"
    assert today["sessions"][0]["label"] == "First block"

    timer = client.post("/api/timer/alarm/stop").get_json()["timer"]
    assert timer["status"] == "idle"


def test_export_sessions(client, clock, scheduler):
    clock.toggle_running()
    scheduler.advance(900)

    response = client.get("/export/sessions")
    assert response.mimetype == "text/csv"
    lines = response.data.decode().strip().splitlines()
    assert lines[0] == "date,completed_at,mode,label"
    assert len(lines) == 2
    assert lines[1].endswith(",STUDY,")


def test_generate_plan(client, monkeypatch):
    def fake_generate(goal, minutes):
        return {
            "title": goal,
            "steps": [
                {"duration": "10", "action": "Arpeggios", "description": "", "type": "study"},
                {"duration": "20", "action": "Play through", "description": "", "type": "practice"},
            ],
            "techniqueTip": "Breathe.",
        }

    monkeypatch.setattr(routes, "generate_practice_plan", fake_generate)
    response = client.post("/api/plans/generate", json={"goal": "Clair de Lune", "minutes": 30})

    assert response.status_code == 201
    plan = response.get_json()["plan"]
    assert [s["type"] for s in plan["steps"]] == ["study", "practice"]
    assert client.get("/api/plans").get_json()["active_plan_id"] == str(plan["id"])


def test_generate_failure_leaves_timer_alone(client, monkeypatch):
    def failing(goal, minutes):
        raise CoachError("quota")

    monkeypatch.setattr(routes, "generate_practice_plan", failing)
    before = client.get("/api/timer").get_json()["timer"]

    response = client.post("/api/plans/generate", json={"goal": "Scales", "minutes": 20})
    assert response.status_code == 502
    assert response.get_json()["message"] == "AI error. Please try again."
    assert client.get("/api/timer").get_json()["timer"] == before
    assert client.get("/api/plans").get_json()["plans"] == []


def test_generate_needs_goal(client):
    assert client.post("/api/plans/generate", json={"goal": "", "minutes": 20}).status_code == 400


def test_delete_active_plan_selects_newest_remaining(client, app):
    older = create_plan(client, "Older")
    newer = create_plan(client, "Newer")
    client.post(f"/api/plans/{older['id']}/select")

    response = client.delete(f"/api/plans/{older['id']}")
    assert response.get_json()["active_plan_id"] == str(newer["id"])

    response = client.delete(f"/api/plans/{newer['id']}")
    assert response.get_json()["active_plan_id"] is None


def test_active_plan_stored_in_preferences(client, app):
    plan = create_plan(client)
    preferences = app.extensions["preferences"]
    assert preferences.get(ACTIVE_PLAN_KEY) == str(plan["id"])


def test_quote_fallback(client, monkeypatch):
    monkeypatch.setattr(routes, "get_inspirational_quote", lambda: "Keep going.")
    assert client.get("/api/quote").get_json() == {"quote": "Keep going."}


@pytest.mark.parametrize("activity", [["study"], {"kind": "study"}])
def test_step_with_unhashable_type_is_rejected(client, activity):
    plan = create_plan(client)
    response = client.post(f"/api/plans/{plan['id']}/steps", json={"type": activity})
    assert response.status_code == 400

    step_id = plan["steps"][0]["id"]
    response = client.put(f"/api/plans/{plan['id']}/steps/{step_id}", json={"type": activity})
    assert response.status_code == 400


@pytest.mark.parametrize("raw", ["Infinity", "-Infinity", "NaN", "3.7", "true"])
def test_non_integer_minutes_are_rejected(client, raw):
    body = '{"minutes": %s}' % raw
    response = client.put(
        "/api/timer/durations/STUDY", data=body, content_type="application/json"
    )
    assert response.status_code == 400

    plan = create_plan(client)
    body = '{"total_duration": %s}' % raw
    response = client.put(f"/api/plans/{plan['id']}", data=body, content_type="application/json")
    assert response.status_code == 400

    body = '{"goal": "Scales", "minutes": %s}' % raw
    response = client.post("/api/plans/generate", data=body, content_type="application/json")
    assert response.status_code == 400


def test_dashboard_offers_plan_and_duration_controls(client):
    plan = create_plan(client)
    client.put("/api/timer/durations/PRACTICE", json={"minutes": 25})

    page = client.get("/").data.decode()
    for control in ("select-plan", "rename-plan", "delete-plan", "add-step", "edit-step", "remove-step"):
        assert f'class="{control}" data-plan="{plan["id"]}"' in page
    assert 'data-mode="PRACTICE" type="number" min="1" max="240" value="25"' in page
    assert 'data-mode="STUDY" type="number" min="1" max="240" value="15"' in page
