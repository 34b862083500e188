"""Flask routes for the Piano Practice Timer."""

import csv
import io
import json
from datetime import date, timedelta
from statistics import mean, median

from flask import Blueprint, abort, current_app, jsonify, render_template, request, Response
import plotly.graph_objects as go
import plotly.utils

from app import db, CLOCK_EXTENSION, PREFERENCES_EXTENSION, NOTIFIER_EXTENSION
from app.coach import CoachError, generate_practice_plan, get_inspirational_quote
from app.models import PracticePlan, PracticeStep, CompletedSession
from app.validation import validate_plan_name, validate_plan_minutes, validate_step_fields
from alarm.notify import Permission
from timer.bridge import task_from_step
from timer.preferences import ACTIVE_PLAN_KEY
from timer.state import TimerMode, parse_mode

main_bp = Blueprint("main", __name__)

MODE_COLORS = {
    TimerMode.STUDY: "#f59e0b",
    TimerMode.PRACTICE: "#10b981",
    TimerMode.SHORT_BREAK: "#3b82f6",
}

NEW_PLAN_STEP = {"duration": "10", "action": "First block", "description": "", "type": "study"}
NEW_STEP = {"duration": "5", "action": "New block", "description": "", "type": "practice"}
NEW_PLAN_TIP = "Keep a good posture."


def _clock():
    return current_app.extensions[CLOCK_EXTENSION]


def _preferences():
    return current_app.extensions[PREFERENCES_EXTENSION]


def _error(message: str, status: int = 400):
    return jsonify({"status": "error", "message": message}), status


def _timer_response(state):
    return jsonify({"status": "ok", "timer": state.to_dict()})


def get_date_range(window: str) -> tuple[date, date]:
    """Get start and end dates based on time window selection."""
    end_date = date.today()

    if window == "1w":
        start_date = end_date - timedelta(days=7)
    elif window == "3m":
        start_date = end_date - timedelta(days=90)
    else:  # Default: 1 month
        start_date = end_date - timedelta(days=30)

    return start_date, end_date


def calculate_metrics(values: list[float]) -> dict:
    """Calculate statistics for a list of daily counts."""
    if not values:
        return {
            "total": 0,
            "average": None,
            "median": None,
            "best": None,
            "days": 0,
        }

    return {
        "total": int(sum(values)),
        "average": round(mean(values), 2),
        "median": round(median(values), 2),
        "best": max(values),
        "days": len(values),
    }


def create_bar_chart(dates: list, values: list, title: str, y_label: str, color: str = "#10b981") -> str:
    """Create a Plotly bar chart and return as JSON."""
    fig = go.Figure()

    fig.add_trace(go.Bar(
        x=dates,
        y=values,
        name=title,
        marker_color=color,
    ))

    fig.update_layout(
        title=dict(text=title, font=dict(size=16)),
        xaxis_title="Date",
        yaxis_title=y_label,
        template="plotly_dark",
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=50, r=30, t=50, b=50),
        height=300,
    )

    fig.update_xaxes(gridcolor="rgba(255,255,255,0.1)")
    fig.update_yaxes(gridcolor="rgba(255,255,255,0.1)")

    return json.dumps(fig, cls=plotly.utils.PlotlyJSONEncoder)


def sessions_per_day(start_date: date, end_date: date) -> dict:
    """Completed session counts keyed by ISO date."""
    entries = CompletedSession.query.filter(
        CompletedSession.date >= start_date,
        CompletedSession.date <= end_date
    ).order_by(CompletedSession.date).all()

    counts = {}
    for e in entries:
        d = e.date.isoformat()
        counts[d] = counts.get(d, 0) + 1
    return counts


def today_count() -> int:
    return CompletedSession.query.filter(CompletedSession.date == date.today()).count()


@main_bp.route("/")
def dashboard():
    """Main dashboard view."""
    window = request.args.get("window", "1m")
    start_date, end_date = get_date_range(window)

    counts = sessions_per_day(start_date, end_date)
    history_dates = sorted(counts.keys())
    history_values = [counts[d] for d in history_dates]
    history_chart = create_bar_chart(
        history_dates, history_values, "Completed Sessions", "sessions", MODE_COLORS[TimerMode.PRACTICE]
    )

    plans = PracticePlan.query.order_by(PracticePlan.created_at.desc()).all()

    return render_template(
        "dashboard.html",
        window=window,
        timer=_clock().snapshot(),
        history_chart=history_chart,
        history_metrics=calculate_metrics(history_values),
        sessions_today=today_count(),
        plans=[p.to_dict() for p in plans],
        active_plan_id=_preferences().get(ACTIVE_PLAN_KEY),
        durations={m.value: _preferences().duration_for(m) // 60 for m in TimerMode},
        modes=[m.value for m in TimerMode],
        mode_colors={m.value: c for m, c in MODE_COLORS.items()},
    )


# --- Timer API ---

@main_bp.route("/api/timer")
def get_timer():
    """Current session state."""
    return _timer_response(_clock().state)


@main_bp.route("/api/timer/mode", methods=["POST"])
def select_mode():
    """Switch mode manually."""
    data = request.get_json(silent=True) or {}
    try:
        mode = parse_mode(data.get("mode"))
    except ValueError as e:
        return _error(str(e))
    return _timer_response(_clock().select_mode(mode))


@main_bp.route("/api/timer/toggle", methods=["POST"])
def toggle_timer():
    """Start or pause the countdown."""
    return _timer_response(_clock().toggle_running())


@main_bp.route("/api/timer/reset", methods=["POST"])
def reset_timer():
    """Rewind to the initial duration."""
    return _timer_response(_clock().reset())


@main_bp.route("/api/timer/alarm/stop", methods=["POST"])
def stop_alarm():
    """Silence the alarm."""
    return _timer_response(_clock().stop_alarm())


@main_bp.route("/api/timer/durations")
def get_durations():
    """Saved minutes per mode (null = built-in default)."""
    prefs = _preferences()
    return jsonify({
        "durations": {m.value: prefs.saved_minutes(m) for m in TimerMode},
        "effective": {m.value: prefs.duration_for(m) // 60 for m in TimerMode},
    })


@main_bp.route("/api/timer/durations/<mode_name>", methods=["PUT"])
def set_duration(mode_name):
    """Save the default minutes for a mode."""
    try:
        mode = parse_mode(mode_name)
    except ValueError as e:
        return _error(str(e))

    data = request.get_json(silent=True) or {}
    minutes = data.get("minutes")
    validation = validate_plan_minutes(minutes)
    if not validation.is_valid:
        return _error(validation.error_message)

    saved = _preferences().set_duration(mode, int(minutes))
    return jsonify({"status": "ok", "saved": saved})


# --- Notifications ---

@main_bp.route("/api/notifications")
def get_notifications():
    notifier = current_app.extensions[NOTIFIER_EXTENSION]
    return jsonify({"permission": notifier.permission.value})


@main_bp.route("/api/notifications", methods=["PUT"])
def set_notifications():
    """Grant or deny desktop notifications."""
    notifier = current_app.extensions[NOTIFIER_EXTENSION]
    data = request.get_json(silent=True) or {}
    try:
        permission = Permission(data.get("permission"))
    except ValueError:
        return _error("Permission must be granted, denied or default")

    if not notifier.set_permission(permission):
        return _error("Could not save permission")
    return jsonify({"status": "ok", "permission": notifier.permission.value})


# --- Practice Plan API ---

def _get_plan(plan_id: int) -> PracticePlan:
    return db.get_or_404(PracticePlan, plan_id)


def _get_step(plan: PracticePlan, step_id: int) -> PracticeStep:
    step = db.session.get(PracticeStep, step_id)
    if step is None or step.plan_id != plan.id:
        abort(404)
    return step


def _apply_step_fields(step: PracticeStep, data: dict):
    if "duration" in data:
        step.duration = str(data["duration"])
    if "action" in data:
        step.action = str(data["action"])
    if "description" in data:
        step.description = str(data["description"])
    if "type" in data:
        step.activity_type = data["type"]


def _add_steps(plan: PracticePlan, steps: list):
    for position, data in enumerate(steps, start=len(plan.steps)):
        step = PracticeStep(position=position)
        _apply_step_fields(step, data)
        plan.steps.append(step)


def _select_plan(plan_id):
    prefs = _preferences()
    if plan_id is None:
        prefs.remove(ACTIVE_PLAN_KEY)
    else:
        prefs.set(ACTIVE_PLAN_KEY, plan_id)


@main_bp.route("/api/plans", methods=["GET"])
def list_plans():
    """All saved plans, newest first."""
    plans = PracticePlan.query.order_by(PracticePlan.created_at.desc(), PracticePlan.id.desc()).all()
    return jsonify({
        "plans": [p.to_dict() for p in plans],
        "active_plan_id": _preferences().get(ACTIVE_PLAN_KEY),
    })


@main_bp.route("/api/plans", methods=["POST"])
def create_plan():
    """Create a plan by hand with one starter block."""
    data = request.get_json(silent=True) or {}
    name = data.get("name", "New Plan")

    validation = validate_plan_name(name)
    if not validation.is_valid:
        return _error(validation.error_message)

    plan = PracticePlan(
        name=name.strip(),
        total_duration=30,
        technique_tip=NEW_PLAN_TIP,
    )
    _add_steps(plan, [NEW_PLAN_STEP])
    db.session.add(plan)
    db.session.commit()

    _select_plan(plan.id)
    return jsonify({"status": "ok", "plan": plan.to_dict()}), 201


@main_bp.route("/api/plans/generate", methods=["POST"])
def generate_plan():
    """Ask the AI coach for a plan and save it."""
    data = request.get_json(silent=True) or {}
    goal = data.get("goal", "")
    minutes = data.get("minutes", 30)

    validation = validate_plan_name(goal)
    if not validation.is_valid:
        return _error("Describe what you want to practice")
    validation = validate_plan_minutes(minutes)
    if not validation.is_valid:
        return _error(validation.error_message)

    try:
        result = generate_practice_plan(goal.strip(), int(minutes))
    except CoachError as e:
        print(f"[Coach] Error: {e}")
        return _error("AI error. Please try again.", 502)

    plan = PracticePlan(
        name=goal.strip(),
        total_duration=int(minutes),
        technique_tip=result["techniqueTip"],
    )
    _add_steps(plan, result["steps"])
    db.session.add(plan)
    db.session.commit()

    _select_plan(plan.id)
    return jsonify({"status": "ok", "plan": plan.to_dict()}), 201


@main_bp.route("/api/plans/<int:plan_id>", methods=["GET"])
def get_plan(plan_id):
    return jsonify(_get_plan(plan_id).to_dict())


@main_bp.route("/api/plans/<int:plan_id>", methods=["PUT"])
def update_plan(plan_id):
    """Update plan name, length or tip."""
    plan = _get_plan(plan_id)
    data = request.get_json(silent=True) or {}

    if "name" in data:
        validation = validate_plan_name(data["name"])
        if not validation.is_valid:
            return _error(validation.error_message)
        plan.name = data["name"].strip()

    if "total_duration" in data:
        validation = validate_plan_minutes(data["total_duration"])
        if not validation.is_valid:
            return _error(validation.error_message)
        plan.total_duration = int(data["total_duration"])

    if "technique_tip" in data:
        plan.technique_tip = str(data["technique_tip"] or "")

    db.session.commit()
    return jsonify({"status": "ok", "plan": plan.to_dict()})


@main_bp.route("/api/plans/<int:plan_id>", methods=["DELETE"])
def delete_plan(plan_id):
    """Delete a plan; the newest remaining plan becomes active if needed."""
    plan = _get_plan(plan_id)
    db.session.delete(plan)
    db.session.commit()

    if _preferences().get(ACTIVE_PLAN_KEY) == str(plan_id):
        remaining = PracticePlan.query.order_by(
            PracticePlan.created_at.desc(), PracticePlan.id.desc()
        ).first()
        _select_plan(remaining.id if remaining else None)

    return jsonify({"status": "ok", "active_plan_id": _preferences().get(ACTIVE_PLAN_KEY)})


@main_bp.route("/api/plans/<int:plan_id>/select", methods=["POST"])
def select_plan(plan_id):
    plan = _get_plan(plan_id)
    _select_plan(plan.id)
    return jsonify({"status": "ok", "active_plan_id": str(plan.id)})


@main_bp.route("/api/plans/<int:plan_id>/steps", methods=["POST"])
def add_step(plan_id):
    """Append a block to a plan."""
    plan = _get_plan(plan_id)
    data = {**NEW_STEP, **(request.get_json(silent=True) or {})}

    validation = validate_step_fields(data)
    if not validation.is_valid:
        return _error(validation.error_message)

    _add_steps(plan, [data])
    db.session.commit()
    return jsonify({"status": "ok", "plan": plan.to_dict()}), 201


@main_bp.route("/api/plans/<int:plan_id>/steps/<int:step_id>", methods=["PUT"])
def update_step(plan_id, step_id):
    plan = _get_plan(plan_id)
    step = _get_step(plan, step_id)
    data = request.get_json(silent=True) or {}

    validation = validate_step_fields(data)
    if not validation.is_valid:
        return _error(validation.error_message)

    _apply_step_fields(step, data)
    db.session.commit()
    return jsonify({"status": "ok", "step": step.to_dict()})


@main_bp.route("/api/plans/<int:plan_id>/steps/<int:step_id>", methods=["DELETE"])
def delete_step(plan_id, step_id):
    plan = _get_plan(plan_id)
    step = _get_step(plan, step_id)
    plan.steps.remove(step)
    for position, s in enumerate(plan.steps):
        s.position = position
    db.session.commit()
    return jsonify({"status": "ok", "plan": plan.to_dict()})


@main_bp.route("/api/plans/<int:plan_id>/steps/<int:step_id>/start", methods=["POST"])
def start_step(plan_id, step_id):
    """Hand a block to the timer and start it."""
    plan = _get_plan(plan_id)
    step = _get_step(plan, step_id)
    task = task_from_step(step)
    return _timer_response(_clock().apply_external_task(task))


# --- Sessions and quote ---

@main_bp.route("/api/sessions/today")
def get_sessions_today():
    entries = CompletedSession.query.filter(
        CompletedSession.date == date.today()
    ).order_by(CompletedSession.completed_at).all()
    return jsonify({
        "count": len(entries),
        "sessions": [e.to_dict() for e in entries],
    })


@main_bp.route("/api/quote")
def get_quote():
    return jsonify({"quote": get_inspirational_quote()})


# --- CSV Export ---

@main_bp.route("/export/sessions")
def export_sessions():
    """Export completed sessions as CSV."""
    entries = CompletedSession.query.order_by(CompletedSession.completed_at).all()

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["date", "completed_at", "mode", "label"])
    for e in entries:
        writer.writerow([
            e.date.isoformat(),
            e.completed_at.isoformat() if e.completed_at else "",
            e.mode,
            e.label or "",
        ])

    return Response(
        output.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=practice_sessions.csv"}
    )
