"""Piano Practice Timer Flask Application Factory."""

import atexit
import json
import os
from datetime import date, datetime

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

CLOCK_EXTENSION = "session_clock"
PREFERENCES_EXTENSION = "preferences"
NOTIFIER_EXTENSION = "notifier"


def load_app_config(data_dir: str) -> dict:
    """Load application config from data/config.json."""
    config_path = os.path.join(data_dir, "config.json")
    default_config = {"database": "practice.db"}

    if not os.path.exists(config_path):
        return default_config

    try:
        with open(config_path, "r") as f:
            return {**default_config, **json.load(f)}
    except (json.JSONDecodeError, IOError):
        return default_config


def build_session_clock(preferences, notifier=None):
    """Create a session clock wired to the real scheduler and audio player."""
    from alarm.player import TonePlayer
    from alarm.ringer import Alarm
    from alarm.scheduler import JobScheduler
    from timer.clock import SessionClock

    scheduler = JobScheduler()
    scheduler.start()
    atexit.register(scheduler.shutdown)

    alarm = Alarm(TonePlayer(), scheduler)
    return SessionClock(preferences, scheduler, alarm, notifier=notifier)


def record_completion(app: Flask, clock):
    """Store one completed session. Runs on the scheduler thread."""
    from app.models import CompletedSession

    state = clock.state
    with app.app_context():
        db.session.add(CompletedSession(
            date=date.today(),
            completed_at=datetime.now(),
            mode=state.mode.value,
            label=state.label,
        ))
        db.session.commit()
    print(f"[Timer] Recorded completed {state.mode.value} session")


def create_app(config=None, clock=None):
    """
    Create and configure the Flask application.

    Args:
        config: Optional overrides for app.config (e.g. DATA_DIR, database URI)
        clock: Optional pre-built SessionClock (tests pass one with fakes)
    """
    from alarm.notify import DesktopNotifier
    from timer.config import DATA_DIR
    from timer.preferences import PreferenceStore

    app = Flask(
        __name__,
        template_folder="../templates",
    )

    # Default configuration
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-key-change-in-production")

    # Database and preferences live in data/
    # Database name can be set in data/config.json: {"database": "my-practice.db"}
    data_dir = str((config or {}).get("DATA_DIR", DATA_DIR))
    os.makedirs(data_dir, exist_ok=True)
    app.config["DATA_DIR"] = data_dir

    app_config = load_app_config(data_dir)
    db_path = os.path.join(data_dir, app_config["database"])
    app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}"
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Override with custom config if provided
    if config:
        app.config.update(config)

    # Initialize extensions
    db.init_app(app)

    preferences = PreferenceStore(os.path.join(data_dir, "preferences.json"))
    notifier = DesktopNotifier(preferences)
    if clock is None:
        clock = build_session_clock(preferences, notifier=notifier)
    clock.on_complete = lambda: record_completion(app, clock)

    app.extensions[PREFERENCES_EXTENSION] = preferences
    app.extensions[NOTIFIER_EXTENSION] = notifier
    app.extensions[CLOCK_EXTENSION] = clock

    # Register blueprints
    from app.routes import main_bp
    app.register_blueprint(main_bp)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app
