#!/usr/bin/env python3
"""Add sample practice plans and session history for testing the timer."""

import sys
import os
import random
from datetime import date, datetime, time, timedelta

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app, db
from app.models import PracticePlan, PracticeStep, CompletedSession
from timer.state import TimerMode


SAMPLE_PLANS = [
    {
        "name": "Major scales and Minuet in G",
        "total_duration": 30,
        "technique_tip": "Keep the wrist level and let the thumb pass under without twisting.",
        "steps": [
            {"duration": "5", "action": "Warm-up", "description": "Five-finger patterns, hands separate", "type": "study"},
            {"duration": "10", "action": "C, G and D major scales", "description": "Two octaves, metronome at 72", "type": "study"},
            {"duration": "3", "action": "Breathing", "description": "Relax shoulders and hands", "type": "break"},
            {"duration": "12", "action": "Minuet in G", "description": "Full run-throughs, hands together", "type": "practice"},
        ],
    },
    {
        "name": "Hand independence",
        "total_duration": 15,
        "technique_tip": "Slow is smooth: halve the tempo until both hands feel easy.",
        "steps": [
            {"duration": "5", "action": "Contrary motion", "description": "", "type": "study"},
            {"duration": "5", "action": "Alberti bass under a melody", "description": "", "type": "study"},
            {"duration": "5", "action": "Repertoire", "description": "Play the current piece once through", "type": "practice"},
        ],
    },
]


def add_sample_plans():
    """Replace saved plans with the samples."""
    PracticeStep.query.delete()
    PracticePlan.query.delete()

    for sample in SAMPLE_PLANS:
        plan = PracticePlan(
            name=sample["name"],
            total_duration=sample["total_duration"],
            technique_tip=sample["technique_tip"],
        )
        for position, step in enumerate(sample["steps"]):
            plan.steps.append(PracticeStep(
                position=position,
                duration=step["duration"],
                action=step["action"],
                description=step["description"],
                activity_type=step["type"],
            ))
        db.session.add(plan)

    print(f"  - {len(SAMPLE_PLANS)} practice plans")


def add_sample_history(days: int = 60):
    """Generate completed sessions for the past `days` days."""
    CompletedSession.query.delete()

    today = date.today()
    modes = [m.value for m in TimerMode]
    count = 0

    for i in range(days, 0, -1):
        entry_date = today - timedelta(days=i)

        # Skip some days
        if random.random() < 0.25:
            continue

        for _ in range(random.randint(1, 5)):
            completed_at = datetime.combine(entry_date, time(random.randint(8, 21), random.randint(0, 59)))
            db.session.add(CompletedSession(
                date=entry_date,
                completed_at=completed_at,
                mode=random.choice(modes),
                label=None,
            ))
            count += 1

    print(f"  - {count} completed sessions")


if __name__ == "__main__":
    app = create_app()

    with app.app_context():
        print("Adding sample data...")
        add_sample_plans()
        add_sample_history()
        db.session.commit()
        print("\nDone!")
