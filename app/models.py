"""SQLAlchemy models for practice plans and session history."""

from datetime import datetime
from app import db


class PracticePlan(db.Model):
    """A saved lesson: an ordered list of practice steps."""

    __tablename__ = "practice_plans"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    total_duration = db.Column(db.Integer, nullable=False, default=30)  # minutes
    technique_tip = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.now, index=True)

    steps = db.relationship(
        "PracticeStep",
        backref="plan",
        lazy=True,
        order_by="PracticeStep.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<PracticePlan {self.name} ({len(self.steps)} steps)>"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "total_duration": self.total_duration,
            "technique_tip": self.technique_tip,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "steps": [s.to_dict() for s in self.steps],
        }


class PracticeStep(db.Model):
    """One block of a practice plan."""

    __tablename__ = "practice_steps"

    id = db.Column(db.Integer, primary_key=True)
    plan_id = db.Column(db.Integer, db.ForeignKey("practice_plans.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    duration = db.Column(db.String(20), nullable=False, default="5")  # minutes, as typed
    action = db.Column(db.String(200), nullable=False, default="")
    description = db.Column(db.Text, nullable=False, default="")
    activity_type = db.Column(db.String(20), nullable=False, default="practice")  # study, practice, break

    def __repr__(self):
        return f"<PracticeStep {self.plan_id}#{self.position}: {self.action}>"

    def to_dict(self):
        return {
            "id": self.id,
            "position": self.position,
            "duration": self.duration,
            "action": self.action,
            "description": self.description,
            "type": self.activity_type,
        }


class CompletedSession(db.Model):
    """A countdown that reached zero."""

    __tablename__ = "completed_sessions"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    completed_at = db.Column(db.DateTime, default=datetime.now)
    mode = db.Column(db.String(20), nullable=False)
    label = db.Column(db.String(200), nullable=True)  # plan step, if one drove the session

    def __repr__(self):
        return f"<CompletedSession {self.date}: {self.mode}>"

    def to_dict(self):
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "mode": self.mode,
            "label": self.label,
        }
