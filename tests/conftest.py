import pytest

from alarm.notify import Permission
from alarm.ringer import Alarm
from app import create_app
from timer.clock import SessionClock
from timer.preferences import PreferenceStore


class ManualJob:
    def __init__(self, func, due, interval=None, seq=0):
        self.func = func
        self.due = due
        self.interval = interval
        self.seq = seq
        self.cancelled = False
        self.done = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler double: jobs run only when the test advances time."""

    def __init__(self):
        self.now = 0.0
        self.jobs = []

    def _add(self, func, delay, interval=None):
        job = ManualJob(func, self.now + delay, interval, seq=len(self.jobs))
        self.jobs.append(job)
        return job

    def every(self, seconds, func):
        return self._add(func, seconds, interval=seconds)

    def after(self, seconds, func):
        return self._add(func, seconds)

    def pending(self):
        return [j for j in self.jobs if not j.cancelled and not j.done]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [j for j in self.pending() if j.due <= target]
            if not due:
                break
            job = min(due, key=lambda j: (j.due, j.seq))
            self.now = job.due
            if job.interval:
                job.due += job.interval
            else:
                job.done = True
            job.func()
        self.now = target


class FakePlayback:
    def __init__(self):
        self.stopped = False
        self.stop_calls = 0

    def stop(self):
        self.stop_calls += 1
        if self.stopped:
            return False
        self.stopped = True
        return True


class FakePlayer:
    def __init__(self, available=True):
        self.available = available
        self.plays = []

    def play_pattern(self, frequency, repeats=10, interval=1.0):
        if not self.available:
            return None
        playback = FakePlayback()
        self.plays.append({
            "frequency": frequency,
            "repeats": repeats,
            "interval": interval,
            "playback": playback,
        })
        return playback

    def active(self):
        return [p for p in self.plays if not p["playback"].stopped]


class FakeNotifier:
    def __init__(self, permission=Permission.DEFAULT):
        self.permission = permission
        self.requests = 0
        self.messages = []

    def request_permission(self):
        self.requests += 1
        if self.permission is Permission.DEFAULT:
            self.permission = Permission.GRANTED
        return self.permission

    def notify(self, body, title=None):
        if self.permission is not Permission.GRANTED:
            return False
        self.messages.append(body)
        return True


@pytest.fixture
def preferences(tmp_path):
    return PreferenceStore(tmp_path / "preferences.json")


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def alarm(player, scheduler):
    return Alarm(player, scheduler)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def completions():
    return []


@pytest.fixture
def clock(preferences, scheduler, alarm, notifier, completions):
    return SessionClock(
        preferences,
        scheduler,
        alarm,
        notifier=notifier,
        on_complete=lambda: completions.append(1),
    )


@pytest.fixture
def app(tmp_path, clock):
    app = create_app(
        config={"TESTING": True, "DATA_DIR": str(tmp_path)},
        clock=clock,
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
