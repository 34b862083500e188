"""Headless countdown: one session in the terminal with real tones and notifications."""

import argparse
import signal
import sys
import time

from timer.clock import SessionClock
from timer.preferences import PreferenceStore
from timer.state import ExternalTask, parse_mode

from .notify import DesktopNotifier
from .player import TonePlayer
from .ringer import Alarm
from .scheduler import JobScheduler

# Global references for the signal handler
_clock: SessionClock = None
_scheduler: JobScheduler = None


def signal_handler(signum, frame):
    """Handle shutdown signals."""
    print("\n[Timer] Shutting down...")
    if _clock is not None:
        _clock.close()
    if _scheduler is not None:
        _scheduler.shutdown()
    sys.exit(0)


def main(argv=None):
    """Main entry point."""
    global _clock, _scheduler

    parser = argparse.ArgumentParser(description="Run one practice countdown")
    parser.add_argument("--mode", default="study", help="study, practice or short_break")
    parser.add_argument("--minutes", type=int, help="Override the saved duration")
    parser.add_argument("--label", default="Terminal session", help="Label shown while running")
    args = parser.parse_args(argv)

    try:
        mode = parse_mode(args.mode)
    except ValueError as e:
        parser.error(str(e))
    if args.minutes is not None and args.minutes <= 0:
        parser.error("--minutes must be positive")

    # Set up signal handlers
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    preferences = PreferenceStore()
    _scheduler = JobScheduler()
    alarm = Alarm(TonePlayer(), _scheduler)
    _clock = SessionClock(preferences, _scheduler, alarm, notifier=DesktopNotifier(preferences), mode=mode)
    _clock.on_complete = lambda: print("[Timer] Block complete!")

    _scheduler.start()

    print("=" * 50)
    print("Piano Practice Timer")
    print("=" * 50)

    if args.minutes:
        _clock.apply_external_task(ExternalTask(args.minutes * 60, mode, args.label))
    else:
        _clock.toggle_running()
    print(f"Mode: {mode.value}, {_clock.state.formatted} on the clock. Press Ctrl+C to stop.")

    # Keep running until the countdown and its alarm are over
    try:
        while True:
            state = _clock.state
            if state.is_running:
                print(f"\r{state.formatted}  ", end="", flush=True)
            elif not state.is_alarming:
                break
            time.sleep(1)
        print()
    except KeyboardInterrupt:
        pass
    finally:
        _clock.close()
        _scheduler.shutdown()


if __name__ == "__main__":
    main()
