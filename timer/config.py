"""Configuration for the practice timer."""

import os
from pathlib import Path

from . import PROJECT_DIR

# Data directory (preferences, database, rendered tones)
DATA_DIR = Path(os.environ.get("PRACTICE_DATA_DIR", str(PROJECT_DIR / "data")))
PREFERENCES_FILE = DATA_DIR / "preferences.json"
TONE_CACHE_DIR = DATA_DIR / "tones"

# Built-in durations (minutes) used when no preference is saved
STUDY_MINUTES = 15
PRACTICE_MINUTES = 15
SHORT_BREAK_MINUTES = 5

# Countdown
TICK_SECONDS = 1

# Alarm pattern: one short tone per second, capped
ALARM_REPEATS = 10
ALARM_TONE_INTERVAL = 1.0
ALARM_CEILING_SECONDS = 10
FOCUS_TONE_HZ = 440.0  # study and practice
BREAK_TONE_HZ = 220.0  # short break

# Audio rendering
SAMPLE_RATE = 22050
TONE_GAIN = 0.05

# Plan steps with unreadable durations fall back to this
FALLBACK_STEP_MINUTES = 5

# Notifications
APP_NAME = "Piano Practice Timer"

# Gemini settings (practice plan generator)
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GEMINI_TIMEOUT = float(os.environ.get("GEMINI_TIMEOUT", "30"))  # seconds

# Debug settings
DEBUG = os.environ.get("TIMER_DEBUG", "0") == "1"
