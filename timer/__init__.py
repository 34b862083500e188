"""Practice timer core: session clock, preferences and plan bridge."""

from pathlib import Path

# Base paths
TIMER_DIR = Path(__file__).parent
PROJECT_DIR = TIMER_DIR.parent
