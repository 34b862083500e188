"""Alarm module: tone playback, job scheduling and desktop notifications."""
