"""Storage-aware engines: booking, schedules, notifications."""
