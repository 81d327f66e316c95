# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a
local, gitignored .env file). This file lists every variable weekplan reads so
the repo documents itself.
"""

ENV_VARS = {
    # App / logging
    "WEEKPLAN_APP_NAME": "App display name (default: weekplan).",
    "WEEKPLAN_LOG_LEVEL": "Console log level: DEBUG, INFO, WARNING... (default: INFO).",
    # Switches
    "WEEKPLAN_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    "WEEKPLAN_REMINDERS_ENABLED": "Arm the daily reminder at startup (true/false, default: true).",
    # Reminder
    "WEEKPLAN_REMINDER_TEXT": "Text of the daily reminder.",
    # Stats
    "WEEKPLAN_HABIT_GRID_DAYS": "Days shown by /grid (default: 30).",
    # Paths (gitignored)
    "WEEKPLAN_DATA_DIR": "Local data directory, also holds weekplan.log (default: .local/weekplan).",
    "WEEKPLAN_DB_PATH": "SQLite database path (default: <data_dir>/weekplan.sqlite3).",
}
