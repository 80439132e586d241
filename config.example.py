# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "WEEKBOARD_APP_NAME": "App display name (default: weekboard).",
    "WEEKBOARD_LOG_LEVEL": "Console logging level (default: WARNING; the log file always gets DEBUG).",
    # Paths (gitignored)
    "WEEKBOARD_DATA_DIR": "Local data directory (default: .local/weekboard).",
    "WEEKBOARD_STORE_DB_PATH": "Key-value SQLite path (default: <data_dir>/weekboard.sqlite3).",
    # Console
    "WEEKBOARD_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    "WEEKBOARD_DEFAULT_BOARD": "Board for /add when the filter is 'all' (todos/exercise/dinner).",
    # Reminders
    "WEEKBOARD_REMINDERS_ENABLED": "Poll for due reminders (true/false, default: true).",
    "WEEKBOARD_REMINDER_INTERVAL_SECONDS": "Reminder polling interval (default: 30).",
    "WEEKBOARD_REMINDER_LEAD_MINUTES": "Send reminders this many minutes early (default: 0).",
}
