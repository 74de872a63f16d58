# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
See src/tasktrack/config.py for defaults and parsing rules.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKTRACK_APP_NAME": "App display name (default: tasktrack).",
    "TASKTRACK_ENV": "development | production | test (default: development).",
    "TASKTRACK_LOG_LEVEL": "Logging level (default: INFO).",
    # Storage (gitignored)
    "TASKTRACK_DATA_DIR": "Local data directory (default: .local/tasktrack, .local/tasktrack-test in test).",
    "TASKTRACK_TASKS_FILE": "JSON task file (default: <data_dir>/tasks.json).",
    "TASKTRACK_BACKUP_ENABLED": "Allow timestamped backups of the task file (default: true, false in test).",
    "TASKTRACK_BACKUP_ON_START": "Write a backup when the app starts (default: true).",
    # Connectors
    "TASKTRACK_HTTP_ENABLED": "Serve the JSON API (true/false, default: true).",
    "TASKTRACK_HTTP_HOST": "Bind address (default: 127.0.0.1).",
    "TASKTRACK_HTTP_PORT": "Listen port (default: $PORT, then 3000).",
    "TASKTRACK_CORS_ORIGINS": "Comma/space separated allowed origins (default: *; empty disables CORS).",
    "TASKTRACK_STATIC_DIR": "Directory with index.html for the browser UI (default: public).",
    "TASKTRACK_CONSOLE_ENABLED": "Run the interactive console (true/false, default: false).",
}
