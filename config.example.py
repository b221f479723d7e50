# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
See src/fleet_tasks/config.py for parsing and defaults.
"""

ENV_VARS = {
    # App / logging
    "FLEET_TASKS_APP_NAME": "Process display name (default: fleet-tasks).",
    "FLEET_TASKS_LOG_LEVEL": "Console logging level (default: INFO).",
    "FLEET_TASKS_DATA_DIR": "Local data directory, also holds fleet_tasks.log (default: .local/fleet_tasks).",
    # Backing task store
    "FLEET_TASKS_STORE_SOCKET": "Tasks DB Unix socket (default: <data_dir>/wdb.sock).",
    "FLEET_TASKS_STORE_TIMEOUT": "Socket timeout in seconds for one tasks DB round trip (default: 10).",
    # Request listener
    "FLEET_TASKS_LISTEN_ENABLED": "Serve task requests on a Unix socket (true/false, default: true).",
    "FLEET_TASKS_LISTEN_SOCKET": "Request listener socket path (default: <data_dir>/task.sock).",
    # Reaper
    "FLEET_TASKS_REAPER_ENABLED": "Run the timeout / cleanup loop (true/false, default: true).",
    "FLEET_TASKS_TASK_TIMEOUT": "Seconds before an in-progress task is marked timeout (default: 900).",
    "FLEET_TASKS_CLEANUP_RETENTION": "Seconds a task record is kept before deletion (default: 604800).",
    "FLEET_TASKS_CLEANUP_POLL_INTERVAL": "Seconds between cleanup sweeps (default: 86400).",
}
