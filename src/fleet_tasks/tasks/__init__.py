"""
Task subsystem.

Components:
- task_models.py: data structures (Task, requests, typed store replies, ErrorCode)
- store_client.py: tasks DB RPC client (`task <command> <json>` over a Unix socket)
- responses.py: per-agent entries and the reply envelope
- handlers.py: one function per upgrade command
- dispatcher.py: command tag -> handler routing
- requests.py: request message parsing and validation
- task_reaper.py: timeout / retention loop
- task_api.py: parse -> dispatch -> envelope, used by the listener
"""
