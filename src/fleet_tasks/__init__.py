"""Upgrade-task manager: command dispatch, tasks DB client and task reaper."""
