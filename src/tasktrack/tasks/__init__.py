"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TimeTracking, TimeSession) + validation
- task_store.py: JSON file storage (whole-file load/save, backups, per-file lock)
- task_repo.py: CRUD, status/priority/category lookups, statistics
- task_query.py: listing filters + priority/recency sort
- task_timer.py: single-active-timer coordinator + time tracking stats
"""
