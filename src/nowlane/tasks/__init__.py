"""
Task subsystem.

Components:
- task_models.py: data structures (Task, Lane, LaneTimings, ...)
- lane_timing.py: due timestamps per lane
- task_store.py: SQLite-backed storage + query/update helpers
- task_scheduler.py: lane promotion tick + polling loop
- scheduler_runner.py: runs the polling loop on a background thread
- task_api.py: host helpers pairing task changes with engagement events
"""
