"""
Task subsystem.

Components:
- task_models.py: data structures (FixedTask, RecurringTask, Stats) and wire form
- task_store.py: in-memory task collection (create / update / delete / find)
- stats.py: completion counters and on-time score
- task_lifecycle.py: daily pass, completion and deletion
- task_scheduler.py: EDF projection and urgency classification
- day_watcher.py: polling loop that triggers the daily pass on a new day
"""
