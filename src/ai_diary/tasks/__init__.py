"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus) + PostgREST row codec
- task_store.py: in-memory task cache synchronized with a RemoteTaskService
- deadline.py: date/time picker state machine that builds a task deadline
"""
