"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskPriority) and timestamp parsing
- ordering.py: fractional insertion ranks and lane normalization
- task_filters.py: read-only queries over the collection
- task_store.py: the single mutable task collection (optionally persisted)
"""
