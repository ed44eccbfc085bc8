"""
Undo/redo history.

- history_models.py: the closed HistoryAction union (CreateTask, UpdateTask, DeleteTask, ReorderTask)
- history_manager.py: bounded past/future stacks with a replay guard
- replay.py: applying an action to the TaskStore backwards (undo) or forwards (redo)
"""
