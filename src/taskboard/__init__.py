"""
Task state core for a three-lane task board.

Subpackages:
- tasks: data model, ordering engine, in-memory task store
- history: undo/redo actions and their replay
- sync: optimistic confirmation and external-edit conflict handling
- services: mock confirmation API and notifications
- storage: key/value persistence backends
- core: ports (Protocols) and the TaskBoard facade
- cli: console demo
"""

__version__ = "0.1.0"
