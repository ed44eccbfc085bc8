"""
Concurrency-facing components.

- optimistic.py: snapshot/apply/confirm/commit-or-rollback for confirmable mutations
- conflicts.py: external updates, conflict detection and last-write-wins merge
- realtime.py: timer loop simulating other users editing the board
"""
