"""
Core wiring.

- ports.py: Protocols for the external collaborators
- board.py: TaskBoard, the mutation entry points used by every caller
"""
