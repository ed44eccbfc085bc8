"""
Collaborators the core talks to.

- task_api.py: mock backend confirming mutations after a delay, failing at random
- notifications.py: in-process notification center (toast equivalent)
"""
