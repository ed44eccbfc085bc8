"""
Console demo.

- bootstrap.py: composition root (settings -> TaskBoard, simulator)
- commands.py: slash-command registry
- console.py: asyncio REPL
- main.py: `taskboard` entry point
"""
