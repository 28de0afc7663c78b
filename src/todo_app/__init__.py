"""
Todo App package.

A small task tracker exposing one SQLite-backed store through two front
ends: a FastAPI JSON service (``todo_app.main``) and an interactive console
menu (``todo_app.cli``).
"""

__version__ = "0.1.0"
