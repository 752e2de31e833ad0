"""
CLI entry point using Typer.

Provides commands for workout tracking:
- exercises, template-create, templates, template-delete
- start, show, toggle, edit, add-set, finish, history
- week
- plan-create, plan-show, plan-log
"""

from .app import app
from .commands import coverage, plans, sessions, templates  # noqa: F401  (registers commands)

__all__ = ["app"]


if __name__ == "__main__":
    app()
