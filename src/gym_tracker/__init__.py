"""gym-tracker: workout templates, tracked sessions with carry-forward, progressive overload."""

__version__ = "0.1.0"
