"""GTK4 GUI module initialization."""

from .app import DemoController, main

__all__ = [
    "DemoController",
    "main",
]
