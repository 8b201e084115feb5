"""Asynchronous task execution and tracking core for the shift-scheduling backend."""

__version__ = "0.1.0"
