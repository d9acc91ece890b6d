"""Resurface: view a discussion thread with removed, deleted and edited comments restored."""

__version__ = "0.1.0"
