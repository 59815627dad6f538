"""Example Module: a settings-backed content widget for a plugin host."""

__version__ = "1.0.0"
