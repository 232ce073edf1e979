"""Example bot showing every tgui widget."""
