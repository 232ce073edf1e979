"""Keyboard builders: inline (callback-routed) and reply (text-routed)."""
