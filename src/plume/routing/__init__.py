"""Routing: request-to-content resolution.

Route tables come from the content indexer; system and prefix routes are
registered by themes and plugins at boot. Both are read-only once the
router is frozen.
"""
