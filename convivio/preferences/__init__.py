"""
Per-user preference store.

Responsibilities:
- Own one preference vector per user, created lazily with defaults.
- Learn from tracked meal interactions (bounded, upward-only nudges).
- Reset, partially update and summarise a user's preferences.
"""
