"""Persistent user defaults for hostscript.

Stored in a single versioned JSON file under the user's home folder.

Design goals:
  * Atomic writes (no corrupted settings on crash)
  * Resilient loads (backup and fall back to defaults)
  * No secrets (SSH passwords are never written)
"""

from .store import SettingsStore, default_settings

__all__ = ["SettingsStore", "default_settings"]
