"""Core package initializer for asmo.

Holds the value tree, the snapshot store, the query resolver and settings:
    from asmo.core.settings import settings, load_settings, Settings, get_logger
"""

from __future__ import annotations

__all__ = ["__doc__"]
