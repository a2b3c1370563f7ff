"""Flash Hue lights when a hockey scoreboard changes."""

from __future__ import annotations

__version__ = "0.1.0"
