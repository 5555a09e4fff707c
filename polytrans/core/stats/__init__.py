"""Usage statistics package."""

from __future__ import annotations

from polytrans.core.stats.manager import StatsManager

__all__: list[str] = ["StatsManager"]
