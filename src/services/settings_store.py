"""
Cached reader for the system_settings table.
"""

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.models import SystemSetting
from src.utils.cache import MISSING, TTLCache

logger = logging.getLogger(__name__)

# Cached marker for keys that have no row.
_ABSENT = object()


class SettingsStore:
    """
    Reads SystemSetting values through a TTLCache.

    One store lives on ``app.state`` for the life of the process; requests
    reach it through the ``get_settings_store`` dependency. Missing keys
    are cached too so a default doesn't cost a query per request.
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        if cache is None:
            cache = TTLCache(settings.settings_cache_ttl_seconds)
        self.cache = cache

    async def get(self, db: AsyncSession, key: str, default: Any = None) -> Any:
        cached = self.cache.get(key)
        if cached is MISSING:
            row = await db.get(SystemSetting, key)
            cached = row.get_value() if row else _ABSENT
            self.cache.set(key, cached)
        if cached is _ABSENT:
            return default
        return cached

    async def get_int(self, db: AsyncSession, key: str, default: int) -> int:
        value = await self.get(db, key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Setting '{key}' has non-integer value {value!r}, using {default}")
            return default

    async def get_bool(self, db: AsyncSession, key: str, default: bool) -> bool:
        value = await self.get(db, key, default)
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    async def set(self, db: AsyncSession, key: str, value: Any) -> None:
        """Upsert a setting. Commit happens in the caller."""
        row = await db.get(SystemSetting, key)
        if row is None:
            row = SystemSetting.wrap(key, value)
            db.add(row)
        else:
            row.set_value(value)
        self.cache.invalidate(key)

    # Typed accessors for the keys the engines read

    async def max_hierarchy_depth(self, db: AsyncSession) -> int:
        return await self.get_int(db, "max_hierarchy_depth", settings.max_hierarchy_depth)

    async def max_team_depth(self, db: AsyncSession) -> int:
        return await self.get_int(db, "max_team_depth", settings.max_team_depth)

    async def recompute_on_update(self, db: AsyncSession) -> bool:
        return await self.get_bool(
            db,
            "recompute_commissions_on_update",
            settings.recompute_commissions_on_update,
        )
