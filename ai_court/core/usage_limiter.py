# ai_court/core/usage_limiter.py
"""Daily per-feature usage caps."""

import json
import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional
import aiofiles
from loguru import logger

from ..config.schemas import UsageConfig


class FeatureKey(str, Enum):
    QUICK_CONSULT = "quickConsult"
    TRIAL = "trial"
    DOCUMENT = "document"


FEATURE_INFO: Dict[FeatureKey, Dict[str, str]] = {
    FeatureKey.QUICK_CONSULT: {"label": "Quick legal consultation", "emoji": "⚡"},
    FeatureKey.TRIAL: {"label": "Virtual trial simulation", "emoji": "⚔️"},
    FeatureKey.DOCUMENT: {"label": "Legal document analysis", "emoji": "📄"},
}


def utc_today() -> str:
    """Calendar day key, ``YYYY-MM-DD`` in UTC."""
    return datetime.now(timezone.utc).date().isoformat()


class UsageStore(ABC):
    """Persists the ``{"date": ..., <feature>: count}`` record."""

    @abstractmethod
    async def load(self) -> Optional[Dict]:
        """Return the stored record, or None."""
        pass

    @abstractmethod
    async def save(self, record: Dict):
        """Replace the stored record."""
        pass


class MemoryUsageStore(UsageStore):
    """In-memory store; counters live as long as the process."""

    def __init__(self, record: Optional[Dict] = None):
        self.record = dict(record) if record else None

    async def load(self) -> Optional[Dict]:
        return dict(self.record) if self.record else None

    async def save(self, record: Dict):
        self.record = dict(record)


class JsonFileUsageStore(UsageStore):
    """JSON file store."""

    def __init__(self, path: str):
        self.path = Path(path)

    async def load(self) -> Optional[Dict]:
        if not self.path.exists():
            return None
        try:
            async with aiofiles.open(self.path, 'r', encoding='utf-8') as f:
                data = json.loads(await f.read())
            return data if isinstance(data, dict) else None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable usage file {self.path}, starting fresh: {e}")
            return None

    async def save(self, record: Dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.path, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(record))


class UsageLimiter:
    """Checks and consumes daily feature quotas.

    Every operation reads the record fresh; a record from another day counts
    as empty. Read-modify-write runs under one lock.
    """

    def __init__(
        self,
        limits: Dict[str, int],
        store: Optional[UsageStore] = None,
        today: Callable[[], str] = utc_today
    ):
        self.limits = {FeatureKey(k): int(v) for k, v in limits.items()}
        self.store = store or MemoryUsageStore()
        self.today = today
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: UsageConfig) -> "UsageLimiter":
        store = JsonFileUsageStore(config.storage_path) if config.storage_path else MemoryUsageStore()
        return cls(config.limits, store)

    def limit(self, feature: FeatureKey) -> int:
        return self.limits.get(FeatureKey(feature), 0)

    async def _usage(self) -> Dict:
        today = self.today()
        record = await self.store.load()
        if not record or record.get("date") != today:
            record = {"date": today}
        for feature in FeatureKey:
            count = record.get(feature.value, 0)
            record[feature.value] = count if isinstance(count, int) and count >= 0 else 0
        return record

    async def used(self, feature: FeatureKey) -> int:
        """Uses of ``feature`` today."""
        async with self._lock:
            return (await self._usage())[FeatureKey(feature).value]

    async def can_use(self, feature: FeatureKey) -> bool:
        """Whether ``feature`` is within today's cap."""
        return await self.remaining(feature) > 0

    async def remaining(self, feature: FeatureKey) -> int:
        """Uses left today, never negative."""
        feature = FeatureKey(feature)
        async with self._lock:
            usage = await self._usage()
        return max(0, self.limit(feature) - usage[feature.value])

    async def consume(self, feature: FeatureKey) -> bool:
        """Count one use. Returns False, without counting, when the cap is reached."""
        feature = FeatureKey(feature)
        async with self._lock:
            usage = await self._usage()
            if usage[feature.value] >= self.limit(feature):
                logger.info(f"Daily limit reached for {feature.value}")
                return False
            usage[feature.value] += 1
            await self.store.save(usage)
            logger.debug(f"{feature.value} used {usage[feature.value]}/{self.limit(feature)} today")
            return True
