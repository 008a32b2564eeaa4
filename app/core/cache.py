"""
Almacenamiento de cache clave-valor con soporte para sorted sets.

Dos implementaciones detrás de la misma interfaz:
- InMemoryCacheStore: mapa en memoria del proceso (desarrollo y tests).
- RedisCacheStore: Redis vía redis-py (producción).

Uso:
    from app.core.cache import get_cache_store

    cache = get_cache_store()
    await cache.set("presence:123", "online", ttl=60)
    await cache.zadd("presence:last_seen", {"123": 1700000000})
"""
import fnmatch
import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Union

from app.config import get_settings

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Interfaz de cache usada por el resto de la aplicación."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Obtener valor de una clave o None."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Guardar valor, opcionalmente con expiración en segundos."""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Eliminar claves. Retorna cuántas existían."""

    @abstractmethod
    async def incr(self, key: str, amount: int = 1) -> int:
        """Incrementar un contador entero y retornar el nuevo valor."""

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> bool:
        """Fijar expiración de una clave existente."""

    @abstractmethod
    async def zadd(self, key: str, mapping: Dict[str, float]) -> int:
        """Agregar o actualizar miembros de un sorted set."""

    @abstractmethod
    async def zincrby(self, key: str, amount: float, member: str) -> float:
        """Incrementar el score de un miembro."""

    @abstractmethod
    async def zrem(self, key: str, *members: str) -> int:
        """Eliminar miembros de un sorted set."""

    @abstractmethod
    async def zscore(self, key: str, member: str) -> Optional[float]:
        """Obtener el score de un miembro o None."""

    @abstractmethod
    async def zrange(
        self, key: str, start: int, stop: int, desc: bool = False, withscores: bool = False
    ) -> Union[List[str], List[Tuple[str, float]]]:
        """Rango de un sorted set por posición (stop inclusivo, -1 = final)."""

    @abstractmethod
    async def keys(self, pattern: str = "*") -> List[str]:
        """Listar claves que cumplen un patrón glob."""

    async def close(self) -> None:
        """Liberar recursos."""


class InMemoryCacheStore(CacheStore):
    """
    Cache en memoria del proceso.

    No es persistente ni compartida entre procesos. Las expiraciones se
    aplican de forma perezosa al leer la clave.
    """

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._sorted_sets: Dict[str, Dict[str, float]] = {}
        self._expires_at: Dict[str, float] = {}

    def _purge_if_expired(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self._values.pop(key, None)
            self._sorted_sets.pop(key, None)
            self._expires_at.pop(key, None)

    def _exists(self, key: str) -> bool:
        self._purge_if_expired(key)
        return key in self._values or key in self._sorted_sets

    async def get(self, key: str) -> Optional[str]:
        self._purge_if_expired(key)
        return self._values.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        self._values[key] = str(value)
        if ttl:
            self._expires_at[key] = time.monotonic() + ttl
        else:
            self._expires_at.pop(key, None)

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self._exists(key):
                deleted += 1
            self._values.pop(key, None)
            self._sorted_sets.pop(key, None)
            self._expires_at.pop(key, None)
        return deleted

    async def incr(self, key: str, amount: int = 1) -> int:
        self._purge_if_expired(key)
        new_value = int(self._values.get(key, "0")) + amount
        self._values[key] = str(new_value)
        return new_value

    async def expire(self, key: str, seconds: int) -> bool:
        if not self._exists(key):
            return False
        self._expires_at[key] = time.monotonic() + seconds
        return True

    async def zadd(self, key: str, mapping: Dict[str, float]) -> int:
        self._purge_if_expired(key)
        sorted_set = self._sorted_sets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in sorted_set)
        for member, score in mapping.items():
            sorted_set[member] = float(score)
        return added

    async def zincrby(self, key: str, amount: float, member: str) -> float:
        self._purge_if_expired(key)
        sorted_set = self._sorted_sets.setdefault(key, {})
        sorted_set[member] = sorted_set.get(member, 0.0) + amount
        return sorted_set[member]

    async def zrem(self, key: str, *members: str) -> int:
        self._purge_if_expired(key)
        sorted_set = self._sorted_sets.get(key, {})
        removed = 0
        for member in members:
            if sorted_set.pop(member, None) is not None:
                removed += 1
        return removed

    async def zscore(self, key: str, member: str) -> Optional[float]:
        self._purge_if_expired(key)
        return self._sorted_sets.get(key, {}).get(member)

    async def zrange(
        self, key: str, start: int, stop: int, desc: bool = False, withscores: bool = False
    ):
        self._purge_if_expired(key)
        entries = sorted(
            self._sorted_sets.get(key, {}).items(),
            key=lambda item: (item[1], item[0]),
            reverse=desc,
        )
        end = None if stop == -1 else stop + 1
        selected = entries[start:end]
        if withscores:
            return selected
        return [member for member, _ in selected]

    async def keys(self, pattern: str = "*") -> List[str]:
        all_keys = list(self._values.keys()) + list(self._sorted_sets.keys())
        return [key for key in all_keys if self._exists(key) and fnmatch.fnmatchcase(key, pattern)]


class RedisCacheStore(CacheStore):
    """Cache respaldada por Redis (redis-py asyncio)."""

    def __init__(self, url: str):
        from redis import asyncio as redis_asyncio

        self._client = redis_asyncio.from_url(url, decode_responses=True, socket_connect_timeout=5)
        logger.info(f"RedisCacheStore inicializado: {url}")

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        await self._client.set(key, value, ex=ttl)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self._client.delete(*keys)

    async def incr(self, key: str, amount: int = 1) -> int:
        return await self._client.incrby(key, amount)

    async def expire(self, key: str, seconds: int) -> bool:
        return bool(await self._client.expire(key, seconds))

    async def zadd(self, key: str, mapping: Dict[str, float]) -> int:
        return await self._client.zadd(key, mapping)

    async def zincrby(self, key: str, amount: float, member: str) -> float:
        return float(await self._client.zincrby(key, amount, member))

    async def zrem(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return await self._client.zrem(key, *members)

    async def zscore(self, key: str, member: str) -> Optional[float]:
        return await self._client.zscore(key, member)

    async def zrange(
        self, key: str, start: int, stop: int, desc: bool = False, withscores: bool = False
    ):
        return await self._client.zrange(key, start, stop, desc=desc, withscores=withscores)

    async def keys(self, pattern: str = "*") -> List[str]:
        return await self._client.keys(pattern)

    async def close(self) -> None:
        await self._client.aclose()


# Instancia Singleton
_cache_store: Optional[CacheStore] = None


def get_cache_store() -> CacheStore:
    """
    Obtener la instancia Singleton de cache según CACHE_BACKEND.

    Returns:
        Implementación de CacheStore configurada
    """
    global _cache_store
    if _cache_store is None:
        settings = get_settings()
        if settings.CACHE_BACKEND.lower() == "redis":
            _cache_store = RedisCacheStore(settings.REDIS_URL)
        else:
            logger.info("Usando cache en memoria (Redis no requerido)")
            _cache_store = InMemoryCacheStore()
    return _cache_store
