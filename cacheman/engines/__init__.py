"""
Storage engines for Cacheman.

Engines implement the four-operation store contract (``get``, ``set``,
``delete``, ``clear``). The default registry maps engine names to factories;
pass ``engines=`` to a Cacheman instance to supply a different one.
"""

from .base import ByFactory, ByInstance, ByName, EngineSpec, engine_spec, resolve_engine
from .memory import MemoryEngine
from .redis_engine import RedisEngine

DEFAULT_ENGINES = {
    "memory": MemoryEngine.from_settings,
    "redis": RedisEngine.from_settings,
}

__all__ = [
    "ByFactory",
    "ByInstance",
    "ByName",
    "DEFAULT_ENGINES",
    "EngineSpec",
    "MemoryEngine",
    "RedisEngine",
    "engine_spec",
    "resolve_engine",
]
