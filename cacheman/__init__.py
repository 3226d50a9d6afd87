"""
Cacheman: a cache-access façade.

Normalizes key construction and TTL handling, runs a middleware pipeline
before cache-aside writes, and delegates storage to an interchangeable
engine (in-process LRU map or Redis by default).
"""

from shared.errors import (
    CachemanError,
    DoubleCompletionError,
    InvalidEngineError,
    InvalidKeyError,
    InvalidTTLError,
    MiddlewareError,
    PromiseUnavailableError,
    StoreError,
)
from .core import Cacheman
from .engines import ByFactory, ByInstance, ByName, MemoryEngine, RedisEngine
from .types import MISSING, StageResult, StoreCapability, is_missing

__all__ = [
    "ByFactory",
    "ByInstance",
    "ByName",
    "Cacheman",
    "CachemanError",
    "DoubleCompletionError",
    "InvalidEngineError",
    "InvalidKeyError",
    "InvalidTTLError",
    "MISSING",
    "MemoryEngine",
    "MiddlewareError",
    "PromiseUnavailableError",
    "RedisEngine",
    "StageResult",
    "StoreCapability",
    "StoreError",
    "is_missing",
]
