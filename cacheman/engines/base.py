"""
Engine selection: a tagged spec resolved once against an explicit registry.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Union

from shared.config import CachemanSettings
from shared.errors import InvalidEngineError
from ..types import StoreCapability

EngineFactory = Callable[[CachemanSettings, Any], StoreCapability]

CAPABILITY_METHODS = ("get", "set", "delete", "clear")


@dataclass(frozen=True)
class ByName:
    name: str


@dataclass(frozen=True)
class ByFactory:
    factory: EngineFactory


@dataclass(frozen=True)
class ByInstance:
    instance: StoreCapability


EngineSpec = Union[ByName, ByFactory, ByInstance]


def has_capability(engine: Any) -> bool:
    """Check that an object exposes callable get/set/delete/clear."""
    return all(callable(getattr(engine, method, None)) for method in CAPABILITY_METHODS)


def engine_spec(engine: Any) -> EngineSpec:
    """Classify a user-supplied engine option."""
    if isinstance(engine, (ByName, ByFactory, ByInstance)):
        return engine
    if isinstance(engine, str):
        return ByName(engine)
    if isinstance(engine, type):
        return ByFactory(engine)
    if has_capability(engine):
        return ByInstance(engine)
    if callable(engine):
        return ByFactory(engine)
    raise InvalidEngineError(
        "Invalid engine format, engine must be a name, a factory or a valid engine instance",
        {"engine_type": type(engine).__name__},
    )


def resolve_engine(
    spec: EngineSpec,
    registry: Mapping[str, EngineFactory],
    settings: CachemanSettings,
    cache: Any,
) -> StoreCapability:
    """Turn an engine spec into a bound store."""
    if isinstance(spec, ByName):
        factory = registry.get(spec.name)
        if factory is None:
            raise InvalidEngineError(
                f"Unknown engine {spec.name!r}",
                {"engine": spec.name, "available": sorted(registry)},
            )
        engine = factory(settings, cache)
    elif isinstance(spec, ByFactory):
        engine = spec.factory(settings, cache)
    else:
        engine = spec.instance

    if not has_capability(engine):
        raise InvalidEngineError(
            "Invalid engine format, must be a valid engine instance",
            {"engine_type": type(engine).__name__},
        )
    return engine
