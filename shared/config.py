"""
Shared configuration management for Cacheman.
"""

from typing import Union

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CachemanSettings(BaseSettings):
    """Construction options recognized by a Cacheman instance.

    Values come from keyword overrides first, then ``CACHEMAN_*`` environment
    variables, then an optional ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHEMAN_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Key naming
    prefix: str = Field(default="cacheman")
    delimiter: str = Field(default=":")

    # Default TTL, seconds or a duration string such as "1m"
    ttl: Union[int, float, str] = Field(default=60)

    # Engine selection by registry name; instances and factories are passed
    # to the Cacheman constructor directly.
    engine: str = Field(default="memory")

    # Memory engine
    count: int = Field(default=1000, ge=1)

    # Redis engine
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Bypass the store in ``wrap``
    disabled: bool = Field(default=False)


def get_settings(**overrides) -> CachemanSettings:
    """Get configuration with explicit overrides applied."""
    return CachemanSettings(**overrides)
