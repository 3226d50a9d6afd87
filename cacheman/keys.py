"""
Key derivation for namespaced cache entries.
"""

from typing import Any, Optional, Sequence, Union

from shared.errors import InvalidKeyError

LogicalKey = Union[str, Sequence[str]]

DEFAULT_NAMESPACE = "cache"


def validate_key(key: Any) -> None:
    """Reject keys that are not a string or a list/tuple of strings."""
    if isinstance(key, str):
        return
    if isinstance(key, (list, tuple)) and all(isinstance(part, str) for part in key):
        return
    raise InvalidKeyError(details={"key_type": type(key).__name__})


class KeyNamer:
    """Maps logical keys onto physical store keys.

    The physical key is ``<prefix><delimiter><namespace><delimiter><key>``.
    Sequence keys are joined with the delimiter first, so ``["a", "b"]`` and
    ``"a:b"`` name the same entry.
    """

    def __init__(self, prefix: str, namespace: Optional[str] = None, delimiter: str = ":"):
        self.delimiter = delimiter
        self.namespace = namespace or DEFAULT_NAMESPACE
        self.prefix = delimiter.join([prefix, self.namespace, ""])

    def join(self, key: LogicalKey) -> str:
        """Collapse a sequence key into a single string."""
        if isinstance(key, (list, tuple)):
            return self.delimiter.join(key)
        return key

    def __call__(self, key: LogicalKey) -> str:
        return self.prefix + self.join(key)
