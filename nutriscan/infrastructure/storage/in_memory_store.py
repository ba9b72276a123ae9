"""In-memory key-value store for tests and ephemeral sessions."""

from typing import Dict, Optional


class InMemoryKeyValueStore:
    """In-memory implementation of IKeyValueStore.

    Examples:
        >>> store = InMemoryKeyValueStore()
        >>> await store.set("authToken", "abc")
        >>> await store.get("authToken")
        'abc'
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        """Copy of the stored values (testing helper)."""
        return dict(self._data)
