"""Alias resolution between display names and index names.

Pure lookups over a snapshot of the alias list. Nothing here talks to the
server: a resolver built from a stale snapshot still resolves to the recorded
target, and the executor reports the resulting 404.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from ..models import Alias


class AliasResolver:
    """Map alias names to index names and back.

    Examples:
        >>> resolver = AliasResolver([Alias("products", "products_v2")])
        >>> resolver.resolve_to_index("products")
        'products_v2'
        >>> resolver.display_name_for("products_v2")
        'products'
        >>> resolver.resolve_to_index("unknown")
        'unknown'
    """

    def __init__(self, aliases: Optional[Sequence[Alias]] = None):
        self._aliases: tuple[Alias, ...] = tuple(aliases or ())

    @property
    def aliases(self) -> tuple[Alias, ...]:
        return self._aliases

    def _find_by_name(self, name: str) -> Optional[Alias]:
        for alias in self._aliases:
            if alias.name == name:
                return alias
        return None

    def resolve_to_index(self, name: str) -> str:
        """Return the alias target, or ``name`` unchanged when it is not an alias."""
        alias = self._find_by_name(name)
        return alias.collection_name if alias else name

    def display_name_for(self, index_name: str) -> str:
        """Return the first alias (in list order) pointing at ``index_name``."""
        for alias in self._aliases:
            if alias.collection_name == index_name:
                return alias.name
        return index_name

    def is_alias(self, name: str) -> bool:
        return self._find_by_name(name) is not None

    def aliases_for(self, index_name: str) -> List[Alias]:
        """All aliases pointing at ``index_name``, in list order."""
        return [alias for alias in self._aliases if alias.collection_name == index_name]

    def broken_aliases(self, index_names: Iterable[str]) -> List[Alias]:
        """Aliases whose target is not among ``index_names``."""
        existing = set(index_names)
        return [alias for alias in self._aliases if alias.collection_name not in existing]

    def with_aliases(self, aliases: Sequence[Alias]) -> AliasResolver:
        """Return a resolver over a newer snapshot."""
        return AliasResolver(aliases)

    def __len__(self) -> int:
        return len(self._aliases)
