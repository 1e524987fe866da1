"""Cached snapshots of index schemas and aliases for one connection.

Loaded when a connection becomes active and invalidated on connection switch
or after an index or document mutation. Readers always get the last loaded
snapshot; nothing is fetched implicitly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from .backends.base import SearchBackend
from .core.aliases import AliasResolver
from .models import Alias, IndexSchema

logger = logging.getLogger(__name__)


class IndexCatalog:
    """Schema and alias provider backed by a :class:`SearchBackend`."""

    def __init__(self, backend: SearchBackend):
        self.backend = backend
        self._schemas: Dict[str, IndexSchema] = {}
        self._aliases: List[Alias] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def schemas(self) -> List[IndexSchema]:
        return list(self._schemas.values())

    @property
    def index_names(self) -> List[str]:
        return list(self._schemas)

    @property
    def aliases(self) -> List[Alias]:
        return list(self._aliases)

    @property
    def resolver(self) -> AliasResolver:
        return AliasResolver(self._aliases)

    async def load(self) -> None:
        """Fetch schemas and aliases together and replace the snapshot.

        On failure the previous snapshot is kept.
        """
        schemas, aliases = await asyncio.gather(self.backend.list_indexes(), self.backend.list_aliases())
        self._schemas = {schema.name: schema for schema in schemas}
        self._aliases = list(aliases)
        self._loaded = True
        logger.info(f"Loaded {len(self._schemas)} indexes and {len(self._aliases)} aliases")

    def invalidate(self) -> None:
        self._schemas = {}
        self._aliases = []
        self._loaded = False

    async def ensure_loaded(self) -> None:
        if not self._loaded:
            await self.load()

    def schema_for(self, name: Optional[str]) -> Optional[IndexSchema]:
        """Schema of an index, resolving ``name`` through the aliases first."""
        if not name:
            return None
        return self._schemas.get(self.resolver.resolve_to_index(name))

    def display_name_for(self, index_name: str) -> str:
        return self.resolver.display_name_for(index_name)

    def broken_aliases(self) -> List[Alias]:
        """Aliases pointing at indexes missing from the snapshot."""
        return self.resolver.broken_aliases(self._schemas)
