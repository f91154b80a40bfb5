from __future__ import annotations

from typing import Dict, List, Tuple

from .errors import NotFound, PartialSwap, StoreUnavailable, UnknownGeneration
from .log import get_logger
from .store import DocumentStore

log = get_logger(__name__)

# Alias targeted by search traffic; never the name of a generation.
DEFAULT_ALIAS_NAME = "elasticbookdefault"


class AliasRegistry:
    """Alias directory of the store, with one generation per alias enforced here."""

    def __init__(self, store: DocumentStore, *, default_alias: str = DEFAULT_ALIAS_NAME) -> None:
        self.store = store
        self.default_alias = default_alias

    def index_aliases(self) -> Dict[str, List[str]]:
        return {index: sorted(names) for index, names in self.store.list_aliases().items()}

    def list_aliases(self) -> List[Tuple[str, str]]:
        """(generation, alias) pairs, sorted by generation then alias."""
        out: List[Tuple[str, str]] = []
        for index, names in sorted(self.index_aliases().items()):
            out.extend((index, alias) for alias in names)
        return out

    def alias_names(self) -> List[str]:
        return sorted({alias for _, alias in self.list_aliases()})

    def holders(self, alias: str) -> List[str]:
        """Every index the alias is bound to. More than one means an unfinished switch."""
        return [index for index, name in self.list_aliases() if name == alias]

    def add_alias(self, generation: str, alias: str) -> bool:
        held_by = self.holders(alias)
        if generation in held_by:
            return True
        if held_by:
            log.warning("Alias %s already points to %s; not adding it to %s.", alias, ", ".join(held_by), generation)
            return False
        ack = self.store.add_alias(generation, alias)
        log.info("Alias %s -> %s (acknowledged=%s)", alias, generation, ack)
        return ack

    def remove_alias(self, generation: str, alias: str) -> bool:
        ack = self.store.remove_alias(generation, alias)
        log.info("Removed alias %s from %s (acknowledged=%s)", alias, generation, ack)
        return ack

    def unalias(self, alias: str) -> List[str]:
        """Drop the alias from every index holding it; returns those indices."""
        removed = []
        for index in self.holders(alias):
            self.remove_alias(index, alias)
            removed.append(index)
        return removed

    def switch_default(self, generation: str) -> bool:
        """Point the default alias at ``generation`` only.

        Two steps, not atomic: old bindings are removed first, then the new
        one is added. If the add fails after a removal, PartialSwap names the
        generations that lost the alias so the caller can repair it.
        """
        alias = self.default_alias
        ia = self.index_aliases()
        if generation not in ia:
            raise UnknownGeneration(generation)

        stale = [index for index, names in sorted(ia.items()) if alias in names and index != generation]
        already_bound = alias in ia[generation]

        removed: List[str] = []
        for index in stale:
            self.store.remove_alias(index, alias)
            removed.append(index)
            log.info("Default alias %s removed from %s", alias, index)

        if already_bound:
            return True

        try:
            ack = self.store.add_alias(generation, alias)
        except (StoreUnavailable, NotFound) as e:
            if removed:
                raise PartialSwap(generation, alias, removed, e) from e
            raise
        log.info("Default alias %s -> %s (acknowledged=%s)", alias, generation, ack)
        return ack
