from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, Union

from .aliases import DEFAULT_ALIAS_NAME, AliasRegistry
from .errors import PublishFailed, StoreUnavailable
from .log import get_logger
from .model import Bookmark, BookmarkTree
from .parallel import fan_out
from .store import DocumentStore

log = get_logger(__name__)

DEFAULT_INDEX_NAME = "elasticbook"
DEFAULT_DOC_TYPE = "_doc"
DEFAULT_WORKERS = 5

_STAMP_FORMAT = "%Y%m%d%H%M%S"


@dataclass(frozen=True)
class IndexGeneration:
    name: str
    created_at: datetime

    def __str__(self) -> str:
        return self.name


def generation_name(base: str, when: datetime) -> str:
    return f"{base}-{when.astimezone(timezone.utc).strftime(_STAMP_FORMAT)}"


@dataclass(frozen=True)
class EntryFailure:
    entry: Bookmark
    reason: str


@dataclass
class PublishResult:
    generation: IndexGeneration
    submitted: int = 0
    indexed: int = 0
    failures: List[EntryFailure] = field(default_factory=list)
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise PublishFailed(self)


GenerationRef = Union[IndexGeneration, str]


def _name(generation: GenerationRef) -> str:
    return generation.name if isinstance(generation, IndexGeneration) else str(generation)


class IndexPublisher:
    """Creates index generations, fills them, and moves the default alias onto them.

    Concurrent publishes against the same alias are not coordinated here;
    callers must serialize them.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        aliases: Optional[AliasRegistry] = None,
        index_name: str = DEFAULT_INDEX_NAME,
        alias_name: str = DEFAULT_ALIAS_NAME,
        doc_type: str = DEFAULT_DOC_TYPE,
        workers: int = DEFAULT_WORKERS,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        if alias_name == index_name:
            raise ValueError("alias name must differ from the index base name")
        self.store = store
        self.aliases = aliases or AliasRegistry(store, default_alias=alias_name)
        self.index_name = index_name
        self.alias_name = self.aliases.default_alias
        self.doc_type = doc_type
        self.workers = max(1, int(workers))
        self._clock = clock
        self._generation_re = re.compile(re.escape(index_name) + r"-\d{14}")

    def create_generation(self) -> IndexGeneration:
        now = self._clock().astimezone(timezone.utc).replace(microsecond=0)
        name = generation_name(self.index_name, now)
        if self.store.index_exists(name):
            # Two generations in the same second: a caller error, not retried.
            raise StoreUnavailable(f"generation {name!r} already exists")
        if not self.store.create_index(name):
            raise StoreUnavailable(f"creation of generation {name!r} was not acknowledged")
        log.info("Created generation %s", name)
        return IndexGeneration(name=name, created_at=now)

    def publish(
        self,
        tree: BookmarkTree,
        generation: IndexGeneration,
        *,
        stop_on_error: bool = True,
        on_submit: Optional[Callable[[int], None]] = None,
    ) -> PublishResult:
        """Index every entry of ``tree`` into ``generation``.

        Entries are submitted bar, synced, other; completion order is not
        defined. Nothing already indexed is rolled back on failure.
        """
        index = generation.name
        doc_type = self.doc_type
        store = self.store

        def _index_one(entry: Bookmark) -> None:
            store.index_document(index, doc_type, entry.to_indexable().to_document())

        log.info("Publishing into %s with %d workers", index, self.workers)
        fo = fan_out(
            tree.entries(),
            _index_one,
            workers=self.workers,
            stop_on_error=stop_on_error,
            on_submit=on_submit,
            name=f"publish-{index}",
        )

        result = PublishResult(
            generation=generation,
            submitted=fo.submitted,
            indexed=len(fo.succeeded),
            skipped=len(fo.skipped),
        )
        for entry, err in fo.failed:
            log.warning("Failed to index %r (%s) into %s: %s", entry.name, entry.url, index, err)
            result.failures.append(EntryFailure(entry=entry, reason=str(err)))

        if result.ok:
            log.info("Indexed %d bookmarks into %s", result.indexed, index)
        else:
            log.error(
                "Publishing into %s stopped: %d indexed, %d failed, %d skipped; the generation is left in place.",
                index,
                result.indexed,
                len(result.failures),
                result.skipped,
            )
        return result

    def promote_to_default(self, generation: GenerationRef) -> bool:
        """Make ``generation`` the target of default search traffic.

        The very first generation is also bound under the bare base name.
        """
        name = _name(generation)
        others = [g for g in self.generations() if g != name]
        if not others:
            log.info("First generation %s: binding base name %s", name, self.index_name)
            self.aliases.add_alias(name, self.index_name)
        return self.aliases.switch_default(name)

    def delete(self, generation: GenerationRef) -> bool:
        name = _name(generation)
        if name in self.aliases.holders(self.alias_name):
            log.warning("Deleting %s, which still holds the default alias %s", name, self.alias_name)
        ack = self.store.delete_index(name)
        log.info("Deleted generation %s (acknowledged=%s)", name, ack)
        return ack

    def index_tree(
        self,
        tree: BookmarkTree,
        *,
        on_submit: Optional[Callable[[int], None]] = None,
    ) -> PublishResult:
        """Create a generation, fill it, and promote it if every entry was indexed."""
        generation = self.create_generation()
        result = self.publish(tree, generation, on_submit=on_submit)
        result.raise_for_failures()
        self.promote_to_default(generation)
        return result

    def generations(self) -> List[str]:
        return sorted(n for n in self.store.index_names() if self._generation_re.fullmatch(n))

    def describe_indices(self) -> List[Tuple[str, int, List[str]]]:
        """(index, document count, aliases) for every index in the store."""
        ia = self.aliases.index_aliases()
        out = []
        for name in sorted(self.store.index_names()):
            out.append((name, self.store.count(name), ia.get(name, [])))
        return out
