from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .timeconv import chrome_time_to_datetime

# Submission order for publishing.
ENTRY_ROOT_ORDER = ("bookmark_bar", "synced", "other")
# Construction order for counting.
COUNT_ROOT_ORDER = ("bookmark_bar", "other", "synced")


def field_safe(key: str) -> str:
    """Elasticsearch treats dots in field names as object paths."""
    return key.replace(".", "_")


class Bookmark(BaseModel):
    """A leaf of the bookmarks tree, as Chrome writes it."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    date_added: str = ""
    original_id: str = Field("", alias="id")
    meta_info: Dict[str, str] = Field(default_factory=dict)
    name: str = ""
    sync_transaction_version: str = ""
    node_type: str = Field("", alias="type")
    url: str = ""

    def to_indexable(self) -> "IndexableBookmark":
        return IndexableBookmark(
            date_added=chrome_time_to_datetime(self.date_added),
            id=self.original_id,
            meta_info={field_safe(k): v for k, v in self.meta_info.items()},
            name=self.name,
            sync_transaction_version=self.sync_transaction_version,
            type=self.node_type,
            url=self.url,
        )


class IndexableBookmark(BaseModel):
    """Document body written to the store for one bookmark."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date_added: datetime
    original_id: str = Field("", alias="id")
    meta_info: Dict[str, str] = Field(default_factory=dict)
    name: str = ""
    sync_transaction_version: str = ""
    node_type: str = Field("", alias="type")
    url: str = ""

    def to_document(self) -> Dict[str, object]:
        doc = self.model_dump(mode="json", by_alias=True)
        if not doc["meta_info"]:
            del doc["meta_info"]
        return doc


class Folder(BaseModel):
    """One of the root containers of the export."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    children: List[Bookmark] = Field(default_factory=list)
    date_added: str = ""
    date_modified: str = ""
    original_id: str = Field("", alias="id")
    name: str = ""
    node_type: str = Field("", alias="type")

    def __str__(self) -> str:
        return f"{self.name} ({len(self.children)})"


class Roots(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    bookmark_bar: Folder
    other: Folder
    synced: Folder
    sync_transaction_version: str = ""


class BookmarkTree(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    checksum: str = ""
    version: int = 0
    roots: Roots

    def folder(self, key: str) -> Folder:
        return getattr(self.roots, key)

    def entries(self) -> Iterator[Bookmark]:
        for key in ENTRY_ROOT_ORDER:
            yield from self.folder(key).children

    def count(self) -> "CountResult":
        c = CountResult()
        for key in COUNT_ROOT_ORDER:
            f = self.folder(key)
            c.add(key, len(f.children), name=f.name)
        return c


@dataclass
class CountResult:
    """Direct child counts keyed by root position, with display names kept aside."""

    counts: Dict[str, int] = field(default_factory=dict)
    names: Dict[str, str] = field(default_factory=dict)

    def add(self, key: str, value: int, name: str = "") -> None:
        self.counts[key] = value
        self.names[key] = name or key

    def total(self) -> int:
        return sum(self.counts.values())

    def items(self) -> List[Tuple[str, int]]:
        return list(self.counts.items())

    def __getitem__(self, key: str) -> int:
        return self.counts[key]

    def __len__(self) -> int:
        return len(self.counts)

    def __str__(self) -> str:
        return "".join(f"- {self.names[k]} ({v})\n" for k, v in self.counts.items())
