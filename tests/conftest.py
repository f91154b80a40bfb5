import json
import sys
import threading
import time
from pathlib import Path

import pytest

# Allow `import elasticbook` without installing the package.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from elasticbook.errors import NotFound, StoreUnavailable  # noqa: E402


class FakeStore:
    """In-memory stand-in for ElasticStore that records every call."""

    def __init__(self, *, fail_on_document=None, document_delay_s=0.0):
        self.indices = {}
        self.aliases = {}
        self.index_calls = []
        self.fail_on_document = fail_on_document
        self.document_delay_s = document_delay_s
        self.fail_add_alias = False
        self.closed = False
        self._lock = threading.Lock()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def index_exists(self, name):
        return name in self.indices

    def create_index(self, name):
        if name in self.indices:
            raise StoreUnavailable(f"create index {name}: resource_already_exists_exception")
        self.indices[name] = []
        self.aliases[name] = set()
        return True

    def index_document(self, index, doc_type, body):
        with self._lock:
            self.index_calls.append((index, doc_type, body))
            n = len(self.index_calls)
        if self.fail_on_document is not None and n == self.fail_on_document:
            raise StoreUnavailable(f"index document into {index}: HTTP 500 boom")
        if self.document_delay_s:
            time.sleep(self.document_delay_s)
        with self._lock:
            self.indices.setdefault(index, []).append(body)
            self.aliases.setdefault(index, set())
        return str(n)

    def delete_index(self, name):
        if name not in self.indices:
            raise NotFound(name)
        del self.indices[name]
        del self.aliases[name]
        return True

    def list_aliases(self):
        return {index: sorted(names) for index, names in self.aliases.items()}

    def add_alias(self, index, alias):
        if self.fail_add_alias:
            raise StoreUnavailable(f"add alias {alias} on {index}: HTTP 503")
        if index not in self.indices:
            raise NotFound(index)
        self.aliases[index].add(alias)
        return True

    def remove_alias(self, index, alias):
        if alias not in self.aliases.get(index, set()):
            raise NotFound(f"{index}/{alias}")
        self.aliases[index].discard(alias)
        return True

    def count(self, index):
        if index not in self.indices:
            raise NotFound(index)
        return len(self.indices[index])

    def index_names(self):
        return sorted(self.indices)

    def health(self):
        return {"status": "green", "number_of_nodes": 1}


def make_entry(name, *, url=None, date_added="13100000000000000", meta_info=None, entry_id="1"):
    entry = {
        "date_added": date_added,
        "id": entry_id,
        "name": name,
        "sync_transaction_version": "1",
        "type": "url",
        "url": url or f"https://{name}.example/",
    }
    if meta_info is not None:
        entry["meta_info"] = meta_info
    return entry


def make_folder(name, children, folder_id="1"):
    return {
        "children": children,
        "date_added": "13000000000000000",
        "date_modified": "13100000000000000",
        "id": folder_id,
        "name": name,
        "type": "folder",
    }


def make_export(bar=(), other=(), synced=()):
    return {
        "checksum": "0123456789abcdef",
        "version": 1,
        "roots": {
            "bookmark_bar": make_folder("Bookmarks bar", list(bar), "1"),
            "other": make_folder("Other bookmarks", list(other), "2"),
            "synced": make_folder("Mobile bookmarks", list(synced), "3"),
        },
    }


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def export_bytes():
    data = make_export(
        bar=[
            make_entry("a", meta_info={"stars.id": "s1", "stars.isSynced": "true"}),
            make_entry("b"),
        ],
        other=[make_entry("c")],
    )
    return json.dumps(data).encode("utf-8")


@pytest.fixture
def bookmarks_file(tmp_path, export_bytes):
    p = tmp_path / "Bookmarks"
    p.write_bytes(export_bytes)
    return p
