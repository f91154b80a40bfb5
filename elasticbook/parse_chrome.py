from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Iterator, List, Union

from pydantic import ValidationError

from .errors import InvalidDocument
from .log import get_logger
from .model import Bookmark, BookmarkTree, CountResult

log = get_logger(__name__)


def parse_bookmarks(raw: Union[bytes, str]) -> BookmarkTree:
    """Decode a Chrome ``Bookmarks`` export.

    Unknown keys are ignored; the three roots (bookmark_bar, other, synced)
    must be present.
    """
    try:
        data = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidDocument(f"bookmarks export is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidDocument(f"bookmarks export must be a JSON object, got {type(data).__name__}")

    try:
        tree = BookmarkTree.model_validate(data)
    except ValidationError as e:
        missing = sorted(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidDocument(f"bookmarks export is incomplete or malformed: {missing}") from e

    log.debug(
        "Parsed bookmarks export: version=%d checksum=%s entries=%d",
        tree.version,
        tree.checksum,
        tree.count().total(),
    )
    return tree


def iter_entries(tree: BookmarkTree) -> Iterator[Bookmark]:
    """Entries in submission order: bookmark bar, synced, other."""
    return tree.entries()


def flatten(tree: BookmarkTree) -> List[Bookmark]:
    return list(tree.entries())


def count_bookmarks(tree: BookmarkTree) -> CountResult:
    """Direct child count per root; nested folders are not descended into."""
    return tree.count()


def default_bookmarks_path(home: Path | None = None, platform: str | None = None) -> Path:
    """Best guess at the default Chrome profile's Bookmarks file."""
    home = home or Path.home()
    platform = platform or sys.platform
    if platform == "darwin":
        return home / "Library" / "Application Support" / "Google" / "Chrome" / "Default" / "Bookmarks"
    if platform.startswith("win"):
        return home / "AppData" / "Local" / "Google" / "Chrome" / "User Data" / "Default" / "Bookmarks"
    return home / ".config" / "google-chrome" / "Default" / "Bookmarks"


def load_bookmarks_file(path: Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise InvalidDocument(f"unable to read bookmarks file {path}: {e}") from e


def parse_bookmarks_file(path: Path) -> BookmarkTree:
    return parse_bookmarks(load_bookmarks_file(path))
