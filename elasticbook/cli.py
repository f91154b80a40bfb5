from __future__ import annotations

import argparse
import json
import time
from pathlib import Path
from typing import Callable, List

from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from . import __version__
from .aliases import AliasRegistry
from .config import Settings, load_settings
from .errors import ElasticbookError, PartialSwap, PublishFailed
from .log import LogConfig, get_logger, setup_logging
from .model import BookmarkTree
from .parse_chrome import default_bookmarks_path, parse_bookmarks_file
from .publisher import IndexPublisher
from .store import ElasticStore

log = get_logger(__name__)

_YES = {"y", "yes"}
_NO = {"", "n", "no"}


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        prog="elasticbook",
        description="Publish Chrome bookmarks into Elasticsearch behind a stable alias.",
    )
    p.add_argument("-V", "--version", action="version", version=f"elasticbook {__version__}")
    p.add_argument("--config", default=None, help="YAML config file (optional). Env vars override defaults.")
    p.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (overrides env/config).")
    p.add_argument("--no-color", action="store_true", help="Disable colored logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    for name, help_text in (
        ("parse", "Check that the bookmarks file can be parsed."),
        ("count", "Count bookmarks per root folder."),
        ("index", "Index bookmarks into a new generation and make it the default."),
    ):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("--file", default=None, help="Chrome Bookmarks file (default: from config or Chrome profile).")

    sub.add_parser("indices", help="List indices with document counts and aliases.")
    sub.add_parser("aliases", help="List (index, alias) bindings.")
    sub.add_parser("health", help="Show cluster health.")
    sub.add_parser("version", help="Show the cluster version.")

    sp = sub.add_parser("alias", help="Bind an alias to an index (one index per alias).")
    sp.add_argument("index")
    sp.add_argument("alias")

    sp = sub.add_parser("unalias", help="Remove an alias from one index, or from every index holding it.")
    sp.add_argument("alias")
    sp.add_argument("--index", default=None, help="Only remove the binding on this index.")

    sp = sub.add_parser("default", help="Switch the default search alias to an index.")
    sp.add_argument("index")

    sp = sub.add_parser("delete", help="Delete an index generation (irreversible).")
    sp.add_argument("index")
    sp.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")

    args = p.parse_args(argv)
    cfg = load_settings(args.config)
    if args.log_level:
        cfg.log_level = args.log_level
    if args.no_color:
        cfg.no_color = True
    setup_logging(LogConfig(level=cfg.log_level, no_color=cfg.no_color))

    handler = _COMMANDS[args.cmd]
    try:
        return handler(args, cfg)
    except PartialSwap as e:
        log.error("%s", e)
        log.error("Repair with: elasticbook default %s", e.generation)
        return 2
    except PublishFailed as e:
        log.error("%s", e)
        log.error("Inspect or drop it with: elasticbook delete %s", e.result.generation.name)
        return 2
    except ElasticbookError as e:
        log.error("%s", e)
        return 2


def _open_store(cfg: Settings) -> ElasticStore:
    return ElasticStore(cfg.store_config())


def _publisher(store, cfg: Settings) -> IndexPublisher:
    return IndexPublisher(
        store,
        aliases=AliasRegistry(store, default_alias=cfg.alias_name),
        index_name=cfg.index_name,
        alias_name=cfg.alias_name,
        doc_type=cfg.doc_type,
        workers=cfg.workers,
    )


def _bookmarks_path(args, cfg: Settings) -> Path:
    if getattr(args, "file", None):
        return Path(args.file)
    if cfg.bookmarks_path:
        return Path(cfg.bookmarks_path).expanduser()
    return default_bookmarks_path()


def _load_tree(args, cfg: Settings) -> BookmarkTree:
    path = _bookmarks_path(args, cfg)
    log.info("Working on %s", path)
    return parse_bookmarks_file(path)


def _cmd_parse(args, cfg: Settings) -> int:
    _load_tree(args, cfg)
    print("Your Bookmarks DB seems healthy")
    return 0


def _cmd_count(args, cfg: Settings) -> int:
    counts = _load_tree(args, cfg).count()
    print(str(counts), end="")
    print(f"Total: {counts.total()}")
    return 0


def _cmd_index(args, cfg: Settings) -> int:
    tree = _load_tree(args, cfg)
    counts = tree.count()
    total = counts.total()
    t0 = time.time()
    with _open_store(cfg) as store, Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        transient=True,
    ) as progress:
        task = progress.add_task("Bookmarks", total=total)
        on_submit: Callable[[int], None] = lambda n: progress.update(task, completed=n)
        result = _publisher(store, cfg).index_tree(tree, on_submit=on_submit)
    print(str(counts), end="")
    log.info(
        "Indexed %d/%d bookmarks into %s in %d ms.",
        result.indexed,
        total,
        result.generation.name,
        int((time.time() - t0) * 1000),
    )
    return 0


def _cmd_indices(args, cfg: Settings) -> int:
    with _open_store(cfg) as store:
        rows = _publisher(store, cfg).describe_indices()
    for name, count, aliases in rows:
        print(f"{name} ({count}): \t\t[{', '.join(aliases)}]")
    return 0


def _cmd_aliases(args, cfg: Settings) -> int:
    with _open_store(cfg) as store:
        pairs = AliasRegistry(store, default_alias=cfg.alias_name).list_aliases()
    for index, alias in pairs:
        print(f"{index}\t{alias}")
    return 0


def _cmd_alias(args, cfg: Settings) -> int:
    with _open_store(cfg) as store:
        ok = AliasRegistry(store, default_alias=cfg.alias_name).add_alias(args.index, args.alias)
    if not ok:
        log.error("Alias %s already points to another index; remove it first.", args.alias)
        return 1
    return 0


def _cmd_unalias(args, cfg: Settings) -> int:
    with _open_store(cfg) as store:
        registry = AliasRegistry(store, default_alias=cfg.alias_name)
        if args.index:
            registry.remove_alias(args.index, args.alias)
            removed = [args.index]
        else:
            removed = registry.unalias(args.alias)
    if not removed:
        log.warning("Alias %s was not bound to any index.", args.alias)
    return 0


def _cmd_default(args, cfg: Settings) -> int:
    with _open_store(cfg) as store:
        AliasRegistry(store, default_alias=cfg.alias_name).switch_default(args.index)
    log.info("Default alias %s now points to %s.", cfg.alias_name, args.index)
    return 0


def _cmd_delete(args, cfg: Settings) -> int:
    if not args.yes and not _confirm(f"Delete index {args.index}? [y/N]: "):
        print("Whatever")
        return 0
    with _open_store(cfg) as store:
        _publisher(store, cfg).delete(args.index)
    return 0


def _cmd_health(args, cfg: Settings) -> int:
    with _open_store(cfg) as store:
        print(json.dumps(store.health(), indent=2, sort_keys=True))
    return 0


def _cmd_version(args, cfg: Settings) -> int:
    with _open_store(cfg) as store:
        print(f"Elasticsearch version {store.version()} ({store.config.endpoint})")
    return 0


def _confirm(prompt: str, read: Callable[[str], str] = input) -> bool:
    answer = read(prompt).strip().lower()
    while answer not in _YES and answer not in _NO:
        answer = read("Please type yes|no and then press enter: ").strip().lower()
    return answer in _YES


_COMMANDS = {
    "parse": _cmd_parse,
    "count": _cmd_count,
    "index": _cmd_index,
    "indices": _cmd_indices,
    "aliases": _cmd_aliases,
    "alias": _cmd_alias,
    "unalias": _cmd_unalias,
    "default": _cmd_default,
    "delete": _cmd_delete,
    "health": _cmd_health,
    "version": _cmd_version,
}
