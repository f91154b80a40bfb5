"""elasticbook: publish Chrome bookmark exports into Elasticsearch behind a stable alias."""

from pathlib import Path


def _read_version() -> str:
    p = Path(__file__).resolve().parents[1] / "VERSION"
    try:
        return p.read_text(encoding="utf-8").strip()
    except OSError:
        # Installed without the source tree.
        return "0.5.0"


__version__ = _read_version()
