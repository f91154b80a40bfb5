from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

import httpx

from .config import StoreConfig
from .errors import NotFound, StoreUnavailable
from .log import get_logger

log = get_logger(__name__)

BOOKMARK_MAPPINGS: Dict[str, Any] = {
    "properties": {
        "date_added": {"type": "date"},
        "name": {"type": "text"},
        "url": {"type": "text"},
    }
}


@runtime_checkable
class DocumentStore(Protocol):
    """Operations the publisher and the alias registry need from a search engine."""

    def index_exists(self, name: str) -> bool: ...

    def create_index(self, name: str) -> bool: ...

    def index_document(self, index: str, doc_type: str, body: Mapping[str, Any]) -> str: ...

    def delete_index(self, name: str) -> bool: ...

    def list_aliases(self) -> Dict[str, List[str]]:
        """Map every index name to the aliases bound to it."""
        ...

    def add_alias(self, index: str, alias: str) -> bool: ...

    def remove_alias(self, index: str, alias: str) -> bool: ...

    def count(self, index: str) -> int: ...

    def index_names(self) -> List[str]: ...


class ElasticStore:
    """DocumentStore over the Elasticsearch REST API."""

    def __init__(self, config: StoreConfig, *, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.config = config
        if transport is None:
            transport = httpx.HTTPTransport(retries=config.max_retries)
        self._client = httpx.Client(
            base_url=config.endpoint,
            auth=config.credentials,
            timeout=httpx.Timeout(config.timeout_s, connect=config.timeout_s),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ElasticStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -- indices ---------------------------------------------------------

    def index_exists(self, name: str) -> bool:
        r = self._request("HEAD", f"/{name}", op="index exists", allow=(404,))
        return r.status_code == 200

    def create_index(self, name: str) -> bool:
        r = self._request("PUT", f"/{name}", op=f"create index {name}", json={"mappings": BOOKMARK_MAPPINGS})
        return bool(r.json().get("acknowledged", False))

    def index_document(self, index: str, doc_type: str, body: Mapping[str, Any]) -> str:
        r = self._request("POST", f"/{index}/{doc_type}", op=f"index document into {index}", json=dict(body), missing=index)
        return str(r.json().get("_id", ""))

    def delete_index(self, name: str) -> bool:
        r = self._request("DELETE", f"/{name}", op=f"delete index {name}", missing=name)
        return bool(r.json().get("acknowledged", False))

    def count(self, index: str) -> int:
        r = self._request("GET", f"/{index}/_count", op=f"count {index}", missing=index)
        return int(r.json().get("count", 0))

    def index_names(self) -> List[str]:
        r = self._request("GET", "/_cat/indices", op="list indices", params={"format": "json", "h": "index"})
        return sorted(row["index"] for row in r.json())

    # -- aliases ---------------------------------------------------------

    def list_aliases(self) -> Dict[str, List[str]]:
        r = self._request("GET", "/_alias", op="list aliases")
        out: Dict[str, List[str]] = {}
        for index, info in (r.json() or {}).items():
            out[index] = sorted((info or {}).get("aliases", {}).keys())
        return out

    def add_alias(self, index: str, alias: str) -> bool:
        return self._alias_action("add", index, alias)

    def remove_alias(self, index: str, alias: str) -> bool:
        return self._alias_action("remove", index, alias)

    def _alias_action(self, action: str, index: str, alias: str) -> bool:
        r = self._request(
            "POST",
            "/_aliases",
            op=f"{action} alias {alias} on {index}",
            json={"actions": [{action: {"index": index, "alias": alias}}]},
            missing=f"{index}/{alias}",
        )
        return bool(r.json().get("acknowledged", False))

    # -- cluster ---------------------------------------------------------

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/_cluster/health", op="cluster health").json()

    def version(self) -> str:
        info = self._request("GET", "/", op="cluster version").json()
        return str(info.get("version", {}).get("number", ""))

    def _request(
        self,
        method: str,
        path: str,
        *,
        op: str,
        json: Any = None,
        params: Optional[Dict[str, str]] = None,
        missing: Optional[str] = None,
        allow: Tuple[int, ...] = (),
    ) -> httpx.Response:
        try:
            r = self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"{op} failed against {self.config.endpoint}: {e}") from e

        if r.status_code in allow or r.status_code < 400:
            return r
        reason = _error_reason(r)
        if r.status_code == 404 and missing is not None:
            raise NotFound(missing, f"{op}: {missing!r} not found ({reason})")
        raise StoreUnavailable(f"{op} rejected by {self.config.endpoint}: HTTP {r.status_code} {reason}")


def _error_reason(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.text[:200]
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        return str(err.get("reason") or err.get("type") or err)
    return str(err or body)[:200]
