import json

import httpx
import pytest

from elasticbook.config import StoreConfig
from elasticbook.errors import NotFound, StoreUnavailable
from elasticbook.store import DocumentStore, ElasticStore

CFG = StoreConfig(endpoint="http://es.test:9200", credentials=("user", "secret"), max_retries=0, timeout_s=5)


def _store(handler) -> ElasticStore:
    return ElasticStore(CFG, transport=httpx.MockTransport(handler))


def test_elastic_store_satisfies_protocol():
    with _store(lambda r: httpx.Response(200, json={})) as s:
        assert isinstance(s, DocumentStore)


def test_index_exists_uses_head():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path))
        return httpx.Response(200 if request.url.path == "/present" else 404)

    with _store(handler) as s:
        assert s.index_exists("present") is True
        assert s.index_exists("absent") is False
    assert seen == [("HEAD", "/present"), ("HEAD", "/absent")]


def test_create_index_sends_date_mapping_and_basic_auth():
    captured = {}

    def handler(request):
        captured["method"] = request.method
        captured["body"] = json.loads(request.content)
        captured["auth"] = request.headers.get("authorization", "")
        return httpx.Response(200, json={"acknowledged": True, "index": "g1"})

    with _store(handler) as s:
        assert s.create_index("g1") is True
    assert captured["method"] == "PUT"
    assert captured["body"]["mappings"]["properties"]["date_added"] == {"type": "date"}
    assert captured["auth"].startswith("Basic ")


def test_create_index_collision_is_store_unavailable():
    def handler(request):
        return httpx.Response(
            400,
            json={"error": {"type": "resource_already_exists_exception", "reason": "index [g1] already exists"}},
        )

    with _store(handler) as s:
        with pytest.raises(StoreUnavailable, match="already exists"):
            s.create_index("g1")


def test_index_document_posts_body():
    captured = {}

    def handler(request):
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(201, json={"_id": "abc", "result": "created"})

    with _store(handler) as s:
        assert s.index_document("g1", "_doc", {"name": "x"}) == "abc"
    assert captured == {"path": "/g1/_doc", "body": {"name": "x"}}


def test_delete_missing_index_is_not_found():
    def handler(request):
        return httpx.Response(404, json={"error": {"type": "index_not_found_exception", "reason": "no such index [g9]"}})

    with _store(handler) as s:
        with pytest.raises(NotFound) as exc:
            s.delete_index("g9")
    assert exc.value.name == "g9"


def test_list_aliases_normalizes_response():
    body = {
        "g2": {"aliases": {"elasticbookdefault": {}, "reading": {}}},
        "g1": {"aliases": {}},
    }
    with _store(lambda r: httpx.Response(200, json=body)) as s:
        assert s.list_aliases() == {"g1": [], "g2": ["elasticbookdefault", "reading"]}


def test_alias_actions():
    captured = []

    def handler(request):
        captured.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"acknowledged": True})

    with _store(handler) as s:
        assert s.add_alias("g1", "live")
        assert s.remove_alias("g0", "live")
    assert captured == [
        ("/_aliases", {"actions": [{"add": {"index": "g1", "alias": "live"}}]}),
        ("/_aliases", {"actions": [{"remove": {"index": "g0", "alias": "live"}}]}),
    ]


def test_count_and_index_names():
    def handler(request):
        if request.url.path == "/g1/_count":
            return httpx.Response(200, json={"count": 7})
        assert request.url.params["format"] == "json"
        return httpx.Response(200, json=[{"index": "g2"}, {"index": "g1"}])

    with _store(handler) as s:
        assert s.count("g1") == 7
        assert s.index_names() == ["g1", "g2"]


def test_version_and_health():
    def handler(request):
        if request.url.path == "/":
            return httpx.Response(200, json={"version": {"number": "8.13.0"}})
        return httpx.Response(200, json={"status": "yellow"})

    with _store(handler) as s:
        assert s.version() == "8.13.0"
        assert s.health() == {"status": "yellow"}


def test_transport_error_is_store_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _store(handler) as s:
        with pytest.raises(StoreUnavailable, match="es.test"):
            s.list_aliases()


def test_server_error_is_store_unavailable():
    with _store(lambda r: httpx.Response(503, text="unavailable")) as s:
        with pytest.raises(StoreUnavailable, match="HTTP 503"):
            s.index_document("g1", "_doc", {})
