import pytest
from pydantic import ValidationError

from elasticbook.errors import MalformedTimestamp
from elasticbook.model import Bookmark, CountResult, field_safe


def _bm(**kw) -> Bookmark:
    data = {
        "date_added": "11644473600000000",
        "id": "42",
        "name": "Example",
        "sync_transaction_version": "3",
        "type": "url",
        "url": "https://example.com/",
    }
    data.update(kw)
    return Bookmark.model_validate(data)


def test_to_indexable_converts_date_and_meta_keys():
    b = _bm(meta_info={"stars.id": "s1", "stars.imageData": "img", "stars.isSynced": "true"})
    doc = b.to_indexable().to_document()
    assert doc == {
        "date_added": "1970-01-01T00:00:00Z",
        "id": "42",
        "meta_info": {"stars_id": "s1", "stars_imageData": "img", "stars_isSynced": "true"},
        "name": "Example",
        "sync_transaction_version": "3",
        "type": "url",
        "url": "https://example.com/",
    }


def test_document_without_meta_info_omits_it():
    doc = _bm().to_indexable().to_document()
    assert "meta_info" not in doc
    assert all("." not in k for k in doc)


def test_to_indexable_rejects_bad_timestamp():
    with pytest.raises(MalformedTimestamp):
        _bm(date_added="abc").to_indexable()


def test_bookmark_is_read_only():
    b = _bm()
    with pytest.raises(ValidationError):
        b.name = "other"


def test_field_safe():
    assert field_safe("stars.pageData") == "stars_pageData"
    assert field_safe("plain") == "plain"


def test_count_result_last_add_wins_per_key():
    c = CountResult()
    c.add("bookmark_bar", 2, name="Bar")
    c.add("bookmark_bar", 5, name="Bar")
    c.add("other", 1)
    assert c.counts == {"bookmark_bar": 5, "other": 1}
    assert c.names["other"] == "other"
    assert c.total() == 6
    assert c.items() == [("bookmark_bar", 5), ("other", 1)]
