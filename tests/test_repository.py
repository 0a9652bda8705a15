import json

import pytest

from catalog_search.catalog import CatalogLoader
from catalog_search.config import SearchSettings
from catalog_search.errors import DataSourceError, IndexLifecycleError, IndexNotFoundError, LoadError
from catalog_search.models import IndexState, Product
from catalog_search.repository import CatalogSearchRepository
from fakes import FakeElasticsearch, api_error

INDEX = "products"


@pytest.fixture
def repo(es, catalog_file):
    return CatalogSearchRepository(es, INDEX, CatalogLoader(catalog_file))


class TestInitialize:

    def test_absent_to_ready(self, repo, es):
        assert repo.state() == IndexState.ABSENT
        es.calls.clear()
        report = repo.initialize()
        assert report.ok
        assert report.succeeded == 3
        assert report.state == IndexState.READY
        assert repo.state() == IndexState.READY
        assert es.ops()[:3] == ["exists", "create", "health"]
        assert "bulk" in es.ops()

    def test_round_trip_by_exact_name(self, repo):
        repo.initialize()
        for name, pid in [("Red Mug", "p1"), ("Blue Mug", "p2"), ("Red Shirt", "p3")]:
            assert pid in [p.id for p in repo.search(name)]

    def test_search_maps_back_to_products(self, repo, products):
        repo.initialize()
        by_id = {p.id: p for p in repo.search("apparel")}
        assert by_id == {"p3": products[2]}

    def test_rebuild_is_idempotent(self, repo, es):
        first = repo.initialize()
        count_after_first = len(es.docs[INDEX])
        second = repo.initialize()
        assert first.succeeded == second.succeeded == 3
        assert len(es.docs[INDEX]) == count_after_first == 3
        assert repo.state() == IndexState.READY
        assert es.ops().count("delete") == 1

    def test_bad_catalog_leaves_empty_index(self, es, tmp_path):
        path = tmp_path / "products.json"
        path.write_text("not json", encoding="utf-8")
        repo = CatalogSearchRepository(es, INDEX, CatalogLoader(str(path)))

        with pytest.raises(DataSourceError):
            repo.initialize()
        assert repo.state() == IndexState.EMPTY
        assert "bulk" not in es.ops()

    def test_rejected_document_is_surfaced(self, es, products):
        bad = Product(id="p4", name="Broken Mug", description="", price=2 ** 40)
        repo = CatalogSearchRepository(es, INDEX, lambda: products + [bad])

        with pytest.raises(LoadError) as ei:
            repo.initialize()
        assert ei.value.report.failed == 1
        assert ei.value.report.state == IndexState.EMPTY
        # the valid subset is searchable, but the caller was told the load was not clean
        assert "p4" not in [p.id for p in repo.search("mug")]

    def test_delete_failure_stops_before_loading(self, repo, es):
        repo.initialize()
        es.calls.clear()
        es.fail["delete"] = api_error(500, "internal_server_error")
        loaded = []
        repo.product_source = lambda: loaded.append(1) or []

        with pytest.raises(IndexLifecycleError):
            repo.initialize()
        assert loaded == []
        assert "create" not in es.ops()

    def test_chunked_initialize(self, es, catalog_file):
        repo = CatalogSearchRepository(es, INDEX, CatalogLoader(catalog_file), bulk_chunk_size=2)
        report = repo.initialize()
        assert report.requests == 2
        assert report.succeeded == 3


class TestSearch:

    def test_absent_index_is_distinct_from_no_matches(self, repo):
        with pytest.raises(IndexNotFoundError):
            repo.search("red")
        repo.initialize()
        assert repo.search("nonexistentword") == []

    def test_empty_index_returns_nothing(self, repo, es):
        es.indices.create(index=INDEX)
        assert repo.state() == IndexState.EMPTY
        assert repo.search("red") == []

    def test_search_size_cap_is_sent(self, es, catalog_file):
        repo = CatalogSearchRepository(es, INDEX, CatalogLoader(catalog_file), search_size=7)
        repo.initialize()
        repo.search("red")
        assert es.calls_of("search")[-1]["size"] == 7


def test_from_settings(monkeypatch, tmp_path):
    created = []

    def factory(**kwargs):
        es = FakeElasticsearch(**kwargs)
        created.append(es)
        return es

    monkeypatch.setattr("catalog_search.es_client.Elasticsearch", factory)
    data = tmp_path / "p.json"
    data.write_text(json.dumps([{"id": "a", "name": "Lamp", "price": 10}]), encoding="utf-8")

    settings = SearchSettings(index_name="catalog", data_path=str(data), bulk_chunk_size=0, search_size=20)
    repo = CatalogSearchRepository.from_settings(settings)

    assert repo.es is created[0]
    assert repo.index_name == "catalog"
    assert repo.bulk_chunk_size is None
    assert repo.search_size == 20
    assert repo.initialize().succeeded == 1
