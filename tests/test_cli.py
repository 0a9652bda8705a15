import json

import pytest

from catalog_search import cli
from fakes import FakeElasticsearch


@pytest.fixture
def shared_es(monkeypatch):
    es = FakeElasticsearch()
    monkeypatch.setattr("catalog_search.es_client.Elasticsearch", lambda **kwargs: es)
    return es


def test_index_then_search(shared_es, catalog_file, capsys):
    assert cli.main(["--index", "shop", "index", "--input", catalog_file]) == 0
    out = capsys.readouterr().out
    assert "bulk success:  3" in out
    assert "state:         ready" in out

    assert cli.main(["--index", "shop", "search", "--q", "kitchen"]) == 0
    results = json.loads(capsys.readouterr().out)
    assert sorted(r["id"] for r in results) == ["p1", "p2"]
    assert results[0]["tags"] == ["kitchen"]


def test_state(shared_es, capsys):
    assert cli.main(["--index", "shop", "state"]) == 0
    assert capsys.readouterr().out.strip() == "absent"


def test_search_missing_index_exits_1(shared_es):
    assert cli.main(["--index", "shop", "search", "--q", "red"]) == 1


def test_bench(shared_es, catalog_file, tmp_path, capsys):
    cli.main(["--index", "shop", "index", "--input", catalog_file])
    queries = tmp_path / "q.txt"
    queries.write_text("red\nmug\nnonexistentword\n", encoding="utf-8")
    capsys.readouterr()

    assert cli.main(["--index", "shop", "bench", "--queries", str(queries), "--warmup", "0", "--quiet"]) == 0
    out = capsys.readouterr().out
    assert "n=3 | errors=0 | empty=1" in out


@pytest.mark.parametrize("argv", [
    ["search", "--q", "red", "--size", "0"],
    ["search", "--q", "red", "--size", "-1"],
    ["search", "--q", "red", "--size", "ten"],
    ["index", "--chunk-size", "-1"],
    ["bench", "--queries", "q.txt", "--workers", "0"],
])
def test_bad_numeric_flags_are_usage_errors(shared_es, argv, capsys):
    with pytest.raises(SystemExit) as ei:
        cli.main(["--index", "shop"] + argv)
    assert ei.value.code == 2
    assert "argument" in capsys.readouterr().err
    assert shared_es.ops() == []


def test_size_flag_reaches_the_query(shared_es, catalog_file):
    cli.main(["--index", "shop", "index", "--input", catalog_file])
    assert cli.main(["--index", "shop", "search", "--q", "red", "--size", "1"]) == 0
    assert shared_es.calls_of("search")[-1]["size"] == 1


def test_chunk_size_zero_is_one_request(shared_es, catalog_file, capsys):
    assert cli.main(["--index", "shop", "index", "--input", catalog_file, "--chunk-size", "0"]) == 0
    assert "bulk requests: 1" in capsys.readouterr().out
