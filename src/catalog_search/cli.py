# cli.py
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .bench import iter_keywords, measure_latency
from .catalog import CatalogLoader
from .config import SearchSettings, setup_logging
from .errors import CatalogSearchError
from .es_client import get_es
from .repository import CatalogSearchRepository

logger = logging.getLogger("catalog_search")


def _int_at_least(minimum: int):
    def parse(value: str) -> int:
        try:
            n = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
        if n < minimum:
            raise argparse.ArgumentTypeError(f"must be >= {minimum}, got {n}")
        return n
    return parse


positive_int = _int_at_least(1)
non_negative_int = _int_at_least(0)


def _arg_or(args: argparse.Namespace, name: str, default):
    # subcommands without the flag fall back to settings; an explicit 0 is kept
    value = getattr(args, name, None)
    return default if value is None else value


def _repository(args: argparse.Namespace, settings: SearchSettings) -> CatalogSearchRepository:
    es = get_es(es_url=args.es, settings=settings)
    return CatalogSearchRepository(
        es,
        args.index,
        CatalogLoader(_arg_or(args, "input", settings.data_path)),
        bulk_chunk_size=_arg_or(args, "chunk_size", settings.bulk_chunk_size),
        search_size=_arg_or(args, "size", settings.search_size),
    )


def cmd_index(args: argparse.Namespace, settings: SearchSettings) -> int:
    repo = _repository(args, settings)
    report = repo.initialize()

    print("\nDone indexing.")
    print(f"  index:         {report.index_name}")
    print(f"  docs seen:     {report.total}")
    print(f"  bulk success:  {report.succeeded}")
    print(f"  bulk requests: {report.requests}")
    print(f"  took:          {report.took_ms:.1f}ms")
    print(f"  state:         {report.state.value}")
    return 0


def cmd_search(args: argparse.Namespace, settings: SearchSettings) -> int:
    repo = _repository(args, settings)
    products = repo.search(args.q)
    print(json.dumps([p.to_dict() for p in products], ensure_ascii=False, indent=2))
    return 0


def cmd_state(args: argparse.Namespace, settings: SearchSettings) -> int:
    repo = _repository(args, settings)
    print(repo.state().value)
    return 0


def cmd_bench(args: argparse.Namespace, settings: SearchSettings) -> int:
    keywords = list(iter_keywords(args.queries, key=args.key))
    if args.limit and args.limit > 0:
        keywords = keywords[: args.limit]
    if not keywords:
        print("No queries found.")
        return 0

    repo = _repository(args, settings)
    lat = measure_latency(
        repo.search,
        keywords,
        warmup=args.warmup,
        repeat=args.repeat,
        workers=args.workers,
        quiet=args.quiet,
    )

    s = lat.summarize()
    print("\n" + "=" * 80)
    print(f"LATENCY REPORT: {os.path.basename(args.queries)} (workers={args.workers})")
    print("-" * 80)
    print(
        f"n={s['n']} | errors={s['errors']} | empty={s['empty']} | p50={s['p50']:.1f}ms | "
        f"p90={s['p90']:.1f}ms | p95={s['p95']:.1f}ms | mean={s['mean']:.1f}ms"
    )
    print("=" * 80)
    return 0


def build_parser(settings: SearchSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog-search", description="Product catalog search index manager")
    parser.add_argument("--es", default=settings.es_url, help="Search backend URL")
    parser.add_argument("--index", default=settings.index_name, help="Index name")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("index", help="Delete, recreate and bulk load the index (DESTRUCTIVE)")
    p.add_argument("--input", default=settings.data_path, help="Catalog file (.json or .jsonl)")
    p.add_argument("--chunk-size", type=non_negative_int, default=settings.bulk_chunk_size,
                   help="Documents per bulk request, 0 = single request")
    p.set_defaults(func=cmd_index)

    p = sub.add_parser("search", help="Keyword search")
    p.add_argument("--q", required=True, help="Keyword")
    p.add_argument("--size", type=positive_int, default=settings.search_size, help="Max results")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("state", help="Print index state (absent / empty / ready)")
    p.set_defaults(func=cmd_state)

    p = sub.add_parser("bench", help="Measure search latency")
    p.add_argument("--queries", required=True, help="Keywords file (.txt one per line, or .jsonl)")
    p.add_argument("--key", default="query", help="Keyword field for .jsonl input")
    p.add_argument("--size", type=positive_int, default=settings.search_size, help="Max results")
    p.add_argument("--warmup", type=non_negative_int, default=20)
    p.add_argument("--repeat", type=positive_int, default=1)
    p.add_argument("--workers", type=positive_int, default=1, help="Concurrent searches")
    p.add_argument("--limit", type=non_negative_int, default=0, help="0 means no limit; otherwise use first N queries")
    p.add_argument("--quiet", action="store_true")
    p.set_defaults(func=cmd_bench)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    settings = SearchSettings.from_env()
    args = build_parser(settings).parse_args(argv)
    setup_logging(args.log_level)

    try:
        return args.func(args, settings)
    except CatalogSearchError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
