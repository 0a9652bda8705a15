# bulk.py
from __future__ import annotations

import time
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from elasticsearch import Elasticsearch

from .errors import LoadError
from .es_client import BACKEND_ERRORS, error_message, response_body
from .models import IndexDocument, LoadReport

logger = logging.getLogger(__name__)

MAX_KEPT_FAILURES = 200


def build_operations(index_name: str, documents: Iterable[IndexDocument]) -> List[Dict[str, Any]]:
    """
    Action/document pairs for the _bulk API:

        {"index": {"_index": ..., "_id": ...}}
        {...document source...}

    The client serializes the list as NDJSON, one line per entry.
    """
    ops: List[Dict[str, Any]] = []
    for d in documents:
        ops.append({"index": {"_index": index_name, "_id": d.id}})
        ops.append(d.to_source())
    return ops


def chunked(docs: Sequence[IndexDocument], chunk_size: Optional[int]) -> Iterable[Sequence[IndexDocument]]:
    if not chunk_size or chunk_size <= 0 or chunk_size >= len(docs):
        yield docs
        return
    for i in range(0, len(docs), chunk_size):
        yield docs[i:i + chunk_size]


def _collect_item_results(body: Dict[str, Any], report: LoadReport, expected: int) -> None:
    items = body.get("items")
    if not isinstance(items, list):
        raise LoadError(report.index_name, "bulk response has no 'items' list", report)

    for item in items:
        # each item is {"index": {"_id": ..., "status": ..., ["error": ...]}}
        result = item.get("index") if isinstance(item, dict) else None
        if not isinstance(result, dict):
            result = {"error": {"type": "malformed_item", "reason": repr(item)[:200]}}
        status = result.get("status")
        if not isinstance(status, int):
            status = 0

        if "error" in result or not 200 <= status < 300:
            report.failed += 1
            if len(report.failures) < MAX_KEPT_FAILURES:
                report.failures.append({
                    "_id": result.get("_id"),
                    "status": status,
                    "error": result.get("error"),
                })
        else:
            report.succeeded += 1

    if len(items) != expected:
        # items the backend never answered for count as failed
        missing = max(expected - len(items), 0)
        report.failed += missing
        raise LoadError(
            report.index_name,
            f"bulk response has {len(items)} items for {expected} documents",
            report,
        )


def bulk_load(
    es: Elasticsearch,
    index_name: str,
    documents: Sequence[IndexDocument],
    *,
    chunk_size: Optional[int] = None,
    refresh: Any = True,
) -> LoadReport:
    """
    Write documents with the _bulk API.

    - chunk_size None/0: the whole sequence in ONE request
    - refresh=True: documents are searchable as soon as this returns
    - any transport error or any rejected item raises LoadError (report attached);
      remaining chunks are not sent, nothing is retried

    Returns the LoadReport of a clean load.
    """
    docs = list(documents)
    report = LoadReport(index_name=index_name, total=len(docs))
    if not docs:
        logger.warning("Bulk load into %s skipped: no documents", index_name)
        return report

    t0 = time.perf_counter()
    for batch in chunked(docs, chunk_size):
        ops = build_operations(index_name, batch)
        report.requests += 1
        try:
            resp = es.bulk(operations=ops, refresh=refresh)
        except BACKEND_ERRORS as e:
            report.failed = report.total - report.succeeded
            report.took_ms = (time.perf_counter() - t0) * 1000.0
            logger.error("Bulk request %d to %s failed: %s", report.requests, index_name, error_message(e))
            raise LoadError(index_name, error_message(e), report) from e

        body = response_body(resp)
        if not isinstance(body, dict):
            report.failed = report.total - report.succeeded
            raise LoadError(index_name, "bulk response is not a JSON object", report)

        _collect_item_results(body, report, expected=len(batch))

        if report.failed:
            report.took_ms = (time.perf_counter() - t0) * 1000.0
            logger.warning(
                "Bulk indexed with failures. success=%s fail=%s index=%s",
                report.succeeded, report.failed, index_name,
            )
            # documents in chunks that were never sent are failed too
            report.failed = report.total - report.succeeded
            first = report.failures[0] if report.failures else {}
            raise LoadError(
                index_name,
                f"{report.failed} of {report.total} documents not indexed (first error: {first.get('error')})",
                report,
            )

    report.took_ms = (time.perf_counter() - t0) * 1000.0
    logger.info(
        "Bulk indexed successfully. success=%s requests=%s index=%s",
        report.succeeded, report.requests, index_name,
    )
    return report
