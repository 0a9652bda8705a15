# es_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from elasticsearch import ApiError, Elasticsearch, NotFoundError, TransportError

from .config import SearchSettings
from .errors import BackendConnectionError, IndexLifecycleError
from .models import IndexState, RebuildAck
from .schemas import PRODUCT_INDEX_SCHEMA, normalize_schema

logger = logging.getLogger(__name__)

# Errors the client raises for a failed request: HTTP error status (ApiError)
# or no usable response at all (TransportError: connection, timeout, TLS).
BACKEND_ERRORS = (ApiError, TransportError)


def response_body(resp: Any) -> Any:
    """ObjectApiResponse -> its decoded body; plain dicts pass through."""
    return getattr(resp, "body", resp)


def error_message(e: BaseException) -> str:
    """
    Diagnostic text for a client error.

    ApiError's str() carries status + error type + reason. Transport errors
    (ConnectionError, ConnectionTimeout, ...) only say "Connection error";
    the underlying cause is in .message.
    """
    if isinstance(e, ApiError):
        return str(e)
    message = getattr(e, "message", None)
    return str(message) if message else str(e)


# ----------------------------
# Client
# ----------------------------

def get_es(
    es_url: Optional[str] = None,
    api_key: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    verify_certs: Optional[bool] = None,
    request_timeout: Optional[int] = None,
    max_retries: Optional[int] = None,
    retry_on_timeout: bool = True,
    settings: Optional[SearchSettings] = None,
) -> Elasticsearch:
    """
    Create an Elasticsearch client and verify it with info() before returning.

    - Explicit arguments win, then `settings` (default: SearchSettings.from_env())
    - api_key auth, else basic auth when both username and password are set,
      else unauthenticated (local / self-hosted dev clusters)
    - Any failure raises BackendConnectionError; an unverified client is never returned
    """
    settings = settings or SearchSettings.from_env()
    es_url = es_url or settings.es_url
    api_key = api_key or settings.api_key
    username = username or settings.username
    password = password or settings.password
    verify_certs = settings.verify_certs if verify_certs is None else verify_certs
    request_timeout = request_timeout or settings.request_timeout
    max_retries = settings.max_retries if max_retries is None else max_retries

    if not es_url:
        raise BackendConnectionError("No backend endpoint configured (set ES_URL)")

    kwargs: Dict[str, Any] = dict(
        hosts=[es_url],
        verify_certs=verify_certs,
        request_timeout=request_timeout,
        max_retries=max_retries,
        retry_on_timeout=retry_on_timeout,
    )
    if not verify_certs:
        kwargs["ssl_show_warn"] = False

    if api_key:
        kwargs["api_key"] = api_key
    elif username and password:
        kwargs["basic_auth"] = (username, password)

    try:
        es = Elasticsearch(**kwargs)
    except ValueError as e:
        raise BackendConnectionError(f"Invalid backend configuration for {es_url}: {e}") from e

    # Quick health check (fail fast)
    try:
        es.info()
    except BACKEND_ERRORS as e:
        logger.error("Failed to connect to search backend at %s: %s", es_url, error_message(e))
        raise BackendConnectionError(f"Failed to connect to search backend at {es_url}: {error_message(e)}") from e

    logger.info("Connected to search backend at %s", es_url)
    return es


# ----------------------------
# Index Management
# ----------------------------

def index_exists(es: Elasticsearch, index_name: str) -> bool:
    try:
        return bool(es.indices.exists(index=index_name))
    except BACKEND_ERRORS as e:
        raise IndexLifecycleError("exists", index_name, error_message(e)) from e


def delete_index(
    es: Elasticsearch,
    index_name: str,
    ignore_missing: bool = True,
) -> bool:
    """
    Delete index.

    Returns True if deleted, False if not found (when ignore_missing=True).
    """
    if not index_exists(es, index_name):
        if ignore_missing:
            logger.info("Index not found (skip delete): %s", index_name)
            return False
        raise IndexLifecycleError("delete", index_name, "index not found")

    try:
        es.indices.delete(index=index_name)
    except NotFoundError as e:
        # removed by someone else between exists() and delete()
        if ignore_missing:
            logger.info("Index vanished before delete: %s", index_name)
            return False
        raise IndexLifecycleError("delete", index_name, error_message(e)) from e
    except BACKEND_ERRORS as e:
        raise IndexLifecycleError("delete", index_name, error_message(e)) from e

    logger.info("Deleted index: %s", index_name)
    return True


def create_index(
    es: Elasticsearch,
    index_name: str,
    schema: Dict[str, Any],
    wait_for_yellow: bool = True,
) -> None:
    """
    Create an index from a schema dict.

    - schema: {"settings": ..., "mappings": ...} or a bare mappings dict
    - fails (IndexLifecycleError) if the index already exists or the
      backend does not acknowledge the create
    - wait_for_yellow: a failed or timed-out health wait is only logged as a
      warning; returning does not guarantee the primary shard is allocated,
      and an immediate bulk/search may still fail with a shard error
    """
    body = normalize_schema(schema)
    try:
        resp = es.indices.create(index=index_name, **body)
    except BACKEND_ERRORS as e:
        raise IndexLifecycleError("create", index_name, error_message(e)) from e

    ack = response_body(resp)
    if isinstance(ack, dict) and ack.get("acknowledged") is False:
        raise IndexLifecycleError("create", index_name, "backend did not acknowledge index creation")

    logger.info("Created index: %s", index_name)

    if wait_for_yellow:
        try:
            es.cluster.health(index=index_name, wait_for_status="yellow", timeout="30s")
        except BACKEND_ERRORS as e:
            logger.warning("Health wait (yellow) failed or timed out: %s", error_message(e))


def rebuild_index(
    es: Elasticsearch,
    index_name: str,
    schema: Optional[Dict[str, Any]] = None,
) -> RebuildAck:
    """
    exists → delete (if present) → create.

    Not transactional: a failure after the delete leaves the index ABSENT,
    which searches report as IndexNotFoundError rather than stale results.
    Each step raises IndexLifecycleError and stops the sequence.
    The returned EMPTY state means the create was acknowledged, not that the
    index is allocated (see create_index).
    """
    schema = PRODUCT_INDEX_SCHEMA if schema is None else schema

    deleted = delete_index(es, index_name, ignore_missing=True)
    create_index(es, index_name, schema)

    logger.info("Rebuilt index %s (deleted_existing=%s)", index_name, deleted)
    return RebuildAck(index_name=index_name, deleted_existing=deleted, state=IndexState.EMPTY)


# ----------------------------
# Observation
# ----------------------------

def count_documents(es: Elasticsearch, index_name: str) -> int:
    try:
        resp = es.count(index=index_name)
    except BACKEND_ERRORS as e:
        raise IndexLifecycleError("count", index_name, error_message(e)) from e
    return int(response_body(resp).get("count", 0))


def get_index_state(es: Elasticsearch, index_name: str) -> IndexState:
    if not index_exists(es, index_name):
        return IndexState.ABSENT
    try:
        n = count_documents(es, index_name)
    except IndexLifecycleError as e:
        if isinstance(e.__cause__, NotFoundError):
            return IndexState.ABSENT
        raise
    return IndexState.READY if n > 0 else IndexState.EMPTY
