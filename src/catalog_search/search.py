# search.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from elasticsearch import Elasticsearch, NotFoundError, SerializationError

from .errors import IndexNotFoundError, MalformedResponseError, SearchError
from .es_client import BACKEND_ERRORS, error_message, response_body
from .models import Product, Tag

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 100

# name counts double; description and tags count once
SEARCH_FIELDS = [
    "name^2",
    "description",
    "tags",
]


# ----------------------------
# Query builder
# ----------------------------

def build_search_body(keyword: str, size: int = DEFAULT_SIZE) -> Dict[str, Any]:
    """
    One fuzzy multi_match over the weighted product fields.

    fuzziness AUTO: 0 edits for 1-2 char terms, 1 for 3-5, 2 above,
    so "redd" still finds "red". `size` is a hard cap, not a page.
    """
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")

    return {
        "size": size,
        "query": {
            "multi_match": {
                "query": keyword,
                "fields": list(SEARCH_FIELDS),
                "fuzziness": "AUTO",
            }
        },
    }


# ----------------------------
# Hit mapping
# ----------------------------

def _source_to_product(src: Any) -> Product:
    if not isinstance(src, dict):
        raise ValueError("_source is not an object")

    pid = src.get("id")
    name = src.get("name")
    description = src.get("description", "") or ""
    price = src.get("price")
    tags = src.get("tags") or []
    # keyword fields come back as a bare string when a single value was indexed
    if isinstance(tags, str):
        tags = [tags]

    if not isinstance(pid, str) or not isinstance(name, str) or not isinstance(description, str):
        raise ValueError(f"bad id/name/description in hit {pid!r}")
    if not isinstance(price, int) or isinstance(price, bool):
        raise ValueError(f"bad price {price!r} in hit {pid!r}")
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ValueError(f"bad tags in hit {pid!r}")

    return Product(
        id=pid,
        name=name,
        description=description,
        price=price,
        tags=tuple(Tag(name=t) for t in tags),
    )


def parse_hits(body: Any) -> List[Product]:
    """
    hits.hits[]._source → Product, in the order returned (relevance order).

    Raises ValueError on anything that is not a well-formed hit list.
    """
    if not isinstance(body, dict):
        raise ValueError("response body is not an object")
    hits = body.get("hits")
    if not isinstance(hits, dict):
        raise ValueError("response has no 'hits' object")
    items = hits.get("hits")
    if not isinstance(items, list):
        raise ValueError("response has no 'hits.hits' list")

    out: List[Product] = []
    for h in items:
        if not isinstance(h, dict) or "_source" not in h:
            raise ValueError("hit without _source")
        out.append(_source_to_product(h["_source"]))
    return out


def _total_hits(body: Dict[str, Any]) -> Any:
    total = body.get("hits", {}).get("total")
    if isinstance(total, dict):
        return total.get("value")
    return total


# ----------------------------
# Public API: search_products()
# ----------------------------

def search_products(
    es: Elasticsearch,
    index_name: str,
    keyword: str,
    size: int = DEFAULT_SIZE,
) -> List[Product]:
    """
    Run one keyword search and return products in relevance order.

    - "" is sent as-is; multi_match with no terms matches nothing
    - missing index → IndexNotFoundError
    - backend / transport failure → SearchError
    - unusable response body → MalformedResponseError
    """
    body = build_search_body(keyword, size=size)

    try:
        resp = es.search(index=index_name, **body)
    except NotFoundError as e:
        raise IndexNotFoundError(index_name, keyword, error_message(e)) from e
    except SerializationError as e:
        # a 2xx whose body is not JSON (proxy page, truncated payload)
        logger.error("Undecodable search response from %s: %s", index_name, error_message(e))
        raise MalformedResponseError(index_name, keyword, error_message(e)) from e
    except BACKEND_ERRORS as e:
        logger.warning("Search on %s failed: %s", index_name, error_message(e))
        raise SearchError(index_name, keyword, error_message(e)) from e

    raw = response_body(resp)
    try:
        products = parse_hits(raw)
    except ValueError as e:
        logger.error("Malformed search response from %s: %s", index_name, e)
        raise MalformedResponseError(index_name, keyword, str(e)) from e

    logger.debug(
        "Search %r on %s: returned=%d total=%s",
        keyword, index_name, len(products), _total_hits(raw),
    )
    return products
