# catalog.py
from __future__ import annotations

import json
import os
import logging
from typing import Any, Dict, Iterable, List, Tuple

from .errors import DataSourceError
from .models import Product, Tag
from .schemas import PRICE_MAX, PRICE_MIN

logger = logging.getLogger(__name__)


def read_jsonl(path: str) -> Iterable[Tuple[int, Any]]:
    """Yields (lineno, obj) for every non-empty line."""
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield lineno, json.loads(line)
            except json.JSONDecodeError as e:
                raise DataSourceError(f"JSON decode error at {path}:{lineno}: {e}") from e


def read_json(path: str) -> Iterable[Tuple[int, Any]]:
    """
    Yields (position, obj) from a JSON document.

    Accepts either a top-level array of products or {"products": [...]}.
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DataSourceError(f"JSON decode error in {path}: {e}") from e

    if isinstance(data, dict) and "products" in data:
        data = data["products"]
    if not isinstance(data, list):
        raise DataSourceError(f"{path}: expected a JSON array of products or an object with 'products'")

    for pos, item in enumerate(data, start=1):
        yield pos, item


def parse_tags(raw: Any, where: str) -> Tuple[Tag, ...]:
    """
    Normalize tags into Tag values.
    - list of strings:  ["kitchen", "mug"]
    - list of objects:  [{"name": "kitchen"}]
    - None/missing -> ()
    """
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise DataSourceError(f"{where}: 'tags' must be a list")

    out: List[Tag] = []
    for t in raw:
        if isinstance(t, dict):
            t = t.get("name")
        if not isinstance(t, str) or not t.strip():
            raise DataSourceError(f"{where}: tag entries must be non-empty strings or {{'name': ...}} objects")
        out.append(Tag(name=t.strip()))
    return tuple(out)


def parse_product(item: Any, where: str) -> Product:
    if not isinstance(item, dict):
        raise DataSourceError(f"{where}: product must be a JSON object")

    pid = item.get("id")
    if isinstance(pid, int) and not isinstance(pid, bool):
        pid = str(pid)
    if not isinstance(pid, str) or not pid.strip():
        raise DataSourceError(f"{where}: missing or empty 'id'")

    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        raise DataSourceError(f"{where}: product '{pid}' has no 'name'")

    description = item.get("description") or ""
    if not isinstance(description, str):
        raise DataSourceError(f"{where}: product '{pid}' has a non-string 'description'")

    price = item.get("price")
    # bool is an int subclass; reject it explicitly
    if not isinstance(price, int) or isinstance(price, bool):
        raise DataSourceError(f"{where}: product '{pid}' price must be an integer (minor units), got {price!r}")
    if not PRICE_MIN <= price <= PRICE_MAX:
        raise DataSourceError(f"{where}: product '{pid}' price {price} is out of range")

    return Product(
        id=pid.strip(),
        name=name.strip(),
        description=description.strip(),
        price=price,
        tags=parse_tags(item.get("tags"), where),
    )


def load_product_data(path: str) -> List[Product]:
    """
    Load the authoritative product dataset.

    - *.jsonl: one product per line
    - anything else: a JSON document
    Order is the file order. Raises DataSourceError on any problem.
    """
    if not os.path.exists(path):
        raise DataSourceError(f"Catalog file not found: {path}")

    rows = read_jsonl(path) if path.endswith(".jsonl") else read_json(path)

    products: List[Product] = []
    seen: Dict[str, str] = {}
    try:
        for pos, item in rows:
            where = f"{path}:{pos}"
            p = parse_product(item, where)
            if p.id in seen:
                raise DataSourceError(f"{where}: duplicate product id '{p.id}' (first seen at {seen[p.id]})")
            seen[p.id] = where
            products.append(p)
    except (OSError, UnicodeDecodeError) as e:
        raise DataSourceError(f"Cannot read catalog file {path}: {e}") from e

    logger.info("Loaded %d products from %s", len(products), path)
    return products


class CatalogLoader:
    """Zero-arg product source bound to a file path."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> List[Product]:
        return load_product_data(self.path)

    __call__ = load

    def __repr__(self) -> str:
        return f"CatalogLoader({self.path!r})"
