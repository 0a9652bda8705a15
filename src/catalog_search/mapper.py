# mapper.py
from __future__ import annotations

from typing import Iterable, List

from .models import IndexDocument, Product


def flatten_tags(product: Product) -> List[str]:
    """Tag names in source order, first occurrence wins."""
    seen = set()
    out: List[str] = []
    for t in product.tags:
        if t.name in seen:
            continue
        seen.add(t.name)
        out.append(t.name)
    return out


def to_document(product: Product) -> IndexDocument:
    return IndexDocument(
        id=product.id,
        name=product.name,
        description=product.description,
        price=int(product.price),
        tags=tuple(flatten_tags(product)),
    )


def to_documents(products: Iterable[Product]) -> List[IndexDocument]:
    return [to_document(p) for p in products]
