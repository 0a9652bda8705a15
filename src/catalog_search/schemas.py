# schemas.py
"""
Index schema for the product catalog (keyword search).

- One document per product, _id = product id
- settings + mappings in one dict
  → create_index() takes it as-is, no assembling at call sites

dynamic: strict
→ unknown fields are rejected at bulk time instead of silently mapped

price: integer, coerce off
→ "1299" (string) is rejected, only real integers get in

name.keyword
→ exact match / sort on the raw name without re-analyzing

The index is always rebuilt from scratch with this schema; there is no
migration path between schema versions.
"""

from __future__ import annotations
from typing import Any, Dict


# =========================
# Analysis / settings
# =========================

PRODUCT_ANALYZER = "product_analyzer"

# bounds of the "integer" field type; values outside are rejected per document at bulk time
PRICE_MIN, PRICE_MAX = -2 ** 31, 2 ** 31 - 1

# Catalog is hundreds of docs: one shard, no replicas
COMMON_SETTINGS: Dict[str, Any] = {
    "number_of_shards": 1,
    "number_of_replicas": 0,
    "analysis": {
        "analyzer": {
            PRODUCT_ANALYZER: {
                "type": "custom",
                "tokenizer": "standard",
                "filter": ["lowercase", "stop", "snowball"],
            }
        }
    },
}


PRODUCT_INDEX_SCHEMA_V1: Dict[str, Any] = {
    "settings": COMMON_SETTINGS,
    "mappings": {
        "dynamic": "strict",
        "properties": {
            "id": {"type": "keyword"},

            "name": {
                "type": "text",
                "analyzer": PRODUCT_ANALYZER,
                "fields": {
                    "keyword": {"type": "keyword"}
                },
            },
            "description": {
                "type": "text",
                "analyzer": PRODUCT_ANALYZER,
            },

            "price": {"type": "integer", "coerce": False},

            # multi-valued
            "tags": {"type": "keyword"},
        },
    },
}


# =========================
# Default export
# =========================

PRODUCT_INDEX_SCHEMA: Dict[str, Any] = PRODUCT_INDEX_SCHEMA_V1


def normalize_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Accept either {"settings": ..., "mappings": ...} or a bare mappings dict
    ({"properties": ...}) and return the full create body.
    """
    if "mappings" in schema or "settings" in schema:
        return dict(schema)
    return {"mappings": schema}
