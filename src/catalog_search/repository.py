# repository.py
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from elasticsearch import Elasticsearch

from .bulk import bulk_load
from .catalog import CatalogLoader
from .config import SearchSettings
from .es_client import get_es, get_index_state, rebuild_index
from .mapper import to_documents
from .models import IndexState, LoadReport, Product
from .schemas import PRODUCT_INDEX_SCHEMA
from .search import DEFAULT_SIZE, search_products

logger = logging.getLogger(__name__)

ProductSource = Callable[[], List[Product]]


class CatalogSearchRepository:
    """
    The two operations the rest of the application calls:

    - initialize(): full rebuild + load of the catalog index
    - search(keyword): ranked products

    The Elasticsearch client is shared and passed in; the repository never
    creates one behind the caller's back. Rebuilds are not serialized here:
    callers that run them concurrently must coordinate themselves.
    """

    def __init__(
        self,
        es: Elasticsearch,
        index_name: str,
        product_source: ProductSource,
        *,
        schema: Optional[Dict[str, Any]] = None,
        bulk_chunk_size: Optional[int] = None,
        search_size: int = DEFAULT_SIZE,
    ):
        self.es = es
        self.index_name = index_name
        self.product_source = product_source
        self.schema = PRODUCT_INDEX_SCHEMA if schema is None else schema
        self.bulk_chunk_size = bulk_chunk_size or None
        self.search_size = search_size

    @classmethod
    def from_settings(cls, settings: Optional[SearchSettings] = None) -> "CatalogSearchRepository":
        settings = settings or SearchSettings.from_env()
        es = get_es(settings=settings)
        return cls(
            es,
            settings.index_name,
            CatalogLoader(settings.data_path),
            bulk_chunk_size=settings.bulk_chunk_size,
            search_size=settings.search_size,
        )

    def initialize(self) -> LoadReport:
        """
        ABSENT/EMPTY/READY → EMPTY → READY.

        Raises IndexLifecycleError, DataSourceError or LoadError; the first
        failure stops the sequence and is not retried.
        """
        ack = rebuild_index(self.es, self.index_name, self.schema)
        logger.info("Index %s is %s", ack.index_name, ack.state.value)

        products = self.product_source()
        docs = to_documents(products)
        report = bulk_load(self.es, self.index_name, docs, chunk_size=self.bulk_chunk_size)

        logger.info(
            "Initialized index %s with %d products (%s)",
            self.index_name, report.succeeded, report.state.value,
        )
        return report

    def search(self, keyword: str) -> List[Product]:
        return search_products(self.es, self.index_name, keyword, size=self.search_size)

    def state(self) -> IndexState:
        return get_index_state(self.es, self.index_name)
