from .catalog import CatalogLoader, load_product_data
from .errors import (
    BackendConnectionError,
    CatalogSearchError,
    DataSourceError,
    IndexLifecycleError,
    IndexNotFoundError,
    LoadError,
    MalformedResponseError,
    SearchError,
)
from .models import IndexDocument, IndexState, LoadReport, Product, RebuildAck, Tag
from .repository import CatalogSearchRepository

__all__ = [
    "BackendConnectionError",
    "CatalogLoader",
    "CatalogSearchError",
    "CatalogSearchRepository",
    "DataSourceError",
    "IndexDocument",
    "IndexLifecycleError",
    "IndexNotFoundError",
    "IndexState",
    "LoadError",
    "LoadReport",
    "MalformedResponseError",
    "Product",
    "RebuildAck",
    "SearchError",
    "Tag",
    "load_product_data",
]
