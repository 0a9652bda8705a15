# config.py
from __future__ import annotations

import os
import sys
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))
load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUTHY = ("1", "true", "True", "yes", "YES", "on")


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return v.strip()


def _env_int(name: str, default: int) -> int:
    v = _env_str(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError as e:
        raise ValueError(f"Environment variable {name} must be an integer, got {v!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    v = _env_str(name)
    if v is None:
        return default
    return v in _TRUTHY


@dataclass
class SearchSettings:
    """
    Runtime settings for the catalog search index.

    - Read from the process env, after loading PROJECT_ROOT/.env
    - verify_certs defaults to False: local / self-hosted backends use self-signed certs
    - bulk_chunk_size=0 means the whole catalog goes out in one bulk request
    """
    es_url: str = "http://localhost:9200"
    index_name: str = "products"
    api_key: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    verify_certs: bool = False
    request_timeout: int = 30
    max_retries: int = 3
    data_path: str = os.path.join("data", "products.json")
    bulk_chunk_size: int = 0
    search_size: int = 100
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "SearchSettings":
        return cls(
            es_url=_env_str("ES_URL", cls.es_url),
            index_name=_env_str("ES_INDEX", cls.index_name),
            api_key=_env_str("ES_API_KEY"),
            username=_env_str("ES_USERNAME"),
            password=_env_str("ES_PASSWORD"),
            verify_certs=_env_bool("ES_VERIFY_CERTS", cls.verify_certs),
            request_timeout=_env_int("ES_REQUEST_TIMEOUT", cls.request_timeout),
            max_retries=_env_int("ES_MAX_RETRIES", cls.max_retries),
            data_path=_env_str("CATALOG_DATA_PATH", cls.data_path),
            bulk_chunk_size=_env_int("BULK_CHUNK_SIZE", cls.bulk_chunk_size),
            search_size=_env_int("SEARCH_SIZE", cls.search_size),
            log_level=_env_str("LOG_LEVEL", cls.log_level),
        )


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
