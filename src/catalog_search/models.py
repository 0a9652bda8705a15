# models.py
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class Tag:
    name: str


@dataclass(frozen=True)
class Product:
    """
    Domain product record.

    - price is in minor units (cents)
    - tags keep the order the source (or the backend) gave them
    """
    id: str
    name: str
    description: str
    price: int
    tags: Tuple[Tag, ...] = ()

    @property
    def tag_names(self) -> List[str]:
        return [t.name for t in self.tags]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "tags": self.tag_names,
        }


@dataclass(frozen=True)
class IndexDocument:
    """Backend-facing projection of a Product (one per bulk item)."""
    id: str
    name: str
    description: str
    price: int
    tags: Tuple[str, ...] = ()

    def to_source(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "tags": list(self.tags),
        }


class IndexState(str, enum.Enum):
    ABSENT = "absent"
    EMPTY = "empty"
    READY = "ready"


@dataclass(frozen=True)
class RebuildAck:
    index_name: str
    deleted_existing: bool
    state: IndexState = IndexState.EMPTY


@dataclass
class LoadReport:
    index_name: str
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    requests: int = 0
    took_ms: float = 0.0
    failures: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.succeeded == self.total

    @property
    def state(self) -> IndexState:
        # an empty catalog loads cleanly but still leaves nothing to search
        return IndexState.READY if self.ok and self.total > 0 else IndexState.EMPTY
