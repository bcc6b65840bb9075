"""
store.py — Record store interface and the in-memory implementation.

The grade core only reads through `find` and `distinct`; `insert_many` exists
for seeding and enforces the score record schema on write.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from core.records import validate_records

logger = logging.getLogger(__name__)


class GradeStore(ABC):
    """Access to persisted score records."""

    name = "abstract"

    @abstractmethod
    def find(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return records whose top-level fields equal every value in `query`."""

    @abstractmethod
    def distinct(self, field: str, query: Optional[Dict[str, Any]] = None) -> List[Any]:
        """Return the distinct values of `field` among records matching `query`."""

    @abstractmethod
    def insert_many(self, records: Iterable[Dict[str, Any]]) -> int:
        """Validate and persist records, returning how many were written."""

    def close(self) -> None:
        pass


def _matches(record: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(record.get(k) == v for k, v in query.items())


class InMemoryGradeStore(GradeStore):
    """Process-local store for development and tests."""

    name = "memory"

    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None):
        self._records: List[Dict[str, Any]] = []
        if records:
            self.insert_many(records)

    def find(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        query = query or {}
        return [copy.deepcopy(r) for r in self._records if _matches(r, query)]

    def distinct(self, field: str, query: Optional[Dict[str, Any]] = None) -> List[Any]:
        query = query or {}
        seen = []
        for r in self._records:
            if _matches(r, query) and field in r and r[field] not in seen:
                seen.append(r[field])
        return seen

    def insert_many(self, records: Iterable[Dict[str, Any]]) -> int:
        validated = validate_records(records)
        self._records.extend(validated)
        logger.debug("Inserted %d records into memory store", len(validated))
        return len(validated)
