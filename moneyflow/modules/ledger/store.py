"""Record-collection adapter over the SQLAlchemy session.

The ledger services never touch the session directly: they read and write
plain dict records through one ``RecordTable`` per entity and group
multi-record mutations with ``LedgerStore.atomic()``.
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Sequence
import logging

from flask import g

from moneyflow.core.errors import NotFound
from moneyflow.core.extensions import db
from .models import (
    Envelope, Category, Budget, Income, Allocation, Expense, Subsidy,
    Carryover, MonthlySnapshot,
)

logger = logging.getLogger(__name__)


class RecordTable:
    """Keyed record collection for one ledger entity."""

    def __init__(self, store: 'LedgerStore', model):
        self._store = store
        self.model = model
        self.name = model.__tablename__

    @property
    def _session(self):
        return self._store.session

    def _column(self, field: str):
        if field not in self.model.field_names():
            raise ValueError(f'Unknown field {field} for {self.name}')
        return getattr(self.model, field)

    def _query(self):
        return self._session.query(self.model).order_by(self.model.id)

    def insert(self, record: Dict[str, Any]) -> int:
        """Insert a record and return its store-assigned id."""
        with self._store.atomic():
            obj = self.model(**self.model.coerce(record))
            self._session.add(obj)
            self._session.flush()
            return obj.id

    def get_by_id(self, record_id: int) -> Optional[Dict[str, Any]]:
        obj = self._session.get(self.model, record_id)
        return obj.to_dict() if obj else None

    def update(self, record_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a partial update, raising NotFound for an unknown id."""
        fields = {key: value for key, value in fields.items() if key != 'id'}
        with self._store.atomic():
            obj = self._session.get(self.model, record_id)
            if obj is None:
                raise NotFound(self.name, record_id)
            for key, value in self.model.coerce(fields).items():
                setattr(obj, key, value)
            self._session.flush()
            return obj.to_dict()

    def delete(self, record_id: int) -> bool:
        with self._store.atomic():
            obj = self._session.get(self.model, record_id)
            if obj is None:
                return False
            self._session.delete(obj)
            self._session.flush()
            return True

    def delete_where(self, field: str, value: Any) -> int:
        """Delete every record whose ``field`` equals ``value``."""
        column = self._column(field)
        with self._store.atomic():
            objs = self._session.query(self.model).filter(column == value).all()
            for obj in objs:
                self._session.delete(obj)
            self._session.flush()
            return len(objs)

    def get_all(self) -> List[Dict[str, Any]]:
        return [obj.to_dict() for obj in self._query().all()]

    def query_by_field(self, field: str, value: Any) -> List[Dict[str, Any]]:
        column = self._column(field)
        return [obj.to_dict() for obj in self._query().filter(column == value).all()]

    def query_by_composite_key(self, fields: Sequence[str], values: Sequence[Any]) -> Optional[Dict[str, Any]]:
        if len(fields) != len(values):
            raise ValueError('Composite key fields and values differ in length')
        query = self._query()
        for field, value in zip(fields, values):
            query = query.filter(self._column(field) == value)
        obj = query.first()
        return obj.to_dict() if obj else None

    def bulk_insert(self, records: Iterable[Dict[str, Any]]) -> int:
        """Insert records as given, keeping any ids they carry."""
        with self._store.atomic():
            objs = [self.model(**self.model.coerce(record)) for record in records]
            self._session.add_all(objs)
            self._session.flush()
            return len(objs)

    def clear(self) -> int:
        # ORM deletes keep the identity map clean for a bulk_insert of the same ids
        with self._store.atomic():
            objs = self._session.query(self.model).all()
            for obj in objs:
                self._session.delete(obj)
            self._session.flush()
            return len(objs)


class LedgerStore:
    """Ledger tables bound to one SQLAlchemy session."""

    TABLES = {
        'envelopes': Envelope,
        'categories': Category,
        'budgets': Budget,
        'incomes': Income,
        'allocations': Allocation,
        'expenses': Expense,
        'subsidies': Subsidy,
        'carryovers': Carryover,
        'monthly_snapshots': MonthlySnapshot,
    }

    def __init__(self, session):
        self.session = session
        self._depth = 0
        for name, model in self.TABLES.items():
            setattr(self, name, RecordTable(self, model))

    def table(self, name: str) -> RecordTable:
        if name not in self.TABLES:
            raise ValueError(f'Unknown table {name}')
        return getattr(self, name)

    @contextmanager
    def atomic(self):
        """All-or-nothing unit of work.

        The outermost unit commits on success and rolls back on any error;
        nested units join it.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.warning('Ledger unit of work rolled back')
            raise
        finally:
            self._depth = 0


def get_store() -> LedgerStore:
    """Store bound to the Flask-SQLAlchemy session of the current app context."""
    if 'ledger_store' not in g:
        g.ledger_store = LedgerStore(db.session)
    return g.ledger_store
