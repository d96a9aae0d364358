"""
SQL-backed CatalogStore used when DATABASE_URL is set (SQLite file by default).
Implements the same interface as peripheral_catalog.database.catalog_store
(in-memory stub).
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from sqlalchemy import create_engine, delete, select, update
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from peripheral_catalog.database.changes import ChangeNotifier, ObservableStore
from peripheral_catalog.database.codec import (
    decode_features,
    decode_specs,
    encode_features,
    encode_specs,
)
from peripheral_catalog.database.models import Base, HistoryRecord, PeripheralRecord
from peripheral_catalog.integrations.contracts import HistoryEntry, Peripheral


def _normalize_connection_string(s: str) -> str:
    """Strip surrounding quotes and whitespace copied from shell snippets."""
    s = s.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        s = s[1:-1].strip()
    return s


def _is_memory_sqlite(connection_string: str) -> bool:
    url = make_url(connection_string)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def _to_domain(record: PeripheralRecord) -> Peripheral:
    return Peripheral(
        id=record.id,
        name=record.name,
        brand=record.brand,
        category=record.category,
        price=record.price,
        image_url=record.image_url,
        description=record.description,
        specs=decode_specs(record.specs),
        features=decode_features(record.features),
        is_favorite=record.is_favorite,
    )


def _to_record(peripheral: Peripheral, last_updated: int) -> PeripheralRecord:
    return PeripheralRecord(
        id=peripheral.id,
        name=peripheral.name,
        brand=peripheral.brand,
        category=peripheral.category,
        price=peripheral.price,
        image_url=peripheral.image_url,
        description=peripheral.description,
        specs=encode_specs(peripheral.specs),
        features=encode_features(peripheral.features),
        is_favorite=peripheral.is_favorite,
        last_updated=last_updated,
    )


class CatalogStore(ObservableStore):
    """
    Catalog data access using SQLAlchemy. Use when DATABASE_URL is set.
    """

    def __init__(self, connection_string: str) -> None:
        connection_string = _normalize_connection_string(connection_string)
        if _is_memory_sqlite(connection_string):
            # One shared connection, otherwise every session sees a fresh empty database.
            self.engine = create_engine(
                connection_string,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(connection_string, pool_pre_ping=True)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)
        self._changes = ChangeNotifier()

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        s = self.SessionLocal()
        try:
            yield s
            s.commit()
        except Exception:
            s.rollback()
            raise
        finally:
            s.close()

    # ------------------------------------------------------------------ #
    # Peripherals
    # ------------------------------------------------------------------ #
    def upsert_peripherals(self, peripherals: Iterable[Peripheral], last_updated: int) -> None:
        with self._session() as s:
            for peripheral in peripherals:
                s.merge(_to_record(peripheral, last_updated))
        self._changes.notify()

    def get_peripherals(self) -> List[Peripheral]:
        with self._session() as s:
            stmt = select(PeripheralRecord).order_by(PeripheralRecord.name)
            return [_to_domain(r) for r in s.execute(stmt).scalars()]

    def get_peripheral(self, peripheral_id: str) -> Optional[Peripheral]:
        with self._session() as s:
            record = s.get(PeripheralRecord, peripheral_id)
            return _to_domain(record) if record is not None else None

    def get_favorites(self) -> List[Peripheral]:
        with self._session() as s:
            stmt = (
                select(PeripheralRecord)
                .where(PeripheralRecord.is_favorite.is_(True))
                .order_by(PeripheralRecord.name)
            )
            return [_to_domain(r) for r in s.execute(stmt).scalars()]

    def get_favorite_ids(self) -> List[str]:
        with self._session() as s:
            stmt = select(PeripheralRecord.id).where(PeripheralRecord.is_favorite.is_(True))
            return list(s.execute(stmt).scalars())

    def get_last_updated(self, peripheral_id: str) -> Optional[int]:
        with self._session() as s:
            stmt = select(PeripheralRecord.last_updated).where(PeripheralRecord.id == peripheral_id)
            return s.execute(stmt).scalar_one_or_none()

    def set_favorite(self, peripheral_id: str, is_favorite: bool) -> None:
        with self._session() as s:
            result = s.execute(
                update(PeripheralRecord)
                .where(PeripheralRecord.id == peripheral_id)
                .values(is_favorite=is_favorite)
            )
            changed = result.rowcount > 0
        if changed:
            self._changes.notify()

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #
    def upsert_history(self, peripheral_id: str, viewed_at: int) -> HistoryEntry:
        with self._session() as s:
            s.execute(delete(HistoryRecord).where(HistoryRecord.peripheral_id == peripheral_id))
            record = HistoryRecord(peripheral_id=peripheral_id, viewed_at=viewed_at)
            s.add(record)
            s.flush()
            entry = HistoryEntry(peripheral_id=record.peripheral_id, viewed_at=record.viewed_at, id=record.id)
        self._changes.notify()
        return entry

    def get_history(self) -> List[HistoryEntry]:
        with self._session() as s:
            stmt = select(HistoryRecord).order_by(HistoryRecord.viewed_at.desc())
            return [
                HistoryEntry(peripheral_id=r.peripheral_id, viewed_at=r.viewed_at, id=r.id)
                for r in s.execute(stmt).scalars()
            ]

    def delete_history(self, peripheral_id: str) -> None:
        with self._session() as s:
            s.execute(delete(HistoryRecord).where(HistoryRecord.peripheral_id == peripheral_id))
        self._changes.notify()

    def clear_history(self) -> None:
        with self._session() as s:
            s.execute(delete(HistoryRecord))
        self._changes.notify()
