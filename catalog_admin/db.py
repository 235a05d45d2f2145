"""
Record stores for the catalog collections.

`LocalFileStore` keeps each collection as a JSON array on disk and is the
fallback when no remote database is configured. `SqlCatalogStore` is the
SQLAlchemy-backed remote store (Postgres in production, SQLite in tests).
Both speak camelCase record dicts.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Protocol

from sqlalchemy import Column, Integer, String, create_engine, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from catalog_admin.records import COURSES, PRODUCTS, USERS

logger = logging.getLogger(__name__)


class CatalogStore(Protocol):
    """Interface for record storage, one call per operation."""

    def select_all(self, collection: str) -> list[dict]:
        ...

    def select_one(self, collection: str, record_id: str) -> Optional[dict]:
        ...

    def insert(self, collection: str, record: dict) -> dict:
        ...

    def update(
        self, collection: str, record_id: str, fields: dict
    ) -> Optional[dict]:
        ...

    def delete(self, collection: str, record_id: str) -> bool:
        ...

    def upsert(self, collection: str, record: dict) -> dict:
        ...

    def find_user(self, username: str, password: str) -> Optional[dict]:
        ...


class LocalFileStore:
    """
    Whole-collection JSON files under `data_dir`.

    Every mutation reads the full array, changes it in memory and writes it
    back. There is no locking, so concurrent writers can lose updates.
    """

    def __init__(self, data_dir: str | os.PathLike):
        self.data_dir = Path(data_dir)

    def path_for(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def load(self, collection: str) -> list[dict]:
        """Strict read: raises FileNotFoundError or ValueError."""
        path = self.path_for(collection)
        with open(path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, list):
            raise ValueError(f"{path} does not contain a JSON array")
        return payload

    def read(self, collection: str) -> list[dict]:
        try:
            return self.load(collection)
        except FileNotFoundError:
            return []
        except ValueError as exc:
            logger.warning(
                "Treating malformed %s as empty: %s", self.path_for(collection), exc
            )
            return []

    def write(self, collection: str, records: Iterable[dict]) -> None:
        path = self.path_for(collection)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f"{path.name}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(list(records), handle, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    def select_all(self, collection: str) -> list[dict]:
        return self.read(collection)

    def select_one(self, collection: str, record_id: str) -> Optional[dict]:
        return next(
            (r for r in self.read(collection) if r.get("id") == record_id), None
        )

    def insert(self, collection: str, record: dict) -> dict:
        records = self.read(collection)
        records.append(record)
        self.write(collection, records)
        return record

    def update(
        self, collection: str, record_id: str, fields: dict
    ) -> Optional[dict]:
        records = self.read(collection)
        for index, existing in enumerate(records):
            if existing.get("id") == record_id:
                records[index] = {**existing, **fields}
                self.write(collection, records)
                return records[index]
        return None

    def delete(self, collection: str, record_id: str) -> bool:
        records = self.read(collection)
        remaining = [r for r in records if r.get("id") != record_id]
        if len(remaining) == len(records):
            return False
        self.write(collection, remaining)
        return True

    def upsert(self, collection: str, record: dict) -> dict:
        records = self.read(collection)
        for index, existing in enumerate(records):
            if existing.get("id") == record.get("id"):
                records[index] = record
                break
        else:
            records.append(record)
        self.write(collection, records)
        return record

    def find_user(self, username: str, password: str) -> Optional[dict]:
        # Usernames are not unique, so both fields must match on one record.
        return next(
            (
                u
                for u in self.read(USERS)
                if u.get("username") == username and u.get("password") == password
            ),
            None,
        )


Base = declarative_base()


class UserRow(Base):
    __tablename__ = USERS

    id = Column(String, primary_key=True)
    username = Column(String, nullable=False, index=True)
    password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    created_at = Column(String, nullable=False)


class ProductRow(Base):
    __tablename__ = PRODUCTS

    id = Column(String, primary_key=True)
    title = Column(String, nullable=True)
    price = Column(String, nullable=False, default="")
    description = Column(String, nullable=False, default="")
    image = Column(String, nullable=False, default="")
    whatsapp_link = Column(String, nullable=False, default="")
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=True)


class CourseRow(Base):
    __tablename__ = COURSES

    id = Column(String, primary_key=True)
    title = Column(String, nullable=True)
    date = Column(String, nullable=False, default="")
    comments = Column(Integer, nullable=False, default=0)
    description = Column(String, nullable=False, default="")
    content = Column(String, nullable=False, default="")
    image = Column(String, nullable=False, default="")
    created_at = Column(String, nullable=False, index=True)


ROWS = {USERS: UserRow, PRODUCTS: ProductRow, COURSES: CourseRow}

# camelCase record keys that differ from their column names
_KEY_TO_COLUMN = {
    "whatsappLink": "whatsapp_link",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}
_COLUMN_TO_KEY = {column: key for key, column in _KEY_TO_COLUMN.items()}


def _row_class(collection: str):
    try:
        return ROWS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


def _to_columns(row_cls, record: dict) -> dict:
    columns = row_cls.__table__.columns.keys()
    values = {}
    for key, value in record.items():
        column = _KEY_TO_COLUMN.get(key, key)
        if column in columns:
            values[column] = value
    return values


def _to_record(row) -> dict:
    record = {}
    for column in row.__table__.columns.keys():
        value = getattr(row, column)
        if value is not None:
            record[_COLUMN_TO_KEY.get(column, column)] = value
    return record


class SqlCatalogStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlCatalogStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def select_all(self, collection: str) -> list[dict]:
        row_cls = _row_class(collection)
        with self.Session() as session:
            rows = session.execute(
                select(row_cls).order_by(row_cls.created_at.desc())
            ).scalars()
            return [_to_record(row) for row in rows]

    def select_one(self, collection: str, record_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(_row_class(collection), record_id)
            return _to_record(row) if row else None

    def insert(self, collection: str, record: dict) -> dict:
        row_cls = _row_class(collection)
        with self.Session() as session:
            row = row_cls(**_to_columns(row_cls, record))
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_record(row)

    def update(
        self, collection: str, record_id: str, fields: dict
    ) -> Optional[dict]:
        row_cls = _row_class(collection)
        with self.Session() as session:
            row = session.get(row_cls, record_id)
            if not row:
                return None
            for column, value in _to_columns(row_cls, fields).items():
                if column != "id":
                    setattr(row, column, value)
            session.commit()
            session.refresh(row)
            return _to_record(row)

    def delete(self, collection: str, record_id: str) -> bool:
        with self.Session() as session:
            row = session.get(_row_class(collection), record_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def upsert(self, collection: str, record: dict) -> dict:
        row_cls = _row_class(collection)
        with self.Session() as session:
            row = session.merge(row_cls(**_to_columns(row_cls, record)))
            session.commit()
            return _to_record(row)

    def find_user(self, username: str, password: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.execute(
                select(UserRow)
                .where(UserRow.username == username, UserRow.password == password)
                .limit(1)
            ).scalar_one_or_none()
            return _to_record(row) if row else None
