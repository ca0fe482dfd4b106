# seminar_db.py
# Registration store: one `registrations` table, insert and list only.
# DATABASE_URL first, then discrete DB_* params. No implicit fallback database.

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    select,
)
from sqlalchemy.engine import URL, Engine
from sqlalchemy.sql import text

logger = logging.getLogger(__name__)

metadata = MetaData()

registrations = Table(
    "registrations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("company_name", String(255), nullable=False),
    Column("name", String(255), nullable=False),
    Column("position", String(255), nullable=False),
    Column("email", String(320), nullable=False),
    Column("phone", String(50), nullable=False),
    Column("challenge", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

RECORD_FIELDS = ("company_name", "name", "position", "email", "phone", "challenge")


class DatabaseUnavailable(RuntimeError):
    """Raised when no database connection could be obtained."""

    def __init__(self, message: str = "Database not available"):
        super().__init__(message)


# ───────────────────────────────────────────────────────────────
# Engine
# ───────────────────────────────────────────────────────────────
def _sqlalchemy_url() -> str | URL | None:
    # 1) DATABASE_URL wins
    db_url = (os.getenv("DATABASE_URL") or "").strip()
    if db_url:
        return db_url

    # 2) Traditional TCP params
    user = os.getenv("DB_USER")
    pwd = os.getenv("DB_PASS") or os.getenv("DB_PASSWORD")
    name = os.getenv("DB_NAME")
    host = os.getenv("DB_HOST")
    port = os.getenv("DB_PORT")
    if host and user and pwd and name:
        return URL.create(
            drivername="postgresql+psycopg2",
            username=user,
            password=pwd,
            host=host,
            port=int(port) if port else None,
            database=name,
        )

    return None


def create_engine_from_env() -> Optional[Engine]:
    url = _sqlalchemy_url()
    if url is None:
        logger.warning("No database configured (set DATABASE_URL or DB_*); registrations cannot be stored")
        return None
    try:
        eng = create_engine(url, pool_pre_ping=True, pool_recycle=1800, future=True)
    except Exception:
        logger.exception("Invalid database configuration")
        return None

    # A failed probe still returns the engine; pool_pre_ping reconnects later.
    try:
        with eng.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database not reachable at startup")
    return eng


# ───────────────────────────────────────────────────────────────
# Store
# ───────────────────────────────────────────────────────────────
class RegistrationStore:
    def __init__(self, engine: Optional[Engine], create_schema: bool = False):
        self.engine = engine
        self.create_schema = create_schema
        self._schema_ready = False

    @classmethod
    def from_env(cls, create_schema: bool = False) -> "RegistrationStore":
        store = cls(create_engine_from_env(), create_schema=create_schema)
        if create_schema:
            try:
                store.ensure_schema()
            except Exception:
                logger.exception("Could not create registrations table; retrying on first insert")
        return store

    @property
    def available(self) -> bool:
        return self.engine is not None

    def ensure_schema(self) -> None:
        if self.engine is None:
            return
        metadata.create_all(self.engine, checkfirst=True)
        self._schema_ready = True

    def create(self, record: Mapping[str, Any]) -> int:
        if self.engine is None:
            raise DatabaseUnavailable()
        if self.create_schema and not self._schema_ready:
            self.ensure_schema()

        values = {field: record.get(field) for field in RECORD_FIELDS}
        values["created_at"] = datetime.now(timezone.utc)

        with self.engine.begin() as conn:
            result = conn.execute(registrations.insert().values(**values))
            insert_id = result.inserted_primary_key[0]

        logger.info("Registration %s stored for %s", insert_id, values["email"])
        return insert_id

    def list_all(self) -> List[Dict[str, Any]]:
        if self.engine is None:
            return []
        with self.engine.connect() as conn:
            rows = conn.execute(select(registrations)).mappings().all()
        return [dict(row) for row in rows]
