"""Database infrastructure for the outlets service.

The engine and session factory live on an explicitly constructed
``Database`` object; the application builds one at startup and every
service receives a ``Session`` from it.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Sequence

from sqlalchemy import create_engine, event
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from outlets_core.config import get_settings
from outlets_core.domain.errors import (
    ConflictRolledBackError,
    InternalError,
    OutletsServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def configure_sqlite(engine: Engine) -> None:
    """Enable foreign keys and SAVEPOINT support on a pysqlite engine.

    pysqlite emits its own BEGIN lazily, which breaks nested transactions;
    the driver is switched to autocommit and BEGIN is emitted by SQLAlchemy.
    """

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_db_engine(url: str, **kwargs: Any) -> Engine:
    """Create an engine for the given URL."""
    if url.startswith("sqlite"):
        engine = create_engine(url, **kwargs)
        configure_sqlite(engine)
        return engine

    settings = get_settings()
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=settings.database_pool_recycle_seconds,
        echo=False,
        **kwargs,
    )


class Database:
    """Storage client: one engine plus its session factory."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "Database":
        return cls(create_db_engine(url, **kwargs))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scope that commits on success and rolls back on error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


# =============================================================================
# UNIT OF WORK
# =============================================================================


@contextmanager
def unit_of_work(
    db: Session,
    name: str,
    multi_step: bool = False,
    integrity_message: Optional[str] = None,
) -> Iterator[Session]:
    """Run a block as one atomic unit inside a SAVEPOINT.

    Every exit path either releases the savepoint or rolls it back before
    the failure is re-raised. Domain errors pass through unchanged; store
    connectivity failures become InternalError; any other failure of a
    multi-step unit becomes ConflictRolledBackError.

    Args:
        db: Session the unit runs in.
        name: Name used in logs and errors.
        multi_step: Whether the unit writes more than one row.
        integrity_message: If set, constraint violations are reported as
            ValidationError with this message.
    """
    try:
        with db.begin_nested():
            yield db
    except OutletsServiceError:
        raise
    except IntegrityError as e:
        logger.error("Unit of work %s rolled back", name, exc_info=True)
        if integrity_message:
            raise ValidationError(integrity_message) from e
        if multi_step:
            raise ConflictRolledBackError(name) from e
        raise InternalError(f"{name} failed: {e.orig}") from e
    except (OperationalError, InterfaceError) as e:
        logger.error("Unit of work %s lost the database", name, exc_info=True)
        raise InternalError(f"{name} failed: database unavailable") from e
    except Exception as e:
        logger.error("Unit of work %s rolled back", name, exc_info=True)
        if multi_step:
            raise ConflictRolledBackError(name) from e
        raise InternalError(f"{name} failed") from e


# =============================================================================
# UPSERT
# =============================================================================


def upsert(
    db: Session,
    model: type,
    values: dict[str, Any],
    conflict_columns: Sequence[str],
    update_columns: Sequence[str],
) -> None:
    """Insert a row or merge it into the row sharing its natural key.

    Uses the dialect's native conflict clause so there is no window between
    an existence check and the insert.
    """
    table = model.__table__
    dialect = db.get_bind().dialect.name

    if dialect == "mysql":
        stmt = mysql.insert(table).values(**values)
        stmt = stmt.on_duplicate_key_update(
            {column: stmt.inserted[column] for column in update_columns}
        )
    elif dialect in ("postgresql", "sqlite"):
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(conflict_columns),
            set_={column: stmt.excluded[column] for column in update_columns},
        )
    else:
        raise InternalError(f"Upsert is not supported on dialect '{dialect}'")

    db.execute(stmt)
