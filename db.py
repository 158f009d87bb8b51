from contextlib import contextmanager
from pathlib import Path
import os
import sys
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

def app_root_dir() -> Path:
    if getattr(sys, "frozen", False):
        exe_dir = Path(sys.executable).resolve().parent
        return exe_dir.parent
    return Path(__file__).resolve().parent

def resolve_db_path(root_dir: Path) -> Path:
    custom_path = os.getenv("APP_DB_PATH")
    if not custom_path:
        data_dir = root_dir / "data"
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / "inventory.db"

    db_path = Path(custom_path).expanduser()
    if not db_path.is_absolute():
        db_path = (root_dir / db_path).resolve()

    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path

def resolve_database_url(root_dir: Path) -> str:
    url = os.getenv("APP_DATABASE_URL")
    if url:
        return url
    return f"sqlite:///{resolve_db_path(root_dir).as_posix()}"

ROOT_DIR = app_root_dir()
DATABASE_URL = resolve_database_url(ROOT_DIR)
IS_SQLITE = DATABASE_URL.startswith("sqlite")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if IS_SQLITE else {},
)

if IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_fks(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON;")
        cur.close()

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

class Base(DeclarativeBase):
    pass


def persist(db: Session, *, commit: bool) -> None:
    if commit:
        db.commit()
    else:
        db.flush()


@contextmanager
def atomic(db: Session, *, commit: bool = True) -> Iterator[Session]:
    """Run a multi-row write as one unit.

    On success the work is committed (or only flushed when ``commit=False``,
    leaving the transaction to the caller). Any exception rolls the whole
    session back before propagating, so a rejected operation never leaves
    half of its rows behind.
    """
    try:
        yield db
        persist(db, commit=commit)
    except Exception:
        db.rollback()
        raise
