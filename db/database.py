import json
import sqlite3
import zipfile
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path

import structlog

import config
from .schema import SCHEMA_SQL, STREAK_SCHEMA_SQL, INDEXES_SQL, SCHEMA_VERSION

CONFIG_DIR = Path.home() / ".hanzifive"
DB_PATH = CONFIG_DIR / "hanzifive.db"
DB_TIMEOUT_SECONDS = 10.0

logger = structlog.get_logger(__name__)


def backup_dir() -> Path:
    return CONFIG_DIR / "backups"


def init_db():
    """Initialize the database by creating tables and indexes if they don't exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with get_conn() as conn:
        conn.executescript(SCHEMA_SQL)
        conn.executescript(STREAK_SCHEMA_SQL)
        conn.executescript(INDEXES_SQL)
        ensure_deck_description(conn)
        ensure_timestamp_columns(conn)
        ensure_session_study_mode(conn)
        ensure_schema_version(conn)
        conn.commit()
    logger.info("database_initialized", path=str(DB_PATH), schema_version=SCHEMA_VERSION)
    run_daily_backup()


def _columns(conn: sqlite3.Connection, table: str) -> set:
    cursor = conn.cursor()
    cursor.execute(f"PRAGMA table_info({table})")
    return {row[1] for row in cursor.fetchall()}


def ensure_deck_description(conn: sqlite3.Connection) -> None:
    """Ensure decks table has the optional description column for existing installs."""
    if "description" not in _columns(conn, "decks"):
        conn.execute("ALTER TABLE decks ADD COLUMN description TEXT")


def ensure_timestamp_columns(conn: sqlite3.Connection) -> None:
    """Ensure created/updated timestamps exist and are filled on older rows."""
    wanted = {
        "flashcards": ("created_at", "updated_at"),
        "decks": ("created_at", "updated_at"),
        "tags": ("created_at",),
    }
    for table, names in wanted.items():
        columns = _columns(conn, table)
        for name in names:
            if name not in columns:
                # SQLite refuses non-constant defaults in ALTER TABLE
                conn.execute(f"ALTER TABLE {table} ADD COLUMN {name} TEXT")
            conn.execute(f"UPDATE {table} SET {name} = datetime('now') WHERE {name} IS NULL")


def ensure_session_study_mode(conn: sqlite3.Connection) -> None:
    """Ensure study_sessions table has study_mode column."""
    if "study_mode" not in _columns(conn, "study_sessions"):
        conn.execute(
            "ALTER TABLE study_sessions ADD COLUMN study_mode TEXT NOT NULL DEFAULT 'normal'"
        )


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Read the SQLite schema version from PRAGMA user_version."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA user_version")
    row = cursor.fetchone()
    return int(row[0]) if row else 0


def set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    conn.execute(f"PRAGMA user_version = {int(version)}")


def ensure_schema_version(conn: sqlite3.Connection) -> None:
    current = get_schema_version(conn)
    if current != SCHEMA_VERSION:
        logger.info("schema_version_updated", previous=current, current=SCHEMA_VERSION)
        set_schema_version(conn, SCHEMA_VERSION)


def get_schema_version_from_db() -> int:
    """Get the schema version from the on-disk database."""
    if not DB_PATH.exists():
        return SCHEMA_VERSION
    with get_conn() as conn:
        return get_schema_version(conn)


def build_backup_manifest(schema_version: int) -> dict:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "schema_version": schema_version,
    }


def create_backup_archive_file(destination: Path, schema_version: int) -> None:
    """Write a zip with the database, the config and a manifest to destination."""
    if not DB_PATH.exists():
        raise FileNotFoundError("hanzifive.db not found")
    if not config.CONFIG_PATH.exists():
        raise FileNotFoundError("config.toml not found")
    manifest = build_backup_manifest(schema_version)
    destination.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as zipf:
        zipf.writestr("manifest.json", json.dumps(manifest, indent=2))
        zipf.write(DB_PATH, arcname="hanzifive.db")
        zipf.write(config.CONFIG_PATH, arcname="config.toml")


def run_daily_backup() -> None:
    """Create a daily rolling backup of the DB/config and prune old archives."""
    if not DB_PATH.exists() or not config.CONFIG_PATH.exists():
        return
    target_dir = backup_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    today = date.today()
    existing = sorted(target_dir.glob("*.zip"), key=lambda path: path.stat().st_mtime, reverse=True)
    if existing:
        latest_date = date.fromtimestamp(existing[0].stat().st_mtime)
        if latest_date == today:
            return
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    backup_path = target_dir / f"backup-{timestamp}.zip"
    create_backup_archive_file(backup_path, get_schema_version_from_db())
    logger.info("backup_created", path=str(backup_path))
    keep = config.get_config_value("backup", "keep", config.DEFAULT_BACKUP_KEEP)
    existing = sorted(target_dir.glob("*.zip"), key=lambda path: path.stat().st_mtime, reverse=True)
    for old_backup in existing[keep:]:
        old_backup.unlink(missing_ok=True)
        logger.info("backup_pruned", path=str(old_backup))


def connect() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH, timeout=DB_TIMEOUT_SECONDS, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_conn():
    """Context manager for SQLite connection, using row_factory for dict-like rows."""
    conn = connect()
    try:
        yield conn
    finally:
        conn.close()


def get_db():
    """FastAPI dependency that yields a DB connection and closes it afterwards."""
    with get_conn() as conn:
        yield conn
