# db.py
import logging

from flask import current_app
from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
    event,
)

log = logging.getLogger("app")

metadata = MetaData()

team_table = Table(
    "team",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("acronym", String(255)),
    Column("budget", Numeric(19, 2)),
    sqlite_autoincrement=True,
)

player_table = Table(
    "player",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("position", String(20), nullable=False),
    Column(
        "team_id",
        Integer,
        ForeignKey("team.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    # replaced players must come back with ids never used before
    sqlite_autoincrement=True,
)


def _unicode_lower(value):
    return value.lower() if value is not None else None


def _configure_sqlite_connection(dbapi_conn, _record):
    # SQLite ignores ON DELETE CASCADE unless asked per connection
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # built-in lower() only folds ASCII; name filters must match "Évian" with "évian"
    dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


def normalize_database_url(db_url: str, connect_timeout_s: int) -> str:
    # SAFETY NET: force PyMySQL if someone pasted mysql://
    if db_url.startswith("mysql://"):
        db_url = "mysql+pymysql://" + db_url[len("mysql://"):]
        log.info("Normalized DATABASE_URL to PyMySQL")

    if db_url.startswith("mysql"):
        if "charset=" not in db_url:
            sep = "&" if "?" in db_url else "?"
            db_url = f"{db_url}{sep}charset=utf8mb4"
        if "connect_timeout=" not in db_url:
            sep = "&" if "?" in db_url else "?"
            db_url = f"{db_url}{sep}connect_timeout={connect_timeout_s}"
    return db_url


def build_engine(config):
    """
    Build the pooled engine for the configured DATABASE_URL.

    MySQL gets a per-session statement timeout so a stuck query aborts
    (and its transaction rolls back) instead of holding a worker forever.
    SQLite is only meant for dev/test and gets foreign keys switched on
    and a Unicode-aware lower().
    """
    db_url = config.get("DATABASE_URL")
    if not db_url:
        log.warning("DATABASE_URL missing at runtime")
        return None

    db_url = normalize_database_url(db_url, config["DB_CONNECT_TIMEOUT_S"])

    if db_url.startswith("sqlite"):
        engine = create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            future=True,
        )
        event.listen(engine, "connect", _configure_sqlite_connection)
        return engine

    connect_args = {}
    if db_url.startswith("mysql"):
        connect_args = {
            "init_command": f"SET SESSION MAX_EXECUTION_TIME={config['DB_STATEMENT_TIMEOUT_MS']}",
        }

    return create_engine(
        db_url,
        pool_size=config["DB_POOL_SIZE"],
        max_overflow=config["DB_MAX_OVERFLOW"],
        pool_recycle=config["DB_POOL_RECYCLE_S"],
        pool_pre_ping=True,
        connect_args=connect_args,
        future=True,
    )


def init_schema(engine):
    """Create the team/player tables if they do not exist yet."""
    metadata.create_all(engine)
    log.info("schema_ready tables=%s", sorted(metadata.tables))


def get_engine():
    engine = current_app.extensions.get("sqlalchemy_engine")
    if engine is None:
        raise RuntimeError("DATABASE_URL is not set")
    return engine
