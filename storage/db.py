"""
SQLite database setup and connection management.
"""

import sqlite3
import os
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DB_PATH = os.getenv("DB_PATH", "seopro.db")


def set_db_path(path: str) -> None:
    global DB_PATH
    DB_PATH = path


def get_connection() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    # Snapshot cascade on project delete depends on this being on for every connection
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


@contextmanager
def db_conn():
    conn = get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db() -> None:
    """Create all tables if they don't exist."""
    with db_conn() as conn:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS projects (
                id               TEXT    PRIMARY KEY,
                url              TEXT    NOT NULL,
                name             TEXT    NOT NULL,
                country          TEXT    NOT NULL DEFAULT '',
                project_type     TEXT    NOT NULL DEFAULT 'GENERAL'
                                 CHECK(project_type IN ('E-COMMERCE', 'BLOG', 'GENERAL')),
                last_checked     INTEGER NOT NULL DEFAULT 0,
                tracked_keywords TEXT    -- JSON array of strings
            );

            CREATE TABLE IF NOT EXISTS snapshots (
                id               TEXT    PRIMARY KEY,
                project_id       TEXT    NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
                timestamp        INTEGER NOT NULL,
                score            INTEGER NOT NULL CHECK(score BETWEEN 0 AND 100),
                rank_position    INTEGER NOT NULL,
                page_number      INTEGER NOT NULL,
                meta_title       TEXT,
                meta_description TEXT,
                h1_tag           TEXT,
                alt_texts        TEXT,   -- JSON array of strings
                top_keywords     TEXT    -- JSON array of strings
            );

            CREATE INDEX IF NOT EXISTS idx_projects_checked  ON projects(last_checked DESC);
            CREATE INDEX IF NOT EXISTS idx_snapshots_project ON snapshots(project_id, timestamp DESC);
        """)
    logger.info("Database initialised at %s", DB_PATH)
