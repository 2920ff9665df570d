"""
CRUD helpers for projects and their snapshot history.

Projects are upserted by id. Snapshots are insert-only and disappear with
their project (ON DELETE CASCADE).
"""

import logging
import sqlite3
from typing import Optional

from core.codec import decode_list, encode_list
from core.errors import ConflictError, ValidationError
from core.models import Project, ProjectSnapshot, ProjectUpsert, SnapshotCreate
from storage.db import db_conn

logger = logging.getLogger(__name__)


def _row_to_snapshot(row: sqlite3.Row) -> ProjectSnapshot:
    return ProjectSnapshot(
        id=row["id"],
        timestamp=row["timestamp"],
        score=row["score"],
        rank=int(row["rank_position"]),
        page=int(row["page_number"]),
        meta_title=row["meta_title"] or "",
        meta_description=row["meta_description"] or "",
        h1_tag=row["h1_tag"] or "",
        alt_texts=decode_list(row["alt_texts"], "alt_texts"),
        top_keywords=decode_list(row["top_keywords"], "top_keywords"),
    )


def _row_to_project(row: sqlite3.Row, history: list[ProjectSnapshot]) -> Project:
    return Project(
        id=row["id"],
        url=row["url"],
        name=row["name"],
        country=row["country"],
        type=row["project_type"],
        last_checked=row["last_checked"],
        tracked_keywords=decode_list(row["tracked_keywords"], "tracked_keywords"),
        history=history,
    )


# ── Projects ──────────────────────────────────────────────────────────────────

def upsert_project(project: ProjectUpsert) -> None:
    """Insert or overwrite the mutable fields of a project. History is untouched."""
    with db_conn() as conn:
        conn.execute(
            """
            INSERT INTO projects
                (id, url, name, country, project_type, last_checked, tracked_keywords)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                url              = excluded.url,
                name             = excluded.name,
                country          = excluded.country,
                project_type     = excluded.project_type,
                last_checked     = excluded.last_checked,
                tracked_keywords = excluded.tracked_keywords
            """,
            (
                project.id,
                project.url,
                project.name,
                project.country,
                project.type.value,
                project.last_checked,
                encode_list(project.tracked_keywords),
            ),
        )
    logger.info("Upserted project %s (%s)", project.id, project.url)


def list_projects() -> list[Project]:
    """All projects, most recently checked first, each with its history newest first."""
    with db_conn() as conn:
        project_rows = conn.execute(
            "SELECT * FROM projects ORDER BY last_checked DESC, id"
        ).fetchall()
        snapshot_rows = conn.execute(
            "SELECT * FROM snapshots ORDER BY timestamp DESC, id DESC"
        ).fetchall()

    history: dict[str, list[ProjectSnapshot]] = {}
    for r in snapshot_rows:
        history.setdefault(r["project_id"], []).append(_row_to_snapshot(r))

    return [_row_to_project(r, history.get(r["id"], [])) for r in project_rows]


def get_project(project_id: str) -> Optional[Project]:
    with db_conn() as conn:
        row = conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
        if not row:
            return None
        snaps = conn.execute(
            "SELECT * FROM snapshots WHERE project_id = ? ORDER BY timestamp DESC, id DESC",
            (project_id,),
        ).fetchall()
    return _row_to_project(row, [_row_to_snapshot(s) for s in snaps])


def delete_project(project_id: str) -> bool:
    """Delete a project and, by cascade, its snapshots. Returns False if it did not exist."""
    with db_conn() as conn:
        cur = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        deleted = cur.rowcount > 0
    if deleted:
        logger.info("Deleted project %s", project_id)
    else:
        logger.debug("Delete of unknown project %s ignored", project_id)
    return deleted


# ── Snapshots ─────────────────────────────────────────────────────────────────

def insert_snapshot(snapshot: SnapshotCreate) -> None:
    """
    Append a snapshot to its project.

    Raises:
        ConflictError   if the snapshot id already exists
        ValidationError if the owning project does not exist
    """
    try:
        with db_conn() as conn:
            conn.execute(
                """
                INSERT INTO snapshots
                    (id, project_id, timestamp, score, rank_position, page_number,
                     meta_title, meta_description, h1_tag, alt_texts, top_keywords)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    snapshot.id,
                    snapshot.project_id,
                    snapshot.timestamp,
                    snapshot.score,
                    snapshot.rank,
                    snapshot.page,
                    snapshot.meta_title,
                    snapshot.meta_description,
                    snapshot.h1_tag,
                    encode_list(snapshot.alt_texts),
                    encode_list(snapshot.top_keywords),
                ),
            )
    except sqlite3.IntegrityError as exc:
        message = str(exc)
        if "FOREIGN KEY" in message:
            raise ValidationError(f"Unknown project {snapshot.project_id!r}") from exc
        if "UNIQUE" not in message:
            raise ValidationError(f"Snapshot {snapshot.id!r} rejected: {message}") from exc
        logger.warning("Rejected duplicate snapshot %s", snapshot.id)
        raise ConflictError(f"Snapshot {snapshot.id!r} already exists") from exc

    logger.debug(
        "Saved snapshot %s for project %s (score=%d, rank=%d)",
        snapshot.id, snapshot.project_id, snapshot.score, snapshot.rank,
    )


def count_snapshots(project_id: Optional[str] = None) -> int:
    with db_conn() as conn:
        if project_id is None:
            row = conn.execute("SELECT COUNT(*) FROM snapshots").fetchone()
        else:
            row = conn.execute(
                "SELECT COUNT(*) FROM snapshots WHERE project_id = ?", (project_id,)
            ).fetchone()
    return row[0]
