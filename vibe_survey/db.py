import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from vibe_survey.config import db_path

logger = logging.getLogger(__name__)

DB_PATH = db_path()


class StorageError(RuntimeError):
    """A read or write against the document store failed."""


@contextmanager
def conn():
    try:
        c = sqlite3.connect(DB_PATH)
    except sqlite3.Error as e:
        raise StorageError(f"Could not open database {DB_PATH}: {e}") from e
    c.row_factory = sqlite3.Row
    try:
        yield c
        c.commit()
    except sqlite3.Error as e:
        c.rollback()
        raise StorageError(str(e)) from e
    finally:
        c.close()


def now_iso():
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def init_db():
    with conn() as c:
        c.executescript(
            '''
            CREATE TABLE IF NOT EXISTS users (
                user_id TEXT PRIMARY KEY,
                email TEXT,
                display_name TEXT,
                created_at TEXT,
                last_login_at TEXT
            );

            -- One row per document; data_json holds the document body.
            CREATE TABLE IF NOT EXISTS documents (
                collection TEXT NOT NULL,
                doc_id TEXT NOT NULL,
                owner_id TEXT,
                data_json TEXT NOT NULL,
                created_at TEXT,
                updated_at TEXT,
                PRIMARY KEY (collection, doc_id)
            );

            CREATE INDEX IF NOT EXISTS idx_documents_owner ON documents(collection, owner_id);
            '''
        )


# -------------------- USERS --------------------
def upsert_user(user_id: str, email: str, display_name: str = ""):
    ts = now_iso()
    with conn() as c:
        c.execute(
            '''
            INSERT INTO users (user_id, email, display_name, created_at, last_login_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                email=excluded.email,
                display_name=excluded.display_name,
                last_login_at=excluded.last_login_at
            ''',
            (user_id, email, display_name, ts, ts),
        )


def get_user(user_id: str) -> Optional[sqlite3.Row]:
    with conn() as c:
        return c.execute("SELECT * FROM users WHERE user_id=?", (user_id,)).fetchone()


# -------------------- DOCUMENTS --------------------
def _dumps(data: Dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=False)


def create_document(collection: str, data: Dict[str, Any]) -> str:
    doc_id = uuid.uuid4().hex
    ts = now_iso()
    with conn() as c:
        c.execute(
            '''
            INSERT INTO documents (collection, doc_id, owner_id, data_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ''',
            (collection, doc_id, data.get("userId"), _dumps(data), ts, ts),
        )
    logger.debug("Created %s/%s", collection, doc_id)
    return doc_id


def get_document(collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    with conn() as c:
        row = c.execute(
            "SELECT data_json FROM documents WHERE collection=? AND doc_id=?",
            (collection, doc_id),
        ).fetchone()
    return json.loads(row["data_json"]) if row else None


def update_document(collection: str, doc_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow merge: top-level keys in `partial` replace the stored ones,
    everything else is kept. Raises KeyError if the document doesn't exist.
    """
    with conn() as c:
        row = c.execute(
            "SELECT data_json FROM documents WHERE collection=? AND doc_id=?",
            (collection, doc_id),
        ).fetchone()
        if row is None:
            raise KeyError(f"update_document: {collection}/{doc_id} not found")

        data = json.loads(row["data_json"])
        data.update(partial)
        c.execute(
            '''
            UPDATE documents SET data_json=?, owner_id=?, updated_at=?
            WHERE collection=? AND doc_id=?
            ''',
            (_dumps(data), data.get("userId"), now_iso(), collection, doc_id),
        )
    logger.debug("Updated %s/%s (%d fields)", collection, doc_id, len(partial))
    return data


def query_documents(collection: str, **filters: Any) -> List[Tuple[str, Dict[str, Any]]]:
    """Equality filter on top-level fields. Newest-updated first."""
    with conn() as c:
        if set(filters) == {"userId"}:
            rows = c.execute(
                '''
                SELECT doc_id, data_json FROM documents
                WHERE collection=? AND owner_id=?
                ORDER BY updated_at DESC, rowid DESC
                ''',
                (collection, filters["userId"]),
            ).fetchall()
        else:
            rows = c.execute(
                '''
                SELECT doc_id, data_json FROM documents
                WHERE collection=?
                ORDER BY updated_at DESC, rowid DESC
                ''',
                (collection,),
            ).fetchall()

    out = []
    for r in rows:
        data = json.loads(r["data_json"])
        if all(data.get(k) == v for k, v in filters.items()):
            out.append((r["doc_id"], data))
    return out
