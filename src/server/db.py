from __future__ import annotations
import json
import sqlite3
from pathlib import Path
from typing import Dict, List, Optional


DB_PATH: Optional[Path] = None


def init_db(db_path: Path) -> None:
    global DB_PATH
    DB_PATH = db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(str(db_path)) as conn:
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS files (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                path TEXT NOT NULL,
                size INTEGER NOT NULL,
                platform TEXT NOT NULL,
                records INTEGER NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS jobs (
                id TEXT PRIMARY KEY,
                kind TEXT NOT NULL,
                status TEXT NOT NULL,
                created_at TEXT NOT NULL,
                started_at TEXT,
                finished_at TEXT,
                params TEXT NOT NULL,
                error TEXT,
                message TEXT,
                counters TEXT
            )
            """
        )
        conn.commit()


def add_file(info: Dict) -> None:
    assert DB_PATH is not None
    with sqlite3.connect(str(DB_PATH)) as conn:
        cur = conn.cursor()
        cur.execute(
            "INSERT OR REPLACE INTO files(id,name,path,size,platform,records,created_at) VALUES(?,?,?,?,?,?,?)",
            (info["id"], info["name"], info["path"], int(info["size"]), info["platform"], int(info["records"]), str(info["created_at"]))
        )
        conn.commit()


def get_file(file_id: str) -> Optional[Dict]:
    assert DB_PATH is not None
    with sqlite3.connect(str(DB_PATH)) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        cur.execute("SELECT * FROM files WHERE id=?", (file_id,))
        r = cur.fetchone()
    return dict(r) if r else None


def list_files() -> List[Dict]:
    assert DB_PATH is not None
    with sqlite3.connect(str(DB_PATH)) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        cur.execute("SELECT * FROM files ORDER BY created_at DESC")
        rows = [dict(r) for r in cur.fetchall()]
    return rows


def save_job(job: Dict) -> None:
    assert DB_PATH is not None
    with sqlite3.connect(str(DB_PATH)) as conn:
        cur = conn.cursor()
        cur.execute(
            "INSERT OR REPLACE INTO jobs(id,kind,status,created_at,started_at,finished_at,params,error,message,counters) VALUES(?,?,?,?,?,?,?,?,?,?)",
            (
                job.get("id"), job.get("kind"), job.get("status"), str(job.get("created_at")),
                str(job.get("started_at") or ""), str(job.get("finished_at") or ""),
                json.dumps(job.get("params") or {}), job.get("error"), job.get("message"),
                json.dumps(job.get("counters") or {}),
            )
        )
        conn.commit()


def _job_from_row(r: sqlite3.Row) -> Dict:
    d = dict(r)
    for key in ("params", "counters"):
        try:
            d[key] = json.loads(d.get(key) or "{}")
        except ValueError:
            d[key] = {}
    return d


def get_job(job_id: str) -> Optional[Dict]:
    assert DB_PATH is not None
    with sqlite3.connect(str(DB_PATH)) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        cur.execute("SELECT * FROM jobs WHERE id=?", (job_id,))
        r = cur.fetchone()
        if not r:
            return None
        return _job_from_row(r)


def list_jobs() -> List[Dict]:
    assert DB_PATH is not None
    with sqlite3.connect(str(DB_PATH)) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.cursor()
        cur.execute("SELECT * FROM jobs ORDER BY created_at DESC")
        return [_job_from_row(r) for r in cur.fetchall()]
