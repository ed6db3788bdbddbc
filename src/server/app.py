from __future__ import annotations
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Set

from fastapi import BackgroundTasks, FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel

from catalog_import import catalog_client as cc
from catalog_import.detect import PLATFORM_LABELS
from catalog_import.importer import import_records, preview_records, summarize_result
from catalog_import.io import CsvStructureError
from catalog_import.transform import transform
from . import db
from . import settings as app_settings


logger = logging.getLogger(__name__)

ROOT = Path(os.getenv("CATALOG_IMPORT_DATA_DIR") or Path(__file__).resolve().parents[2])
UPLOADS = ROOT / "uploads"
UPLOADS.mkdir(parents=True, exist_ok=True)

app = FastAPI(title="Catalog CSV Import API", version="0.1.0")
db.init_db(ROOT / "data" / "app.sqlite3")
app_settings.init_settings(ROOT / "data" / "settings.json")


class JobStatus(str):
    queued = "queued"
    running = "running"
    succeeded = "succeeded"
    failed = "failed"
    cancelled = "cancelled"


class Job(BaseModel):
    id: str
    kind: str
    status: str
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    params: Dict
    error: Optional[str] = None
    message: Optional[str] = None
    counters: Dict = {}


JOBS: Dict[str, Job] = {}
CANCEL_REQUESTED: Set[str] = set()


class FileInfo(BaseModel):
    id: str
    name: str
    path: str
    size: int
    platform: str
    records: int
    created_at: datetime


class UploadPreview(BaseModel):
    file: FileInfo
    platform_label: str
    preview: List[Dict]
    more: int


class ImportRequest(BaseModel):
    file_id: str
    platform: Optional[str] = None


class SettingsUpdate(BaseModel):
    catalog_api_base: Optional[str] = None
    catalog_api_token: Optional[str] = None
    catalog_api_timeout: Optional[float] = None
    product_type: Optional[str] = None
    request_delay: Optional[float] = None
    preview_limit: Optional[int] = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _get_catalog_cfg() -> cc.CatalogConfig:
    s = app_settings.get_settings()
    base_url = (s.get("catalog_api_base") or "").strip()
    if not base_url:
        raise HTTPException(400, "Catalog API base URL is not configured. Set it under /settings.")
    return cc.CatalogConfig(
        base_url=base_url,
        token=(s.get("catalog_api_token") or "").strip(),
        timeout=float(s.get("catalog_api_timeout") or 30),
    )


def _persist(job: Job) -> None:
    try:
        db.save_job(job.model_dump(mode="json"))
    except Exception:
        logger.exception("could not persist job %s", job.id)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/files", response_model=UploadPreview)
async def upload_file(file: UploadFile = File(...)):
    file_id = uuid.uuid4().hex
    dest = UPLOADS / f"{file_id}.csv"
    content = await file.read()
    dest.write_bytes(content)
    try:
        parsed = transform(dest)
    except CsvStructureError as e:
        dest.unlink(missing_ok=True)
        raise HTTPException(400, str(e))
    except UnicodeDecodeError:
        dest.unlink(missing_ok=True)
        raise HTTPException(400, "CSV must be UTF-8 encoded")
    info = FileInfo(
        id=file_id,
        name=file.filename or dest.name,
        path=str(dest),
        size=len(content),
        platform=parsed.platform,
        records=len(parsed.records),
        created_at=_now(),
    )
    db.add_file(info.model_dump(mode="json"))
    limit = int(app_settings.get_settings().get("preview_limit") or 6)
    rows, more = preview_records(parsed.records, limit=limit)
    return UploadPreview(file=info, platform_label=PLATFORM_LABELS[parsed.platform], preview=rows, more=more)


@app.get("/files", response_model=List[FileInfo])
def list_files() -> List[FileInfo]:
    return [FileInfo(**f) for f in db.list_files()]


@app.post("/jobs/import", response_model=Job)
def create_import_job(req: ImportRequest, bg: BackgroundTasks):
    f = db.get_file(req.file_id)
    if not f:
        raise HTTPException(404, "file_id not found")
    if req.platform and req.platform not in PLATFORM_LABELS:
        raise HTTPException(400, f"unknown platform: {req.platform}")
    cfg = _get_catalog_cfg()
    s = app_settings.get_settings()
    job_id = uuid.uuid4().hex
    job = Job(
        id=job_id,
        kind="import",
        status=JobStatus.queued,
        created_at=_now(),
        params=req.model_dump(),
    )
    JOBS[job_id] = job
    _persist(job)

    def run():
        j = JOBS[job_id]
        j.status = JobStatus.running
        j.started_at = _now()
        try:
            parsed = transform(Path(f["path"]), platform=req.platform)
            total = len(parsed.records)
            j.counters = {"done": 0, "failed": 0, "total": total}

            def on_progress(done: int, failed: int) -> None:
                j.counters = {"done": done, "failed": failed, "total": total}

            session = cc.build_session(cfg)
            result = import_records(
                session,
                cfg,
                parsed.records,
                on_progress=on_progress,
                product_type=s.get("product_type") or "physical",
                should_stop=lambda: job_id in CANCEL_REQUESTED,
                delay=float(s.get("request_delay") or 0),
            )
            j.counters = {"done": result.done, "imported": result.imported, "failed": result.failed, "total": total}
            _level, j.message = summarize_result(result)
            if result.cancelled:
                j.status = JobStatus.cancelled
            else:
                j.status = JobStatus.succeeded
        except Exception as e:
            logger.exception("import job %s failed", job_id)
            j.status = JobStatus.failed
            j.error = str(e)
            j.message = "Import failed unexpectedly. Please try again."
        finally:
            CANCEL_REQUESTED.discard(job_id)
            j.finished_at = _now()
            _persist(j)

    bg.add_task(run)
    return job


@app.get("/jobs", response_model=List[Job])
def list_jobs() -> List[Job]:
    return [JOBS[d["id"]] if d["id"] in JOBS else Job(**_job_fields(d)) for d in db.list_jobs()]


def _job_fields(d: Dict) -> Dict:
    out = dict(d)
    for key in ("started_at", "finished_at"):
        if not out.get(key):
            out[key] = None
    return out


@app.get("/jobs/{job_id}", response_model=Job)
def get_job(job_id: str) -> Job:
    if job_id in JOBS:
        return JOBS[job_id]
    d = db.get_job(job_id)
    if not d:
        raise HTTPException(404, "job not found")
    return Job(**_job_fields(d))


@app.post("/jobs/{job_id}/cancel", response_model=Job)
def cancel_job(job_id: str) -> Job:
    j = JOBS.get(job_id)
    if not j:
        raise HTTPException(404, "job not found")
    if j.status in (JobStatus.queued, JobStatus.running):
        CANCEL_REQUESTED.add(job_id)
    return j


@app.get("/settings")
def read_settings() -> Dict:
    s = app_settings.get_settings()
    if s.get("catalog_api_token"):
        s["catalog_api_token"] = "********"
    return s


@app.post("/settings")
def update_settings(update: SettingsUpdate) -> Dict:
    cur = app_settings.get_settings()
    cur.update({k: v for k, v in update.model_dump().items() if v is not None})
    app_settings.save_settings(cur)
    return read_settings()


@app.post("/settings/test")
def test_catalog_connection():
    """Ping the catalog API with current settings by listing categories."""
    try:
        cfg = _get_catalog_cfg()
        session = cc.build_session(cfg)
        categories = cc.list_categories(session, cfg)
        return {"ok": True, "categories": len(categories)}
    except HTTPException as e:
        return {"ok": False, "error": str(e.detail)}
    except Exception as e:
        return {"ok": False, "error": str(e)}
