"""FastAPI application - REST API + HTML page for the grant CSV importer."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from grant_importer.core.config import Settings
from grant_importer.core.db_factory import create_database
from grant_importer.core.models import ImportLimit
from grant_importer.core.repository import GrantRepository
from grant_importer.errors import StagingExpiredError, UploadError, ValidationError
from grant_importer.staging import CATEGORY, StagingStore
from grant_importer.workflow import ImportWorkflow

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def create_app(
    repository: GrantRepository | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    settings = settings or Settings()
    db = repository or create_database(settings)
    workflow = ImportWorkflow(db, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await db.connect()
        yield
        await db.close()

    app = FastAPI(title="Grant CSV Importer", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.workflow = workflow
    # Single admin tool: one staging store for the process, last write wins
    app.state.staging = StagingStore(settings.staging_ttl_seconds)

    def _staging(request: Request) -> StagingStore:
        return request.app.state.staging

    def _status(staging: StagingStore) -> dict:
        batch = workflow.staged_batch(staging)
        return {
            "filename": batch.filename if batch else None,
            "category": staging.get(CATEGORY),
            "row_count": batch.row_count if batch else 0,
            "malformed_lines": batch.malformed_lines if batch else [],
            "preview": [r.model_dump(mode="json") for r in workflow.preview(staging)],
        }

    # =====================================================================
    # HTML Page Routes
    # =====================================================================

    @app.get("/import", response_class=HTMLResponse)
    async def page_import(request: Request):
        staging = _staging(request)
        categories = await db.list_categories()
        results = workflow.pop_results(staging)
        return templates.TemplateResponse(request, "import.html", {
            "categories": categories,
            "status": _status(staging),
            "results": results,
            "limits": [limit.value for limit in ImportLimit],
        })

    # =====================================================================
    # API: Categories
    # =====================================================================

    @app.get("/api/categories")
    async def api_categories():
        categories = await db.list_categories()
        return {"items": [c.model_dump(mode="json") for c in categories]}

    # =====================================================================
    # API: Import
    # =====================================================================

    @app.post("/api/import/upload")
    async def api_import_upload(
        request: Request,
        file: UploadFile = File(...),
        category: str = Form(""),
    ):
        content = await file.read()
        staging = _staging(request)
        try:
            result = workflow.upload(staging, file.filename or "", content, category)
        except (UploadError, ValidationError) as e:
            logger.info("Upload of %s rejected: %s", file.filename, e)
            raise HTTPException(status_code=400, detail=str(e))
        return {
            **result.model_dump(mode="json"),
            "preview": [r.model_dump(mode="json") for r in workflow.preview(staging)],
        }

    @app.post("/api/import/execute")
    async def api_import_execute(request: Request, limit: ImportLimit = Form(...)):
        staging = _staging(request)
        try:
            summary = await workflow.execute(staging, limit)
        except StagingExpiredError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except Exception as e:
            logger.exception("Import of staged batch failed")
            raise HTTPException(status_code=500, detail=str(e))
        return {
            "summary": summary.model_dump(mode="json"),
            "batch_cleared": workflow.staged_batch(staging) is None,
        }

    @app.post("/api/import/clear")
    async def api_import_clear(request: Request):
        return {"message": workflow.clear(_staging(request))}

    @app.get("/api/import/status")
    async def api_import_status(request: Request):
        staging = _staging(request)
        return {
            **_status(staging),
            "has_results": workflow.has_results(staging),
        }

    @app.get("/api/import/results")
    async def api_import_results(request: Request):
        summary = workflow.pop_results(_staging(request))
        if summary is None:
            raise HTTPException(status_code=404, detail="No import results available")
        return summary.model_dump(mode="json")

    return app


app = create_app()
