"""FastAPI server exposing translations and download jobs."""

import json
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from bible_scraper.config import load_config
from bible_scraper.errors import (AlreadyTerminal, InvalidOption, JobNotFound,
                                  LegalAgreementRequired, UnknownTranslation)
from bible_scraper.jobs import DownloadService
from bible_scraper.logger import setup_logger
from bible_scraper.translations import (LEGAL_DISCLAIMER, get_translation, list_translations,
                                        translations_by_language)

load_dotenv()


class StartRequest(BaseModel):
    translation_id: str
    mode: str = "fetch-and-assemble-text"
    speed: Optional[str] = None
    legal_agreement: bool = False


def _summary(translation) -> dict:
    return {
        "id": translation.code,
        "full_name": translation.full_name,
        "short_name": translation.short_name,
        "language": translation.language_name,
        "license": translation.license,
        "is_public_domain": translation.is_public_domain,
        "source": translation.source,
        "comment": translation.comment,
    }


def create_app(service: Optional[DownloadService] = None) -> FastAPI:
    if service is None:
        config = load_config(os.environ.get("BIBLE_SCRAPER_CONFIG", "config.yaml"))
        setup_logger(config.log_dir, config.log_level)
        service = DownloadService(config)

    app = FastAPI(
        title="Bible Downloader API",
        version="0.1.0",
        description="Download Bible translations chapter by chapter and convert them "
                    "to .bible and JSON files.",
    )
    app.state.service = service

    # --- Rate limiting ---
    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return Response(
            content=json.dumps({"error": "Rate limit exceeded. Please slow down."}),
            status_code=429,
            media_type="application/json",
        )

    # --- CORS ---
    default_origins = "http://localhost:3000,http://127.0.0.1:3000"
    cors_origins = os.environ.get("CORS_ORIGINS", default_origins).split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cors_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Routes ---

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "service": "bible-downloader", "jobs": len(service.store)}

    @app.get("/api/translations")
    async def translations(public_domain_only: bool = False):
        items = [_summary(t) for t in list_translations(public_domain_only)]
        return {
            "translations": items,
            "total": len(items),
            "public_domain": sum(1 for t in items if t["is_public_domain"]),
        }

    @app.get("/api/translations/language/{lang}")
    async def translations_for_language(lang: str):
        items = [_summary(t) for t in translations_by_language(lang)]
        return {"language": lang.lower(), "translations": items, "count": len(items)}

    @app.get("/api/translations/{translation_id}")
    async def translation_detail(translation_id: str):
        translation = get_translation(translation_id)
        if translation is None:
            raise HTTPException(status_code=404, detail="Translation not found")
        return translation.to_dict()

    @app.get("/api/legal/disclaimer")
    async def disclaimer(language: str = Query("english")):
        notice = LEGAL_DISCLAIMER.get(language, LEGAL_DISCLAIMER["english"])
        return {"language": language, "title": notice["title"], "content": notice["content"]}

    @app.post("/api/downloads/start")
    @limiter.limit("20/minute")
    async def start_download(request: Request, req: StartRequest):
        """Start a download job in the background and return its id."""
        try:
            job_id = service.create_job(req.translation_id, req.mode, req.speed,
                                        legal_agreement=req.legal_agreement)
        except UnknownTranslation:
            raise HTTPException(status_code=404, detail="Translation not found")
        except LegalAgreementRequired:
            raise HTTPException(status_code=400,
                                detail="Legal agreement required for copyrighted material")
        except InvalidOption as e:
            raise HTTPException(status_code=400, detail=str(e))

        job = service.get_job(job_id)
        return {
            "download_id": job_id,
            "translation_id": job.translation.code,
            "mode": job.mode.value,
            "speed": job.speed.value,
            "status": "started",
        }

    @app.get("/api/downloads/progress/{download_id}")
    async def download_progress(download_id: str):
        try:
            job = service.get_job(download_id)
        except JobNotFound:
            raise HTTPException(status_code=404, detail="Download not found")
        return job.to_dict()

    @app.post("/api/downloads/cancel/{download_id}")
    async def cancel_download(download_id: str):
        try:
            service.cancel(download_id)
        except JobNotFound:
            raise HTTPException(status_code=404, detail="Download not found")
        except AlreadyTerminal as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {"download_id": download_id, "status": service.get_progress(download_id).status.value}

    @app.get("/api/downloads/active")
    async def active_downloads():
        jobs = [job.to_dict() for job in service.list_jobs()]
        return {"downloads": jobs, "count": len(jobs)}

    @app.post("/api/downloads/cleanup")
    async def cleanup_downloads():
        removed = service.cleanup()
        return {"cleaned": removed, "remaining": len(service.store)}

    return app


app = create_app()
