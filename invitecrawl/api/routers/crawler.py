import logging
from typing import Optional

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel

from invitecrawl.exceptions import CrawlValidationError
from invitecrawl.services.config_service import ConfigService
from invitecrawl.services.crawl_engine import CrawlEngine
from invitecrawl.services.result_store import ResultStore
from invitecrawl.utils.urls import is_valid_url

logger = logging.getLogger(__name__)


class UrlRequest(BaseModel):
    url: str


def _control_response(result):
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return {"success": True, "message": result.message}


def create_crawler_router(crawl_engine: CrawlEngine, config_service: ConfigService, result_store: ResultStore):
    router = APIRouter(prefix="/crawler", tags=["Crawler"])

    @router.post("/start")
    def start():
        """Start a full crawl of the stored seed URLs."""
        try:
            urls = config_service.get_seed_urls()
        except Exception:
            logger.exception("Could not load seed URLs")
            raise HTTPException(status_code=500, detail="could not load seed URLs")
        return _control_response(crawl_engine.start(urls))

    @router.post("/stop")
    def stop():
        return _control_response(crawl_engine.stop())

    @router.post("/crawl-url")
    def crawl_url(req: UrlRequest):
        """Crawl one URL without following its links."""
        if not is_valid_url(req.url):
            raise HTTPException(status_code=400, detail="Invalid URL format")
        return _control_response(crawl_engine.crawl_single(req.url.strip()))

    @router.get("/status")
    def status():
        return crawl_engine.status().to_dict()

    @router.get("/config")
    def get_config():
        return config_service.get_config().to_dict()

    @router.post("/config")
    def save_config(payload: dict = Body(...)):
        try:
            settings = config_service.save_config(payload)
        except CrawlValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception:
            logger.exception("Could not save crawl settings")
            raise HTTPException(status_code=500, detail="could not save settings")
        return settings.to_dict()

    @router.get("/urls")
    def get_urls():
        return {"urls": config_service.get_seed_urls()}

    @router.post("/urls")
    def add_url(req: UrlRequest):
        try:
            urls = config_service.add_seed_url(req.url)
        except CrawlValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"success": True, "urls": urls}

    @router.delete("/urls")
    def remove_url(req: UrlRequest):
        if not config_service.remove_seed_url(req.url):
            raise HTTPException(status_code=404, detail="url not found")
        return {"success": True, "urls": config_service.get_seed_urls()}

    @router.get("/results")
    def results(bucket: Optional[str] = None):
        """Stored invite links grouped by domain bucket."""
        if bucket:
            found = result_store.get_bucket(bucket)
            if found is None:
                raise HTTPException(status_code=404, detail="bucket not found")
            buckets = [found]
        else:
            buckets = result_store.list_buckets()
        return [
            {"bucket": b.bucket, "matches": [m.to_dict() for m in b.matches]}
            for b in buckets
        ]

    return router
