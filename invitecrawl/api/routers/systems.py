from typing import Optional

from fastapi import APIRouter

from invitecrawl.services.crawl_engine import CrawlEngine


def create_systems_router(container_env: dict, crawl_engine: Optional[CrawlEngine] = None):
    """Create systems router with access to container environment config."""
    router = APIRouter(prefix="/systems", tags=["System"])

    @router.get("/health")
    def health():
        body = {"status": "ok"}
        if crawl_engine is not None:
            body["crawler"] = crawl_engine.state.value
        return body

    @router.get("/config")
    def get_config():
        """Return the effective environment configuration (INVITECRAWL_*, USER_AGENT, HTTP_TIMEOUT)."""
        return {
            "environment": {
                key: str(value) if value is not None else None
                for key, value in sorted(container_env.items())
            }
        }

    return router
