from fastapi import FastAPI

from invitecrawl.api.routers import create_crawler_router, create_systems_router


def create_app(container) -> FastAPI:
    """Build the FastAPI control surface from a wired Container."""
    app = FastAPI(title="InviteCrawl", description="Focused crawler for group invite links")

    crawl_engine = container.crawl_engine()
    app.include_router(
        create_crawler_router(
            crawl_engine=crawl_engine,
            config_service=container.config_service(),
            result_store=container.result_store(),
        )
    )
    app.include_router(create_systems_router(container.config(), crawl_engine=crawl_engine))
    return app
