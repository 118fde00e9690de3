import logging
from typing import Optional

import uvicorn

from invitecrawl.api.server import create_app
from invitecrawl.container import Container
from invitecrawl.exceptions import ConfigNotFoundError, CrawlValidationError

logger = logging.getLogger(__name__)


def import_profile(container: Container, profile_path: Optional[str]) -> bool:
    """Apply the startup crawl profile, if one is configured."""
    if not profile_path:
        return False
    try:
        profile = container.profile_loader().load(profile_path)
    except (ConfigNotFoundError, CrawlValidationError) as e:
        logger.warning("Could not import crawl profile %s: %s", profile_path, e)
        return False
    container.config_service().apply_profile(profile)
    logger.info("Imported crawl profile %s from %s", profile.name, profile_path)
    return True


def main(container: Optional[Container] = None):
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if container is None:
        container = Container()

    import_profile(container, container.config.INVITECRAWL_PROFILE())

    app = create_app(container)
    host = container.config.INVITECRAWL_HOST()
    port = int(container.config.INVITECRAWL_PORT())
    logger.info("Control server listening on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == '__main__':
    main()
