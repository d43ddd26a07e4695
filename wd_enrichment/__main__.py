"""Run the enrichment service with uvicorn."""

# Python imports
import logging

# 3rd party imports
import uvicorn

# Local imports
from wd_enrichment.app import create_app
from wd_enrichment.config import EnrichmentSettings


def main():
    settings = EnrichmentSettings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
