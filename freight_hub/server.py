import logging

import uvicorn

from freight_hub.core.config import settings


def main() -> None:
    """Run the hub with uvicorn."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info(
        "freight hub on port %d (docs: /api/docs, health: /health, exchange: %s)",
        settings.port,
        settings.timocom_base_url,
    )
    uvicorn.run("freight_hub.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
