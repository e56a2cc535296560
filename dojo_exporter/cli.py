"""
Process entrypoint. Run:

  dojo-exporter --port 8080

or python -m dojo_exporter. Configuration comes from the environment or .env
(DD_URL and DD_TOKEN are required).
"""

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv
from pydantic import ValidationError

from dojo_exporter import __version__
from dojo_exporter.core.config import get_settings
from dojo_exporter.main import create_app

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export DefectDojo vulnerability counts as Prometheus metrics.")
    parser.add_argument("--host", help="Address to listen on (overrides HOST)")
    parser.add_argument("--port", type=int, help="Port to listen on (overrides PORT)")
    parser.add_argument("--version", action="store_true", help="Show DefectDojo Exporter version and exit")
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    logging.getLogger().setLevel(settings.LOG_LEVEL)

    host = args.host or settings.HOST
    port = args.port or settings.PORT
    logger.info("Starting Exporter on %s:%d", host, port)
    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
