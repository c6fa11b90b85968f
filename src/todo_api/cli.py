"""Command-line entrypoint: connect the store, then serve the API with uvicorn."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import uvicorn

from todo_api.api.main import create_app
from todo_api.config.settings import Settings, get_settings
from todo_api.storage import StorageError, build_storage

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None, settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the todo HTTP API.")
    parser.add_argument(
        "--host",
        type=str,
        default=settings.host,
        help=f"Interface to bind (default: {settings.host}).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to listen on (default: {settings.port}).",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=settings.database_url,
        help="SQLite path/URL or PostgreSQL URL (default: TODO_API_DATABASE_URL).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level}).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()
    args = _parse_args(argv, settings)
    log_level = args.log_level.upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    settings = settings.model_copy(
        update={"host": args.host, "port": args.port, "database_url": args.database_url}
    )

    try:
        storage = build_storage(
            settings.database_url,
            max_connections=settings.max_connections,
            timeout_s=settings.connect_timeout_s,
        )
        storage.migrate()
    except (StorageError, ValueError) as exc:
        logger.error("startup event=storage_unavailable error=%s", exc)
        return 1
    logger.info("startup event=storage_ready max_connections=%s", settings.max_connections)

    app = create_app(storage=storage, settings_override=settings)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=log_level.lower())
    finally:
        storage.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
