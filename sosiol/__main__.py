"""Run the API with uvicorn: ``python -m sosiol [--host H] [--port P] [--reload]``."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from sosiol.config import settings


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the Sosiol API server")
    parser.add_argument("--host", default=settings.sosiol_host)
    parser.add_argument("--port", type=int, default=settings.sosiol_port)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    parser.add_argument("--log-level", default="info")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "sosiol.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
