"""
CLI entry point for the API server.

Usage:
    python -m app
    python -m app --host 127.0.0.1 --port 8080

Exits 1 when the application cannot start.
"""

import argparse
import logging
import sys

logger = logging.getLogger("app")


def main(argv: list[str] | None = None) -> int:
    """Run the API under uvicorn. Returns the process exit code."""
    from app.core.config import settings

    parser = argparse.ArgumentParser(description="Resource API server")
    parser.add_argument("--host", default=settings.host, help="Bind address")
    parser.add_argument("--port", type=int, default=settings.port, help="Bind port")
    args = parser.parse_args(argv)

    try:
        import uvicorn

        from app.main import app

        server = uvicorn.Server(
            uvicorn.Config(app, host=args.host, port=args.port, log_config=None)
        )
        logger.info("Server listening on http://%s:%d", args.host, args.port)
        server.run()
    except Exception:
        logger.exception("Fatal startup error")
        return 1

    if not server.started:
        logger.error("Fatal startup error: server did not start")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
