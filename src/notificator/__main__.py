import argparse
import sys

import uvicorn

from src.notificator.core.config import Settings
from src.notificator.core.errors import NotificatorError
from src.notificator.main import create_app


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="notificator",
        description="Web Push notification server",
    )
    parser.add_argument("--host", help="Address to bind (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port to bind (default: PORT or 3000)")
    parser.add_argument("--env-file", help="Read settings from this .env file")
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env(args.env_file)
        app = create_app(settings)
    except NotificatorError as e:
        print(f"Startup failed: {e.message}", file=sys.stderr)
        return 1

    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
