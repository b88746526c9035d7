"""Application entrypoint (FastAPI)."""

import asyncio
import sys

from .config.settings import get_settings
from .http_server import run_http_server
from .lifespan import lifespan_manager
from .observability.logger import get_logger

logger = get_logger(__name__)


async def main() -> None:
    """Main application entrypoint."""
    async with lifespan_manager():
        settings = get_settings()
        if not settings.http_enable:
            logger.warning("http_disabled", hint="set HTTP_ENABLE=true to serve the API")
            return
        await run_http_server()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutting down...")
        sys.exit(0)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
