"""Run the Authgate API server with uvicorn."""

import uvicorn

from authgate.core import settings


def main() -> None:
    uvicorn.run(
        "authgate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
