"""Entry point for running the marketplace server."""

import uvicorn

from marketplace.config import get_settings


def main() -> None:
    """Run the marketplace server."""
    settings = get_settings()

    uvicorn.run(
        "marketplace.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
