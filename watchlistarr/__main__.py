"""Module executed when running ``python -m watchlistarr``."""

from __future__ import annotations

import uvicorn

from app.config import get_settings


def main() -> None:
    """Start the uvicorn server using the configured settings."""

    settings = get_settings()
    uvicorn.run(
        "watchlistarr:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level="debug" if settings.log_debug else "info",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
