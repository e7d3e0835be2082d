"""
spac_os.api.__main__

`python -m spac_os.api` (or the `spac-os-api` script): serve SPAC OS with uvicorn.
"""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from spac_os.api.app import create_app
from spac_os.settings import get_settings


def build_app() -> FastAPI:
    # Import-string factory so every uvicorn worker builds its own app (and caches).
    return create_app(settings=get_settings())


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "spac_os.api.__main__:build_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        proxy_headers=True,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()
