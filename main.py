#!/usr/bin/env python3.11
from __future__ import annotations

import logging

import uvicorn

import clanhub.logging
import clanhub.settings

clanhub.logging.configure_logging()


def main() -> int:
    uvicorn.run(
        "clanhub.api.init_api:asgi_app",
        reload=clanhub.settings.DEBUG,
        log_level=logging.WARNING,
        server_header=False,
        date_header=False,
        headers=[("clanhub-version", clanhub.settings.VERSION)],
        host=clanhub.settings.APP_HOST,
        port=clanhub.settings.APP_PORT,
    )
    return 0


if __name__ == "__main__":
    exit(main())
