"""Entrypoint: python -m chat_gateway"""
from __future__ import annotations

import uvicorn

from chat_gateway.api.middleware.correlation_id import configure_logging
from chat_gateway.config import settings


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "chat_gateway.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
