from __future__ import annotations

import logging

import uvicorn

from .app import create_app
from .proxy import S3Gateway
from .settings import load_settings


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(S3Gateway.from_settings(settings))
    logging.getLogger("s3_gateway").info(
        "Listening on http://%s:%d/", settings.http.bind, settings.http.port
    )
    uvicorn.run(
        app,
        host=str(settings.http.bind),
        port=settings.http.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
