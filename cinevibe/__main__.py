"""Run the API with uvicorn: ``python -m cinevibe``."""

import logging

import uvicorn

from cinevibe.core.config import get_settings


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    settings = get_settings()
    uvicorn.run("cinevibe.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
