"""ASGI entrypoint for hosts that import a module-level ``app``.

Run it with ``uvicorn api.index:app`` or point a serverless Python runtime at
this file; ``python -m cinevibe`` remains the way to run a local server.
"""

import logging

from cinevibe.main import app

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

logger.info("CineVibe ASGI app loaded from api/index.py")

__all__ = ["app"]
