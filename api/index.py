"""Serverless entrypoint: exposes the ReelPick ASGI app to Vercel."""

import logging

from reelpick.main import app

# The platform captures stdout, so INFO logs from every module show up in its log view
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

logger.info("ReelPick serverless handler loaded (app=%s)", app.title)
