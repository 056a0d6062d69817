"""
Production entrypoint for Valorador Online.

This is the ONLY Uvicorn entrypoint used in production.
Binds to 0.0.0.0:$PORT.
"""

import logging
import os

import uvicorn

from utils.config import configure_logging

if __name__ == "__main__":
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    port = int(os.getenv("PORT", "8000"))
    logging.getLogger(__name__).info("Starting Valorador Online on port %s", port)

    # Import app here so logging is configured before the service is built
    from web.app import app

    uvicorn.run(app, host="0.0.0.0", port=port)
