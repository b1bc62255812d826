#!/usr/bin/env python3
"""
Run the Assessment Check web server locally.
"""

import logging

import uvicorn

from utils.config import Config


def main():
    """Start the web server."""
    config = Config.load()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not config.rentcast_api_key:
        logging.getLogger(__name__).warning("RENTCAST_API_KEY is not set; lookups will fail")

    print(f"Starting Assessment Check on http://{config.host}:{config.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "web.app:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
    )


if __name__ == "__main__":
    main()
