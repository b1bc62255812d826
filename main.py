"""
Production entrypoint for Assessment Check.

Binds to 0.0.0.0:$PORT.
"""

import logging
import os
import uvicorn

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.getenv("PORT", "8000"))
    logging.getLogger(__name__).info("Starting Assessment Check on port %d", port)

    # Import app here to ensure clean module loading
    from web.app import app

    uvicorn.run(app, host="0.0.0.0", port=port)
