from __future__ import annotations

import logging
import os

from minifm_backend import FileManagerSettings, create_app


# Fails at import time if MINIFM_ROOT (default ./wwwroot) does not exist.
settings = FileManagerSettings.from_env()
app = create_app(settings)


if __name__ == "__main__":
    # Convenience: python server.py
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", "8010"))
    uvicorn.run("server:app", host="127.0.0.1", port=port, reload=False)
