"""Jokester entrypoint.

Run with:
  python -m jokester
"""

import os
import uvicorn

from jokester.config import load_settings
from jokester.logging_config import setup_logging


def main() -> None:
    # Fail fast on a missing signing secret before uvicorn starts.
    settings = load_settings()
    setup_logging(settings.log_level)
    host = os.getenv("JOKESTER_HOST", "0.0.0.0")
    port = int(os.getenv("JOKESTER_PORT", "8000"))
    reload = os.getenv("JOKESTER_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("jokester.app:create_app", factory=True, host=host, port=port, reload=reload)

if __name__ == "__main__":
    main()
