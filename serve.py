"""Launch the support bot service under Uvicorn."""

from __future__ import annotations

import logging
import os

import uvicorn

logger = logging.getLogger("supportbot.launcher")


def main() -> None:
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    logger.debug("Starting support bot on %s:%s", host, port)

    # A single worker: conversations live in this process's memory.
    uvicorn.run("supportbot.main:app", host=host, port=port, workers=1)


if __name__ == "__main__":
    main()
