"""Application entry point for the document intake API server."""

import os

import uvicorn

from docintake.api.app import app
from docintake.ocr.tools import check_tools
from docintake.utils.config import load_config
from docintake.utils.logger import setup_logging


def main() -> None:
    """Check local tools and start the FastAPI server."""
    config = load_config()
    setup_logging(config.log_level)
    check_tools()
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "4545")))


if __name__ == "__main__":
    main()
