"""Main entry point for Team Chat Core."""

import os

import uvicorn
from dotenv import load_dotenv

from chat_core.api import create_fastapi_app
from chat_core.config import PROJECT_ROOT
from chat_core.logging_config import setup_logging


def main():
    """Run the application."""
    load_dotenv(PROJECT_ROOT / ".env")
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))

    # Create FastAPI app
    app = create_fastapi_app()

    # Run with uvicorn
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
