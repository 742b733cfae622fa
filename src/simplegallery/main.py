"""
Main entry point for simplegallery.

Loads the environment, configures logging and serves the gallery with uvicorn.
"""

import uvicorn
from dotenv import load_dotenv

from simplegallery.api.app import create_app
from simplegallery.config import load_settings
from simplegallery.logging_config import configure_structured_logging, get_logger

logger = get_logger(__name__)


def main() -> None:
    """Main application entry point."""
    load_dotenv()
    settings = load_settings()
    configure_structured_logging(settings.log_level, settings.environment)

    app = create_app(settings)

    logger.info("server_listening", host=settings.host, port=settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
