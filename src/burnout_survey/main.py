"""Entry point for the survey dashboard server."""

import logging

import uvicorn
from dotenv import load_dotenv

from .config.settings import Settings
from .gateway import create_gateway
from .server import create_app


def main() -> None:
    """Start the survey dashboard server."""
    # Load environment variables
    load_dotenv()

    # Initialize settings
    settings = Settings()
    logging.basicConfig(level=settings.logging.level.upper(), format=settings.logging.format)

    # Initialize gateway
    gateway = create_gateway(settings)

    # Create and start server
    app = create_app(settings, gateway=gateway)

    try:
        uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Server shutdown.")


if __name__ == "__main__":
    main()
