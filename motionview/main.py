"""Viewer service entry point - FastAPI application hosting the gallery."""

import argparse
import logging
import logging.config
import sys
from contextlib import asynccontextmanager

from pythonjsonlogger import jsonlogger


# A custom formatter to produce JSON logs
class JsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname.lower()
        log_record["name"] = record.name
        log_record["service"] = "motionview"


def setup_logging(level: str = "INFO"):
    """
    Set up structured JSON logging for the entire application.
    This function configures the root logger, and all other loggers will inherit
    this configuration. Uvicorn's loggers are routed through the same handler.
    """
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JsonFormatter,
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": {
            "json_handler": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "handlers": ["json_handler"],
            "level": level,
        },
        "loggers": {
            "uvicorn": {
                "handlers": ["json_handler"],
                "level": "INFO",
                "propagate": False,
            },
            "uvicorn.access": {
                "handlers": ["json_handler"],
                "level": "INFO",
                "propagate": False,
            },
            "httpx": {
                "handlers": ["json_handler"],
                "level": "WARNING",
                "propagate": False,
            },
        },
    }
    logging.config.dictConfig(log_config)


# Set up logging immediately when the module is imported, BEFORE any other imports
setup_logging()

# Now import everything else that might use logging
from fastapi import FastAPI  # noqa: E402

from . import __version__  # noqa: E402
from .api.gallery_routes import router as gallery_router  # noqa: E402
from .api.page_controller import router as page_router  # noqa: E402
from .services.config_loader import ConfigLoader, ViewerConfig  # noqa: E402
from .services.gallery_controller import GalleryController  # noqa: E402
from .services.search_client import SearchClient  # noqa: E402

# Get a logger instance for this module
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the session controller on startup and close the HTTP client."""
    config: ViewerConfig = app.state.config
    logger.info(f"🚀 Viewer starting, searching {config.api_url}")
    logger.info(
        f"Modes: query={config.query_mode.value} render={config.render_mode.value} "
        f"color={config.color_mode.value}"
    )

    if getattr(app.state, "controller", None) is None:
        search_client = SearchClient(config.api_url, timeout=config.request_timeout)
        app.state.controller = GalleryController(config, search_client)

    yield

    logger.info("🛑 Viewer shutting down")
    await app.state.controller.search_client.close()


def create_app(
    config_path: str | None = None,
    config: ViewerConfig | None = None,
    controller: GalleryController | None = None,
) -> FastAPI:
    """Create the FastAPI application for the viewer.

    Args:
        config_path: JSON config file; searched for in the default locations
            when omitted.
        config: Ready-made config, skipping the file lookup.
        controller: Ready-made controller (used by tests).
    """
    app = FastAPI(
        title="Motionview - Motion Event Viewer",
        description="Gallery viewer for a motion-event archive",
        version=__version__,
        lifespan=lifespan,
    )

    if controller is not None:
        config = controller.config
    elif config is None:
        config = ConfigLoader().load(config_path)

    app.state.config = config
    app.state.controller = controller

    app.include_router(gallery_router, prefix="/v1")
    app.include_router(page_router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "service": "motionview"}

    return app


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Motionview - motion event viewer")
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to configuration file (default: MOTIONVIEW_CONFIG_PATH env var, "
        "~/.motionview/config.json or /etc/motionview/config.json)",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Address to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run the viewer with uvicorn."""
    import uvicorn

    args = parse_args(argv)
    app = create_app(args.config)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
