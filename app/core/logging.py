"""Logging configuration for the WFZO backend."""

import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import Optional

import yaml

from app.core.config import settings

CONFIG_DIR = Path(__file__).parent.parent.parent / "config"

# Loggers whose level follows LOG_LEVEL after the YAML config is applied
APP_LOGGERS = ("app", "uvicorn")


def _resolve_config_path(config_path: Optional[str]) -> Path:
    """LOG_CFG wins, then ``config_path``, then logging.<environment>.yaml."""
    override = os.getenv("LOG_CFG", config_path)
    if override:
        return Path(override)
    env_config = CONFIG_DIR / f"logging.{settings.ENVIRONMENT.lower()}.yaml"
    return env_config if env_config.exists() else CONFIG_DIR / "logging.yaml"


def setup_logging(config_path: Optional[str] = None) -> None:
    """
    Configure logging from the YAML dictConfig for the current environment.

    Falls back to ``logging.basicConfig`` at LOG_LEVEL when the file is
    missing or invalid, so the API and the email processor always log.
    """
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    path = _resolve_config_path(config_path)

    # File handlers in the config write under logs/
    Path("logs").mkdir(exist_ok=True)

    try:
        with open(path, "r") as f:
            logging.config.dictConfig(yaml.safe_load(f))
    except FileNotFoundError:
        logging.basicConfig(level=level, stream=sys.stdout)
        logging.getLogger(__name__).warning(f"Logging config file not found at {path}")
        return
    except (yaml.YAMLError, ValueError, TypeError) as e:
        logging.basicConfig(level=level, stream=sys.stdout)
        logging.getLogger(__name__).warning(
            f"Failed to load logging config from {path}, using basic config: {e}"
        )
        return

    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)
    configure_sqlalchemy_logging(echo=settings.DEBUG)
    logging.getLogger(__name__).info(f"Logging configured from {path}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically ``get_logger(__name__)``)."""
    return logging.getLogger(name)


def configure_sqlalchemy_logging(echo: bool = False, echo_pool: bool = False) -> None:
    """Raise SQLAlchemy engine/pool loggers to INFO when echo is requested."""
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if echo else logging.WARNING
    )
    logging.getLogger("sqlalchemy.pool").setLevel(
        logging.INFO if echo_pool else logging.WARNING
    )


def log_startup_info(service_name: str = "WFZO Backend") -> None:
    """Log the runtime and which external integrations are switched on."""
    logger = get_logger(__name__)
    logger.info("=" * 50)
    logger.info(f"{service_name} Starting Up")
    logger.info("=" * 50)
    logger.info(f"Python version: {sys.version}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Entra integration: {settings.ENTRA_INTEGRATION_MODE}")
    logger.info(
        "Email delivery: "
        + ("azure" if settings.AZURE_COMMUNICATION_CONNECTION_STRING else "log only")
    )
    logger.info(f"Google Analytics configured: {bool(settings.GA_PROPERTY_ID)}")
    logger.info(f"Strapi configured: {bool(settings.STRAPI_API_BASE_URL)}")
    logger.info("=" * 50)


def log_shutdown_info(service_name: str = "WFZO Backend") -> None:
    """Log application shutdown information."""
    logger = get_logger(__name__)
    logger.info("=" * 50)
    logger.info(f"{service_name} Shutting Down")
    logger.info("=" * 50)
