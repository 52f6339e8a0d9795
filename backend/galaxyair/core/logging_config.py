import logging
import sys

from galaxyair.core.config import settings


def configure_logging() -> None:
    """Send application logs to stdout at the configured level."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,
    )
    # Alembic and uvicorn bring their own handlers; keep SQLAlchemy quiet unless asked
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
