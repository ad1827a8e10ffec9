import logging
from config import settings


def setup_logging():
    """Configures the root logger from the settings."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


logger = logging.getLogger("voice-relay")
