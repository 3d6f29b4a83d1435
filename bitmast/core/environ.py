import warnings
import logging

from ..constants import PROJECT_ROOT_DIR

__all__ = [
    "load_bitmast_dotenv",
]


DOTENV_FILE = PROJECT_ROOT_DIR / ".env"
logger = logging.getLogger(__name__)


def load_bitmast_dotenv(path=None) -> bool:
    from dotenv import load_dotenv

    dotenv_file = DOTENV_FILE if path is None else path
    if not dotenv_file.exists():
        warnings.warn(f"{dotenv_file} does not exist")
        return False

    logger.info(f"Loading environment variables from {dotenv_file}")
    return load_dotenv(dotenv_path=str(dotenv_file))
