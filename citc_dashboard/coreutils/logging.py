import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(
    level: Union[int, str] = logging.INFO, log_dir: Optional[str] = None
):
    """Setup basic logging configuration"""
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.FileHandler(
                Path(log_dir) / f"sync_{datetime.now().strftime('%Y-%m-%d')}.log"
            )
        )

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    return logging.getLogger("citc_dashboard")


def log_function_call(func_name: str, **kwargs):
    """Log function calls with parameters"""
    logger = logging.getLogger(__name__)
    logger.info(f"Calling {func_name} with params: {kwargs}")
