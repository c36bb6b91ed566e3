import logging
import sys
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from app.config import settings

class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output"""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        color = self.COLORS.get(levelname, '')
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname

def setup_logging():
    """Setup logging configuration"""

    level = logging.DEBUG if settings.debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(console_handler)

    # Suppress verbose third-party logs
    for noisy in ("uvicorn.access", "asyncpg", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger

def log_request_context(session_id: Optional[str] = None, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Create request context for logging"""
    context = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if session_id:
        context["session_id"] = str(session_id)[:8] + "..."

    if user_id:
        context["user_id"] = str(user_id)[:8] + "..."

    return context
