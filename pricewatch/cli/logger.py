"""
Rich console and file logging for CLI runs
"""

import logging
from pathlib import Path
from rich.logging import RichHandler
from rich.console import Console

# Chatty at DEBUG; pdfminer logs every parsed object
NOISY_LOGGERS = ("pdfminer", "urllib3", "httpx")


class Logger:
    """Centralized logging setup with Rich"""

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_dir: str = "logs", log_file: str = "pricewatch.log") -> logging.Logger:
        """Rich handler on stderr plus a plain log file, replacing earlier handlers"""
        log_path = Path(log_dir)
        log_path.mkdir(exist_ok=True)

        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        logging.basicConfig(
            level=getattr(logging, log_level.upper(), logging.INFO),
            format="%(message)s",
            datefmt="[%X]",
            handlers=[
                RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False),
                logging.FileHandler(log_path / log_file, encoding="utf-8"),
            ],
        )

        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        return logging.getLogger("pricewatch")
