"""Logging utilities for TreeLingo."""

import logging
from pathlib import Path
from typing import Optional

import structlog
from rich.console import Console
from rich.logging import RichHandler


def json_file_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Build a formatter rendering standard log records as JSON lines."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
    )


class TreeLingoLogger:
    """Centralized logger for the TreeLingo application."""

    _instance: Optional[logging.Logger] = None

    @classmethod
    def get_logger(
        cls,
        name: str = "treelingo",
        level: str = "INFO",
        log_file: Optional[Path] = None,
        json_format: bool = False,
    ) -> logging.Logger:
        """
        Get or create the application logger.

        Component loggers (``treelingo.collector``, ``treelingo.batcher``, ...)
        propagate into this one, so configuring it once covers the engine.

        Args:
            name: Logger name
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Optional file path for logging
            json_format: Write the log file as JSON lines

        Returns:
            Configured logger instance
        """
        if cls._instance is not None:
            return cls._instance

        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, level.upper()))

        if logger.handlers:
            return logger

        console_handler = RichHandler(
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(console_handler)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            if json_format:
                file_handler.setFormatter(json_file_formatter())
            else:
                file_handler.setFormatter(
                    logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
                )
            logger.addHandler(file_handler)

        cls._instance = logger
        return logger

    @classmethod
    def reset(cls) -> None:
        """Reset the logger instance (useful for testing)."""
        if cls._instance:
            for handler in cls._instance.handlers[:]:
                handler.close()
                cls._instance.removeHandler(handler)
            cls._instance = None
