from __future__ import annotations

import logging
import sys
from logging import Formatter, NullHandler, StreamHandler
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, ClassVar, Final, Literal, NamedTuple, TextIO, TypeAlias

if TYPE_CHECKING:
    from pathlib import Path

__all__: list[str] = ["LogLevel", "LoggerUtils"]

LevelType: TypeAlias = Literal[
    "NOTSET",
    "DEBUG",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
]

_LOG_FILE_SIZE: Final[int] = 1024 * 1024  # 1MB
_LOG_BACKUP_COUNT: Final[int] = 3

DEFAULT_LOG_LEVEL: Final[int] = logging.INFO
DEFAULT_NAMESPACE: Final[str] = "PolyTrans"
FILE_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(name)-44s %(funcName)s:%(lineno)d\t%(message)s"
CONSOLE_LOG_FORMAT: Final[str] = "%(levelname)s: %(message)s"


class LogLevel(NamedTuple):
    """Logging level as both name and numeric value."""

    name: str
    value: int


class LoggerUtils:
    """Process-wide logging setup for the PolyTrans namespace.

    Every module obtains its logger through ``get_logger(__name__)`` so all records end up under
    one namespace logger. ``configure()`` attaches the handlers once; later calls are ignored
    until ``reset()`` is called, which only tests are expected to do.

    Attributes:
        _namespace (str): Name of the namespace logger.
        _configured (bool): Whether handlers have been attached.
    """

    _namespace: ClassVar[str] = DEFAULT_NAMESPACE
    _configured: ClassVar[bool] = False

    @classmethod
    def configure(
        cls,
        log_file: str | Path | None = None,
        *,
        level: LevelType = "INFO",
        console: bool = True,
    ) -> logging.Logger:
        """Attach console and rotating file handlers to the namespace logger.

        Console output is limited to WARNING and above. The file receives everything down to
        DEBUG; the effective threshold is the namespace logger's level.

        Args:
            log_file (str | Path | None): Log file path. Empty or None disables file logging.
            level (LevelType): Level of the namespace logger.
            console (bool): If False, a NullHandler is used instead of stderr.

        Returns:
            logging.Logger: The namespace logger.
        """
        root_logger: logging.Logger = logging.getLogger(cls._namespace)
        if cls._configured:
            return root_logger

        root_logger.propagate = False
        cls.set_level(level)

        if console and sys.stderr is not None:
            console_handler: StreamHandler[TextIO] = StreamHandler(sys.stderr)
            console_handler.setLevel(logging.WARNING)
            console_handler.setFormatter(Formatter(CONSOLE_LOG_FORMAT))
            root_logger.addHandler(console_handler)
        else:
            root_logger.addHandler(NullHandler())

        filename: str = str(log_file or "").strip()
        if filename:
            cls._attach_file_handler(root_logger, filename)

        # warnings.warn() output goes through the "py.warnings" logger
        logging.captureWarnings(True)
        warnings_logger: logging.Logger = logging.getLogger("py.warnings")
        for handler in root_logger.handlers:
            if handler not in warnings_logger.handlers:
                warnings_logger.addHandler(handler)

        cls._configured = True
        return root_logger

    @staticmethod
    def _attach_file_handler(root_logger: logging.Logger, filename: str) -> None:
        try:
            file_handler = RotatingFileHandler(
                filename=filename,
                maxBytes=_LOG_FILE_SIZE,
                backupCount=_LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as err:
            root_logger.error("Cannot open log file '%s': %s", filename, err)
            return

        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(Formatter(FILE_LOG_FORMAT))
        root_logger.addHandler(file_handler)

    @classmethod
    def reset(cls) -> None:
        """Detach and close every handler so ``configure()`` can run again."""
        root_logger: logging.Logger = logging.getLogger(cls._namespace)
        warnings_logger: logging.Logger = logging.getLogger("py.warnings")
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            if handler in warnings_logger.handlers:
                warnings_logger.removeHandler(handler)
            handler.close()
        logging.captureWarnings(False)
        cls._configured = False

    @classmethod
    def set_level(cls, level: LevelType) -> None:
        """Set the namespace logger level, falling back to INFO for unknown names."""
        root_logger: logging.Logger = logging.getLogger(cls._namespace)
        level_map: dict[str, int] = logging.getLevelNamesMapping()
        try:
            root_logger.setLevel(level_map[level.upper()])
        except KeyError:
            root_logger.setLevel(DEFAULT_LOG_LEVEL)
            root_logger.warning("Unknown logging level '%s' specified, using INFO.", level)

    @classmethod
    def get_level(cls) -> LogLevel:
        level_value: int = logging.getLogger(cls._namespace).getEffectiveLevel()
        return LogLevel(name=logging.getLevelName(level_value), value=level_value)

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Get a logger below the PolyTrans namespace.

        Module names that already start with the namespace package (``polytrans.``) are nested
        as-is, so ``polytrans.core.trans.manager`` becomes ``PolyTrans.polytrans.core.trans.manager``.

        Args:
            name (str | None): Logger name, usually ``__name__``. None returns the namespace logger.

        Returns:
            logging.Logger: The logger instance.
        """
        namespace: str = LoggerUtils._namespace
        return logging.getLogger(f"{namespace}.{name}" if name else namespace)
