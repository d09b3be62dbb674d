"""Logging for zenarchive.

All loggers live below the ``zenarchive`` namespace, one child per
component (``zenarchive.header``, ``zenarchive.binsafe``, ...). Readers
and writers log through an :class:`ArchiveLogAdapter`, which prefixes
each message with the wire format and the current stream offset, so a
warning can be traced back to the byte that caused it.

Example:
    >>> import logging
    >>> from zenarchive.logging import configure_logging
    >>> configure_logging(level=logging.DEBUG, components=("binsafe",))
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, List, Optional


ZENARCHIVE_ROOT_LOGGER = "zenarchive"

COMPONENTS = ("archive", "header", "binary", "binsafe", "ascii", "service")

DEFAULT_FORMAT = "%(levelname)s %(name)s: %(message)s"


class ArchiveLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with the archive format and stream offset.

    Args:
        logger: The component logger to write to.
        format_name: Wire format label, e.g. ``"BINSAFE"``.
        position: Callable returning the current stream offset.
    """

    def __init__(self, logger: logging.Logger, format_name: str, position: Callable[[], int]):
        super().__init__(logger, {"archive_format": format_name})
        self._format_name = format_name
        self._position = position

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        offset = self._position()
        extra.setdefault("archive_format", self._format_name)
        extra.setdefault("archive_offset", offset)
        kwargs["extra"] = extra
        return f"[{self._format_name} @ {offset}] {msg}", kwargs


class ArchiveLoggerFactory:
    """Creates component loggers and archive adapters."""

    _configured: bool = False

    @classmethod
    def get_logger(cls, name: str = "") -> logging.Logger:
        """Return the logger of a component, or the root logger if empty."""
        if not name:
            return logging.getLogger(ZENARCHIVE_ROOT_LOGGER)
        return logging.getLogger(f"{ZENARCHIVE_ROOT_LOGGER}.{name}")

    @classmethod
    def for_archive(
        cls, component: str, format_name: str, position: Callable[[], int]
    ) -> ArchiveLogAdapter:
        """Return an adapter bound to one open archive."""
        return ArchiveLogAdapter(cls.get_logger(component), format_name, position)

    @classmethod
    def configure(
        cls,
        level: int = logging.INFO,
        format_string: str = DEFAULT_FORMAT,
        handler: Optional[logging.Handler] = None,
        components: Optional[Iterable[str]] = None,
    ) -> logging.Logger:
        """Attach a handler to the root zenarchive logger.

        Args:
            level: Level for the root logger, or for the named components.
            format_string: Format for the installed handler.
            handler: Handler to install. Defaults to a StreamHandler.
            components: If given, only these components log at ``level``;
                the root stays at WARNING.

        Returns:
            The root zenarchive logger.

        Raises:
            ValueError: If a component name is unknown.
        """
        logger = cls.get_logger()
        if components is None:
            logger.setLevel(level)
        else:
            components = tuple(components)
            unknown = [c for c in components if c not in COMPONENTS]
            if unknown:
                raise ValueError(f"Unknown logging component(s): {', '.join(unknown)}")
            logger.setLevel(logging.WARNING)
            for component in components:
                cls.get_logger(component).setLevel(level)

        if not logger.handlers:
            handler = handler or logging.StreamHandler()
            handler.setFormatter(logging.Formatter(format_string))
            logger.addHandler(handler)

        cls._configured = True
        return logger

    @classmethod
    def loggers(cls) -> List[logging.Logger]:
        """Return the root zenarchive logger and every child created so far."""
        prefix = ZENARCHIVE_ROOT_LOGGER + "."
        names = [
            name for name, logger in logging.Logger.manager.loggerDict.items()
            if name.startswith(prefix) and isinstance(logger, logging.Logger)
        ]
        return [cls.get_logger()] + [logging.getLogger(name) for name in sorted(names)]

    @classmethod
    def set_level(cls, level: int, component: str = "") -> None:
        cls.get_logger(component).setLevel(level)

    @classmethod
    def disable(cls) -> None:
        """Disable every zenarchive logger, children included."""
        for logger in cls.loggers():
            logger.disabled = True

    @classmethod
    def enable(cls) -> None:
        for logger in cls.loggers():
            logger.disabled = False

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured


@contextmanager
def silenced() -> Iterator[None]:
    """Suppress all zenarchive logging inside the block.

    Useful when probing many files of unknown quality.
    """
    loggers = ArchiveLoggerFactory.loggers()
    previous = [logger.disabled for logger in loggers]
    for logger in loggers:
        logger.disabled = True
    try:
        yield
    finally:
        for logger, disabled in zip(loggers, previous):
            logger.disabled = disabled


def get_logger(name: str = "") -> logging.Logger:
    """Return the zenarchive logger for ``name``."""
    return ArchiveLoggerFactory.get_logger(name)


def configure_logging(
    level: int = logging.INFO,
    format_string: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
    components: Optional[Iterable[str]] = None,
) -> logging.Logger:
    """See :meth:`ArchiveLoggerFactory.configure`."""
    return ArchiveLoggerFactory.configure(level, format_string, handler, components)


def set_level(level: int, component: str = "") -> None:
    """Set the level of a component, or of the root logger if empty."""
    ArchiveLoggerFactory.set_level(level, component)
