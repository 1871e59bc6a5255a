"""
Minimal logging infrastructure for the prisma package.

All modules obtain their logger through :func:`get_logger`, which places it
under the ``prisma`` root so that a single call to
:func:`configure_logging` controls the verbosity of the whole package.
"""

import functools
import inspect
import logging
import time
from contextlib import contextmanager
from typing import Optional


class MinimalLogger:
    """Simplified logger manager for the prisma package."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._configured = False
        self._root_logger_name = "prisma"
        self._initialized = True

    def configure(self, level: str = "INFO", force: bool = False):
        """Configure basic logging."""
        if self._configured and not force:
            return

        root_logger = logging.getLogger(self._root_logger_name)
        root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

        # Add console handler if none exists
        if not root_logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
            )
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)

        self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger with hierarchical naming."""

        if not name.startswith(self._root_logger_name):
            if name == "__main__":
                full_name = f"{self._root_logger_name}.main"
            else:
                full_name = f"{self._root_logger_name}.{name}"
        else:
            full_name = name

        if not self._configured:
            self.configure()

        return logging.getLogger(full_name)


# Global logger manager instance
_logger_manager = MinimalLogger()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance with automatic naming.

    Args:
        name: Logger name. If None, uses caller's module name.

    Returns:
        Configured logger instance.
    """
    if name is None:
        # Auto-discover caller's module
        frame = inspect.currentframe()
        try:
            caller_frame = frame.f_back
            if caller_frame:
                name = caller_frame.f_globals.get("__name__", "unknown")
        finally:
            del frame

    return _logger_manager.get_logger(name or "unknown")


def configure_logging(level: str = "INFO") -> None:
    """Set the verbosity of every ``prisma`` logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR).
    """
    _logger_manager.configure(level, force=True)


def log_performance(
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO,
    threshold: float = 0.1,
):
    """
    Decorator to log function performance.

    Failures are logged at DEBUG and re-raised; the caller reports them.

    Args:
        logger: Logger to use. If None, creates one for the module.
        level: Logging level to use.
        threshold: Minimum duration (seconds) to log.
    """

    def decorator(func):
        nonlocal logger
        if logger is None:
            logger = get_logger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            func_name = f"{func.__module__}.{func.__qualname__}"

            try:
                result = func(*args, **kwargs)
                duration = time.perf_counter() - start_time

                if duration >= threshold:
                    logger.log(level, f"Performance: {func_name} completed in {duration:.3f}s")

                return result

            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.log(
                    logging.DEBUG,
                    f"Performance: {func_name} failed after {duration:.3f}s: {e}",
                )
                raise

        return wrapper

    return decorator


@contextmanager
def log_operation(
    operation_name: str,
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO,
):
    """
    Context manager for logging operations.

    Failures are logged at DEBUG and re-raised; the caller reports them.

    Args:
        operation_name: Name of the operation.
        logger: Logger to use. If None, creates one for caller's module.
        level: Logging level to use.
    """
    if logger is None:
        logger = get_logger()

    logger.log(level, f"Starting operation: {operation_name}")
    start_time = time.perf_counter()

    try:
        yield logger
        duration = time.perf_counter() - start_time
        logger.log(level, f"Completed operation: {operation_name} in {duration:.3f}s")
    except Exception as e:
        duration = time.perf_counter() - start_time
        logger.log(
            logging.DEBUG,
            f"Failed operation: {operation_name} after {duration:.3f}s: {e}",
        )
        raise


# Configure default logging on import
_logger_manager.configure()
