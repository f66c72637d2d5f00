"""Base class shared by rolodex components: a named logger, the core config, context management and ``autolog``."""

import inspect
import logging
import time
import traceback
from abc import ABCMeta
from functools import wraps
from typing import Callable, Optional

from rolodex.core.config import CoreConfig, SettingsLike
from rolodex.core.logging.logger import get_logger
from rolodex.core.utils import ifnone

LOGGER_KWARGS = frozenset(
    {
        "log_dir",
        "logger_level",
        "stream_level",
        "file_level",
        "file_mode",
        "propagate",
        "max_bytes",
        "backup_count",
        "use_structlog",
        "structlog_json",
        "structlog_bind",
    }
)


def _describe_call(function, args, kwargs) -> str:
    return f"Operation {function.__name__} started with args: {args} and kwargs: {kwargs}"


def _describe_result(function, result) -> str:
    return f"Operation {function.__name__} completed with result: {result}"


def _describe_failure(function, error, stack_trace) -> str:
    return f"Operation {function.__name__} failed with the following error: {error}\n{stack_trace}"


class RolodexMeta(type):
    """Gives every class its own lazily built logger and config, so classmethods can use ``cls.logger``.

    The class logger is named ``rolodex.<module>.<Class>``, the same name its instances log under.
    """

    def __init__(cls, name, bases, namespace):
        super().__init__(name, bases, namespace)
        cls._logger = None
        cls._config = None
        cls._logger_kwargs = {}

    @property
    def unique_name(cls) -> str:
        return f"{cls.__module__}.{cls.__name__}"

    @property
    def logger(cls):
        if cls._logger is None:
            cls._logger = get_logger(cls.unique_name, **cls._logger_kwargs)
        return cls._logger

    @logger.setter
    def logger(cls, value):
        cls._logger = value

    @property
    def config(cls) -> CoreConfig:
        if cls._config is None:
            cls._config = CoreConfig()
        return cls._config

    @config.setter
    def config(cls, value):
        cls._config = value


class Rolodex(metaclass=RolodexMeta):
    """Base class for rolodex components.

    Subclasses get ``self.logger`` and ``self.config`` and can be used as context managers. Logger options such as
    ``log_dir`` or ``use_structlog`` are accepted as keyword arguments; any other keyword is a ``TypeError``.

    .. code-block:: python

        from rolodex.core import Rolodex

        class PersonRepository(Rolodex):
            @Rolodex.autolog()
            async def find_by_name(self, name): ...
    """

    def __init__(self, suppress: bool = False, *, config_overrides: SettingsLike = None, **logger_kwargs):
        """
        Args:
            suppress: Swallow exceptions raised inside a ``with`` block (they are still logged).
            config_overrides: Settings layered over ``CoreSettings`` for this instance.
            **logger_kwargs: Options for :func:`rolodex.core.logging.logger.setup_logger`.
        """
        unexpected = sorted(set(logger_kwargs) - LOGGER_KWARGS)
        if unexpected:
            raise TypeError(f"Unexpected keyword arguments: {unexpected}")
        super().__init__()

        self.suppress = suppress
        self.config = CoreConfig(config_overrides)
        type(self)._logger_kwargs = dict(logger_kwargs)
        self.logger = get_logger(self.unique_name, **logger_kwargs)

    @property
    def unique_name(self) -> str:
        return type(self).unique_name

    @property
    def name(self) -> str:
        return type(self).__name__

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return False
        self.logger.error(
            f"{self.name} exited with {exc_type.__name__}: {exc_val}", exc_info=(exc_type, exc_val, exc_tb)
        )
        return self.suppress

    @classmethod
    def autolog(
        cls,
        log_level: int = logging.DEBUG,
        prefix_formatter: Optional[Callable] = None,
        suffix_formatter: Optional[Callable] = None,
        exception_formatter: Optional[Callable] = None,
        include_duration: bool = True,
    ):
        """Log every call of the decorated method: its arguments, its result and how long it took.

        Exceptions are logged at error level with their stack trace and re-raised unchanged. Works on plain and
        ``async`` methods of any class with a ``logger`` attribute.

        Args:
            log_level: Level of the start and completion records.
            prefix_formatter: ``(function, args, kwargs) -> str`` for the start record.
            suffix_formatter: ``(function, result) -> str`` for the completion record.
            exception_formatter: ``(function, error, stack_trace) -> str`` for the failure record.
            include_duration: Append ``| duration_ms=...`` to completion and failure records.

        Example:
            .. code-block:: text

                rolodex.people.repository.PersonRepository: Operation find_by_name started with args: ('jimmy',) ...
                rolodex.people.repository.PersonRepository: Operation find_by_name completed with result: [...] | ...
        """
        describe_call = ifnone(prefix_formatter, _describe_call)
        describe_result = ifnone(suffix_formatter, _describe_result)
        describe_failure = ifnone(exception_formatter, _describe_failure)

        def decorator(function):
            def timed(message: str, started: float) -> str:
                if not include_duration:
                    return message
                return f"{message} | duration_ms={(time.perf_counter() - started) * 1000:.2f}"

            if inspect.iscoroutinefunction(function):

                @wraps(function)
                async def wrapper(self, *args, **kwargs):
                    self.logger.log(log_level, describe_call(function, args, kwargs))
                    started = time.perf_counter()
                    try:
                        result = await function(self, *args, **kwargs)
                    except Exception as e:
                        self.logger.error(timed(describe_failure(function, e, traceback.format_exc()), started))
                        raise
                    self.logger.log(log_level, timed(describe_result(function, result), started))
                    return result

            else:

                @wraps(function)
                def wrapper(self, *args, **kwargs):
                    self.logger.log(log_level, describe_call(function, args, kwargs))
                    started = time.perf_counter()
                    try:
                        result = function(self, *args, **kwargs)
                    except Exception as e:
                        self.logger.error(timed(describe_failure(function, e, traceback.format_exc()), started))
                        raise
                    self.logger.log(log_level, timed(describe_result(function, result), started))
                    return result

            return wrapper

        return decorator


class RolodexABCMeta(RolodexMeta, ABCMeta):
    pass


class RolodexABC(Rolodex, metaclass=RolodexABCMeta):
    """``Rolodex`` that can declare ``@abstractmethod``s, such as the ODM backend contract."""

    pass
