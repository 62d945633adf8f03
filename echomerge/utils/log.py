import logging
import sys
from typing import List, Optional

LOG_FORMAT = "{asctime}:{name}:{levelname}: {message}"
LOG_FORMATTER = logging.Formatter(LOG_FORMAT, style="{")
STDOUT_NAME = "stdout_stream_handler"
STDERR_NAME = "stderr_stream_handler"
LOGFILE_HANDLE_NAME = "logfile_file_handler"
WARNINGS_LOGGER_NAME = "py.warnings"


class _ExcludeWarningsFilter(logging.Filter):
    def filter(self, record):  # noqa
        """Only lets through log messages with log level below WARNING."""
        return record.levelno < logging.WARNING


def verbose(
    logfile: Optional[str] = None, override: bool = False, capture_warnings: bool = False
) -> None:
    """Set the verbosity for echomerge print outs.
    If called it will output logs to terminal by default.

    Parameters
    ----------
    logfile : str, optional
        Optional string path to the desired log file.
    override: bool
        Boolean flag to override verbosity,
        which turns off verbosity if the value is `True`.
        Default is `False`.
    capture_warnings: bool
        If `True`, warnings issued by the merge through the ``warnings``
        module are also routed to the log handlers, so that a log file
        holds the full record of a run. Default is `False`.

    Returns
    -------
    None
    """
    if not isinstance(override, bool):
        raise ValueError("override argument must be a boolean!")
    if not isinstance(capture_warnings, bool):
        raise ValueError("capture_warnings argument must be a boolean!")
    package_name = __name__.split(".")[0]
    loggers = _get_all_loggers()
    verbose = not override
    _set_verbose(verbose)
    logging.captureWarnings(capture_warnings)
    if capture_warnings:
        loggers.append(_init_logger(WARNINGS_LOGGER_NAME))
    for logger in loggers:
        if package_name in logger.name or logger.name == WARNINGS_LOGGER_NAME:
            handlers = [h.name for h in logger.handlers]
            if logfile is None:
                if LOGFILE_HANDLE_NAME in handlers:
                    handler = next(filter(lambda h: h.name == LOGFILE_HANDLE_NAME, logger.handlers))
                    logger.removeHandler(handler)
            elif LOGFILE_HANDLE_NAME not in handlers:
                _set_logfile(logger, logfile)

            # Prevents duplicate lines in the log file
            logger.propagate = not isinstance(logfile, str)


def _get_all_loggers() -> List[logging.Logger]:
    """Get all loggers"""
    loggers = [logging.getLogger()]  # root logger
    return loggers + [logging.getLogger(name) for name in logging.root.manager.loggerDict]


def _init_logger(name) -> logging.Logger:
    """Initialize logger with the default stdout and stderr stream handlers

    Calling this twice with the same name does not stack handlers.

    Parameters
    ----------
    name : str
        Logger name

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    handlers = [h.name for h in logger.handlers]
    if STDOUT_NAME not in handlers:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setLevel(logging.INFO)
        stream_handler.set_name(STDOUT_NAME)
        stream_handler.setFormatter(LOG_FORMATTER)
        stream_handler.addFilter(_ExcludeWarningsFilter())
        logger.addHandler(stream_handler)

    if STDERR_NAME not in handlers:
        err_stream_handler = logging.StreamHandler(sys.stderr)
        err_stream_handler.setLevel(logging.WARNING)
        err_stream_handler.set_name(STDERR_NAME)
        err_stream_handler.setFormatter(LOG_FORMATTER)
        logger.addHandler(err_stream_handler)
    return logger


def _set_verbose(verbose: bool) -> None:
    if not verbose:
        logging.disable(logging.WARNING)
    else:
        logging.disable(logging.NOTSET)


def _set_logfile(logger: logging.Logger, logfile: Optional[str] = None) -> logging.Logger:
    """Adds log file handler to logger"""
    if not logfile:
        raise ValueError("Please provide logfile path")
    file_handler = logging.FileHandler(logfile)
    file_handler.set_name(LOGFILE_HANDLE_NAME)
    file_handler.setFormatter(LOG_FORMATTER)
    logger.addHandler(file_handler)
    return logger
