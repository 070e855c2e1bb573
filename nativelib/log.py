import glob
import logging
import os
import sys
import time
import traceback
from contextlib import contextmanager
from datetime import datetime

import tqdm
if os.name == "nt":
    # tqdm initializes colorama, which breaks vt100 sequences on Windows 10
    import colorama
    colorama.deinit()
    os.system("")

from nativelib import colors
from nativelib import config
from nativelib import filesystem as fs
from nativelib.error import NativeLibError


EXCEPTION = 5
DEBUG = 10
VERBOSE = 15
STDOUT = 17
STDERR = 18
INFO = 20
WARNING = 30
ERROR = 40
SILENCE = 60

LEVELS = {
    EXCEPTION: "EXCEPT",
    DEBUG: "DEBUG",
    VERBOSE: "VERBOSE",
    STDOUT: "STDOUT",
    STDERR: "STDERR",
    INFO: "INFO",
    WARNING: "WARNING",
    ERROR: "ERROR",
    SILENCE: "SILENCE",
}

for _levelno, _levelname in LEVELS.items():
    logging.addLevelName(_levelno, _levelname)

logging.raiseExceptions = False

logpath = config.get_logpath()
logfile = fs.path.join(logpath, datetime.now().strftime("%Y-%m-%dT%H%M%S.%f") + ".log")
logcount = config.getint("nativelib", "logcount", os.environ.get("NATIVELIB_LOGCOUNT", 100))


def is_interactive():
    return sys.stdout.isatty() and sys.stderr.isatty()


def _message(record):
    # Messages use str.format placeholders, fall back to the raw text
    # when the arguments don't fit.
    try:
        return record.msg.format(*record.args)
    except (IndexError, KeyError, ValueError, AttributeError):
        return str(record.msg)


class FileFormatter(logging.Formatter):
    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")
        return "{} [{:>7}] {}".format(timestamp, record.levelname, _message(record))


class ConsoleFormatter(logging.Formatter):
    """ Prefixes messages with their level, except relayed command output. """

    def format(self, record):
        msg = _message(record)
        if is_interactive():
            if record.levelno >= ERROR:
                msg = colors.red(msg)
            elif record.levelno >= WARNING:
                msg = colors.yellow(msg)
        if record.levelno in (STDOUT, STDERR):
            return msg
        return "[{:>7}] {}".format(record.levelname, msg)


class TqdmStream(object):
    """ Writes around active progress bars. """

    def __init__(self, stream):
        self.stream = stream

    def write(self, msg):
        with tqdm.tqdm.external_write_mode(file=self.stream, nolock=False):
            self.stream.write(msg)

    def flush(self):
        getattr(self.stream, "flush", lambda: None)()


def _console_handler(stream, predicate):
    if is_interactive():
        stream = TqdmStream(stream)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ConsoleFormatter())
    handler.addFilter(predicate)
    return handler


def _is_error(record):
    return record.levelno >= ERROR or record.levelno == EXCEPTION


_logger = logging.getLogger("nativelib")
_logger.setLevel(EXCEPTION)
_logger.propagate = False

_stdout = _console_handler(sys.stdout, lambda record: not _is_error(record))
_stderr = _console_handler(sys.stderr, _is_error)
_logger.addHandler(_stdout)
_logger.addHandler(_stderr)


def start_file_log():
    """
    Starts writing everything, including backtraces, to a new file in the
    log directory. The oldest files are removed so that at most
    ``nativelib.logcount`` remain.
    """
    fs.makedirs(logpath)

    previous = sorted(glob.glob(fs.path.join(logpath, "*T*.log")))
    for outdated in previous[:max(0, len(previous) - logcount + 1)]:
        fs.unlink(outdated, ignore_errors=True)

    handler = logging.FileHandler(logfile)
    handler.setLevel(EXCEPTION)
    handler.setFormatter(FileFormatter())
    _logger.addHandler(handler)


def _escape(line):
    return line.replace("{", "{{").replace("}", "}}")


def info(fmt, *args, **kwargs):
    _logger.log(INFO, fmt, *args, **kwargs)


def warning(fmt, *args, **kwargs):
    _logger.log(WARNING, fmt, *args, **kwargs)


def verbose(fmt, *args, **kwargs):
    _logger.log(VERBOSE, fmt, *args, **kwargs)


def debug(fmt, *args, **kwargs):
    _logger.log(DEBUG, fmt, *args, **kwargs)


def error(fmt, *args, **kwargs):
    _logger.log(ERROR, fmt, *args, **kwargs)


def stdout(line, **kwargs):
    _logger.log(STDOUT, _escape(line), extra=kwargs)


def stderr(line, **kwargs):
    _logger.log(STDERR, _escape(line), extra=kwargs)


def format_exception_msg(exc):
    """
    One line description of an exception.

    Our own errors are described by their message. Anything else also
    names the exception type and the frame it was raised from.
    """
    if isinstance(exc, NativeLibError):
        return str(exc)

    stack = traceback.extract_tb(exc.__traceback__)
    if not stack:
        return "{}: {}".format(type(exc).__name__, exc)

    frame = stack[-1]
    filename = fs.path.relpath(frame.filename, fs.path.commonprefix([os.getcwd(), frame.filename]))
    return "{}: {} ({}, line {}, in {})".format(
        type(exc).__name__, str(exc) or frame.line, filename, frame.lineno, frame.name)


def exception(exc=None, error=True):
    """
    Logs the backtrace of an exception at EXCEPTION level.

    Without an argument the exception currently being handled is logged.
    """
    if exc is None:
        lines = traceback.format_exc().splitlines()
    else:
        if error:
            _logger.log(ERROR, _escape(format_exception_msg(exc)))
        lines = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).splitlines()

    for line in lines:
        _logger.log(EXCEPTION, _escape(line.strip()))


class _Progress(object):
    def __init__(self, desc):
        verbose(desc)

    def __enter__(self):
        return self

    def __exit__(self, type, value, tb):
        return False

    def update(self, *args, **kwargs):
        pass


def progress(desc, count, unit):
    """
    Returns a progress bar context. A bar is only drawn on a terminal
    when the log level is above VERBOSE, otherwise the description is
    logged once.
    """
    if not is_interactive() or is_verbose():
        return _Progress(desc)
    if count:
        bar_format = "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}]"
    else:
        bar_format = "{desc}{n_fmt}{unit} [{elapsed}]"
    bar = tqdm.tqdm(total=count, unit=unit, unit_scale=True, bar_format=bar_format, dynamic_ncols=True)
    bar.set_description("[   INFO] " + desc)
    return bar


def set_level(level):
    """ Set the log level for terminal output. """
    if level not in LEVELS:
        raise ValueError("invalid log level")
    _stdout.setLevel(level)
    _stderr.setLevel(level)


def get_level():
    return _stdout.level


def is_verbose():
    return get_level() <= VERBOSE


@contextmanager
def handler(h):
    """ Attaches an extra handler to the logger within a block. """
    _logger.addHandler(h)
    try:
        yield h
    finally:
        _logger.removeHandler(h)


@contextmanager
def duration(what):
    """ Logs how long the block took to complete. """
    start = time.time()
    yield
    verbose("{} finished in {:.1f}s", what, time.time() - start)


set_level(STDOUT)
