import copy
import multiprocessing
import os
import shutil
import subprocess
import tarfile
import threading
import time
import zipfile
from contextlib import contextmanager
from psutil import NoSuchProcess, Process
from requests import Session
from requests.auth import HTTPBasicAuth
from urllib.parse import urlparse, urlunparse

from nativelib import config
from nativelib import filesystem as fs
from nativelib import log
from nativelib import utils
from nativelib.error import CommandError, CommandTimeoutError
from nativelib.error import raise_error, raise_error_if


http_session = Session()

_ARCHIVE_MODES = [
    (".tar", "r"),
    (".tar.gz", "r:gz"),
    (".tgz", "r:gz"),
    (".tar.bz2", "r:bz2"),
    (".tar.xz", "r:xz"),
]


class Reader(threading.Thread):
    """ Drains a pipe of a child process line by line. """

    def __init__(self, stream, lines, output=None):
        super(Reader, self).__init__(daemon=True)
        self.stream = stream
        self.lines = lines
        self.output = output
        self.start()

    def run(self):
        for raw in iter(self.stream.readline, b''):
            line = raw.rstrip().decode(errors="ignore")
            self.lines.append((self, line))
            if self.output is not None:
                self.output(line)


def _cmdstr(cmd):
    return " ".join(cmd) if type(cmd) is list else cmd


def _signal_tree(pid, kill=False):
    try:
        process = Process(pid)
        for child in process.children(recursive=True):
            child.kill() if kill else child.terminate()
        process.kill() if kill else process.terminate()
    except NoSuchProcess:
        pass


def _stop(p):
    _signal_tree(p.pid)
    try:
        p.wait(10)
    except subprocess.TimeoutExpired:
        _signal_tree(p.pid, kill=True)
        p.wait()


def _run(cmd, cwd, env, shell=False, output=True, output_on_error=False, timeout=None, **kwargs):
    if timeout is None:
        timeout = config.get_command_timeout()
    timeout = timeout if type(timeout) is int and timeout > 0 else None
    echo = output and not output_on_error

    log.debug("Running: '{0}' (CWD: {1})", _cmdstr(cmd), cwd)

    try:
        p = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            shell=shell,
            cwd=cwd,
            env=env)
    except OSError as e:
        raise CommandError("Command failed: {0} ({1})".format(_cmdstr(cmd), e), [], [str(e)], None)

    lines = []
    stdout = Reader(p.stdout, lines, log.stdout if echo else None)
    stderr = Reader(p.stderr, lines, log.stderr if echo else None)

    timedout = False
    interrupted = False
    deadline = time.time() + timeout if timeout is not None else None
    try:
        while True:
            try:
                p.wait(timeout=None if deadline is None else max(0, deadline - time.time()))
                break
            except KeyboardInterrupt:
                # Ctrl-C reaches the child too, wait for it to exit
                interrupted = True
    except subprocess.TimeoutExpired:
        timedout = True
        _stop(p)
    finally:
        stdout.join()
        stderr.join()
        p.stdout.close()
        p.stderr.close()

    if interrupted:
        raise KeyboardInterrupt()

    stdout_lines = [line for reader, line in lines if reader is stdout]
    stderr_lines = [line for reader, line in lines if reader is stderr]

    if p.returncode != 0:
        if output_on_error:
            for reader, line in lines:
                (log.stdout if reader is stdout else log.stderr)(line)
        if timedout:
            raise CommandTimeoutError("Command timeout: {0}".format(_cmdstr(cmd)))
        raise CommandError(
            "Command failed: {0}".format(_cmdstr(cmd)),
            stdout_lines, stderr_lines, p.returncode)

    return "\n".join(stdout_lines)


def _extractall(tar, path, members=None):
    if hasattr(tarfile, "data_filter"):
        return tar.extractall(path, members, filter="fully_trusted")
    return tar.extractall(path, members)


class Tools(object):
    """
    Runs commands and manipulates files on behalf of a build.

    Relative paths are resolved against the working directory of the
    tools object, see :meth:`cwd`. Strings passed to :meth:`run` and
    :meth:`write_file` may contain ``{keyword}`` macros which are
    expanded with the keyword arguments of the call.

    The object carries its own copy of the environment. Child processes
    inherit that copy. ``os.environ`` is left untouched.
    """

    def __init__(self, cwd=None, env=None):
        self._cwd = fs.path.normpath(fs.path.join(config.get_workdir(), cwd or config.get_workdir()))
        self._env = copy.deepcopy(env if env is not None else dict(os.environ))

    def __enter__(self):
        return self

    def __exit__(self, type, value, tb):
        return False

    def copy(self, src, dst, symlinks=False):
        """ Copies a file or a directory tree. """
        return fs.copy(self.expand_path(src), self.expand_path(dst), symlinks=symlinks)

    def cpu_count(self):
        return multiprocessing.cpu_count()

    @contextmanager
    def cwd(self, pathname, *args):
        """
        Changes the working directory of the tools object within a block.

        The working directory of the process is not changed.
        """
        path = self.expand_path(fs.path.join(str(pathname), *[str(a) for a in args]))
        raise_error_if(not fs.path.isdir(path), "failed to change directory to '{0}'", path)
        prev = self._cwd
        self._cwd = path
        try:
            yield path
        finally:
            self._cwd = prev

    def download(self, url, pathname, exceptions=True, auth=None, **kwargs):
        """
        Downloads a file over HTTP(S).

        Credentials embedded in the URL are used for basic authentication
        and redacted from log messages. A partially written file is removed
        if the download fails.

        Args:
            url (str): URL of the file.
            pathname (str): Destination file.
            exceptions (boolean): Raise an error on non-200 responses.
            kwargs: Passed on to ``requests``.

        Returns:
            bool: True if the server responded with 200.
        """
        url = self.expand(url)
        pathname = self.expand_path(pathname)

        parsed = urlparse(url)
        raise_error_if(not parsed.scheme or not parsed.netloc, "Invalid URL: '{}'", url)

        if auth is None and parsed.username and parsed.password:
            auth = HTTPBasicAuth(parsed.username, parsed.password)
        if parsed.password:
            parsed = parsed._replace(netloc=parsed.netloc.replace(parsed.password, "****"))
        public_url = urlunparse(parsed)

        try:
            response = http_session.get(url, stream=True, auth=auth, **kwargs)
            raise_error_if(
                exceptions and response.status_code != 200,
                "Download from '{}' failed with status '{}'", public_url, response.status_code)

            name = fs.path.basename(pathname)
            size = int(response.headers.get("content-length", 0))
            log.verbose("{} -> {}", public_url, pathname)
            with log.progress("Downloading {0}".format(utils.shorten(name)), size, "B") as pbar:
                with open(pathname, "wb") as f:
                    for data in response.iter_content(chunk_size=0x10000):
                        f.write(data)
                        pbar.update(len(data))
            actual = self.file_size(pathname)
            raise_error_if(
                size != 0 and size != actual,
                "Downloaded file was truncated to {}/{} bytes: {}", actual, size, name)
            return response.status_code == 200
        except BaseException:
            utils.call_and_catch(fs.unlink, pathname)
            raise

    @contextmanager
    def environ(self, **kwargs):
        """
        Changes environment variables within a block.

        A value of ``None`` removes the variable. The previous environment
        is restored when the block exits.

        .. code-block:: python

            with tools.environ(CPPFLAGS="-I/opt/include"):
                tools.run(["./configure"])
        """
        saved = dict(self._env)
        for key, value in kwargs.items():
            self.setenv(key, value)
        try:
            yield self._env
        finally:
            self._env = saved

    def exists(self, pathname):
        return fs.path.exists(self.expand_path(pathname))

    def expand(self, string, *args, **kwargs):
        """
        Expands ``{keyword}`` macros like ``str.format``.

        Unknown keywords are looked up in the environment of the process.
        Extra conversions: ``!l`` lower case, ``!u`` upper case,
        ``!j`` joins a list with spaces.
        """
        return utils.expand(string, *args, **kwargs)

    def expand_path(self, pathname, *args, **kwargs):
        """ Expands macros in a path and makes it absolute. A trailing separator is kept. """
        if type(pathname) is list:
            return [self.expand_path(path, *args, **kwargs) for path in pathname]
        path = fs.path.join(self.getcwd(), self.expand(str(pathname), *args, **kwargs))
        trailing = fs.sep if path[-1] in fs.anysep else ""
        return fs.path.normpath(path) + trailing

    def extract(self, filename, pathname, files=None):
        """
        Extracts an archive into a directory.

        The archive type is chosen by file extension: tar, tar.gz, tgz,
        tar.bz2, tar.xz or zip. ``files`` restricts extraction to the
        named members.
        """
        filename = self.expand_path(filename)
        pathname = self.expand_path(pathname)

        if filename.endswith(".zip"):
            mode = "zip"
        else:
            mode = next((m for ext, m in _ARCHIVE_MODES if filename.endswith(ext)), None)
        raise_error_if(mode is None, "unknown archive type '{0}'", fs.path.basename(filename))

        try:
            fs.makedirs(pathname)
            if mode == "zip":
                with zipfile.ZipFile(filename, "r") as archive:
                    archive.extractall(pathname, files)
            else:
                with tarfile.open(filename, mode) as archive:
                    members = [archive.getmember(f) for f in files] if files else None
                    _extractall(archive, pathname, members)
        except (OSError, KeyError, tarfile.TarError, zipfile.BadZipFile):
            log.exception()
            raise_error("failed to extract archive '{0}'", filename)

    def file_size(self, pathname):
        pathname = self.expand_path(pathname)
        try:
            return os.stat(pathname).st_size
        except OSError:
            raise_error("file not found '{0}'", pathname)

    def getcwd(self):
        return fs.path.normpath(self._cwd)

    def getenv(self, key, default=None):
        """ Returns a variable of the environment seen by child processes. """
        return self._env.get(key, default)

    def isdir(self, pathname):
        return fs.path.isdir(self.expand_path(pathname))

    def mkdir(self, pathname, recursively=True):
        pathname = self.expand_path(pathname)
        if recursively:
            fs.makedirs(pathname)
        else:
            fs.mkdir(pathname)

    def read_file(self, pathname, binary=False):
        with open(self.expand_path(pathname), "rb" if binary else "r") as f:
            return f.read()

    def run(self, cmd, *args, **kwargs):
        """
        Runs a command and returns its standard output.

        A list is an argument vector and runs without a shell. A string
        is expanded with the arguments of the call and runs in a shell.
        Output is forwarded to the log line by line.

        Args:
            cmd (str, list): Command.
            output (boolean): Log the command's output. Default: True.
            output_on_error (boolean): Only log output if the command fails.
            shell (boolean): Override the choice of running in a shell.
            timeout (int): Seconds before the command and all its
                children are terminated. Default: ``nativelib.command_timeout``.

        Raises:
            CommandError: The command could not be started or exited
                with a non-zero status.
            CommandTimeoutError: The timeout expired.

        .. code-block:: python

            tools.run(["make", "install"])
            tools.run("make -j{0} {target}", tools.cpu_count(), target="all")
        """
        if type(cmd) is list:
            kwargs.setdefault("shell", False)
            cmd = [str(c) for c in cmd]
        else:
            kwargs.setdefault("shell", True)
            cmd = self.expand(cmd, *args, **kwargs)
        return _run(cmd, self._cwd, self._env, **kwargs)

    def setenv(self, key, value=None):
        """ Sets a variable for child processes, or removes it if ``value`` is None. """
        if value is None:
            self._env.pop(key, None)
        else:
            self._env[key] = str(value)

    def unlink(self, pathname, tree=False):
        return fs.unlink(self.expand_path(pathname), tree=tree)

    def which(self, executable):
        """ Looks up an executable in the ``PATH`` of the tools object, or returns None. """
        return shutil.which(self.expand(executable), path=self._env.get("PATH", ""))

    def write_file(self, pathname, content=None, expand=True, **kwargs):
        """ Writes a text file, replacing any existing file. Macros are expanded unless ``expand`` is False. """
        content = content or ""
        if expand:
            content = self.expand(content, **kwargs)
        with open(self.expand_path(pathname), "wb") as f:
            f.write(content.encode())
