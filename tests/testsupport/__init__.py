#!/usr/bin/env python

from collections import namedtuple
import os
import stat
import unittest

from nativelib import filesystem as fs
from nativelib.context import CompilationContext, UNIX
from nativelib.error import CommandError
from nativelib.library import Library, LibraryDependencies
from nativelib.location import LibraryLocation
from nativelib.tools import Tools


Command = namedtuple("Command", ["args", "cwd", "env"])


class RecordingTools(Tools):
    """
    Tools that record commands instead of running them.

    ``fail`` is called with the argument vector of each command and
    makes the command fail when it returns True.
    """

    def __init__(self, cwd=None, env=None, fail=None):
        super().__init__(cwd=cwd, env=env if env is not None else {})
        self.commands = []
        self._fail = fail or (lambda args: False)

    def run(self, cmd, *args, **kwargs):
        if type(cmd) is list:
            cmd = [str(c) for c in cmd]
        else:
            cmd = self.expand(cmd, *args, **kwargs)
        self.commands.append(Command(cmd, self.getcwd(), dict(self._env)))
        if self._fail(cmd):
            raise CommandError("Command failed: {}".format(cmd), [], ["error"], 1)
        return ""

    def names(self):
        return [fs.path.basename(c.args[0]) if type(c.args) is list else c.args for c in self.commands]


class StubLocation(LibraryLocation):
    """ A location whose sources are always present. """

    def __init__(self):
        self.requested = []

    def ensure_sources(self, directory, context, tools=None):
        self.requested.append(directory)


class DummyLibrary(Library):
    """ A library that records compilations into a shared list. """

    name = "dummy"
    requirements = []

    def __init__(self, name=None, dependencies=None, requirements=None, journal=None):
        if name is not None:
            self.name = name
        if requirements is not None:
            self.requirements = requirements
        self.journal = journal if journal is not None else []
        super().__init__(StubLocation(), dependencies=LibraryDependencies(dependencies or []))

    def force_compile(self, context, tools=None):
        self.journal.append(self.name)


class NativeLibTest(unittest.TestCase):
    """ Test case with a private temporary workspace. """

    def setUp(self):
        self.ws = fs.mkdtemp(prefix="nativelib-test-")

    def tearDown(self):
        fs.rmtree(self.ws, ignore_errors=True)

    def context(self, platform=UNIX, profile="release"):
        return CompilationContext(fs.path.join(self.ws, "build"), platform=platform, profile=profile)

    def path(self, *args):
        return fs.path.join(self.ws, *args)

    def makedirs(self, *args):
        path = self.path(*args)
        fs.makedirs(path)
        return path

    def write_file(self, filename, content="", mode=None):
        path = self.path(filename)
        dirname = fs.path.dirname(path)
        if dirname:
            fs.makedirs(dirname)
        with open(path, "w", newline="") as f:
            f.write(content)
        if mode is not None:
            os.chmod(path, mode)
        return path

    def read_file(self, *args):
        with open(fs.path.join(*args), newline="") as f:
            return f.read()

    def executables(self, *names):
        """ Creates a directory with dummy executables, for use as PATH. """
        bindir = self.makedirs("bin")
        for name in names:
            self.write_file(fs.path.join("bin", name), "#!/bin/sh\nexit 0\n",
                            mode=stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP)
        return bindir

    def install(self, library, context, include=True, lib=True, pkgconfig=False):
        """ Creates the directories a compiled library would leave behind. """
        prefix = library.native_library_prefix(context)
        if include:
            fs.makedirs(fs.path.join(prefix, "include"))
            if library.name == "freetype":
                fs.makedirs(fs.path.join(prefix, "include", "freetype2"))
        if lib:
            fs.makedirs(fs.path.join(prefix, "lib"))
        if pkgconfig:
            fs.makedirs(fs.path.join(prefix, "lib", "pkgconfig"))
        return prefix

    def assertExists(self, *args):
        assert os.path.exists(fs.path.join(*args)), \
            "{} does not exist".format(fs.path.join(*args))

    def assertNotExists(self, *args):
        assert not os.path.exists(fs.path.join(*args)), \
            "{} does exist".format(fs.path.join(*args))

    def assertIsDir(self, *args):
        self.assertTrue(os.path.isdir(fs.path.join(*args)))

    def assertDataInFile(self, data, *filename):
        self.assertIn(data, self.read_file(*filename))

    def assertDataNotInFile(self, data, *filename):
        self.assertNotIn(data, self.read_file(*filename))
