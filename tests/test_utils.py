import os
import unittest
from unittest import mock

from nativelib import utils


class ExpandTest(unittest.TestCase):
    def test_keywords(self):
        self.assertEqual(utils.expand("{name}-{version}", name="cairo", version="1.17.4"), "cairo-1.17.4")

    def test_conversions(self):
        self.assertEqual(utils.expand("{name!u} {name!l}", name="Cairo"), "CAIRO cairo")
        self.assertEqual(utils.expand("{flags!j}", flags=("-O2", "-g")), "-O2 -g")

    def test_lists_are_joined(self):
        self.assertEqual(utils.expand("cc {flags}", flags=["-I/a", "-I/b"]), "cc -I/a -I/b")

    def test_environment(self):
        with mock.patch.dict(os.environ, {"NATIVELIB_TEST": "env"}):
            self.assertEqual(utils.expand("{ENV|NATIVELIB_TEST}"), "env")

    def test_unknown_keyword(self):
        with self.assertRaises(KeyError):
            utils.expand("{missing}")
        self.assertEqual(utils.expand("{missing}", ignore_errors=True), "{missing}")


class HelpersTest(unittest.TestCase):
    def test_as_list(self):
        self.assertEqual(utils.as_list(None), [])
        self.assertEqual(utils.as_list("-lz"), ["-lz"])
        self.assertEqual(utils.as_list(("-lz", "-lpng")), ["-lz", "-lpng"])

    def test_unique_list(self):
        self.assertEqual(utils.unique_list(["zlib", "libpng", "zlib"]), ["zlib", "libpng"])

    def test_join_flags(self):
        self.assertEqual(utils.join_flags("-I/a", "", None, "-I/b"), "-I/a -I/b")

    def test_shorten(self):
        self.assertEqual(utils.shorten("cairo.tar.xz"), "cairo.tar.xz")
        self.assertEqual(len(utils.shorten("x" * 100, count=10)), 10)

    def test_singleton(self):
        @utils.Singleton
        class Registry(object):
            pass

        self.assertIs(Registry.get(), Registry.get())


if __name__ == "__main__":
    unittest.main()
