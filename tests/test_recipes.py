import unittest

from testsupport import NativeLibTest, RecordingTools

from nativelib import filesystem as fs
from nativelib.context import WINDOWS
from nativelib.error import BuildError
from nativelib.library import LibraryOptions
from nativelib.pkgs.freetype import FreetypeLibrary, libfreetype
from nativelib.pkgs.libpng import LibPngLibrary
from nativelib.pkgs.pixman import PixmanLibrary
from nativelib.pkgs.zlib import ZlibLibrary
from nativelib.plugins.autotools import AutotoolsLibrary


class CMakeRecipeTest(NativeLibTest):
    def test_zlib_build(self):
        context = self.context()
        zlib = ZlibLibrary()
        tools = RecordingTools()

        zlib.force_compile(context, tools)

        builddir = self.path("build", "sources", "zlib", "build-release")
        self.assertIsDir(builddir)
        configure, build = tools.commands
        self.assertEqual(configure.args[:5], ["cmake", "-S", zlib.source_directory(context), "-B", builddir])
        self.assertIn("-DCMAKE_INSTALL_PREFIX=" + self.path("build", "zlib"), configure.args)
        self.assertIn("-DCMAKE_BUILD_TYPE=Release", configure.args)
        self.assertIn("-DBUILD_SHARED_LIBS=OFF", configure.args)
        self.assertIn("-DZLIB_BUILD_EXAMPLES=OFF", configure.args)
        self.assertFalse(any(arg.startswith("-DCMAKE_PREFIX_PATH") for arg in configure.args))
        self.assertEqual(build.args[:6], ["cmake", "--build", builddir, "--config", "Release", "--target"])

    def test_libpng_options(self):
        context = self.context(profile="debug")
        libpng = LibPngLibrary()
        args = libpng.configure_arguments(context)

        self.assertIn("-DCMAKE_BUILD_TYPE=Debug", args)
        self.assertIn("-DCMAKE_PREFIX_PATH=" + self.path("build", "zlib"), args)
        self.assertIn("-DPNG_STATIC=ON", args)
        self.assertIn("-DPNG_SHARED=OFF", args)

    def test_freetype_dependencies(self):
        context = self.context(WINDOWS)
        freetype = FreetypeLibrary()
        args = freetype.configure_arguments(context)

        self.assertEqual([library.name for library in freetype.dependencies], ["libpng", "zlib"])
        self.assertIn("-DCMAKE_PREFIX_PATH={};{}".format(
            self.path("build", "libpng"), self.path("build", "zlib")), args)
        self.assertIn("-DFT_REQUIRE_PNG=TRUE", args)
        self.assertIn("-DCMAKE_MSVC_RUNTIME_LIBRARY=MultiThreaded$<$<CONFIG:Debug>:Debug>", args)

    def test_freetype_version(self):
        self.assertEqual(libfreetype().version, FreetypeLibrary.version)
        freetype = libfreetype("2.12.1")
        self.assertEqual(freetype.version, "2.12.1")
        self.assertEqual(freetype.location.sources_path, "freetype-2.12.1")

    def test_freetype_headers(self):
        context = self.context()
        freetype = FreetypeLibrary()
        self.assertEqual(freetype.native_library_include_headers(context), [])
        self.install(freetype, context)
        self.assertEqual(
            freetype.native_library_include_headers(context),
            [self.path("build", "freetype", "include", "freetype2")])

    def test_configure_flags_are_appended(self):
        zlib = ZlibLibrary()
        zlib.options.configure_flags.append("-DEXTRA=1")
        self.assertEqual(zlib.configure_arguments(self.context())[-1], "-DEXTRA=1")

    def test_failed_cmake_configure(self):
        tools = RecordingTools(fail=lambda args: args[1] == "-S")
        with self.assertRaisesRegex(BuildError, "Could not configure zlib"):
            ZlibLibrary().force_compile(self.context(), tools)
        self.assertEqual(len(tools.commands), 1)

    def test_unsupported_platform(self):
        with self.assertRaisesRegex(BuildError, "Unsupported platform for zlib: haiku"):
            ZlibLibrary().force_compile(self.context("haiku"), RecordingTools())


class AutotoolsRecipeTest(NativeLibTest):
    def test_pixman_unix_build(self):
        context = self.context()
        pixman = PixmanLibrary()
        self.write_file(fs.path.join(pixman.source_directory(context), "configure"))
        tools = RecordingTools()

        pixman.force_compile(context, tools)

        prefix = self.path("build", "pixman")
        configure, make = tools.commands
        self.assertEqual(configure.args[1:], [
            "--prefix=" + prefix,
            "--exec-prefix=" + prefix,
            "--libdir=" + fs.path.join(prefix, "lib"),
            "--disable-gtk",
            "--disable-libpng",
        ])
        self.assertEqual(make.args, ["make", "install"])

    def test_pixman_windows_build(self):
        context = self.context(WINDOWS, profile="debug")
        pixman = PixmanLibrary()
        srcdir = self.makedirs("build", "sources", "pixman")
        tools = RecordingTools()

        pixman.force_compile(context, tools)

        self.assertEqual(tools.commands[0].args, [
            "make", "pixman", "-f", fs.path.join(srcdir, "Makefile.win32"), "CFG=release", "MMX=off"])
        self.assertEqual(tools.commands[0].cwd, srcdir)
        self.assertEqual(
            pixman.compiled_library_directories(context),
            [fs.path.join(srcdir, "pixman", "release")])

    def test_windows_is_unsupported_by_default(self):
        class Foo(AutotoolsLibrary):
            name = "foo"

        foo = Foo(PixmanLibrary().location, options=LibraryOptions(configure_flags=["--enable-foo"]))
        self.assertEqual(foo.configure_arguments(self.context())[-1], "--enable-foo")
        with self.assertRaisesRegex(BuildError, "foo can't be compiled for windows"):
            foo.force_compile(self.context(WINDOWS), RecordingTools())


if __name__ == "__main__":
    unittest.main()
