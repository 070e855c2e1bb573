import unittest
from unittest import mock

from testsupport import NativeLibTest, RecordingTools

from nativelib import filesystem as fs
from nativelib.context import CompilationContext, UNIX, WINDOWS
from nativelib.error import BuildError
from nativelib.location import GitLocation, TarUrlLocation
from nativelib.patch import BACKUP_SUFFIX
from nativelib.pkgs.cairo import CairoLibrary, libcairo


MAKEFILE_IN = """\
SUBDIRS = src
DIST_SUBDIRS = src doc util boilerplate test perf
"""

MAKEFILE_WIN32_COMMON = """\
CFG_CFLAGS := -MD -O2
DEFAULT_CFLAGS += -I. -I$(top_srcdir) -I$(top_srcdir)/src
DEFAULT_LDFLAGS = -nologo $(CFG_LDFLAGS)
CAIRO_LIBS =  gdi32.lib msimg32.lib user32.lib
CAIRO_LIBS += $(ZLIB_PATH)/zdll.lib
ZLIB_CFLAGS += -I$(ZLIB_PATH)
CAIRO_LIBS +=  $(LIBPNG_PATH)/libpng.lib
LIBPNG_CFLAGS += -I$(LIBPNG_PATH)/
\t@mkdir -p $(CFG)/`dirname $<`
"""

MAKEFILE_WIN32_FEATURES_H = "\t@echo \"#define CAIRO_FEATURES_H\"\n"
MAKEFILE_WIN32_FEATURES = "CAIRO_HAS_FT_FONT=0\nCAIRO_HAS_PNG_FUNCTIONS=1\n"
SRC_MAKEFILE_WIN32 = "headers:\n\t@for x in $(enabled_cairo_headers); do echo \"\tsrc/$$x\"; done\n"


class CairoTest(NativeLibTest):
    def setUp(self):
        super().setUp()
        self.cairo = CairoLibrary()

    def sources(self, context, configure=True):
        srcdir = self.cairo.source_directory(context)
        self.write_file(fs.path.join(srcdir, "Makefile.in"), MAKEFILE_IN)
        if configure:
            self.write_file(fs.path.join(srcdir, "configure"), "#!/bin/sh\n")
        return srcdir

    def windows_sources(self, context):
        srcdir = self.cairo.source_directory(context)
        self.write_file(fs.path.join(srcdir, "build", "Makefile.win32.common"), MAKEFILE_WIN32_COMMON)
        self.write_file(fs.path.join(srcdir, "build", "Makefile.win32.features-h"), MAKEFILE_WIN32_FEATURES_H)
        self.write_file(fs.path.join(srcdir, "build", "Makefile.win32.features"), MAKEFILE_WIN32_FEATURES)
        self.write_file(fs.path.join(srcdir, "src", "Makefile.win32"), SRC_MAKEFILE_WIN32)
        return srcdir

    def install_dependencies(self, context):
        for library in self.cairo.build_order()[:-1]:
            self.install(library, context, pkgconfig=True)

    def test_descriptor(self):
        self.assertEqual(self.cairo.name, "cairo")
        self.assertEqual(self.cairo.location, TarUrlLocation("https://dl.feenk.com/cairo/cairo-1.17.4.tar.xz")
                         .archive(".tar.xz").sources("cairo-1.17.4"))
        self.assertEqual([library.name for library in self.cairo.dependencies], ["pixman", "freetype"])
        self.assertTrue(self.cairo.options.static)
        self.assertFalse(self.cairo.options.shared)

    def test_libcairo_release_location(self):
        self.assertEqual(libcairo().release_location, libcairo().location)
        self.assertEqual(
            libcairo("v1.0.1").release_location,
            GitLocation.github("feenkcom", "libcairo").tag("v1.0.1"))

    def test_unix_prefix(self):
        context = CompilationContext("/tmp/build", platform=UNIX)
        self.assertEqual(self.cairo.native_library_prefix(context), fs.path.join("/tmp/build", "cairo"))
        self.assertEqual(
            self.cairo.native_library_prefix(context),
            CairoLibrary().native_library_prefix(CompilationContext("/tmp/build", platform=UNIX)))

    def test_pkg_config_directory(self):
        context = self.context()
        self.assertIsNone(self.cairo.pkg_config_directory(context))
        self.install(self.cairo, context, pkgconfig=True)
        self.assertEqual(
            self.cairo.pkg_config_directory(context),
            self.path("build", "cairo", "lib", "pkgconfig"))

    def test_compiled_library_directories(self):
        self.assertEqual(
            self.cairo.compiled_library_directories(self.context()),
            [self.path("build", "cairo", "lib")])
        self.assertEqual(
            self.cairo.compiled_library_directories(self.context(WINDOWS)),
            [self.path("build", "sources", "cairo", "src", "release")])
        self.assertEqual(
            self.cairo.compiled_library_directories(self.context(WINDOWS, profile="debug")),
            [self.path("build", "sources", "cairo", "src", "debug")])
        self.assertEqual(self.cairo.compiled_library_directories(self.context("haiku")), [])

    def test_windows_prefix_is_source_directory(self):
        context = self.context(WINDOWS)
        self.assertEqual(self.cairo.native_library_prefix(context), self.cairo.source_directory(context))
        self.assertEqual(
            self.cairo.pixman.native_library_prefix(context),
            self.cairo.pixman.source_directory(context))

    def test_unix_build(self):
        context = self.context()
        srcdir = self.sources(context)
        self.install_dependencies(context)
        tools = RecordingTools(env={"CPPFLAGS": "-DINHERITED", "PKG_CONFIG_PATH": "/usr/share/pkgconfig"})

        self.cairo.force_compile(context, tools)

        prefix = self.path("build", "cairo")
        self.assertIsDir(prefix)
        self.assertEqual(tools.names(), ["configure", "make"])

        configure, make = tools.commands
        self.assertEqual(configure.args, [
            fs.path.join(srcdir, "configure"),
            "--prefix=" + prefix,
            "--exec-prefix=" + prefix,
            "--libdir=" + fs.path.join(prefix, "lib"),
            "--enable-ft=yes",
        ])
        self.assertEqual(configure.cwd, prefix)
        self.assertEqual(make.args, ["make", "install"])
        self.assertEqual(make.cwd, prefix)
        self.assertEqual(make.env, configure.env)

        env = configure.env
        freetype = self.cairo.freetype
        pixman = self.cairo.pixman
        self.assertEqual(env["FREETYPE_CONFIG"], freetype.pkg_config_directory(context))
        self.assertEqual(fs.split_paths(env["PKG_CONFIG_PATH"]), [
            pixman.pkg_config_directory(context),
            self.path("build", "zlib", "lib", "pkgconfig"),
            self.path("build", "libpng", "lib", "pkgconfig"),
            self.path("build", "zlib", "lib", "pkgconfig"),
            freetype.pkg_config_directory(context),
            "../pixman",
            "/usr/share/pkgconfig",
        ])
        self.assertEqual(env["CPPFLAGS"], "-DINHERITED -I{} -I{}".format(
            self.path("build", "pixman", "include"),
            self.path("build", "freetype", "include", "freetype2")))
        self.assertEqual(env["LDFLAGS"], "-L{} -L{}".format(
            self.path("build", "pixman", "lib"),
            self.path("build", "freetype", "lib")))

        self.assertDataInFile("DIST_SUBDIRS = src boilerplate\n", srcdir, "Makefile.in")
        self.assertEqual(self.read_file(srcdir, "Makefile.in" + BACKUP_SUFFIX), MAKEFILE_IN)

    def test_unix_build_without_freetype_pkgconfig(self):
        context = self.context()
        self.sources(context)
        tools = RecordingTools()

        self.cairo.force_compile(context, tools)

        env = tools.commands[0].env
        self.assertNotIn("FREETYPE_CONFIG", env)
        self.assertEqual(env["CPPFLAGS"], "")
        self.assertEqual(env["PKG_CONFIG_PATH"], "../pixman")

    def test_unix_build_runs_autoreconf_without_configure(self):
        context = self.context()
        srcdir = self.sources(context, configure=False)
        tools = RecordingTools()

        self.cairo.force_compile(context, tools)

        self.assertEqual(tools.names(), ["autoreconf", "configure", "make"])
        self.assertEqual(tools.commands[0].args, ["autoreconf", "-visf"])
        self.assertEqual(tools.commands[0].cwd, srcdir)

    def test_repeated_unix_build_patches_pristine_source(self):
        context = self.context()
        srcdir = self.sources(context)

        self.cairo.force_compile(context, RecordingTools())
        once = self.read_file(srcdir, "Makefile.in")
        self.cairo.force_compile(context, RecordingTools())

        self.assertEqual(self.read_file(srcdir, "Makefile.in"), once)
        self.assertEqual(self.read_file(srcdir, "Makefile.in" + BACKUP_SUFFIX), MAKEFILE_IN)

    def test_failed_configure_stops_build(self):
        context = self.context()
        self.sources(context)
        tools = RecordingTools(fail=lambda args: args[0].endswith("configure"))

        with self.assertRaisesRegex(BuildError, "Could not configure cairo") as cm:
            self.cairo.force_compile(context, tools)

        self.assertEqual(cm.exception.library, "cairo")
        self.assertEqual(tools.names(), ["configure"])

    def test_failed_make_install(self):
        context = self.context()
        self.sources(context)
        tools = RecordingTools(fail=lambda args: args[0] == "make")

        with self.assertRaisesRegex(BuildError, "Could not compile cairo"):
            self.cairo.force_compile(context, tools)

    def test_io_errors_are_reported_as_build_errors(self):
        context = self.context()
        fs.makedirs(self.cairo.source_directory(context))
        tools = RecordingTools()

        with self.assertRaisesRegex(BuildError, "Failed to compile cairo") as cm:
            self.cairo.force_compile(context, tools)

        self.assertIsInstance(cm.exception.__cause__, OSError)
        self.assertEqual(tools.commands, [])

    def test_unsupported_platform(self):
        context = self.context("haiku")
        tools = RecordingTools()
        self.cairo.force_compile(context, tools)
        self.assertEqual(tools.commands, [])

    @mock.patch("nativelib.pkgs.cairo.msvc_lib_directories")
    @mock.patch("nativelib.pkgs.cairo.msvc_include_directories")
    def test_windows_build(self, include_dirs, lib_dirs):
        include_dirs.return_value = ["C:/VC/include", "C:/SDK/ucrt"]
        lib_dirs.return_value = ["C:/VC/lib/x64"]

        context = self.context(WINDOWS)
        srcdir = self.windows_sources(context)
        self.install_dependencies(context)
        tools = RecordingTools()

        self.cairo.force_compile(context, tools)

        freetype = self.cairo.freetype
        ft_include = freetype.native_library_include_headers(context)[0]
        ft_lib = freetype.native_library_linker_libraries(context)[0]

        common = self.read_file(srcdir, "build", "Makefile.win32.common")
        self.assertIn("CFG_CFLAGS := -MT -O2", common)
        self.assertNotIn("-MD", common)
        self.assertIn("CAIRO_LIBS += $(ZLIB_PATH)/lib/zlibstatic.lib", common)
        self.assertIn("ZLIB_CFLAGS += -I$(ZLIB_PATH)/include", common)
        self.assertIn("CAIRO_LIBS +=  $(LIBPNG_PATH)/lib/libpng16_static.lib", common)
        self.assertIn("LIBPNG_CFLAGS += -I$(LIBPNG_PATH)/include", common)
        self.assertIn("@coreutils mkdir -p $(CFG)/\"$(shell coreutils dirname $<)\"", common)
        self.assertIn("CAIRO_LIBS =  gdi32.lib msimg32.lib user32.lib freetype.lib", common)
        self.assertIn(
            "DEFAULT_CFLAGS += -I. -I$(top_srcdir) -I$(top_srcdir)/src\n"
            "DEFAULT_CFLAGS += -I\"C:/VC/include\"\n"
            "DEFAULT_CFLAGS += -I\"C:/SDK/ucrt\"\n"
            "DEFAULT_CFLAGS += -I\"{}\"\n".format(ft_include), common)
        self.assertIn(
            "DEFAULT_LDFLAGS = -nologo $(CFG_LDFLAGS)\n"
            "DEFAULT_LDFLAGS += -LIBPATH:\"C:/VC/lib/x64\"\n"
            "DEFAULT_LDFLAGS += -LIBPATH:\"{}\"\n".format(ft_lib), common)

        self.assertDataInFile("@coreutils echo", srcdir, "build", "Makefile.win32.features-h")
        self.assertDataInFile("CAIRO_HAS_FT_FONT=1", srcdir, "build", "Makefile.win32.features")
        self.assertDataNotInFile("enabled_cairo_headers", srcdir, "src", "Makefile.win32")

        self.assertEqual(len(tools.commands), 1)
        make = tools.commands[0]
        self.assertEqual(make.cwd, srcdir)
        self.assertEqual(make.args, [
            "make", "cairo",
            "-f", fs.path.join(srcdir, "Makefile.win32"),
            "CFG=release",
            "PIXMAN_PATH=" + self.path("build", "sources", "pixman"),
            "ZLIB_PATH=" + self.path("build", "zlib"),
            "LIBPNG_PATH=" + self.path("build", "libpng"),
        ])

    @mock.patch("nativelib.pkgs.cairo.msvc_lib_directories", return_value=[])
    @mock.patch("nativelib.pkgs.cairo.msvc_include_directories", return_value=[])
    def test_debug_windows_build_links_against_built_pixman(self, include_dirs, lib_dirs):
        context = self.context(WINDOWS, profile="debug")
        self.windows_sources(context)
        pixman = self.cairo.pixman
        self.makedirs("build", "sources", "pixman")
        tools = RecordingTools()

        pixman.force_compile(context, tools)
        self.cairo.force_compile(context, tools)

        pixman_make, cairo_make = tools.commands
        cfgs = [[arg for arg in command.args if arg.startswith("CFG=")] for command in (pixman_make, cairo_make)]
        self.assertEqual(cfgs, [["CFG=release"], ["CFG=release"]])

        pixman_path = [arg for arg in cairo_make.args if arg.startswith("PIXMAN_PATH=")][0][len("PIXMAN_PATH="):]
        self.assertEqual(
            pixman.compiled_library_directories(context),
            [fs.path.join(pixman_path, "pixman", "release")])

    @mock.patch("nativelib.pkgs.cairo.msvc_lib_directories", return_value=[])
    @mock.patch("nativelib.pkgs.cairo.msvc_include_directories", return_value=[])
    def test_repeated_windows_build(self, include_dirs, lib_dirs):
        context = self.context(WINDOWS)
        srcdir = self.windows_sources(context)

        self.cairo.force_compile(context, RecordingTools())
        once = self.read_file(srcdir, "build", "Makefile.win32.common")
        self.cairo.force_compile(context, RecordingTools())

        self.assertEqual(self.read_file(srcdir, "build", "Makefile.win32.common"), once)
        self.assertEqual(
            self.read_file(srcdir, "build", "Makefile.win32.common" + BACKUP_SUFFIX),
            MAKEFILE_WIN32_COMMON)

    @mock.patch("nativelib.pkgs.cairo.msvc_lib_directories", return_value=[])
    @mock.patch("nativelib.pkgs.cairo.msvc_include_directories", return_value=[])
    def test_failed_windows_make(self, include_dirs, lib_dirs):
        context = self.context(WINDOWS)
        self.windows_sources(context)
        tools = RecordingTools(fail=lambda args: True)

        with self.assertRaisesRegex(BuildError, "Could not compile cairo"):
            self.cairo.force_compile(context, tools)


if __name__ == "__main__":
    unittest.main()
