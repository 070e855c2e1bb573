from nativelib import filesystem as fs
from nativelib import log
from nativelib.error import CommandError
from nativelib.error import raise_library_error, raise_requirement_error_if
from nativelib.library import LibraryDependencies, LibraryRegistry
from nativelib.library import msvc_include_directories, msvc_lib_directories
from nativelib.location import GitLocation, TarArchive, TarUrlLocation
from nativelib.patch import patch_file_with
from nativelib.pkgs.freetype import FreetypeLibrary
from nativelib.pkgs.pixman import PixmanLibrary
from nativelib.plugins import autotools
from nativelib.tools import Tools


class CairoLibrary(autotools.AutotoolsLibrary):
    """
    The cairo 2D graphics library, with FreeType font support.

    On unix the autotools build installs into ``<build-root>/cairo``.
    On windows cairo's own win32 makefiles build inside the source tree,
    after they have been patched to link everything statically.
    """

    name = "cairo"
    version = "1.17.4"
    configure_args = [
        "--enable-ft=yes",
    ]
    pkg_config_paths = [
        "../pixman",
    ]

    def __init__(self, release_location=None):
        super().__init__(
            TarUrlLocation("https://dl.feenk.com/cairo/cairo-{}.tar.xz".format(self.version))
            .archive(TarArchive.XZ)
            .sources("cairo-{}".format(self.version)),
            dependencies=LibraryDependencies()
            .push(PixmanLibrary())
            .push(FreetypeLibrary()),
            release_location=release_location)

    @property
    def freetype(self):
        return self.dependencies["freetype"]

    @property
    def pixman(self):
        return self.dependencies["pixman"]

    def required_executables(self, context):
        if context.is_unix():
            return ["make", "autoreconf", "aclocal"]
        if context.is_windows():
            return ["make", "coreutils"]
        return ["make"]

    def ensure_requirements(self, context, tools=None):
        super().ensure_requirements(context, tools)

        if context.is_windows():
            libdirs = msvc_lib_directories()
            incdirs = msvc_include_directories()
            raise_requirement_error_if(
                not libdirs, "No MSVC lib folders configured (set msvc.lib or LIB)")
            raise_requirement_error_if(
                not incdirs, "No MSVC include folders configured (set msvc.include or INCLUDE)")
            for path in libdirs:
                raise_requirement_error_if(
                    not fs.path.isdir(path), "Lib folder does not exist: {}", path)
            for path in incdirs:
                raise_requirement_error_if(
                    not fs.path.isdir(path), "Include folder does not exist: {}", path)

    def configure_environment(self, context, tools):
        env = super().configure_environment(context, tools)
        freetype_config = self.freetype.pkg_config_directory(context)
        if freetype_config is not None:
            env["FREETYPE_CONFIG"] = freetype_config
        else:
            log.warning("Could not find freetype's pkgconfig in {}", self.freetype.native_library_prefix(context))
        return env

    def patch_sources(self, context):
        self.patch_unix_makefile(context)

    def patch_unix_makefile(self, context):
        patch_file_with(
            fs.path.join(self.source_directory(context), "Makefile.in"),
            lambda contents: contents.replace(
                "DIST_SUBDIRS = src doc util boilerplate test perf",
                "DIST_SUBDIRS = src boilerplate"))

    def patch_windows_common_makefile(self, context):
        include_flags = "DEFAULT_CFLAGS += -I. -I$(top_srcdir) -I$(top_srcdir)/src"
        ld_flags = "DEFAULT_LDFLAGS = -nologo $(CFG_LDFLAGS)"

        include_paths = msvc_include_directories() + self.freetype.native_library_include_headers(context)
        link_paths = msvc_lib_directories() + self.freetype.native_library_linker_libraries(context)

        new_include_flags = "\n".join(
            "DEFAULT_CFLAGS += -I\"{}\"".format(path) for path in include_paths)
        new_ld_flags = "\n".join(
            "DEFAULT_LDFLAGS += -LIBPATH:\"{}\"".format(path) for path in link_paths)

        replacements = [
            ("-MD", "-MT"),
            ("CAIRO_LIBS += $(ZLIB_PATH)/zdll.lib",
             "CAIRO_LIBS += $(ZLIB_PATH)/lib/zlibstatic.lib"),
            ("ZLIB_CFLAGS += -I$(ZLIB_PATH)",
             "ZLIB_CFLAGS += -I$(ZLIB_PATH)/include"),
            ("CAIRO_LIBS +=  $(LIBPNG_PATH)/libpng.lib",
             "CAIRO_LIBS +=  $(LIBPNG_PATH)/lib/libpng16_static.lib"),
            ("LIBPNG_CFLAGS += -I$(LIBPNG_PATH)/",
             "LIBPNG_CFLAGS += -I$(LIBPNG_PATH)/include"),
            ("@mkdir", "@coreutils mkdir"),
            ("`dirname $<`", "\"$(shell coreutils dirname $<)\""),
            (include_flags, "{}\n{}".format(include_flags, new_include_flags)),
            (ld_flags, "{}\n{}".format(ld_flags, new_ld_flags)),
            ("CAIRO_LIBS =  gdi32.lib msimg32.lib user32.lib",
             "CAIRO_LIBS =  gdi32.lib msimg32.lib user32.lib freetype.lib"),
        ]

        def _patch(contents):
            for old, new in replacements:
                contents = contents.replace(old, new)
            return contents

        patch_file_with(
            fs.path.join(self.source_directory(context), "build", "Makefile.win32.common"),
            _patch)

    def patch_windows_features_makefile(self, context):
        patch_file_with(
            fs.path.join(self.source_directory(context), "build", "Makefile.win32.features-h"),
            lambda contents: contents.replace("@echo", "@coreutils echo"))
        patch_file_with(
            fs.path.join(self.source_directory(context), "build", "Makefile.win32.features"),
            lambda contents: contents.replace("CAIRO_HAS_FT_FONT=0", "CAIRO_HAS_FT_FONT=1"))

    def patch_windows_makefile(self, context):
        patch_file_with(
            fs.path.join(self.source_directory(context), "src", "Makefile.win32"),
            lambda contents: contents.replace(
                "@for x in $(enabled_cairo_headers); do echo \"\tsrc/$$x\"; done", ""))

    def compile_windows(self, context, tools):
        self.patch_windows_common_makefile(context)
        self.patch_windows_features_makefile(context)
        self.patch_windows_makefile(context)

        zlib = self.freetype.dependencies["zlib"]
        libpng = self.freetype.dependencies["libpng"]
        srcdir = self.source_directory(context)

        with tools.cwd(srcdir):
            try:
                tools.run([
                    "make", "cairo",
                    "-f", fs.path.join(srcdir, "Makefile.win32"),
                    "CFG=" + self.pixman.windows_configuration,
                    "PIXMAN_PATH=" + self.pixman.native_library_prefix(context),
                    "ZLIB_PATH=" + zlib.native_library_prefix(context),
                    "LIBPNG_PATH=" + libpng.native_library_prefix(context),
                ])
            except CommandError:
                raise_library_error(self, "Could not compile {}", self.name)

    def force_compile(self, context, tools=None):
        tools = tools or Tools()
        with self.failure_scope():
            if context.is_unix():
                self.compile_unix(context, tools)
            elif context.is_windows():
                self.compile_windows(context, tools)
            else:
                log.warning("Nothing to compile for {} on {}", self.name, context.platform)

    def native_library_prefix(self, context):
        if context.is_windows():
            return self.source_directory(context)
        return fs.path.join(context.build_root, self.name)

    def compiled_library_directories(self, context):
        if context.is_unix():
            return [fs.path.join(self.native_library_prefix(context), "lib")]
        if context.is_windows():
            return [fs.path.join(self.native_library_prefix(context), "src", context.profile)]
        return []


def libcairo(binary_version=None):
    """
    The cairo recipe.

    With a ``binary_version``, prebuilt binaries are published as releases
    of the feenkcom/libcairo repository under that tag.
    """
    release_location = None
    if binary_version is not None:
        release_location = GitLocation.github("feenkcom", "libcairo").tag(str(binary_version))
    return CairoLibrary(release_location=release_location)


LibraryRegistry.get().add_library_class(CairoLibrary)
