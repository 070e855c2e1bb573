from nativelib import filesystem as fs
from nativelib.error import CommandError
from nativelib.error import raise_library_error
from nativelib.library import LibraryRegistry
from nativelib.location import TarArchive, TarUrlLocation
from nativelib.plugins import autotools


class PixmanLibrary(autotools.AutotoolsLibrary):
    name = "pixman"
    version = "0.40.0"
    configure_args = [
        "--disable-gtk",
        "--disable-libpng",
    ]
    # cairo's Makefile.win32 links $(PIXMAN_PATH)/pixman/$(CFG) with its own CFG
    windows_configuration = "release"

    def __init__(self):
        super().__init__(
            TarUrlLocation("https://cairographics.org/releases/pixman-{}.tar.gz".format(self.version))
            .archive(TarArchive.GZ)
            .sources("pixman-{}".format(self.version)))

    def required_executables(self, context):
        if context.is_windows():
            return ["make"]
        return super().required_executables(context)

    def compile_windows(self, context, tools):
        with tools.cwd(self.source_directory(context)):
            try:
                tools.run([
                    "make", "pixman",
                    "-f", fs.path.join(self.source_directory(context), "Makefile.win32"),
                    "CFG=" + self.windows_configuration,
                    "MMX=off",
                ])
            except CommandError:
                raise_library_error(self, "Could not compile {}", self.name)

    def native_library_prefix(self, context):
        # The win32 makefiles build in place, consumers point at the source tree
        if context.is_windows():
            return self.source_directory(context)
        return super().native_library_prefix(context)

    def compiled_library_directories(self, context):
        if context.is_windows():
            return [fs.path.join(self.native_library_prefix(context), "pixman", self.windows_configuration)]
        return super().compiled_library_directories(context)


def libpixman():
    return PixmanLibrary()


LibraryRegistry.get().add_library_class(PixmanLibrary)
