from nativelib.library import LibraryDependencies, LibraryRegistry
from nativelib.location import TarArchive, TarUrlLocation
from nativelib.pkgs.zlib import ZlibLibrary
from nativelib.plugins import cmake


class LibPngLibrary(cmake.CMakeLibrary):
    name = "libpng"
    version = "1.6.43"
    cmake_options = [
        "PNG_TESTS=OFF",
        "PNG_TOOLS=OFF",
    ]

    def __init__(self):
        super().__init__(
            TarUrlLocation("https://download.sourceforge.net/libpng/libpng-{}.tar.xz".format(self.version))
            .archive(TarArchive.XZ)
            .sources("libpng-{}".format(self.version)),
            dependencies=LibraryDependencies().push(ZlibLibrary()))

    def configure_arguments(self, context):
        args = super().configure_arguments(context)
        args.append("-DPNG_STATIC=" + ("ON" if self.options.static else "OFF"))
        args.append("-DPNG_SHARED=" + ("ON" if self.options.shared else "OFF"))
        return args


def libpng():
    return LibPngLibrary()


LibraryRegistry.get().add_library_class(LibPngLibrary)
