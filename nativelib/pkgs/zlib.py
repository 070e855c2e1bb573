from nativelib.library import LibraryRegistry
from nativelib.location import TarArchive, TarUrlLocation
from nativelib.plugins import cmake


class ZlibLibrary(cmake.CMakeLibrary):
    name = "zlib"
    version = "1.3.1"
    cmake_options = [
        "ZLIB_BUILD_EXAMPLES=OFF",
    ]

    def __init__(self):
        super().__init__(
            TarUrlLocation("https://zlib.net/fossils/zlib-{}.tar.gz".format(self.version))
            .archive(TarArchive.GZ)
            .sources("zlib-{}".format(self.version)))


def libzlib():
    return ZlibLibrary()


LibraryRegistry.get().add_library_class(ZlibLibrary)
