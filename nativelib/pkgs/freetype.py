from nativelib import filesystem as fs
from nativelib.library import LibraryDependencies, LibraryRegistry
from nativelib.location import TarArchive, TarUrlLocation
from nativelib.pkgs.libpng import LibPngLibrary
from nativelib.pkgs.zlib import ZlibLibrary
from nativelib.plugins import cmake


class FreetypeLibrary(cmake.CMakeLibrary):
    name = "freetype"
    version = "2.13.2"
    cmake_options = [
        "FT_DISABLE_BROTLI=TRUE",
        "FT_DISABLE_BZIP2=TRUE",
        "FT_DISABLE_HARFBUZZ=TRUE",
        "FT_REQUIRE_PNG=TRUE",
        "FT_REQUIRE_ZLIB=TRUE",
    ]

    def __init__(self, version=None):
        if version is not None:
            self.version = version
        super().__init__(
            TarUrlLocation("https://download.savannah.gnu.org/releases/freetype/freetype-{}.tar.xz".format(self.version))
            .archive(TarArchive.XZ)
            .sources("freetype-{}".format(self.version)),
            dependencies=LibraryDependencies()
            .push(LibPngLibrary())
            .push(ZlibLibrary()))

    def native_library_include_headers(self, context):
        # Headers are included as <ft2build.h>, not <freetype2/ft2build.h>
        directory = fs.path.join(self.native_library_prefix(context), "include", "freetype2")
        return [directory] if fs.path.isdir(directory) else []


def libfreetype(version=None):
    return FreetypeLibrary(version)


LibraryRegistry.get().add_library_class(FreetypeLibrary)
