# Importing a recipe registers it with the LibraryRegistry.
from . import zlib
from . import libpng
from . import freetype
from . import pixman
from . import cairo
