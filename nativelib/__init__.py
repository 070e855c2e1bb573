from .error import NativeLibError
from .error import BuildError
from .error import CommandError
from .error import CommandTimeoutError
from .error import ConfigurationError
from .error import RequirementError

from .context import CompilationContext

from .library import Library
from .library import LibraryDependencies
from .library import LibraryOptions
from .library import LibraryRegistry

from .location import GitLocation
from .location import LibraryLocation
from .location import PathLocation
from .location import TarArchive
from .location import TarUrlLocation

from .patch import PatchState
from .patch import SourcePatch
from .patch import patch_file_with

from .tools import Tools

from .version import __version__
