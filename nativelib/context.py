import os
import sys

from nativelib import config
from nativelib import filesystem as fs
from nativelib.error import raise_configuration_error_if


UNIX = "unix"
WINDOWS = "windows"

PLATFORMS = [UNIX, WINDOWS]
PROFILES = ["debug", "release"]


def host_platform():
    if os.name == "nt" or sys.platform.startswith("win"):
        return WINDOWS
    if os.name == "posix":
        return UNIX
    return None


class CompilationContext(object):
    """
    Configuration of one build invocation.

    The context is immutable. All descriptors built within the same
    invocation share it, and the same context always yields the same
    library prefixes.

    Args:
        build_root (str): Directory under which libraries are installed.
        platform (str): Target platform, ``"unix"`` or ``"windows"``.
            Defaults to the host platform. Any other value is kept and
            treated as an unsupported platform.
        profile (str): ``"debug"`` or ``"release"``.
        sources_root (str): Directory into which library sources are
            fetched. Defaults to ``<build_root>/sources``.
    """

    __slots__ = ("_build_root", "_platform", "_profile", "_sources_root")

    def __init__(self, build_root, platform=None, profile="release", sources_root=None):
        raise_configuration_error_if(not build_root, "Build root must not be empty")
        raise_configuration_error_if(
            profile not in PROFILES,
            "Unknown profile '{}', expected one of: {}", profile, ", ".join(PROFILES))
        build_root = fs.path.abspath(str(build_root))
        object.__setattr__(self, "_build_root", build_root)
        object.__setattr__(self, "_platform", platform if platform is not None else host_platform())
        object.__setattr__(self, "_profile", profile)
        object.__setattr__(
            self, "_sources_root",
            fs.path.abspath(str(sources_root)) if sources_root else fs.path.join(build_root, "sources"))

    @staticmethod
    def from_config(**overrides):
        """ Creates a context from the configuration, with optional overrides. """
        build_root = overrides.get("build_root") or config.get_buildroot()
        return CompilationContext(
            build_root=build_root,
            platform=overrides.get("platform") or config.get_platform(),
            profile=overrides.get("profile") or config.get_profile(),
            sources_root=overrides.get("sources_root") or config.get_sourcesroot(build_root),
        )

    def __setattr__(self, name, value):
        raise AttributeError("CompilationContext is immutable")

    def __delattr__(self, name):
        raise AttributeError("CompilationContext is immutable")

    def __eq__(self, other):
        if not isinstance(other, CompilationContext):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return "CompilationContext(build_root={!r}, platform={!r}, profile={!r}, sources_root={!r})".format(
            *self._key())

    def _key(self):
        return (self._build_root, self._platform, self._profile, self._sources_root)

    @property
    def build_root(self):
        return self._build_root

    @property
    def sources_root(self):
        return self._sources_root

    @property
    def platform(self):
        return self._platform

    @property
    def profile(self):
        return self._profile

    def is_unix(self):
        return self._platform == UNIX

    def is_windows(self):
        return self._platform == WINDOWS
