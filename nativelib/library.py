import copy

from nativelib import config
from nativelib import filesystem as fs
from nativelib import log
from nativelib import utils
from nativelib.error import raise_configuration_error_if, raise_error_if
from nativelib.error import raise_library_error_on_exception, raise_requirement_error_if
from nativelib.tools import Tools


class LibraryOptions(object):
    """ Compile-time options of a library. """

    def __init__(self, static=True, shared=False, configure_flags=None):
        self.static = static
        self.shared = shared
        self.configure_flags = list(configure_flags or [])

    def __eq__(self, other):
        return isinstance(other, LibraryOptions) and self.__dict__ == other.__dict__

    def __repr__(self):
        return "LibraryOptions(static={}, shared={}, configure_flags={})".format(
            self.static, self.shared, self.configure_flags)


class LibraryDependencies(object):
    """
    Ordered list of the libraries a library is built against.

    Flags are produced in declaration order. Directories that don't
    exist are skipped and duplicates are kept.
    """

    def __init__(self, libraries=None):
        self._libraries = []
        for library in libraries or []:
            self.push(library)

    def push(self, library):
        raise_configuration_error_if(
            not isinstance(library, Library), "Not a library: {!r}", library)
        self._libraries.append(library)
        return self

    def __iter__(self):
        return iter(self._libraries)

    def __len__(self):
        return len(self._libraries)

    def __getitem__(self, name):
        for library in self._libraries:
            if library.name == name:
                return library
        raise KeyError(name)

    def __contains__(self, name):
        return any(library.name == name for library in self._libraries)

    def __deepcopy__(self, memo):
        return LibraryDependencies([library.clone_library() for library in self._libraries])

    def include_headers(self, context):
        return [directory
                for library in self._libraries
                for directory in library.native_library_include_headers(context)]

    def linker_libraries(self, context):
        return [directory
                for library in self._libraries
                for directory in library.native_library_linker_libraries(context)]

    def include_headers_flags(self, context):
        return " ".join("-I" + directory for directory in self.include_headers(context))

    def linker_libraries_flags(self, context):
        flag = "-LIBPATH:" if context.is_windows() else "-L"
        return " ".join(flag + directory for directory in self.linker_libraries(context))


class Library(object):
    """
    Descriptor of a native library.

    A library knows where its sources are, which libraries it depends on
    and how to compile itself. After compilation it reports where headers,
    libraries and pkg-config files were installed.

    Subclasses set :attr:`name` and implement :meth:`force_compile`.
    """

    name = None
    """ Unique name of the library. Also the name of its install prefix. """

    requirements = ["make"]
    """ Executables that must be found in PATH before building. """

    def __init__(self, source_location, dependencies=None, options=None, release_location=None):
        raise_configuration_error_if(not self.name, "{} has no name", type(self).__name__)
        self.source_location = source_location
        self._release_location = release_location
        self._dependencies = dependencies if dependencies is not None else LibraryDependencies()
        self._options = options if options is not None else LibraryOptions()

    def __repr__(self):
        return "{}({})".format(type(self).__name__, self.name)

    @property
    def location(self):
        return self.source_location

    @property
    def release_location(self):
        """ Location of prebuilt binaries, falls back to the source location. """
        return self._release_location or self.source_location

    def with_release_location(self, release_location):
        self._release_location = release_location
        return self

    @property
    def dependencies(self):
        return self._dependencies

    @property
    def options(self):
        return self._options

    def clone_library(self):
        return copy.deepcopy(self)

    def source_directory(self, context):
        return fs.path.join(context.sources_root, self.name)

    def ensure_sources(self, context, tools=None):
        self.location.ensure_sources(self.source_directory(context), context, tools)

    def required_executables(self, context):
        return list(self.requirements)

    def ensure_requirements(self, context, tools=None):
        """ Fails early if a tool required to build the library is missing. """
        tools = tools or Tools()
        for executable in self.required_executables(context):
            raise_requirement_error_if(
                not tools.which(executable),
                "Could not find `{}` (required by {})", executable, self.name)

    def force_compile(self, context, tools=None):
        """ Compiles the library, whether or not it was compiled before. """
        raise NotImplementedError()

    def build_order(self):
        """
        The library and its dependencies, dependencies first.

        A library reached through several paths is listed once.
        """
        order = []

        def _visit(library):
            for dependency in library.dependencies:
                _visit(dependency)
            if library.name not in [lib.name for lib in order]:
                order.append(library)

        _visit(self)
        return order

    def compile(self, context, tools=None, dependencies=True):
        """
        Builds the library from scratch.

        Requirements of every library in the build are checked before
        anything is fetched or compiled. Dependencies are compiled first.
        """
        tools = tools or Tools()
        libraries = self.build_order() if dependencies else [self]

        for library in libraries:
            library.ensure_requirements(context, tools)

        for library in libraries:
            library.ensure_sources(context, tools)
            log.info("Compiling {}", library.name)
            with log.duration("Compilation of {}".format(library.name)):
                library.force_compile(context, tools)

    def compiled_library_directories(self, context):
        """
        Directories holding the compiled library.

        Only meaningful after a successful :meth:`force_compile`.
        Nothing is built implicitly.
        """
        if context.is_unix() or context.is_windows():
            return [fs.path.join(self.native_library_prefix(context), "lib")]
        return []

    def native_library_prefix(self, context):
        return fs.path.join(context.build_root, self.name)

    def native_library_include_headers(self, context):
        directory = fs.path.join(self.native_library_prefix(context), "include")
        return [directory] if fs.path.isdir(directory) else []

    def native_library_linker_libraries(self, context):
        directory = fs.path.join(self.native_library_prefix(context), "lib")
        return [directory] if fs.path.isdir(directory) else []

    def pkg_config_directory(self, context):
        directory = fs.path.join(self.native_library_prefix(context), "lib", "pkgconfig")
        return directory if fs.path.isdir(directory) else None

    def all_pkg_config_directories(self, context):
        """ pkg-config directories of all dependencies, transitively. """
        directories = []
        for library in self.dependencies:
            directories.extend(library.all_pkg_config_directories(context))
            directory = library.pkg_config_directory(context)
            if directory is not None:
                directories.append(directory)
        return directories

    def failure_scope(self, msg=None):
        """ Reports foreign exceptions raised in the block as build failures. """
        return raise_library_error_on_exception(self, msg or "Failed to compile {0}", self.name)

    def build_environment(self, context, tools, pkg_config_paths=None, ldflags=None):
        """
        Environment for configure-style builds.

        Dependency pkg-config directories, include and library flags are
        appended to the values inherited through ``tools``.
        """
        paths = self.all_pkg_config_directories(context) + list(pkg_config_paths or [])
        paths += fs.split_paths(tools.getenv("PKG_CONFIG_PATH"))

        cppflags = utils.join_flags(
            tools.getenv("CPPFLAGS", ""),
            self.dependencies.include_headers_flags(context))
        ldflags = utils.join_flags(
            tools.getenv("LDFLAGS", ""),
            self.dependencies.linker_libraries_flags(context),
            *utils.as_list(ldflags))

        return {
            "PKG_CONFIG_PATH": fs.join_paths(paths),
            "CPPFLAGS": cppflags,
            "LDFLAGS": ldflags,
        }


@utils.Singleton
class LibraryRegistry(object):
    def __init__(self):
        self._factories = {}

    def add_library(self, name, factory):
        raise_error_if(name in self._factories, "Duplicate library: {}", name)
        self._factories[name] = factory

    def add_library_class(self, cls):
        self.add_library(cls.name, cls)

    def get_library(self, name):
        factory = self._factories.get(name)
        raise_configuration_error_if(
            factory is None, "No such library: {} (available: {})", name, ", ".join(self.names()))
        return factory()

    def names(self):
        return sorted(self._factories.keys())


def msvc_include_directories():
    return config.get_msvc_include_directories()


def msvc_lib_directories():
    return config.get_msvc_lib_directories()
