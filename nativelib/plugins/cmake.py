from nativelib import filesystem as fs
from nativelib.error import CommandError
from nativelib.error import raise_library_error_if, raise_library_error
from nativelib.library import Library
from nativelib.tools import Tools


class CMakeLibrary(Library):
    """ Base class for libraries built and installed with CMake. """

    requirements = ["cmake"]

    cmake_options = []
    """ List of options and their values (``option[:type]=value``) """

    def build_type(self, context):
        return "Debug" if context.profile == "debug" else "Release"

    def build_directory(self, context):
        return fs.path.join(self.source_directory(context), "build-" + context.profile)

    def configure_arguments(self, context):
        prefix = self.native_library_prefix(context)
        dependency_prefixes = [library.native_library_prefix(context) for library in self.dependencies]
        args = [
            "-S", self.source_directory(context),
            "-B", self.build_directory(context),
            "-DCMAKE_INSTALL_PREFIX=" + prefix,
            "-DCMAKE_INSTALL_LIBDIR=lib",
            "-DCMAKE_BUILD_TYPE=" + self.build_type(context),
            "-DBUILD_SHARED_LIBS=" + ("ON" if self.options.shared else "OFF"),
        ]
        if dependency_prefixes:
            args.append("-DCMAKE_PREFIX_PATH=" + ";".join(dependency_prefixes))
        if context.is_windows() and self.options.static:
            args.append("-DCMAKE_MSVC_RUNTIME_LIBRARY=MultiThreaded$<$<CONFIG:Debug>:Debug>")
        args.extend("-D" + option for option in self.cmake_options)
        args.extend(self.options.configure_flags)
        return args

    def force_compile(self, context, tools=None):
        tools = tools or Tools()
        with self.failure_scope():
            raise_library_error_if(
                not (context.is_unix() or context.is_windows()), self,
                "Unsupported platform for {}: {}", self.name, context.platform)

            tools.mkdir(self.build_directory(context))
            env = self.build_environment(context, tools)

            with tools.environ(**env):
                try:
                    tools.run(["cmake"] + self.configure_arguments(context))
                except CommandError:
                    raise_library_error(self, "Could not configure {}", self.name)

                try:
                    tools.run([
                        "cmake", "--build", self.build_directory(context),
                        "--config", self.build_type(context),
                        "--target", "install",
                        "--parallel", str(tools.cpu_count()),
                    ])
                except CommandError:
                    raise_library_error(self, "Could not compile {}", self.name)
