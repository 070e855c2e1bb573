from nativelib import filesystem as fs
from nativelib import log
from nativelib.error import CommandError
from nativelib.error import raise_library_error
from nativelib.library import Library
from nativelib.tools import Tools


class AutotoolsLibrary(Library):
    """ Base class for libraries built with ``configure`` and ``make``. """

    requirements = ["make", "autoreconf", "aclocal"]

    configure_args = []
    """
    Additional options to pass to the `./configure` script.
    """

    pkg_config_paths = []
    """
    Extra pkg-config search paths, appended after those of the dependencies.
    Relative paths are resolved by pkg-config from the build directory.
    """

    def patch_sources(self, context):
        """ Hook for editing the unpacked sources before configuring. """

    def configure_arguments(self, context):
        prefix = self.native_library_prefix(context)
        args = [
            "--prefix={}".format(prefix),
            "--exec-prefix={}".format(prefix),
            "--libdir={}".format(fs.path.join(prefix, "lib")),
        ]
        args.extend(self.configure_args)
        args.extend(self.options.configure_flags)
        return args

    def configure_environment(self, context, tools):
        return self.build_environment(context, tools, pkg_config_paths=self.pkg_config_paths)

    def compile_unix(self, context, tools):
        self.patch_sources(context)

        out_dir = self.native_library_prefix(context)
        tools.mkdir(out_dir)

        srcdir = self.source_directory(context)
        configure = fs.path.join(srcdir, "configure")
        if not fs.path.exists(configure):
            with tools.cwd(srcdir):
                tools.run(["autoreconf", "-visf"])

        env = self.configure_environment(context, tools)
        for key in ["PKG_CONFIG_PATH", "CPPFLAGS", "LDFLAGS"]:
            log.verbose("{} = {}", key, env.get(key))

        with tools.cwd(out_dir), tools.environ(**env):
            try:
                tools.run([configure] + self.configure_arguments(context))
            except CommandError:
                raise_library_error(self, "Could not configure {}", self.name)

            try:
                tools.run(["make", "install"])
            except CommandError:
                raise_library_error(self, "Could not compile {}", self.name)

    def compile_windows(self, context, tools):
        raise_library_error(self, "{} can't be compiled for windows", self.name)

    def force_compile(self, context, tools=None):
        tools = tools or Tools()
        with self.failure_scope():
            if context.is_unix():
                self.compile_unix(context, tools)
            elif context.is_windows():
                self.compile_windows(context, tools)
            else:
                raise_library_error(self, "Unsupported platform for {}: {}", self.name, context.platform)
