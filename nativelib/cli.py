import click
import os
import sys

from nativelib import config
from nativelib import context as ctxmod
from nativelib import filesystem as fs
from nativelib import log
from nativelib import __version__
from nativelib.library import LibraryRegistry
from nativelib.error import raise_error, raise_error_if
from nativelib.tools import Tools
from nativelib import pkgs  # noqa: F401

debug_enabled = False
workdir = os.getcwd()


_VERBOSITY = [log.STDOUT, log.VERBOSE, log.DEBUG, log.EXCEPTION]


class PluginGroup(click.Group):
    """ Applies the global -v and -c options before a subcommand is resolved. """

    def get_command(self, ctx, cmd_name):
        verbosity = min(ctx.params.get("verbose") or 0, len(_VERBOSITY) - 1)
        if verbosity:
            log.set_level(_VERBOSITY[verbosity])

        for config_file in ctx.params.get("config_file") or []:
            log.verbose("Config: {0}", config_file)
            config.load_or_set(config_file)

        return super().get_command(ctx, cmd_name)


def _autocomplete_libraries(ctx, args, incomplete):
    return [name for name in LibraryRegistry.get().names() if name.startswith(incomplete or '')]


def _context(platform=None, profile=None, build_root=None):
    return ctxmod.CompilationContext.from_config(
        platform=platform, profile=profile, build_root=build_root)


@click.group(cls=PluginGroup)
@click.version_option(__version__)
@click.option("-v", "--verbose", count=True, help="Verbose output (repeat to raise verbosity).")
@click.option("-c", "--config", "config_file", multiple=True, type=str,
              help="Load a configuration file or set a configuration key.")
@click.option("-C", "--chdir", type=str,
              help="Change working directory before executing command.")
@click.option("-d", "--debugger", is_flag=True,
              help="Attach debugger on exception.")
@click.pass_context
def cli(ctx, verbose, config_file, chdir, debugger):
    """
    Builds native libraries and their dependencies.

    Libraries are built from source into a build root, one install
    prefix per library. Dependencies are built first and their headers,
    libraries and pkg-config files are made visible to the libraries
    that depend on them.

      $ nativelib build cairo

    """

    global debug_enabled
    debug_enabled = debugger

    if ctx.invoked_subcommand not in ["config"]:
        log.start_file_log()

    if chdir:
        global workdir
        os.chdir(chdir)
        workdir = os.getcwd()
        config.set_workdir(workdir)

    log.verbose("NativeLib version: {}", __version__)
    log.verbose("NativeLib command: {}", " ".join([fs.path.basename(sys.argv[0])] + sys.argv[1:]))
    log.verbose("NativeLib workdir: {}", workdir)


@cli.command()
@click.argument("library", type=str, shell_complete=_autocomplete_libraries)
@click.option("--deps/--no-deps", default=True, show_default=True,
              help="Build the dependencies of LIBRARY first.")
@click.option("-p", "--platform", type=click.Choice(ctxmod.PLATFORMS),
              help="Target platform. Defaults to the host platform.")
@click.option("--profile", type=click.Choice(ctxmod.PROFILES),
              help="Build profile [release].")
@click.option("-b", "--build-root", type=click.Path(file_okay=False),
              help="Directory under which libraries are installed.")
@click.pass_context
def build(ctx, library, deps, platform, profile, build_root):
    """
    Build a library.

    Sources are fetched into the sources root if they are not already
    present. Patched source files are restored before they are patched
    again, so a build can be repeated in the same tree.
    """
    context = _context(platform, profile, build_root)
    library = LibraryRegistry.get().get_library(library)

    log.verbose("Context: {}", context)
    library.compile(context, Tools(), dependencies=deps)

    for directory in library.compiled_library_directories(context):
        log.info("Location: {}", directory)


@cli.command()
@click.argument("library", type=str, shell_complete=_autocomplete_libraries)
@click.option("-p", "--platform", type=click.Choice(ctxmod.PLATFORMS),
              help="Target platform. Defaults to the host platform.")
@click.pass_context
def requirements(ctx, library, platform):
    """
    Check that the tools required to build a library are installed.

    The requirements of all dependencies are checked too.
    """
    context = _context(platform)
    library = LibraryRegistry.get().get_library(library)
    tools = Tools()

    for lib in library.build_order():
        lib.ensure_requirements(context, tools)
        for executable in lib.required_executables(context):
            print("{}: {} ({})".format(lib.name, executable, tools.which(executable)))


@cli.command()
@click.argument("library", type=str, shell_complete=_autocomplete_libraries)
@click.option("-p", "--platform", type=click.Choice(ctxmod.PLATFORMS),
              help="Target platform. Defaults to the host platform.")
@click.option("--profile", type=click.Choice(ctxmod.PROFILES),
              help="Build profile [release].")
@click.option("-b", "--build-root", type=click.Path(file_okay=False),
              help="Directory under which libraries are installed.")
@click.pass_context
def info(ctx, library, platform, profile, build_root):
    """
    Display information about a library.

    Shows where the sources come from and where the library is, or
    would be, installed.
    """
    context = _context(platform, profile, build_root)
    library = LibraryRegistry.get().get_library(library)

    print()
    print("  {0}".format(library.name))
    print()
    print("  Version:        {0}".format(getattr(library, "version", None) or "-"))
    print("  Sources:        {0!r}".format(library.location))
    print("  Release:        {0!r}".format(library.release_location))
    print("  Source folder:  {0}".format(library.source_directory(context)))
    print("  Prefix:         {0}".format(library.native_library_prefix(context)))
    print("  Pkg-config:     {0}".format(library.pkg_config_directory(context) or "-"))
    print("  Requirements:   {0}".format(" ".join(library.required_executables(context))))
    print("  Dependencies:   {0}".format(
        " ".join(dep.name for dep in library.build_order() if dep is not library) or "-"))
    print()


@cli.command(name="list")
def _list():
    """
    List all known libraries.
    """
    for name in LibraryRegistry.get().names():
        print(name)


@cli.command(name="config")
@click.option("-l", "--list", is_flag=True,
              help="List all configuration keys and values.")
@click.option("-d", "--delete", is_flag=True,
              help="Delete configuration key.")
@click.option("-g", "--global", "global_", is_flag=True,
              help="List, set or get configuration keys in the global config.")
@click.option("-u", "--user", is_flag=True,
              help="List, set or get configuration keys in the user config.")
@click.argument("key", type=str, nargs=1, required=False)
@click.argument("value", type=str, nargs=1, required=False)
@click.pass_context
def _config(ctx, list, delete, global_, user, key, value):
    """
    Configure NativeLib.

    Key strings are constructed from the configuration section and the
    option separated by a dot.

    When reading, the values are read from all configuration sources.
    Temporary CLI configuration has priority, followed by the user
    configuration file and lastly the global configuration file.
    When writing, new values go to the user configuration by default.

      $ nativelib config nativelib.buildroot /tmp/build

      $ nativelib config -l

      $ nativelib config -d nativelib.buildroot

      $ nativelib -c nativelib.profile=debug config -l

    """

    if global_ and user:
        raise click.UsageError("--global and --user are mutually exclusive")
    if delete and not key:
        raise click.UsageError("--delete requires KEY")
    if not key and not list:
        print(ctx.get_help())
        sys.exit(1)

    alias = "global" if global_ else "user" if user else None

    if list:
        for section, option, current in config.items(alias):
            print("{}.{} = {}".format(section, option, current))
        return

    section, option = config.split(key)

    if delete:
        raise_error_if(config.delete(key, alias) <= 0, "No such key: {}", key)
        config.save()
    elif value:
        raise_error_if(option is None, "Invalid configuration key: {}", key)
        config.set(section, option, value, alias)
        try:
            config.save()
        except OSError as e:
            raise_error("Failed to write configuration file: {}", e)
    elif option:
        current = config.get(section, option, alias=alias)
        raise_error_if(current is None, "No such key: {}", key)
        print("{} = {}".format(key, current))
    else:
        print(section)
