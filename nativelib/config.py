from configparser import ConfigParser, NoOptionError, NoSectionError
import os

from nativelib import filesystem as fs
from nativelib import utils
from nativelib.error import raise_configuration_error_if


_workdir = os.getcwd()


def _config_directory():
    if os.getenv("NATIVELIB_CONFIG_PATH"):
        return os.getenv("NATIVELIB_CONFIG_PATH")
    if os.name == "nt":
        appdata = os.getenv("APPDATA", fs.path.join(fs.userhome(), "AppData", "Roaming"))
        return fs.path.join(appdata, "NativeLib")
    return fs.path.join(fs.userhome(), ".config", "nativelib")


location = fs.path.join(_config_directory(), "config")
location_user = fs.path.join(_config_directory(), "user")


class ConfigFile(ConfigParser):
    """ A configuration file. Files without a location only live in memory. """

    def __init__(self, location, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._location = location

    def load(self):
        if self._location:
            self.read(self._location)
        if not self.has_section("nativelib"):
            self.add_section("nativelib")

    def save(self, path=None):
        path = path or self._location
        if path is None:
            return
        if fs.path.dirname(path):
            fs.makedirs(fs.path.dirname(path))
        with open(path, "w") as f:
            self.write(f)

    def delete(self, section, key):
        if not self.has_section(section):
            return False
        if key is None:
            return self.remove_section(section)
        removed = self.remove_option(section, key)
        if removed and not self.options(section):
            self.remove_section(section)
        return removed

    def set(self, section, key, value):
        if not self.has_section(section):
            self.add_section(section)
        super().set(section, key, value)


class Config(object):
    """
    Stack of configuration files, each with an alias.

    Lookups go through the files from last to first. The ``cli`` layer,
    filled from the ``-c`` command line option, is added last and wins.
    """

    def __init__(self):
        self._files = []

    def configs(self, alias=None):
        return [file for name, file in self._files if alias is None or name == alias]

    def add_file(self, alias, location):
        file = ConfigFile(location)
        self._files.append((alias, file))
        return file

    def get(self, section, key, default, alias=None):
        for file in reversed(self.configs(alias)):
            try:
                return file.get(section, key)
            except (NoOptionError, NoSectionError):
                pass
        return default

    def set(self, section, key, value, alias=None):
        files = self.configs(alias)
        for file in files:
            file.set(section, key, value)
        return len(files)

    def delete(self, section, key, alias=None):
        return sum(int(file.delete(section, key)) for file in self.configs(alias))

    def sections(self, alias=None):
        names = []
        for file in self.configs(alias):
            names.extend(file.sections())
        return sorted(utils.unique_list(names))

    def options(self, section, alias=None):
        values = {}
        for file in self.configs(alias):
            if file.has_section(section):
                values.update(file.items(section, raw=True))
        return sorted(values.items())

    def items(self, alias=None):
        return [
            (section, option, value)
            for section in self.sections(alias)
            for option, value in self.options(section, alias)
        ]

    def load(self):
        for file in self.configs():
            file.load()

    def save(self, path=None):
        for alias, file in self._files:
            file.save(fs.path.join(path, alias + ".conf") if path else None)


_config = Config()
_config.add_file("global", location)
_config.add_file("user", location_user)
_config.add_file("cli", None)
_config.load()


def get(section, key, default=None, expand=True, alias=None):
    """ Returns a value, with ``{macros}`` expanded unless ``expand`` is False. """
    value = _config.get(section, key, default, alias)
    if expand and utils.is_str(value):
        return utils.expand(value)
    return value


def getint(section, key, default=None, alias=None):
    value = get(section, key, default=default, alias=alias)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise_configuration_error_if(
            True, "Config: value '{0}' invalid for '{1}.{2}', expected integer", value, section, key)


def getboolean(section, key, default=None, alias=None):
    value = get(section, key, default=default, alias=alias)
    return value is not None and str(value).lower() in ("true", "yes", "on", "1")


def getlist(section, key, default=None, alias=None):
    """ Returns a value split on the platform's path separator. """
    value = get(section, key, default=default, alias=alias)
    if type(value) is list:
        return value
    return fs.split_paths(value)


def get_home():
    if os.name == "nt":
        localappdata = os.getenv("LOCALAPPDATA", fs.path.join(fs.userhome(), "AppData", "Local"))
        return fs.path.join(localappdata, "NativeLib")
    return fs.path.join(fs.userhome(), ".nativelib")


def get_logpath():
    return get("nativelib", "logpath", get_home())


def get_workdir():
    return _workdir


def set_workdir(path):
    """ Changes the directory that relative build and sources roots resolve against. """
    global _workdir
    _workdir = fs.path.abspath(path)


def get_buildroot():
    return fs.path.join(get_workdir(), get("nativelib", "buildroot", "build"))


def get_sourcesroot(buildroot=None):
    return fs.path.join(buildroot or get_buildroot(), get("nativelib", "sourcesroot", "sources"))


def get_profile():
    return get("nativelib", "profile", "release")


def get_platform():
    return get("nativelib", "platform", None)


def get_command_timeout():
    return getint("nativelib", "command_timeout", 0)


def get_msvc_include_directories():
    return getlist("msvc", "include", os.getenv("INCLUDE"))


def get_msvc_lib_directories():
    return getlist("msvc", "lib", os.getenv("LIB"))


def set(section, key, value, alias=None):
    _config.set(section, key, value, alias or "user")


def load_or_set(file_or_str):
    """ Loads an extra configuration file, or sets a ``section.key=value`` pair in the cli layer. """
    if fs.path.exists(file_or_str):
        _config.add_file("cli", file_or_str).load()
        return
    key, sep, value = file_or_str.partition("=")
    section, option = split(key)
    raise_configuration_error_if(
        not sep or option is None, "Syntax error in configuration: '{}'", file_or_str)
    _config.set(section, option, value, alias="cli")


def save(path=None):
    _config.save(path)


def delete(key, alias=None):
    section, option = split(key)
    return _config.delete(section, option, alias)


def items(alias=None):
    return _config.items(alias)


def split(string):
    section, _, key = string.partition(".")
    return section, key or None


def sections(alias=None):
    return _config.sections(alias)


def options(section, alias=None):
    return _config.options(section, alias)
