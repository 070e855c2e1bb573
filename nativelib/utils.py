import os
from string import Formatter


def is_str(s):
    return type(s) is str


def is_iterable(x):
    try:
        iter(x)
        return True
    except TypeError:
        return False


def as_list(t):
    """ Wraps a scalar in a list. None becomes an empty list. """
    if t is None:
        return []
    if is_str(t) or not is_iterable(t):
        return [t]
    return list(t)


def call_and_catch(f, *args, **kwargs):
    """ Calls f and returns None instead of raising on ordinary errors. """
    try:
        return f(*args, **kwargs)
    except Exception:
        return None


def unique_list(seq):
    result = []
    for item in seq:
        if item not in result:
            result.append(item)
    return result


class _MacroValues(object):
    def __init__(self, values, ignore_errors=False):
        self.values = values
        self.ignore_errors = ignore_errors

    def __getitem__(self, key):
        value = self.values.get(key)
        if value is None and key.startswith("ENV|"):
            value = os.environ.get(key[4:])
        elif value is None and key == "environ":
            value = os.environ
        if type(value) is list:
            value = " ".join(value)
        if value is not None:
            return value
        if self.ignore_errors:
            return "{" + key + "}"
        raise KeyError(key)


class NativeLibFormatter(Formatter):
    conversions = {
        "u": lambda value: str(value).upper(),
        "l": lambda value: str(value).lower(),
        "j": lambda value: " ".join(value),
    }

    def convert_field(self, value, conversion):
        if conversion in self.conversions:
            return self.conversions[conversion](value)
        return super().convert_field(value, conversion)


def expand(string, *args, **kwargs):
    """
    Formats a string with ``{keyword}`` macros.

    ``{ENV|NAME}`` reads an environment variable. Lists are joined with
    spaces. With ``ignore_errors=True`` unknown macros are left as is.
    """
    values = _MacroValues(kwargs, kwargs.get("ignore_errors") or False)
    return NativeLibFormatter().vformat(str(string), args, values)


def Singleton(cls):
    """ Class decorator adding a ``get()`` accessor for a shared instance. """
    cls._instance = None

    def get(*args, **kwargs):
        if cls._instance is None:
            cls._instance = cls(*args, **kwargs)
        return cls._instance

    cls.get = staticmethod(get)
    return cls


def shorten(string, count=30):
    if len(string) <= count:
        return string
    keep = max(1, count // 2 - 1)
    return "{}...{}".format(string[:keep], string[-keep + 1:])


def join_flags(*flags):
    """ Joins flag strings with single spaces, skipping empty ones. """
    return " ".join(str(flag) for flag in flags if flag)
