class NativeLibError(Exception):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)


class ConfigurationError(NativeLibError):
    """ Malformed user input, detected before anything is executed. """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)


class RequirementError(NativeLibError):
    """ A tool or directory required by a build is missing. """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)


class CommandError(NativeLibError):
    def __init__(self, what, stdout=[], stderr=[], returncode=None, *args, **kwargs):
        super().__init__(what, *args, **kwargs)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode


class CommandTimeoutError(NativeLibError):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

    def __str__(self):
        return super().__str__() or "Timeout"


class BuildError(NativeLibError):
    def __init__(self, what, library=None, *args, **kwargs):
        super().__init__(what, *args, **kwargs)
        self.library = library


class LoggedError(NativeLibError):
    def __init__(self, exc):
        self.exc = exc


def raise_error(msg, *args, **kwargs):
    raise NativeLibError(msg.format(*args, **kwargs))


def raise_error_if(condition, *args, **kwargs):
    if condition:
        raise_error(*args, **kwargs)


def raise_configuration_error(msg, *args, **kwargs):
    raise ConfigurationError(msg.format(*args, **kwargs))


def raise_configuration_error_if(condition, *args, **kwargs):
    if condition:
        raise_configuration_error(*args, **kwargs)


def raise_requirement_error(msg, *args, **kwargs):
    raise RequirementError(msg.format(*args, **kwargs))


def raise_requirement_error_if(condition, *args, **kwargs):
    if condition:
        raise_requirement_error(*args, **kwargs)


def raise_library_error(library, msg, *args, **kwargs):
    name = library.name if library is not None else None
    raise BuildError(msg.format(*args, **kwargs), library=name)


def raise_library_error_if(condition, library, *args, **kwargs):
    if condition:
        raise_library_error(library, *args, **kwargs)


class raise_library_error_on_exception(object):
    """
    Converts foreign exceptions raised within the block into a BuildError.

    Errors that already belong to this package pass through unchanged.
    """

    def __init__(self, library, *args, **kwargs):
        self.library = library
        self.args = args
        self.kwargs = kwargs

    def __enter__(self):
        return self

    def __exit__(self, type, value, tb):
        if value is None or isinstance(value, (NativeLibError, KeyboardInterrupt)):
            return False
        try:
            raise_library_error(self.library, *self.args, **self.kwargs)
        except BuildError as e:
            raise e from value
