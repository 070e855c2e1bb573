"""
In-place patching of vendor source files.

A tracked file is either pristine or patched. Patching first copies the
pristine content aside (``<name>.orig``) and then writes the transformed
content. Resetting copies the backup back and removes it. Because the
backup is written before the file is touched, an interrupted patch always
leaves a file that can be reset.

Re-applying a patch to a patched file resets it first, so a transform
only ever sees pristine content.
"""

import enum
import shutil

from nativelib import filesystem as fs
from nativelib import log
from nativelib.error import raise_configuration_error_if


BACKUP_SUFFIX = ".orig"


class PatchState(enum.Enum):
    PRISTINE = "pristine"
    PATCHED = "patched"


class SourcePatch(object):
    """ Patch state machine of a single source file. """

    def __init__(self, path):
        path = str(path) if path is not None else ""
        filename = fs.path.basename(path)
        raise_configuration_error_if(
            not filename or filename in [".", ".."],
            "Could not get file name of '{}'", path)
        # A bare file name lives in the current directory
        parent = fs.path.dirname(path) or "."

        self.path = path
        self.backup_path = fs.path.join(parent, filename + BACKUP_SUFFIX)
        self.state = PatchState.PATCHED if fs.path.exists(self.backup_path) else PatchState.PRISTINE

    def __repr__(self):
        return "SourcePatch({!r}, {})".format(self.path, self.state.value)

    @property
    def is_patched(self):
        return self.state is PatchState.PATCHED

    def patch(self, transform):
        """
        Transforms the file content.

        The file must be pristine. The transform receives the whole file as
        text and returns the new text.
        """
        assert self.state is PatchState.PRISTINE, "{} is already patched".format(self.path)

        shutil.copy2(self.path, self.backup_path)
        self.state = PatchState.PATCHED

        with open(self.path, "r", newline="", encoding="utf-8", errors="surrogateescape") as f:
            contents = f.read()
        contents = transform(contents)
        with open(self.path, "w", newline="", encoding="utf-8", errors="surrogateescape") as f:
            f.write(contents)

        log.verbose("Patched {}", self.path)

    def reset(self):
        """ Restores the pristine file from its backup. """
        if self.state is PatchState.PRISTINE:
            return

        shutil.copy2(self.backup_path, self.path)
        fs.unlink(self.backup_path)
        self.state = PatchState.PRISTINE

        log.debug("Restored {}", self.path)


def patch_file_with(path, transform):
    """
    Applies a text transform to a source file.

    Repeated calls restore the pristine file before transforming it again,
    so the outcome is the same as calling once.

    Raises:
        ConfigurationError: the path has no file name. A bare file name
            is looked up in the current directory.
        OSError: reading, writing or backing up the file failed.
    """
    patch = SourcePatch(path)
    patch.reset()
    patch.patch(transform)
    return patch


def reset_file(path):
    """ Restores a previously patched source file. """
    patch = SourcePatch(path)
    patch.reset()
    return patch
