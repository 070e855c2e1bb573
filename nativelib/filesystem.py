import os
import ntpath
import posixpath
import shutil
import tempfile


path = os.path
sep = os.sep
anysep = [posixpath.sep, ntpath.sep]
pathsep = os.pathsep

mkdtemp = tempfile.mkdtemp


def userhome():
    return os.path.expanduser("~")


def makedirs(path):
    os.makedirs(path, exist_ok=True)


def mkdir(path):
    if not os.path.isdir(path):
        os.mkdir(path)


def move(src, dst):
    return shutil.move(src, dst)


def rmtree(path, ignore_errors=False):
    shutil.rmtree(path, ignore_errors=ignore_errors)


def unlink(path, ignore_errors=False, tree=False):
    """ Removes a file, a symlink, or a directory. Directories must be empty unless ``tree`` is set. """
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            if tree:
                shutil.rmtree(path)
            else:
                os.rmdir(path)
        else:
            os.unlink(path)
    except OSError:
        if not ignore_errors:
            raise


def copy(src, dst, symlinks=False):
    """ Copies a file, or merges a directory tree into ``dst``. Parent directories are created. """
    parent = os.path.dirname(dst)
    if parent:
        makedirs(parent)
    if os.path.isdir(src):
        return shutil.copytree(src, dst, symlinks=symlinks, dirs_exist_ok=True)
    return shutil.copy2(src, dst)


def split_paths(value):
    """ Splits a PATH-like string, dropping empty components. """
    if not value:
        return []
    return [p for p in str(value).split(pathsep) if p]


def join_paths(paths):
    return pathsep.join(str(p) for p in paths)
