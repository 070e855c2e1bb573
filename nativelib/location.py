import pygit2
from urllib.parse import urlparse

from nativelib import filesystem as fs
from nativelib import log
from nativelib.error import raise_configuration_error_if, raise_error, raise_error_if
from nativelib.tools import Tools


class TarArchive(object):
    GZ = ".tar.gz"
    BZ2 = ".tar.bz2"
    XZ = ".tar.xz"
    ZIP = ".zip"


class LibraryLocation(object):
    """ Where the sources (or prebuilt binaries) of a library come from. """

    def ensure_sources(self, directory, context, tools=None):
        """ Populates ``directory`` with the sources. Does nothing if it exists. """
        raise NotImplementedError()

    def __eq__(self, other):
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __hash__(self):
        return hash((type(self).__name__,) + tuple(sorted(self.__dict__.items())))


class TarUrlLocation(LibraryLocation):
    """
    An archive downloaded over HTTP.

    Example:

        .. code-block:: python

            TarUrlLocation("https://example.com/foo-1.0.tar.xz") \\
                .archive(TarArchive.XZ) \\
                .sources("foo-1.0")
    """

    def __init__(self, url):
        parsed = urlparse(url)
        raise_configuration_error_if(
            not parsed.scheme or not parsed.netloc, "Invalid archive URL: '{}'", url)
        self.url = url
        self.archive_type = TarArchive.GZ
        self.sources_path = None

    def __repr__(self):
        return "TarUrlLocation({!r})".format(self.url)

    def archive(self, archive_type):
        self.archive_type = archive_type
        return self

    def sources(self, path):
        self.sources_path = str(path)
        return self

    @property
    def archive_name(self):
        name = fs.path.basename(urlparse(self.url).path)
        if not name.endswith(self.archive_type):
            name = name + self.archive_type
        return name

    def ensure_sources(self, directory, context, tools=None):
        if fs.path.exists(directory):
            log.debug("Sources already present in {}", directory)
            return

        tools = tools or Tools()
        tools.mkdir(context.sources_root)
        with tools.cwd(context.sources_root):
            archive = tools.expand_path(self.archive_name)
            if not tools.exists(archive):
                log.info("Downloading {}", self.url)
                tools.download(self.url, archive)

            staging = fs.path.join(tools.getcwd(), ".extract-" + fs.path.basename(directory))
            if tools.exists(staging):
                tools.unlink(staging, tree=True)
            log.info("Extracting {}", fs.path.basename(archive))
            tools.extract(archive, staging)

            extracted = fs.path.join(staging, self.sources_path) if self.sources_path else staging
            raise_error_if(
                not fs.path.isdir(extracted),
                "Archive '{}' does not contain '{}'", self.archive_name, self.sources_path)
            fs.makedirs(fs.path.dirname(directory))
            fs.move(extracted, directory)
            if tools.exists(staging):
                tools.unlink(staging, tree=True)


class GitLocation(LibraryLocation):
    """ A git repository at a tag, branch or commit. """

    def __init__(self, url):
        self.url = url
        self.revision = None
        self.revision_kind = None

    def __repr__(self):
        return "GitLocation({!r}, {}={!r})".format(self.url, self.revision_kind, self.revision)

    @staticmethod
    def github(owner, repository):
        return GitLocation("https://github.com/{}/{}.git".format(owner, repository))

    def tag(self, name):
        self.revision, self.revision_kind = name, "tag"
        return self

    def branch(self, name):
        self.revision, self.revision_kind = name, "branch"
        return self

    def commit(self, sha):
        self.revision, self.revision_kind = sha, "commit"
        return self

    def _refname(self):
        if self.revision_kind == "tag":
            return "refs/tags/" + self.revision
        return self.revision

    def ensure_sources(self, directory, context, tools=None):
        if fs.path.exists(directory):
            log.debug("Sources already present in {}", directory)
            return

        log.info("Cloning {}", self.url)
        fs.makedirs(fs.path.dirname(directory))
        if self.revision_kind == "branch":
            pygit2.clone_repository(self.url, directory, checkout_branch=self.revision)
            return

        repository = pygit2.clone_repository(self.url, directory)
        if self.revision is None:
            return

        try:
            commit = repository.revparse_single(self._refname()).peel(pygit2.Commit)
        except KeyError:
            fs.rmtree(directory, ignore_errors=True)
            raise_error("No such revision in {}: {}", self.url, self.revision)
        repository.checkout_tree(commit)
        repository.set_head(commit.id)


class PathLocation(LibraryLocation):
    """ Sources in an existing directory. """

    def __init__(self, path):
        raise_configuration_error_if(not path, "Source path must not be empty")
        self.path = fs.path.abspath(str(path))

    def __repr__(self):
        return "PathLocation({!r})".format(self.path)

    def ensure_sources(self, directory, context, tools=None):
        raise_error_if(not fs.path.isdir(self.path), "Source directory does not exist: {}", self.path)
        if fs.path.normpath(self.path) == fs.path.normpath(str(directory)):
            return
        if fs.path.exists(directory):
            log.debug("Sources already present in {}", directory)
            return
        log.info("Copying {}", self.path)
        fs.copy(self.path, str(directory), symlinks=True)
