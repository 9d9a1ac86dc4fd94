"""
Storage layer for the manipulator.
Handles all get and put operations in a single place, so we can easily handle new storage systems.

FileSystem         - the filesystem/permission collaborator.
ImageLoaderBackend - the generic image-loading collaborator.

LocalFileSystem and UrlImageLoader are the implementations we ship.
"""

import os
import contextlib
import functools
import logging
import tempfile
import urllib.parse
from abc import ABC, abstractmethod
from os.path import dirname

import boto3
import requests

from .constants import C
from .frame import Frame
from .reference import uri_to_path

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=4)
def s3_client():
    return boto3.session.Session().client('s3')


def storage_load(url):
    """Return the bytes at url. file, http, https and s3 urls are supported."""
    o = urllib.parse.urlparse(url)
    logger.debug("load url=%s scheme=%s", url, o.scheme)
    if o.scheme in (C.SCHEME_FILE, ''):
        with open(uri_to_path(url), 'rb') as f:
            return f.read()
    elif o.scheme == 's3':
        return s3_client().get_object(Bucket=o.netloc, Key=o.path[1:])['Body'].read()
    elif o.scheme in ['http', 'https']:
        r = requests.get(url, timeout=C.DEFAULT_GET_TIMEOUT)
        r.raise_for_status()
        return r.content
    else:
        raise ValueError(f"unknown scheme {o.scheme} in url {url}")


def current_umask():
    mask = os.umask(0)
    os.umask(mask)
    return mask

UMASK = current_umask()


class FileSystem(ABC):
    """What the manipulator needs from the filesystem and its permission layer."""

    @abstractmethod
    def has_read_permission(self, uri) -> bool:
        """True if the image at uri may be read."""

    @abstractmethod
    def caches_directory(self) -> str:
        """Directory under which results are written."""

    @abstractmethod
    def ensure_dir_exists(self, path):
        """Create path, and its parents, if they do not exist."""

    @abstractmethod
    def write_file(self, path, data):
        """Write data to path atomically: readers see the old file or the whole new one."""


class LocalFileSystem(FileSystem):
    def __init__(self, *, caches_dir, readable_roots=None):
        """
        :param caches_dir: directory returned by caches_directory()
        :param readable_roots: if not None, only files below one of these directories are readable.
        """
        self.caches_dir = caches_dir
        self.readable_roots = None
        if readable_roots is not None:
            self.readable_roots = [os.path.realpath(root) for root in readable_roots]

    def __repr__(self):
        return f"<LocalFileSystem caches_dir={self.caches_dir} readable_roots={self.readable_roots}>"

    def _under_readable_root(self, path):
        if self.readable_roots is None:
            return True
        for root in self.readable_roots:
            if os.path.commonpath([root, path]) == root:
                return True
        return False

    def has_read_permission(self, uri):
        try:
            o = urllib.parse.urlsplit(uri)
        except ValueError:
            return False
        if o.scheme in C.REMOTE_SCHEMES:
            return True
        if o.scheme != C.SCHEME_FILE:
            return False
        path = os.path.realpath(uri_to_path(uri))
        if not self._under_readable_root(path):
            return False
        # A missing file is readable if its nearest existing directory is; the loader reports that it is missing.
        target = path
        while not os.path.exists(target) and dirname(target) != target:
            target = dirname(target)
        return os.access(target, os.R_OK)

    def caches_directory(self):
        return self.caches_dir

    def ensure_dir_exists(self, path):
        logger.debug("mkdirs %s", path)
        os.makedirs(path, exist_ok=True)

    def write_file(self, path, data):
        (fd, tmp) = tempfile.mkstemp(dir=dirname(path), prefix='.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.chmod(tmp, 0o666 & ~UMASK)
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp)
            raise
        logger.debug("wrote %s bytes to %s", len(data), path)


class ImageLoaderBackend(ABC):
    """The generic image loader."""

    @abstractmethod
    def load_image(self, uri) -> Frame:
        """Return the image at uri, or None. Errors are raised."""


class UrlImageLoader(ImageLoaderBackend):
    """Reads the bytes with storage_load() and decodes them with OpenCV."""

    def load_image(self, uri):
        return Frame.from_bytes(storage_load(uri), urn=uri)
