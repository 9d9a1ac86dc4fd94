"""
Source resolver.

resolve(reference) turns the reference string from a request into an
ImageReference. It never fails: a string that does not start with a URI
scheme is a filesystem path, and schemes we do not know are passed along
for the loader to reject.
"""

import os
import re
import pathlib
import urllib.parse
from dataclasses import dataclass

from .constants import C

KIND_INLINE_DATA     = 'inline-data'
KIND_PLATFORM_ASSET  = 'platform-asset'
KIND_FILESYSTEM_PATH = 'filesystem-path'
KIND_URL             = 'url'

SCHEME_RE = re.compile(r'^([A-Za-z][A-Za-z0-9+.\-]*):')
DRIVE_LETTER_RE = re.compile(r'^[A-Za-z]:[\\/]')


@dataclass(frozen=True)
class ImageReference:
    reference: str              # the string we were given
    scheme: str                 # lower case; 'file' for plain paths
    has_scheme: bool = True

    @property
    def kind(self):
        if self.scheme == C.SCHEME_DATA:
            return KIND_INLINE_DATA
        if self.scheme in C.ASSET_SCHEMES:
            return KIND_PLATFORM_ASSET
        if self.scheme == C.SCHEME_FILE:
            return KIND_FILESYSTEM_PATH
        return KIND_URL

    @property
    def uri(self):
        """The reference as a URI. Plain paths become absolute file:// URIs."""
        if self.has_scheme:
            return self.reference
        return pathlib.Path(os.path.abspath(self.reference)).as_uri()


def uri_to_path(uri):
    """Local path of a file:// URI."""
    return urllib.parse.unquote(urllib.parse.urlsplit(uri).path)


def resolve(reference:str) -> ImageReference:
    m = SCHEME_RE.match(reference)
    if m and not DRIVE_LETTER_RE.match(reference):
        return ImageReference(reference=reference, scheme=m.group(1).lower())
    return ImageReference(reference=reference, scheme=C.SCHEME_FILE, has_scheme=False)
