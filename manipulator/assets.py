"""
The platform asset library.

AssetLibrary - what the loader needs: find an asset for a URI, then get its pixels.

DirectoryAssetLibrary - an asset library kept in a directory. Each asset is an
        image file named by its identifier. Both URI styles are understood:

            assets-library://asset/asset.JPG?id=ABC-123&ext=JPG  ->  <root>/ABC-123.jpg
            ph://ABC-123                                        ->  <root>/ABC-123.*
"""

import os
import glob
import logging
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass

import cv2

from .errors import ImageDecodeFailed
from .frame import Frame, image_decode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetHandle:
    local_identifier: str
    path: str
    pixel_width: int
    pixel_height: int


@dataclass(frozen=True)
class PixelRequestOptions:
    """How pixels are delivered. The loader always asks for the full-quality image at its native size."""
    exact_size: bool = True
    network_access_allowed: bool = True
    synchronous: bool = True
    high_quality: bool = True


class AssetLibrary(ABC):
    @abstractmethod
    def fetch_asset(self, uri) -> AssetHandle:
        """Return the first asset matching uri, or None."""

    @abstractmethod
    def request_pixels(self, handle:AssetHandle, target_size, options:PixelRequestOptions) -> Frame:
        """Return the asset's pixels at target_size (width, height), or None."""


def asset_identifier(uri):
    """Returns (identifier, extension) for an asset URI. Either may be None."""
    o = urllib.parse.urlsplit(uri)
    if o.scheme == 'ph':
        ident = urllib.parse.unquote((o.netloc + o.path).strip('/'))
        return (ident or None, None)
    query = urllib.parse.parse_qs(o.query)
    ident = query.get('id', [None])[0]
    ext = query.get('ext', [None])[0]
    return (ident, ext.lower() if ext else None)


class DirectoryAssetLibrary(AssetLibrary):
    def __init__(self, root):
        self.root = root

    def __repr__(self):
        return f"<DirectoryAssetLibrary root={self.root}>"

    def candidates(self, ident, ext):
        paths = sorted(glob.glob(os.path.join(glob.escape(self.root), glob.escape(ident) + '.*')))
        if ext is not None:
            paths = [p for p in paths if os.path.splitext(p)[1][1:].lower() == ext]
        return paths

    def fetch_asset(self, uri):
        try:
            (ident, ext) = asset_identifier(uri)
        except ValueError:
            return None
        if ident is None:
            return None
        for path in self.candidates(ident, ext):
            try:
                with open(path, 'rb') as f:
                    img = image_decode(f.read())
            except (OSError, ImageDecodeFailed) as e:
                logger.warning("skipping asset %s: %s", path, e)
                continue
            return AssetHandle(local_identifier=ident, path=path,
                               pixel_width=img.shape[1], pixel_height=img.shape[0])
        return None

    def request_pixels(self, handle, target_size, options=PixelRequestOptions()):
        try:
            with open(handle.path, 'rb') as f:
                img = image_decode(f.read())
        except (OSError, ImageDecodeFailed) as e:
            logger.warning("cannot read asset %s: %s", handle.path, e)
            return None
        (w, h) = target_size
        if options.exact_size and (img.shape[1], img.shape[0]) != (w, h):
            img = cv2.resize(img, (w, h), interpolation=cv2.INTER_AREA)
        return Frame(img=img, urn=handle.path)
