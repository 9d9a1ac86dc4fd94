"""
The collaborators the manipulator talks to, chosen once at startup.
A missing collaborator is None; the loader and writer report that as an error.
"""

import functools
import logging
from dataclasses import dataclass
from typing import Optional

from . import paths
from .assets import AssetLibrary, DirectoryAssetLibrary
from .storage import FileSystem, ImageLoaderBackend, LocalFileSystem, UrlImageLoader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Backends:
    filesystem: Optional[FileSystem] = None
    image_loader: Optional[ImageLoaderBackend] = None
    asset_library: Optional[AssetLibrary] = None


def local_backends(*, caches_dir, assets_dir=None, readable_roots=None):
    return Backends(filesystem=LocalFileSystem(caches_dir=caches_dir, readable_roots=readable_roots),
                    image_loader=UrlImageLoader(),
                    asset_library=DirectoryAssetLibrary(assets_dir) if assets_dir else None)


@functools.lru_cache(maxsize=1)
def default_backends():
    """Backends configured from the environment. See paths.py."""
    b = local_backends(caches_dir=paths.caches_dir(),
                       assets_dir=paths.assets_dir(),
                       readable_roots=paths.readable_roots())
    logger.debug("default backends: %s", b)
    return b
