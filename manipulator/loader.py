"""
Image loader.

load(ref, backends) is a coroutine that produces the Frame for an
ImageReference. Backend I/O runs in a worker thread and is awaited once,
so the coroutine either returns one Frame or raises one ManipulatorError.
"""

import asyncio
import base64
import binascii
import logging
import urllib.parse

from .assets import PixelRequestOptions
from .backends import Backends
from .errors import (ImageNotFound, ImageDecodeFailed, FileSystemUnavailable,
                     PermissionDenied, LoadBackendFailed)
from .frame import Frame
from .reference import ImageReference, KIND_INLINE_DATA, KIND_PLATFORM_ASSET

logger = logging.getLogger(__name__)


def data_uri_bytes(uri):
    """Return the payload of a data: URI."""
    try:
        (header, payload) = uri.split(',', 1)
    except ValueError as e:
        raise ImageDecodeFailed(cause="data URI has no payload") from e
    data = urllib.parse.unquote_to_bytes(payload)
    if header.lower().endswith(';base64'):
        try:
            data = base64.b64decode(data)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeFailed(cause=str(e)) from e
    return data


def load_inline_data(ref:ImageReference) -> Frame:
    return Frame.from_bytes(data_uri_bytes(ref.reference), urn=None)


def fetch_asset_pixels(asset_library, uri) -> Frame:
    """Find the asset and ask for all of its pixels. Runs in a worker thread."""
    handle = asset_library.fetch_asset(uri)
    if handle is None:
        raise ImageNotFound(f"No asset matches '{uri}'")
    size = (handle.pixel_width, handle.pixel_height)
    frame = asset_library.request_pixels(handle, size, PixelRequestOptions())
    if frame is None:
        raise ImageNotFound(f"Asset '{handle.local_identifier}' returned no image")
    return frame


async def load_platform_asset(ref:ImageReference, backends:Backends) -> Frame:
    if backends.asset_library is None:
        raise LoadBackendFailed(cause="no asset library is configured")
    return await asyncio.to_thread(fetch_asset_pixels, backends.asset_library, ref.reference)


async def load_with_backend(ref:ImageReference, backends:Backends) -> Frame:
    """Filesystem paths and everything else go through the generic loader, after a permission check."""
    if backends.image_loader is None:
        raise LoadBackendFailed(cause="no image loader is configured")
    if backends.filesystem is None:
        raise FileSystemUnavailable()
    uri = ref.uri
    if not backends.filesystem.has_read_permission(uri):
        raise PermissionDenied(uri)
    try:
        frame = await asyncio.to_thread(backends.image_loader.load_image, uri)
    except Exception as e:  # pylint: disable=broad-except
        raise LoadBackendFailed(cause=str(e) or e.__class__.__name__) from e
    if frame is None:
        raise LoadBackendFailed(cause="the image loader returned no image")
    return frame


async def load(ref:ImageReference, backends:Backends) -> Frame:
    logger.debug("load %s kind=%s", ref.reference[:80], ref.kind)
    if ref.kind == KIND_INLINE_DATA:
        return load_inline_data(ref)
    if ref.kind == KIND_PLATFORM_ASSET:
        return await load_platform_asset(ref, backends)
    return await load_with_backend(ref, backends)
