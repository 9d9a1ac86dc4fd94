"""
Encoder and writer.

encode_and_write() encodes the final frame as JPEG or PNG, writes it under a
unique name in the destination directory, and returns the ManipulationResult.
The inline base64 payload, when requested, is made from the same bytes that
were written.
"""

import os
import base64
import logging
import pathlib
import uuid
from dataclasses import dataclass
from os.path import join
from typing import Optional

import cv2
import numpy as np

from .constants import C
from .errors import DestinationUnavailable, EncodeFailed, WriteFailed
from .frame import Frame, round_half_away
from .request import ManipulateOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ManipulationResult:
    destination: str            # file:// URI of the written image
    width: int
    height: int
    base64: Optional[bytes] = None

    def to_dict(self):
        """The response payload. base64 is only present if it was requested."""
        d = {'destination': self.destination, 'width': self.width, 'height': self.height}
        if self.base64 is not None:
            d['base64'] = self.base64
        return d


def flatten_alpha(img):
    """Composite a BGRA image over white and return BGR."""
    alpha = img[:, :, 3:4].astype(np.float32) / 255.0
    bgr = img[:, :, :3].astype(np.float32)
    out = bgr * alpha + 255.0 * (1.0 - alpha)
    return np.clip(np.rint(out), 0, 255).astype(np.uint8)


def encode(f:Frame, options:ManipulateOptions) -> bytes:
    """PNG ignores compress. JPEG uses it as the quality."""
    if options.lossy:
        img = flatten_alpha(f.img) if f.has_alpha else f.img
        quality = round_half_away(options.compress * C.JPEG_QUALITY_SCALE)
        params = [cv2.IMWRITE_JPEG_QUALITY, quality]
    else:
        img = f.img
        params = []
    try:
        (ok, buf) = cv2.imencode(options.file_extension, img, params)
    except cv2.error as e:  # pylint: disable=catching-non-exception
        raise EncodeFailed(cause=str(e)) from e
    if not ok or buf is None or buf.size == 0:
        raise EncodeFailed(cause=f"{options.format} encoder produced no data")
    return buf.tobytes()


def default_destination_dir(filesystem):
    if filesystem is None:
        raise DestinationUnavailable(cause="no filesystem is configured")
    return join(filesystem.caches_directory(), C.CACHE_SUBDIR)


def encode_and_write(f:Frame, options:ManipulateOptions, destination_dir, filesystem) -> ManipulationResult:
    if filesystem is None:
        raise DestinationUnavailable(cause="no filesystem is configured")
    try:
        filesystem.ensure_dir_exists(destination_dir)
    except OSError as e:
        raise DestinationUnavailable(cause=str(e)) from e
    path = os.path.abspath(join(destination_dir, str(uuid.uuid4()) + options.file_extension))

    data = encode(f, options)
    try:
        filesystem.write_file(path, data)
    except OSError as e:
        raise WriteFailed(cause=e.strerror or str(e)) from e
    logger.debug("saved %s %sx%s %s bytes", path, f.width, f.height, len(data))
    return ManipulationResult(destination=pathlib.Path(path).as_uri(),
                              width=f.width,
                              height=f.height,
                              base64=base64.b64encode(data) if options.base64 else None)
