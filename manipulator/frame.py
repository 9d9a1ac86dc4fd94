"""This module provides the following:

Frame - Holds a decoded image (the pixel buffer) and its provenance.
        Frames are created by the loader and by every transform stage.
        A Frame is never modified once created; stages make new ones.

image_decode() - turn encoded bytes into an OpenCV image.
round_half_away() - the one rounding rule used for all pixel dimensions.
"""
import copy
import math
import logging

import cv2
import numpy as np

from .errors import ImageDecodeFailed

P_URN = 'urn'
P_RESIZE = 'resize'
P_ROTATE = 'rotate'
P_FLIP = 'flip'
P_CROP = 'crop'

logger = logging.getLogger(__name__)


def round_half_away(x):
    """Round to the nearest integer, with halves going away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def image_decode(data):
    """Decode bytes to an OpenCV image in BGR or BGRA order, 8 bits per channel.
    Images with an alpha channel keep it. Everything else is decoded as color,
    which also applies the EXIF orientation.
    """
    buf = np.frombuffer(data, np.uint8)
    if buf.size == 0:
        raise ImageDecodeFailed(cause="no data")
    try:
        img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
        if img is None:
            raise ImageDecodeFailed()
        if img.ndim == 3 and img.shape[2] == 4:
            if img.dtype == np.uint16:
                img = (img >> 8).astype(np.uint8)
            return img
        img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    except cv2.error as e:  # pylint: disable=catching-non-exception
        raise ImageDecodeFailed(cause=str(e)) from e
    if img is None:
        raise ImageDecodeFailed()
    return img


class Frame:
    """Abstraction to hold a decoded image.
    If a stage changes the pixels, it makes a new Frame with derive()."""

    def __init__(self, *, img, urn=None, history=None):
        """
        :param img: numpy array, shape (h, w, 3) in BGR or (h, w, 4) in BGRA
        :param urn: where the pixels were read from, if anywhere
        :param history: list of [operation, parameters] pairs
        """
        assert img is not None
        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        self._img = img
        self.urn = urn
        if history is not None:
            self.history = history
        else:
            self.history = [[P_URN, urn]]

    @classmethod
    def from_bytes(cls, data, urn=None):
        return cls(img=image_decode(data), urn=urn)

    def __repr__(self):
        return f"<Frame {self.width}x{self.height} urn={self.urn} history={self.history}>"

    @property
    def img(self):
        """return the OpenCV image. Do not write into it."""
        return self._img

    @property
    def shape(self):
        """Returns shape. note: shape[0] = height, shape[1]=width, shape[2]==depth"""
        return tuple(self._img.shape)

    @property
    def width(self):
        return self._img.shape[1]

    @property
    def height(self):
        return self._img.shape[0]

    @property
    def has_alpha(self):
        return self._img.shape[2] == 4

    def derive(self, img, operation, params):
        """Return a new Frame with img, recording the operation that made it."""
        history = copy.copy(self.history)
        history.append([operation, params])
        logger.debug("%s %s -> %sx%s", operation, params, img.shape[1], img.shape[0])
        return Frame(img=img, history=history)

    def crop(self, *, xy, w, h):
        """Return a new Frame that is the old one cropped. The caller checks the bounds."""
        cropped_img = np.copy(self._img[xy[1]:xy[1]+h, xy[0]:xy[0]+w])
        return self.derive(cropped_img, P_CROP, (xy, (w, h)))
