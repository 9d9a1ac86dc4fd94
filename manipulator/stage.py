"""
Stage implementation and the transform actions.

Each action of a request is a Stage: Resize, Rotate, Flip and Crop.
A stage takes a Frame and returns a new Frame; it never changes the one it was given.
Pixel dimensions are always rounded with round_half_away().
"""

import math
import time
import numbers
import logging
from abc import ABC, abstractmethod

import cv2

from .constants import C
from .errors import InvalidActionParameters, CropOutOfBounds
from .frame import Frame, round_half_away, P_RESIZE, P_ROTATE, P_FLIP

logger = logging.getLogger(__name__)

FLIP_VERTICAL = 'vertical'
FLIP_HORIZONTAL = 'horizontal'
FLIP_CODES = {FLIP_VERTICAL: 0,       # top <-> bottom
              FLIP_HORIZONTAL: 1}     # left <-> right

RIGHT_ANGLE_ROTATIONS = {90.0: cv2.ROTATE_90_CLOCKWISE,
                         180.0: cv2.ROTATE_180,
                         270.0: cv2.ROTATE_90_COUNTERCLOCKWISE}


def check_number(name, value, *, positive=False):
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise InvalidActionParameters(f"{name} must be a finite number, not {value!r}")
    if positive and value <= 0:
        raise InvalidActionParameters(f"{name} must be positive, not {value!r}")
    return float(value)


class Stage(ABC):
    """Abstract base class for one step of the transform pipeline"""

    def __init__(self):
        self.sum_t   = 0
        self.sum_t2  = 0
        self.count   = 0

    @abstractmethod
    def process(self, f:Frame) -> Frame:
        """Return the transformed frame."""

    def _run_frame(self, f):
        """called by the pipeline. Processes the frame and keeps timing statistics."""
        t0 = time.time()
        out = self.process(f)
        t = time.time() - t0
        self.sum_t  += t
        self.sum_t2 += (t*t)
        self.count  += 1
        return out

    @property
    def t_mean(self):
        return self.sum_t / self.count if self.count>0 else float("nan")

    @property
    def t2_mean(self):
        return self.sum_t2 / self.count if self.count>0 else float("nan")

    @property
    def t_variance(self):
        return max(0.0, self.t2_mean - self.t_mean * self.t_mean)

    @property
    def t_stddev(self):
        return math.sqrt(self.t_variance)


class Resize(Stage):
    """Resize to width and/or height. If only one is given, the other keeps the aspect ratio."""
    def __init__(self, width=None, height=None):
        super().__init__()
        if width is None and height is None:
            raise InvalidActionParameters("resize needs a width or a height")
        self.width  = None if width is None else check_number('resize width', width, positive=True)
        self.height = None if height is None else check_number('resize height', height, positive=True)

    def __repr__(self):
        return f"<Resize width={self.width} height={self.height}>"

    def target_size(self, f:Frame):
        if self.width is not None and self.height is not None:
            (w, h) = (self.width, self.height)
        elif self.width is not None:
            (w, h) = (self.width, self.width * f.height / f.width)
        else:
            (w, h) = (self.height * f.width / f.height, self.height)
        (w, h) = (round_half_away(w), round_half_away(h))
        if w < 1 or h < 1:
            raise InvalidActionParameters(f"resize of {f.width}x{f.height} would produce {w}x{h}")
        return (w, h)

    def process(self, f:Frame):
        (w, h) = self.target_size(f)
        interpolation = cv2.INTER_AREA if w*h < f.width*f.height else cv2.INTER_LINEAR
        return f.derive(cv2.resize(f.img, (w, h), interpolation=interpolation), P_RESIZE, (w, h))


class Rotate(Stage):
    """Rotate clockwise. The canvas grows to hold the whole rotated image;
    the corners that are left over are filled with opaque white."""
    def __init__(self, degrees):
        super().__init__()
        self.degrees = check_number('rotate degrees', degrees)

    def __repr__(self):
        return f"<Rotate degrees={self.degrees}>"

    @staticmethod
    def bounding_size(w, h, degrees):
        rad = math.radians(degrees)
        (cos, sin) = (abs(math.cos(rad)), abs(math.sin(rad)))
        return (round_half_away(w*cos + h*sin), round_half_away(w*sin + h*cos))

    @staticmethod
    def rotate_bound(img, degrees):
        (h, w) = img.shape[:2]
        (nw, nh) = Rotate.bounding_size(w, h, degrees)
        # OpenCV angles are counter-clockwise
        m = cv2.getRotationMatrix2D(((w-1)/2.0, (h-1)/2.0), -degrees, 1.0)
        m[0, 2] += (nw-1)/2.0 - (w-1)/2.0
        m[1, 2] += (nh-1)/2.0 - (h-1)/2.0
        fill = C.WHITE_ALPHA if img.shape[2] == 4 else C.WHITE
        return cv2.warpAffine(img, m, (nw, nh), flags=cv2.INTER_LINEAR,
                              borderMode=cv2.BORDER_CONSTANT, borderValue=fill)

    def process(self, f:Frame):
        d = self.degrees % 360.0
        if d == 0:
            img = f.img
        elif d in RIGHT_ANGLE_ROTATIONS:
            img = cv2.rotate(f.img, RIGHT_ANGLE_ROTATIONS[d])
        else:
            img = self.rotate_bound(f.img, d)
        return f.derive(img, P_ROTATE, self.degrees)


class Flip(Stage):
    def __init__(self, axis):
        super().__init__()
        if axis not in FLIP_CODES:
            raise InvalidActionParameters(f"flip must be one of {sorted(FLIP_CODES)}, not {axis!r}")
        self.axis = axis

    def __repr__(self):
        return f"<Flip axis={self.axis}>"

    def process(self, f:Frame):
        return f.derive(cv2.flip(f.img, FLIP_CODES[self.axis]), P_FLIP, self.axis)


class Crop(Stage):
    """Crop to a rectangle given in the coordinates of the frame that reaches this stage."""
    def __init__(self, origin_x, origin_y, width, height):
        super().__init__()
        self.origin_x = check_number('crop originX', origin_x)
        self.origin_y = check_number('crop originY', origin_y)
        self.width    = check_number('crop width', width, positive=True)
        self.height   = check_number('crop height', height, positive=True)

    def __repr__(self):
        return f"<Crop origin=({self.origin_x},{self.origin_y}) size={self.width}x{self.height}>"

    def pixel_rect(self, f:Frame):
        """Returns ((x, y), w, h) in whole pixels, or raises CropOutOfBounds."""
        if (self.origin_x < 0 or self.origin_y < 0
            or self.origin_x + self.width > f.width
            or self.origin_y + self.height > f.height):
            raise CropOutOfBounds(cause=f"rectangle {self.origin_x},{self.origin_y} "
                                  f"{self.width}x{self.height} is outside {f.width}x{f.height}")
        w = round_half_away(self.width)
        h = round_half_away(self.height)
        if w < 1 or h < 1:
            raise InvalidActionParameters(f"crop of {self.width}x{self.height} is less than one pixel")
        x = min(round_half_away(self.origin_x), f.width - w)
        y = min(round_half_away(self.origin_y), f.height - h)
        return ((x, y), w, h)

    def process(self, f:Frame):
        (xy, w, h) = self.pixel_rect(f)
        return f.crop(xy=xy, w=w, h=h)
