"""
The request boundary.

parse_request() takes a request payload (a dict, usually from JSON) and returns a
ManipulateRequest whose actions are ready-to-run stages. Everything is checked here,
so nothing after this point has to look at untyped data.

    {"uri": "file:///tmp/a.jpg",
     "actions": [{"resize": {"width": 100}}, {"rotate": 90}, {"flip": "vertical"},
                 {"crop": {"originX": 0, "originY": 0, "width": 50, "height": 50}}],
     "options": {"format": "png", "compress": 1.0, "base64": false}}
"""

import math
import numbers
from dataclasses import dataclass, field

from .constants import C
from .errors import InvalidActionParameters, InvalidRequest
from .stage import Resize, Rotate, Flip, Crop

ACTION_KEYS = ('resize', 'rotate', 'flip', 'crop')


@dataclass(frozen=True)
class ManipulateOptions:
    base64: bool = False
    compress: float = C.DEFAULT_COMPRESS
    format: str = C.DEFAULT_FORMAT

    def __post_init__(self):
        if not isinstance(self.base64, bool):
            raise InvalidRequest(f"base64 must be true or false, not {self.base64!r}")
        if (isinstance(self.compress, bool) or not isinstance(self.compress, numbers.Real)
            or not math.isfinite(self.compress) or not 0.0 <= self.compress <= 1.0):
            raise InvalidRequest(f"compress must be a number between 0 and 1, not {self.compress!r}")
        if not isinstance(self.format, str) or self.format.lower() not in C.FORMATS:
            raise InvalidRequest(f"format must be one of {sorted(C.FORMATS)}, not {self.format!r}")
        # frozen, so go around __setattr__ to normalize
        object.__setattr__(self, 'format', self.format.lower())
        object.__setattr__(self, 'compress', float(self.compress))

    @property
    def file_extension(self):
        return C.FILE_EXTENSIONS[self.format]

    @property
    def lossy(self):
        return self.format in (C.JPEG, C.JPG)


@dataclass(frozen=True)
class ManipulateRequest:
    reference: str
    actions: tuple = ()
    options: ManipulateOptions = field(default_factory=ManipulateOptions)


def _fields(record, name, allowed):
    if not isinstance(record, dict):
        raise InvalidActionParameters(f"{name} must be an object, not {record!r}")
    unknown = set(record) - set(allowed)
    if unknown:
        raise InvalidActionParameters(f"unknown {name} fields: {sorted(unknown)}")
    return record


def parse_action(record):
    """Turn one action record into a Stage. Exactly one action key must be set."""
    if not isinstance(record, dict):
        raise InvalidActionParameters(f"action must be an object, not {record!r}")
    unknown = set(record) - set(ACTION_KEYS)
    if unknown:
        raise InvalidActionParameters(f"unknown action {sorted(unknown)}")
    present = [key for key in ACTION_KEYS if record.get(key) is not None]
    if len(present) != 1:
        raise InvalidActionParameters(f"an action must have exactly one of {ACTION_KEYS}, got {present}")
    key = present[0]
    value = record[key]
    if key == 'resize':
        r = _fields(value, 'resize', ('width', 'height'))
        return Resize(width=r.get('width'), height=r.get('height'))
    if key == 'rotate':
        return Rotate(value)
    if key == 'flip':
        return Flip(value)
    r = _fields(value, 'crop', ('originX', 'originY', 'width', 'height'))
    return Crop(r.get('originX', 0.0), r.get('originY', 0.0), r.get('width', 0.0), r.get('height', 0.0))


def parse_options(record):
    if record is None:
        return ManipulateOptions()
    if not isinstance(record, dict):
        raise InvalidRequest(f"options must be an object, not {record!r}")
    unknown = set(record) - set(['base64', 'compress', 'format'])
    if unknown:
        raise InvalidRequest(f"unknown options {sorted(unknown)}")
    return ManipulateOptions(base64=record.get('base64', False),
                             compress=record.get('compress', C.DEFAULT_COMPRESS),
                             format=record.get('format', C.DEFAULT_FORMAT))


def parse_request(payload) -> ManipulateRequest:
    if not isinstance(payload, dict):
        raise InvalidRequest("request must be an object")
    reference = payload.get('reference', payload.get('uri'))
    if not isinstance(reference, str) or not reference:
        raise InvalidRequest("request needs a 'reference' (or 'uri') string")
    actions = payload.get('actions') or []
    if not isinstance(actions, list):
        raise InvalidRequest("actions must be a list")
    return ManipulateRequest(reference=reference,
                             actions=tuple(parse_action(a) for a in actions),
                             options=parse_options(payload.get('options')))
