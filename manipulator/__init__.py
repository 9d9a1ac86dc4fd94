"""Design document.

Abstractions related to image content:

Frame - A decoded image (BGR or BGRA pixels) and the history of how it
        was made. Frames are immutable once made; every stage that
        changes the pixels produces a new Frame.

ImageReference - The image a request names. Made by resolve() from the
        request string and tagged by scheme: inline data (data: URIs),
        platform asset (assets-library: and ph: URIs), filesystem path
        (plain paths and file: URIs) or any other URL.

Abstractions related to image processing:

Stage - One transform action: Resize, Rotate, Flip or Crop. A stage
        takes a Frame and returns a new one.

Pipeline - Holds the stages of one request in order and runs a frame
        through them. The output of each stage is the input of the next.

Abstractions related to the outside world:

Backends - The filesystem/permission layer, the generic image loader
        and the asset library. Each is an abstract class with a local
        implementation; default_backends() picks them at startup.

manipulate() - load the image, run the pipeline, then encode and write
        the result to the caches directory. One result or one
        ManipulatorError per request.
"""

from .errors import ManipulatorError
from .manipulator import manipulate, manipulate_sync, manipulate_request
from .request import ManipulateOptions, parse_request
from .stage import Resize, Rotate, Flip, Crop
from .writer import ManipulationResult
