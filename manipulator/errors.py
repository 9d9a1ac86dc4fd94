"""
Every failure of the manipulator is reported as exactly one of these.
Callers can catch ManipulatorError and look at .code.
"""

class ManipulatorError(RuntimeError):
    """Base class. cause is a description of the underlying error, if there was one."""
    code = 'ERR_IMAGE_MANIPULATOR'
    message = 'Image manipulation failed'

    def __init__(self, message=None, *, cause=None):
        self.cause = cause
        text = message or self.message
        if cause is not None:
            text = f"{text}: {cause}"
        super().__init__(text)


class ImageNotFound(ManipulatorError):
    code = 'ERR_IMAGE_NOT_FOUND'
    message = 'Image not found'

class ImageDecodeFailed(ManipulatorError):
    """The bytes could not be decoded as an image"""
    code = 'ERR_IMAGE_CORRUPTED'
    message = 'Cannot decode image data'

class FileSystemUnavailable(ManipulatorError):
    code = 'ERR_FILESYSTEM_NOT_FOUND'
    message = 'FileSystem module not found'

class PermissionDenied(ManipulatorError):
    code = 'ERR_FILESYSTEM_READ_PERMISSION'
    message = 'File is not readable'

    def __init__(self, path, **kwargs):
        self.path = path
        super().__init__(f"File '{path}' is not readable", **kwargs)

class LoadBackendFailed(ManipulatorError):
    code = 'ERR_IMAGE_LOADING_FAILED'
    message = 'Could not load the image'

class InvalidActionParameters(ManipulatorError):
    code = 'ERR_INVALID_ACTION'
    message = 'Invalid action parameters'

class CropOutOfBounds(ManipulatorError):
    code = 'ERR_CROP_OUT_OF_BOUNDS'
    message = 'Invalid crop options have been passed. Please make sure the requested crop rectangle is inside source image'

class DestinationUnavailable(ManipulatorError):
    code = 'ERR_DESTINATION_UNAVAILABLE'
    message = 'Cannot prepare the destination directory'

class EncodeFailed(ManipulatorError):
    code = 'ERR_IMAGE_ENCODING'
    message = 'Cannot encode the image'

class WriteFailed(ManipulatorError):
    code = 'ERR_IMAGE_WRITE_FAILED'
    message = 'Writing image data to the file has failed'

class InvalidRequest(ManipulatorError):
    """The request payload was malformed"""
    code = 'ERR_INVALID_REQUEST'
    message = 'Invalid request'
