"""Constants"""

# pylint: disable=too-few-public-methods
class C:
    """Constants"""
    JPEG = 'jpeg'
    JPG  = 'jpg'
    PNG  = 'png'
    FORMATS = set([JPEG, JPG, PNG])
    FILE_EXTENSIONS = {JPEG:'.jpg', JPG:'.jpg', PNG:'.png'}
    DEFAULT_FORMAT = JPEG
    DEFAULT_COMPRESS = 1.0
    JPEG_QUALITY_SCALE = 100

    CACHE_SUBDIR = 'ImageManipulator'
    DEFAULT_GET_TIMEOUT = 30

    # reference schemes
    SCHEME_DATA = 'data'
    SCHEME_FILE = 'file'
    ASSET_SCHEMES = set(['assets-library','ph'])
    REMOTE_SCHEMES = set(['http','https','s3'])

    # rotation fill color for exposed corners
    WHITE  = (255,255,255)
    WHITE_ALPHA = (255,255,255,255)
