"""
Tests for encoding and writing
"""

import sys
import base64
import errno
import pathlib
from os.path import abspath, dirname

import cv2
import numpy as np
import pytest

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

import manipulator.writer as writer
from manipulator.errors import DestinationUnavailable, EncodeFailed, WriteFailed
from manipulator.frame import Frame, image_decode
from manipulator.request import ManipulateOptions
from manipulator.storage import LocalFileSystem
from manipulator.writer import encode, encode_and_write, default_destination_dir


@pytest.fixture
def fs(tmp_path):
    return LocalFileSystem(caches_dir=str(tmp_path / 'caches'))


@pytest.fixture
def noise():
    rng = np.random.default_rng(1)
    return Frame(img=rng.integers(0, 256, (120, 160, 3), dtype=np.uint8))


def result_path(result):
    assert result.destination.startswith('file://')
    return pathlib.Path(result.destination[len('file://'):])


def test_png_ignores_compress(noise, fs, tmp_path):
    a = encode(noise, ManipulateOptions(format='png', compress=0.1))
    b = encode(noise, ManipulateOptions(format='png', compress=1.0))
    assert a == b
    assert np.array_equal(image_decode(a), noise.img)

    ra = encode_and_write(noise, ManipulateOptions(format='png', compress=0.1), str(tmp_path / 'out'), fs)
    rb = encode_and_write(noise, ManipulateOptions(format='png', compress=1.0), str(tmp_path / 'out'), fs)
    assert result_path(ra).read_bytes() == result_path(rb).read_bytes()


def test_jpeg_uses_compress(noise):
    low = encode(noise, ManipulateOptions(format='jpeg', compress=0.1))
    high = encode(noise, ManipulateOptions(format='jpg', compress=1.0))
    assert len(low) < len(high)
    assert image_decode(low).shape == (120, 160, 3)


def test_jpeg_flattens_alpha():
    img = np.zeros((10, 10, 4), np.uint8)      # transparent black
    data = encode(Frame(img=img), ManipulateOptions(format='jpeg'))
    decoded = image_decode(data)
    assert decoded.shape == (10, 10, 3)
    assert decoded.min() >= 250


def test_write(noise, fs, tmp_path):
    dest = tmp_path / 'a' / 'b'
    r = encode_and_write(noise, ManipulateOptions(), str(dest), fs)
    path = result_path(r)
    assert path.parent == dest
    assert path.suffix == '.jpg'
    assert (r.width, r.height) == (160, 120)
    assert r.base64 is None
    assert r.to_dict() == {'destination': r.destination, 'width': 160, 'height': 120}

    r2 = encode_and_write(noise, ManipulateOptions(), str(dest), fs)
    assert r2.destination != r.destination
    assert len(list(dest.iterdir())) == 2

    assert result_path(encode_and_write(noise, ManipulateOptions(format='png'), str(dest), fs)).suffix == '.png'


def test_base64(noise, fs, tmp_path):
    r = encode_and_write(noise, ManipulateOptions(format='png', base64=True), str(tmp_path / 'out'), fs)
    data = base64.b64decode(r.base64)
    assert data == result_path(r).read_bytes()
    assert np.array_equal(image_decode(data), noise.img)
    assert r.to_dict()['base64'] == r.base64


def test_default_destination_dir(fs, tmp_path):
    assert default_destination_dir(fs) == str(tmp_path / 'caches' / 'ImageManipulator')
    with pytest.raises(DestinationUnavailable):
        default_destination_dir(None)


def test_destination_unavailable(noise, fs, tmp_path):
    with pytest.raises(DestinationUnavailable):
        encode_and_write(noise, ManipulateOptions(), str(tmp_path), None)
    (tmp_path / 'file').write_bytes(b'')
    with pytest.raises(DestinationUnavailable):
        encode_and_write(noise, ManipulateOptions(), str(tmp_path / 'file' / 'dir'), fs)


def test_encode_failed(noise, monkeypatch):
    monkeypatch.setattr(writer.cv2, 'imencode', lambda ext, img, params: (False, None))
    with pytest.raises(EncodeFailed):
        encode(noise, ManipulateOptions())


class FullFileSystem(LocalFileSystem):
    def write_file(self, path, data):
        raise OSError(errno.ENOSPC, 'No space left on device')


def test_write_failed(noise, tmp_path):
    fs = FullFileSystem(caches_dir=str(tmp_path))
    with pytest.raises(WriteFailed) as e:
        encode_and_write(noise, ManipulateOptions(), str(tmp_path / 'out'), fs)
    assert e.value.cause == 'No space left on device'
    assert list((tmp_path / 'out').iterdir()) == []


def test_jpeg_quality_rounds_half_away(noise, monkeypatch):
    seen = []
    real_imencode = cv2.imencode
    def recording_imencode(ext, img, params):
        seen.append(params)
        return real_imencode(ext, img, params)
    monkeypatch.setattr(writer.cv2, 'imencode', recording_imencode)
    encode(noise, ManipulateOptions(format='jpeg', compress=0.125))
    encode(noise, ManipulateOptions(format='jpeg', compress=0.5))
    assert seen == [[cv2.IMWRITE_JPEG_QUALITY, 13], [cv2.IMWRITE_JPEG_QUALITY, 50]]
