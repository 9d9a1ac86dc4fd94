"""
Fixtures shared by the tests. Test images are made with numpy, so there is no test data directory.
"""

import base64

import cv2
import numpy as np
import pytest

from manipulator.backends import local_backends


def gradient(w, h, channels=3):
    """An image where (almost) every pixel is different, so rearrangements can be checked exactly."""
    ys, xs = np.mgrid[0:h, 0:w]
    planes = [xs % 256, ys % 256, (xs * 7 + ys * 3) % 256]
    if channels == 4:
        planes.append(np.full((h, w), 255))
    return np.dstack(planes).astype(np.uint8)


def encoded(img, ext='.png'):
    (ok, buf) = cv2.imencode(ext, img)
    assert ok
    return buf.tobytes()


@pytest.fixture
def make_img():
    return gradient


@pytest.fixture
def make_png():
    def make(w, h, channels=3):
        return encoded(gradient(w, h, channels))
    return make


@pytest.fixture
def make_data_uri():
    def make(img):
        return "data:image/png;base64," + base64.b64encode(encoded(img)).decode()
    return make


@pytest.fixture
def backends(tmp_path):
    (tmp_path / 'assets').mkdir()
    return local_backends(caches_dir=str(tmp_path / 'caches'),
                          assets_dir=str(tmp_path / 'assets'))
