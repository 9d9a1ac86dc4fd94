"""
Tests for the frame
"""

import sys
from os.path import abspath, dirname

import cv2
import numpy as np
import pytest

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

from manipulator.errors import ImageDecodeFailed
from manipulator.frame import Frame, image_decode, round_half_away


def test_round_half_away():
    assert round_half_away(2.5) == 3
    assert round_half_away(-2.5) == -3
    assert round_half_away(50.5) == 51
    assert round_half_away(1.49) == 1
    assert round_half_away(0.4) == 0
    assert round_half_away(7.0) == 7


def test_decode_grayscale_is_bgr():
    gray = np.full((12, 20), 128, np.uint8)
    img = image_decode(cv2.imencode('.png', gray)[1].tobytes())
    assert img.shape == (12, 20, 3)
    assert (img == 128).all()


def test_decode_keeps_alpha(make_png):
    img = image_decode(make_png(8, 6, channels=4))
    assert img.shape == (6, 8, 4)


def test_decode_garbage():
    with pytest.raises(ImageDecodeFailed):
        image_decode(b'this is not an image')
    with pytest.raises(ImageDecodeFailed):
        image_decode(b'')


def test_frame(make_img):
    img = make_img(40, 30)
    f = Frame(img=img, urn='file:///tmp/x.png')
    assert (f.width, f.height) == (40, 30)
    assert f.shape == (30, 40, 3)
    assert not f.has_alpha

    fc = f.crop(xy=(5, 6), w=10, h=4)
    assert fc.shape == (4, 10, 3)
    assert np.array_equal(fc.img, img[6:10, 5:15])
    assert fc.history == [['urn', 'file:///tmp/x.png'], ['crop', ((5, 6), (10, 4))]]
    assert fc.urn is None
    # the original is untouched
    assert len(f.history) == 1


def test_from_bytes(make_png):
    f = Frame.from_bytes(make_png(17, 9), urn='u')
    assert (f.width, f.height) == (17, 9)
    assert f.history == [['urn', 'u']]
