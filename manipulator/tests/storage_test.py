"""
Tests for the storage layer
"""

import io
import os
import stat
import sys
from os.path import abspath, dirname

import pytest

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

import manipulator.storage as storage
from manipulator.storage import LocalFileSystem, UrlImageLoader, storage_load


def test_read_permission(tmp_path):
    (tmp_path / 'ok').mkdir()
    (tmp_path / 'ok' / 'a.png').write_bytes(b'x')
    fs = LocalFileSystem(caches_dir=str(tmp_path))
    assert fs.has_read_permission((tmp_path / 'ok' / 'a.png').as_uri())
    assert fs.has_read_permission('https://example.com/a.png')
    assert fs.has_read_permission('s3://bucket/a.png')
    assert not fs.has_read_permission('gopher://example.com/a.png')
    assert not fs.has_read_permission('file://[broken/a.png')

    scoped = LocalFileSystem(caches_dir=str(tmp_path), readable_roots=[str(tmp_path / 'ok')])
    assert scoped.has_read_permission((tmp_path / 'ok' / 'a.png').as_uri())
    assert not scoped.has_read_permission((tmp_path / 'a.png').as_uri())
    assert not scoped.has_read_permission((tmp_path / 'ok2' / 'a.png').as_uri())


def test_write_file(tmp_path):
    fs = LocalFileSystem(caches_dir=str(tmp_path))
    assert fs.caches_directory() == str(tmp_path)
    d = tmp_path / 'x' / 'y'
    fs.ensure_dir_exists(str(d))
    fs.ensure_dir_exists(str(d))
    fs.write_file(str(d / 'out.png'), b'hello')
    fs.write_file(str(d / 'out.png'), b'goodbye')
    assert (d / 'out.png').read_bytes() == b'goodbye'
    assert os.listdir(d) == ['out.png']

    with pytest.raises(OSError):
        fs.write_file(str(tmp_path / 'missing' / 'out.png'), b'hello')


class FakeResponse:
    def __init__(self, content, status=200):
        self.content = content
        self.status = status

    def raise_for_status(self):
        if self.status != 200:
            raise RuntimeError(f"HTTP {self.status}")


def test_http(monkeypatch, make_png):
    urls = []
    def fake_get(url, timeout):
        urls.append((url, timeout))
        return FakeResponse(make_png(7, 3))
    monkeypatch.setattr(storage.requests, 'get', fake_get)
    f = UrlImageLoader().load_image('https://example.com/a.png')
    assert (f.width, f.height) == (7, 3)
    assert urls == [('https://example.com/a.png', storage.C.DEFAULT_GET_TIMEOUT)]

    monkeypatch.setattr(storage.requests, 'get', lambda url, timeout: FakeResponse(b'', status=404))
    with pytest.raises(RuntimeError):
        storage_load('http://example.com/a.png')


def test_s3(monkeypatch):
    class FakeS3:
        def get_object(self, Bucket, Key):
            assert (Bucket, Key) == ('bucket', 'dir/a.png')
            return {'Body': io.BytesIO(b'pixels')}
    monkeypatch.setattr(storage, 's3_client', FakeS3)
    assert storage_load('s3://bucket/dir/a.png') == b'pixels'


def test_unknown_scheme():
    with pytest.raises(ValueError):
        storage_load('gopher://example.com/a.png')


def test_missing_directories_are_readable(tmp_path):
    fs = LocalFileSystem(caches_dir=str(tmp_path), readable_roots=[str(tmp_path)])
    assert fs.has_read_permission((tmp_path / 'nope' / 'deeper' / 'a.png').as_uri())
    assert not fs.has_read_permission((tmp_path.parent / 'nope' / 'a.png').as_uri())


def test_written_file_mode_follows_umask(tmp_path):
    fs = LocalFileSystem(caches_dir=str(tmp_path))
    fs.write_file(str(tmp_path / 'out.png'), b'hello')
    mode = stat.S_IMODE(os.stat(tmp_path / 'out.png').st_mode)
    assert mode == 0o666 & ~storage.UMASK
