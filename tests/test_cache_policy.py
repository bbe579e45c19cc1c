import os
import sys

import pytest

from pagepreview.cache.naming import cache_name, cache_path
from pagepreview.cache.policy import find_cached, is_usable
from pagepreview.cache.store import FILE_MODE, write_file
from pagepreview.config import apply_options
from pagepreview.errors import NoDataError, WriteError

URL = "https://www.example.com/article/42"


def make_file(path, size):
    path.write_bytes(b"x" * size)
    return path


@pytest.fixture
def aged(settings):
    return apply_options(settings, IMAGE_AGE=3600)


class TestIsUsable:

    def test_age_zero_never_uses_cache(self, settings, image_dir):
        path = image_dir / "fresh.png"
        write_file(path, b"x" * 50_000)
        assert settings.IMAGE_AGE == 0
        assert not is_usable(path, settings)

    def test_size_threshold_boundary(self, aged, image_dir):
        small = make_file(image_dir / "small.png", aged.MIN_CACHE_SIZE - 1)
        exact = make_file(image_dir / "exact.png", aged.MIN_CACHE_SIZE)
        assert not is_usable(small, aged)
        assert is_usable(exact, aged)

    def test_missing_and_directory(self, aged, image_dir):
        assert not is_usable(image_dir / "missing.png", aged)
        (image_dir / "dir.png").mkdir()
        assert not is_usable(image_dir / "dir.png", aged)

    def test_overwrite(self, aged, image_dir):
        path = make_file(image_dir / "big.png", 20_000)
        assert not is_usable(path, apply_options(aged, OVERWRITE=True))

    def test_expiry(self, aged, image_dir):
        path = make_file(image_dir / "big.png", 20_000)
        mtime = os.stat(path).st_mtime
        assert is_usable(path, aged, now=mtime + 3599)
        assert not is_usable(path, aged, now=mtime + 3601)

    def test_configurable_threshold(self, aged, image_dir):
        path = make_file(image_dir / "tiny.png", 5000)
        assert not is_usable(path, aged)
        assert is_usable(path, apply_options(aged, MIN_CACHE_SIZE=4096))

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs mkfifo")
    def test_non_regular_file_is_accepted(self, aged, image_dir):
        fifo = image_dir / "pipe.png"
        os.mkfifo(fifo)
        assert is_usable(fifo, aged)


class TestFindCached:

    def test_primary_format(self, aged):
        make_file(cache_path(URL, aged), 20_000)
        assert find_cached(URL, aged) == cache_name(URL, aged)

    def test_other_format_needs_flag(self, aged):
        make_file(cache_path(URL, aged, "jpeg"), 20_000)
        assert find_cached(URL, aged) is None

        accepting = apply_options(aged, ACCEPT_OTHER_TYPE=True)
        assert find_cached(URL, accepting) == cache_name(URL, aged, "jpeg")

    def test_nothing_cached(self, aged):
        assert find_cached(URL, apply_options(aged, ACCEPT_OTHER_TYPE=True)) is None


class TestWriteFile:

    def test_writes_with_owner_only_mode(self, image_dir):
        path = image_dir / "out.png"
        assert write_file(path, b"abc") == 3
        assert path.read_bytes() == b"abc"
        if sys.platform != "win32":
            assert os.stat(path).st_mode & 0o777 == FILE_MODE & ~_umask()

    def test_truncates_existing(self, image_dir):
        path = image_dir / "out.png"
        path.write_bytes(b"old content that is longer")
        write_file(path, b"new")
        assert path.read_bytes() == b"new"

    def test_streams_chunks(self, image_dir):
        path = image_dir / "out.gif"
        assert write_file(path, chunks=iter([b"GIF8", b"", b"9a"])) == 6
        assert path.read_bytes() == b"GIF89a"

    def test_no_data(self, image_dir):
        with pytest.raises(NoDataError):
            write_file(image_dir / "a.png")
        with pytest.raises(NoDataError):
            write_file(image_dir / "b.png", chunks=iter([]))
        assert not (image_dir / "b.png").exists()

    def test_partial_file_removed_on_error(self, image_dir):
        path = image_dir / "partial.png"

        def chunks():
            yield b"first part"
            raise ConnectionError("stream broke")

        with pytest.raises(ConnectionError):
            write_file(path, chunks=chunks())
        assert not path.exists()

    def test_unwritable_target(self, image_dir):
        target = image_dir / "taken.png"
        target.mkdir()
        with pytest.raises(WriteError):
            write_file(target, b"data")
        assert target.is_dir()


def _umask():
    current = os.umask(0)
    os.umask(current)
    return current
