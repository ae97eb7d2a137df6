"""Tests for the storage backends backing lazily-stored images."""
import numpy as np
import pytest

from solarmath.constants.constants import Backend
from solarmath.io import DiskStorageBackend, MemoryStorageBackend, create_backend
from solarmath.io.exceptions import StorageResolutionError


@pytest.fixture
def backend(storage_backend_name, tmp_path):
    return create_backend(Backend(storage_backend_name), tmp_path)


def test_save_and_load(backend):
    data = np.arange(12, dtype=np.float32).reshape(3, 4)
    backend.save(data, "image-a")
    np.testing.assert_array_equal(backend.load("image-a"), data)
    assert backend.exists("image-a")


def test_loaded_arrays_do_not_alias_storage(backend):
    data = np.ones((2, 2), dtype=np.float32)
    backend.save(data, "image-a")
    data[0, 0] = 5.0
    loaded = backend.load("image-a")
    loaded[1, 1] = 7.0
    np.testing.assert_array_equal(backend.load("image-a"), np.ones((2, 2)))


def test_save_twice_fails(backend):
    backend.save(np.zeros(2), "image-a")
    with pytest.raises(FileExistsError):
        backend.save(np.zeros(2), "image-a")


def test_missing_key(backend):
    with pytest.raises(FileNotFoundError):
        backend.load("absent")
    with pytest.raises(FileNotFoundError):
        backend.delete("absent")


def test_delete_and_list(backend):
    for key in ("b", "a", "c"):
        backend.save(np.zeros(1), key)
    assert backend.list_keys() == ["a", "b", "c"]
    backend.delete("b")
    assert backend.list_keys() == ["a", "c"]
    assert not backend.exists("b")


@pytest.mark.parametrize("key", ["", "../escape", "a/b", ".."])
def test_invalid_keys(backend, key):
    with pytest.raises(StorageResolutionError):
        backend.save(np.zeros(1), key)


def test_factory_types(tmp_path):
    assert isinstance(create_backend(Backend.MEMORY), MemoryStorageBackend)
    disk = create_backend(Backend.DISK, tmp_path)
    assert isinstance(disk, DiskStorageBackend)
    assert disk.root == tmp_path


def test_disk_files_are_npy(tmp_path):
    backend = DiskStorageBackend(tmp_path)
    backend.save(np.zeros((2, 2)), "image-x")
    assert (tmp_path / "image-x.npy").exists()
