"""Exceptions raised at the storage boundary of lazily-stored images."""


class StorageResolutionError(ValueError):
    """Raised when a storage key cannot be resolved to a valid location."""
    pass


class StorageReadError(RuntimeError):
    """Raised when stored pixel data cannot be read back."""
    pass


class StorageWriteError(RuntimeError):
    """Raised when writing pixel data to storage fails."""
    pass
