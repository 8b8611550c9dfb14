"""
Storage key derivation.

Maps a (variant name, filename) pair to the key its bytes live under in the
blob store. Keys are sharded by filename prefix so that no single directory
or key prefix grows without bound.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from urllib.parse import quote

from pictorium.exceptions import InvalidFilenameError

_SHARD_LENGTH = 4
_SHARD_PAD = "_"


def normalize_filename(filename: str) -> str:
    """Validate a logical filename and strip one leading ``/``.

    Parameters
    ----------
    filename : str
        Filename as supplied by the caller, e.g. ``"products/abc.jpg"``.

    Returns
    -------
    str
        The normalised filename.

    Raises
    ------
    InvalidFilenameError
        If the name is empty, has surrounding whitespace, contains
        backslashes or control characters, or has empty, ``.`` or ``..``
        path segments.
    """
    if filename != filename.strip():
        raise InvalidFilenameError(filename, "surrounding whitespace")

    name = filename[1:] if filename.startswith("/") else filename
    if not name:
        raise InvalidFilenameError(filename, "empty filename")
    if "\\" in name:
        raise InvalidFilenameError(filename, "backslashes are not allowed")
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in name):
        raise InvalidFilenameError(filename, "control characters are not allowed")

    for segment in name.split("/"):
        if segment in ("", ".", ".."):
            raise InvalidFilenameError(filename, f"invalid path segment {segment!r}")
    return name


class PathStrategy(ABC):
    """Derives storage keys for cached variants.

    Implementations must be pure: the same inputs always give the same key,
    and distinct inputs always give distinct keys.
    """

    @abstractmethod
    def key_for(self, variant_name: str, filename: str) -> str:
        """Return the storage key for *filename* under *variant_name*.

        Raises
        ------
        InvalidFilenameError
            If *filename* cannot be mapped to a key.
        """
        pass


class ShardedPathStrategy(PathStrategy):
    """``<variant>/<shard1>/<shard2>/<leaf>`` keys.

    The shards are the first and second four characters of the filename
    stem (extension removed, ``/`` replaced by ``_``), right-padded with
    ``_`` when the stem is short. Every key therefore has the same depth and
    a leaf never sits where another key's shard directory would. The leaf is
    the whole filename percent-encoded so it never contains ``/``.

    Examples
    --------
    >>> ShardedPathStrategy().key_for("thumbnail", "abcdefghij.jpg")
    'thumbnail/abcd/efgh/abcdefghij.jpg'
    >>> ShardedPathStrategy().key_for("thumbnail", "/somedir/file.jpg")
    'thumbnail/some/dir_/somedir%2Ffile.jpg'
    >>> ShardedPathStrategy().key_for("crop", "abc.png")
    'crop/abc_/____/abc.png'
    """

    def key_for(self, variant_name: str, filename: str) -> str:
        name = normalize_filename(filename)
        variant = variant_name.strip().lower()

        stem = name.rsplit(".", 1)[0] if "." in name.rsplit("/", 1)[-1] else name
        stem = stem.replace("/", "_")

        first = stem[:_SHARD_LENGTH].ljust(_SHARD_LENGTH, _SHARD_PAD)
        second = stem[_SHARD_LENGTH : 2 * _SHARD_LENGTH].ljust(_SHARD_LENGTH, _SHARD_PAD)
        return "/".join((variant, first, second, quote(name, safe="")))
