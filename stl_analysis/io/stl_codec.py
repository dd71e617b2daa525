"""
Binary STL reader and writer.

Wire format (little-endian throughout):
    80 bytes   header, ignored on read, zero-filled on write
    uint32     triangle count N
    N records  normal (3 x float32), 3 vertices (9 x float32), uint16 attribute

Normals and attributes are discarded on read. On write the normal is always
recomputed from the vertices and the attribute is zero.

The record layout is numpy-stl's `Mesh.dtype`, pinned to little-endian so
the files are identical on any host.
"""

import logging
import os
from typing import Union

import numpy as np
from stl import mesh

from stl_analysis import config
from stl_analysis.geometry.triangle import TriangleSoup, as_triangles, triangle_normals

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]

RECORD_DTYPE = mesh.Mesh.dtype.newbyteorder('<')
COUNT_DTYPE = np.dtype('<u4')
MAX_TRIANGLES = np.iinfo(COUNT_DTYPE).max


class STLCodecError(OSError):
    """Reading or writing a binary STL file failed.

    Attributes:
        path: the file that could not be read or written
    """

    def __init__(self, message: str, path: PathLike):
        super().__init__(message)
        self.path = os.fspath(path)


def _short_file_error(path: PathLike, header: bytes, n_triangles: int,
                      available: int) -> STLCodecError:
    if header.lstrip().lower().startswith(b'solid'):
        message = f"{os.fspath(path)!r} looks like an ASCII STL, only binary STL is supported"
    else:
        message = (
            f"Truncated STL file {os.fspath(path)!r}: {n_triangles} triangles "
            f"declared, {max(available, 0) // config.RECORD_SIZE} present"
        )
    return STLCodecError(message, path)


def read_stl_binary(path: PathLike) -> TriangleSoup:
    """Load a binary STL file into a triangle soup.

    Header, normals and attribute bytes are discarded. Trailing bytes after
    the last record are ignored.

    Args:
        path: File to read.

    Returns:
        Read-only float32 array of shape (N, 3, 3).

    Raises:
        STLCodecError: if the file cannot be opened or is shorter than its
            header and declared triangle count require. No partial soup is
            ever returned.
    """
    try:
        with open(path, 'rb') as f:
            header = f.read(config.HEADER_SIZE)
            count_bytes = f.read(config.COUNT_SIZE)
            if len(header) < config.HEADER_SIZE or len(count_bytes) < config.COUNT_SIZE:
                raise STLCodecError(
                    f"Truncated STL header in {os.fspath(path)!r}", path
                )

            n_triangles = int(np.frombuffer(count_bytes, dtype=COUNT_DTYPE)[0])
            expected = n_triangles * config.RECORD_SIZE
            available = os.fstat(f.fileno()).st_size - config.HEADER_SIZE - config.COUNT_SIZE
            if available < expected:
                raise _short_file_error(path, header, n_triangles, available)
            data = f.read(expected)
    except STLCodecError:
        raise
    except FileNotFoundError as exc:
        raise STLCodecError(f"File not found: {os.fspath(path)!r}", path) from exc
    except OSError as exc:
        raise STLCodecError(
            f"Could not read STL file {os.fspath(path)!r}: {exc}", path
        ) from exc

    if len(data) < expected:
        raise _short_file_error(path, header, n_triangles, len(data))

    if n_triangles == 0:
        triangles = as_triangles([])
    else:
        records = np.frombuffer(data, dtype=RECORD_DTYPE, count=n_triangles)
        triangles = as_triangles(records['vectors'])

    logger.info("Read %d triangles from %s", len(triangles), path,
                extra={"path": os.fspath(path), "triangles": len(triangles)})
    return triangles


def write_stl_binary(path: PathLike, triangles: TriangleSoup) -> None:
    """Write a triangle soup as a binary STL file.

    The header and attribute bytes are zero. Normals are recomputed from the
    vertices (zero for degenerate triangles).

    Args:
        path: Destination file, created or truncated.
        triangles: Anything `as_triangles` accepts.

    Raises:
        STLCodecError: if the file cannot be written or holds more triangles
            than the count field can express.
    """
    triangles = as_triangles(triangles)
    if len(triangles) > MAX_TRIANGLES:
        raise STLCodecError(
            f"Cannot write {len(triangles)} triangles to {os.fspath(path)!r}: "
            f"binary STL holds at most {MAX_TRIANGLES}", path
        )

    records = np.zeros(len(triangles), dtype=RECORD_DTYPE)
    records['normals'] = triangle_normals(triangles)
    records['vectors'] = triangles

    try:
        with open(path, 'wb') as f:
            f.write(bytes(config.HEADER_SIZE))
            f.write(np.array([len(triangles)], dtype=COUNT_DTYPE).tobytes())
            f.write(records.tobytes())
    except OSError as exc:
        raise STLCodecError(
            f"Could not write STL file {os.fspath(path)!r}: {exc}", path
        ) from exc

    logger.info("Wrote %d triangles to %s", len(triangles), path,
                extra={"path": os.fspath(path), "triangles": len(triangles)})

