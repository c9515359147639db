"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Implements full-content hashing with pluggable hash algorithms.

HasherImpl streams the file in fixed-size chunks so memory use does not grow with file
size. Any failure to consume the stream to its end is reported as ReadError; the engine
skips that path and never records it.
"""

import hashlib
import logging
from typing import BinaryIO

from dupindex.core.errors import ReadError
from dupindex.core.interfaces import Hasher, HashAlgorithm

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


# Use the same way to implement and use any other hashing algorithm
class Sha256AlgorithmImpl(HashAlgorithm):
    name = "sha256"
    digest_size = 32

    @staticmethod
    def new():
        return hashlib.sha256()


class HasherImpl(Hasher):
    """
    A hasher implementation that supports any algorithm via the HashAlgorithm interface.
    """

    def __init__(self, algorithm: HashAlgorithm = None, chunk_size: int = CHUNK_SIZE):
        self.algorithm = algorithm or Sha256AlgorithmImpl()
        self.chunk_size = chunk_size

    def compute_digest(self, path: str) -> bytes:
        """Computes the digest of the whole file at path."""
        try:
            with open(path, 'rb') as f:
                return self.compute_stream_digest(f, name=path)
        except ReadError:
            raise
        except OSError as e:
            raise ReadError(path, e.strerror or str(e)) from e

    def compute_stream_digest(self, stream: BinaryIO, name: str = "<stream>") -> bytes:
        """Consumes stream to EOF and returns its digest."""
        h = self.algorithm.new()
        try:
            while True:
                chunk = stream.read(self.chunk_size)
                if not chunk:
                    break
                h.update(chunk)
        except OSError as e:
            raise ReadError(name, e.strerror or str(e)) from e
        logger.debug(f"Hashed {name}")
        return h.digest()
