# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.19
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/dupinspect/clients/decode.py

"""Turning raw archive files into plaintext streams.

Compression is gzip. Decryption is left to a caller-supplied function,
since keys and agents are outside the scope of this package; without one,
encrypted files cannot be read.
"""

import gzip
import io
import zlib
from typing import BinaryIO, Callable, Optional, Sequence

from ..collections.file_naming import FileDescriptor
from ..errors import DecodeFailure, DupInspectError, IoFailure

# Takes the raw (encrypted) stream, returns a plaintext stream.
Decryptor = Callable[[BinaryIO], BinaryIO]

_DECODE_ERRORS = (gzip.BadGzipFile, EOFError, zlib.error)


class _DecodingReader(io.RawIOBase):
    """Raw stream that reports decoder errors as DecodeFailure."""

    def __init__(self, inner: BinaryIO, name: str, sources: Sequence[BinaryIO]):
        self.inner = inner
        self.name = name
        # streams under inner, outermost first
        self.sources = sources

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        try:
            data = self.inner.read(len(buffer))
        except _DECODE_ERRORS as e:
            raise DecodeFailure(self.name, str(e) or type(e).__name__) from e
        except OSError as e:
            raise IoFailure(self.name, str(e)) from e
        buffer[:len(data)] = data
        return len(data)

    def close(self):
        if not self.closed:
            self.inner.close()
            for source in self.sources:
                source.close()
        super().close()


class PayloadDecoder:
    """Decode hook: raw file stream + descriptor flags -> plaintext stream.

    Args:
        decryptor: Function that decrypts a stream; needed for encrypted
            archives only
    """

    def __init__(self, decryptor: Optional[Decryptor] = None):
        self.decryptor = decryptor

    def open(self, raw: BinaryIO, descriptor: FileDescriptor) -> BinaryIO:
        """Wrap ``raw`` so that reading it yields the plaintext.

        Errors in the payload surface while reading, as DecodeFailure.

        Raises:
            DecodeFailure: if the file is encrypted and no decryptor is set
        """
        name = descriptor.name or descriptor.to_name()
        stream = raw
        sources = [raw]
        if descriptor.encrypted:
            if self.decryptor is None:
                raw.close()
                raise DecodeFailure(name, "file is encrypted and no decryptor is configured")
            try:
                stream = self.decryptor(raw)
            except DupInspectError:
                raise
            except (OSError, ValueError) as e:
                raise DecodeFailure(name, f"decryption failed: {e}") from e
            if stream is not raw:
                sources.insert(0, stream)
        if descriptor.compressed:
            stream = gzip.GzipFile(fileobj=stream, mode="rb")
        return io.BufferedReader(_DecodingReader(stream, name, sources))
