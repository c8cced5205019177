#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Positional reads over an in-memory byte buffer.

"""
from struct import calcsize, unpack_from

from fitdash._util.exceptions import OutOfBoundsError


class ByteReader:
    """A cursor over a fixed-length byte buffer.

    Attributes
    ----------
    buffer : bytes
        The data being read. Never modified.
    position : int
        Offset of the next byte to be read.
    """
    __slots__ = ('buffer', 'position')

    def __init__(self, buffer, position=0):
        self.buffer = bytes(buffer)
        self.position = position

    def __len__(self):
        return len(self.buffer)

    @property
    def bytes_left(self):
        return len(self.buffer) - self.position

    def unpack(self, fmt):
        """Unpack `fmt` at the cursor, advancing it by the format size."""
        values = self.unpack_from(fmt, self.position)
        self.position += calcsize(fmt)
        return values

    def unpack_from(self, fmt, offset):
        """Unpack `fmt` at an explicit offset. The cursor doesn't move."""
        self._check(offset, calcsize(fmt))
        return unpack_from(fmt, self.buffer, offset)

    def read_uint8(self):
        value, = self.unpack('B')
        return value

    def read_uint16(self, little_endian=True):
        value, = self.unpack('<H' if little_endian else '>H')
        return value

    def read_uint32(self, little_endian=True):
        value, = self.unpack('<I' if little_endian else '>I')
        return value

    def read_bytes(self, size):
        self._check(self.position, size)
        start = self.position
        self.position += size
        return self.buffer[start:self.position]

    def peek(self, offset=0):
        """The byte `offset` bytes ahead of the cursor."""
        value, = self.unpack_from('B', self.position + offset)
        return value

    def skip(self, size):
        self._check(self.position, size)
        self.position += size

    def _check(self, offset, size):
        if offset < 0 or offset + size > len(self.buffer):
            raise OutOfBoundsError(offset, size, len(self.buffer))
