#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Low-level views of a FIT file for when things go wrong.

Nothing here raises on bad data: the header is read without validation and
the message walk stops, rather than fails, when it runs out of bytes. Use
it on files the full decoder rejects.

"""
from collections import namedtuple
import logging
import re
from struct import unpack_from

from fitdash.fit._protocol import (
    MIN_HEADER_SIZE, DecodeSession, DefinitionMessage, FileHeader,
    NormalHeader, check_crcs)
from fitdash._util.exceptions import (
    FITCRCError, MalformedMessageError, OutOfBoundsError)


log = logging.getLogger(__name__)

HEX_DUMP_WIDTH = 16
RE_HEX_PATTERN = re.compile(r'[0-9a-fA-F\s]+')

MessageInfo = namedtuple(
    'MessageInfo', ('offset', 'kind', 'local_message_type', 'size', 'hex'))


class Inspection:
    """What `inspect` found.

    Attributes
    ----------
    header : FileHeader or None
        None when there aren't even 12 bytes.
    messages : list of MessageInfo
    size : int
        Bytes in the file.
    signature_ok : bool
    crc_ok : bool or None
        None when there is no header to check against.
    """
    __slots__ = ('header', 'messages', 'size', 'signature_ok', 'crc_ok')

    def __init__(self, header, messages, size, signature_ok, crc_ok):
        self.header = header
        self.messages = messages
        self.size = size
        self.signature_ok = signature_ok
        self.crc_ok = crc_ok

    def __repr__(self):
        return '<Inspection: %d bytes, %d messages>' % (self.size,
                                                        len(self.messages))


def inspect(data, *, limit=100):
    data = bytes(data)
    header = read_header_leniently(data)
    if header is None:
        return Inspection(None, [], len(data), False, None)

    try:
        check_crcs(data, header)
    except FITCRCError as e:
        log.debug('%s', e)
        crc_ok = False
    else:
        crc_ok = True

    return Inspection(header, walk_messages(data, header, limit=limit),
                      len(data), header.signature == '.FIT', crc_ok)


def read_header_leniently(data):
    if len(data) < MIN_HEADER_SIZE:
        return None
    header_size, prot, prof, data_size, signature = unpack_from(
        '<2BHI4s', data, 0)
    crc = None
    if header_size >= 14 and len(data) >= 14:
        crc, = unpack_from('<H', data, 12)
    return FileHeader(header_size, prot, prof, data_size,
                      signature.decode('ascii', 'replace'), crc)


def walk_messages(data, header, *, limit=100):
    """Find message boundaries, up to `limit` messages.

    Definition messages are parsed (that's the only way to know how long the
    data messages that follow are), everything else is just measured. A byte
    we can't make sense of becomes a one byte 'unknown' message.
    """
    session = DecodeSession(data)   # only for its reader and definitions
    reader = session.reader
    offset = header.header_size
    end = min(header.data_end, len(data))
    messages = []

    while offset < end and len(messages) < limit:
        header_byte = data[offset]
        if header_byte & 0x80:
            kind = 'compressed_timestamp'
            local_type = (header_byte >> 5) & 0x3
        elif header_byte & 0x40:
            kind = 'definition'
            local_type = header_byte & 0xF
        else:
            kind = 'data'
            local_type = header_byte & 0xF

        if kind == 'definition':
            reader.position = offset + 1
            try:
                DefinitionMessage(NormalHeader(header_byte), session)
            except (MalformedMessageError, OutOfBoundsError):
                body = None
            else:
                body = reader.position - offset - 1
        else:
            definition = session.definitions.get_definition(local_type)
            body = definition.data_size if definition is not None else None

        if body is None:
            kind, body = 'unknown', 0

        size = min(1 + body, end - offset)
        messages.append(MessageInfo(offset, kind, local_type, size,
                                    to_hex(data[offset:offset + size])))
        offset += size

    return messages


def to_hex(data):
    return ' '.join('%02X' % byte for byte in data)


def hex_dump(data, *, max_bytes=2048):
    """Classic offset / hex / ASCII rows, 16 bytes to a row."""
    data = bytes(data)
    lines = []
    for start in range(0, min(len(data), max_bytes), HEX_DUMP_WIDTH):
        chunk = data[start:start + HEX_DUMP_WIDTH]
        hex_part = ''.join('%02X ' % byte for byte in chunk)
        hex_part = hex_part.ljust(3 * HEX_DUMP_WIDTH)
        ascii_part = ''.join(chr(byte) if 32 <= byte <= 126 else '.'
                             for byte in chunk)
        ascii_part = ascii_part.ljust(HEX_DUMP_WIDTH)
        lines.append('%08X: %s |%s|' % (start, hex_part, ascii_part))

    if len(data) > max_bytes:
        lines.append('')
        lines.append('... (showing first %d bytes of %d total bytes)'
                     % (max_bytes, len(data)))
    return '\n'.join(lines)


def search(data, pattern):
    """Offsets of every (possibly overlapping) match of a hex pattern like
    ``'2E 46 49 54'``. Anything that isn't hex matches nothing."""
    if not RE_HEX_PATTERN.fullmatch(pattern):
        return []
    digits = re.sub(r'\s', '', pattern)
    digits = digits[:len(digits) - len(digits) % 2]   # whole bytes only
    if not digits:
        return []

    needle = bytes.fromhex(digits)
    data = bytes(data)
    offsets = []
    i = data.find(needle)
    while i != -1:
        offsets.append(i)
        i = data.find(needle, i + 1)
    return offsets
