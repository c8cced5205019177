#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Synthetic FIT files for the tests.

"""
import struct

import pytest

from fitdash.fit._protocol import calc_crc


UINT8, UINT16, UINT32, SINT32, ENUM = 0x02, 0x84, 0x86, 0x85, 0x00
UINT32Z = 0x8C

# Seconds since the FIT epoch; 2021-09-08T01:46:40Z
T0 = 1000000000
T0_MS = (T0 + 631065600) * 1000


class FitBuilder:
    """Put a FIT file together one message at a time."""

    def __init__(self, header_size=14, protocol_version=0x10,
                 profile_version=2132):
        self.header_size = header_size
        self.protocol_version = protocol_version
        self.profile_version = profile_version
        self.body = bytearray()

    def definition(self, local_type, global_mesg_num, fields, *,
                   big_endian=False, dev_fields=()):
        header_byte = 0x40 | local_type | (0x20 if dev_fields else 0)
        endian = '>' if big_endian else '<'
        self.body += struct.pack('<3B', header_byte, 0, int(big_endian))
        self.body += struct.pack(endian + 'HB', global_mesg_num, len(fields))
        for field in fields:
            self.body += struct.pack('<3B', *field)
        if dev_fields:
            self.body += struct.pack('<B', len(dev_fields))
            for field in dev_fields:
                self.body += struct.pack('<3B', *field)
        return self

    def data(self, local_type, payload):
        self.body += struct.pack('<B', local_type) + payload
        return self

    def compressed(self, local_type, time_offset, payload):
        header_byte = 0x80 | (local_type << 5) | time_offset
        self.body += struct.pack('<B', header_byte) + payload
        return self

    def raw(self, data):
        self.body += data
        return self

    def build(self, *, crc=True):
        header = struct.pack('<2BHI4s', self.header_size,
                             self.protocol_version, self.profile_version,
                             len(self.body), b'.FIT')
        if self.header_size == 14:
            header += struct.pack('<H', calc_crc(header))
        out = header + bytes(self.body)
        if crc:
            out += struct.pack('<H', calc_crc(out))
        return out


RECORD_FIELDS = [(253, 4, UINT32), (7, 2, UINT16), (3, 1, UINT8),
                 (4, 1, UINT8), (6, 2, UINT16), (2, 2, UINT16),
                 (0, 4, SINT32), (1, 4, SINT32)]
RECORD_FMT = '<IHBBHHii'

POWER = [100, 150, 200, 0, 250]
CADENCE = [80, 85, 90, 0, 95]
HEART_RATE = [120, 125, 130, 135, 140]


def build_ride():
    """Five one-second records in one lap and one cycling session."""
    builder = FitBuilder()

    builder.definition(3, 0, [(0, 1, ENUM), (1, 2, UINT16),
                              (2, 2, UINT16), (4, 4, UINT32)])
    builder.data(3, struct.pack('<BHHI', 4, 1, 3121, T0))

    builder.definition(3, 23, [(0, 1, UINT8), (2, 2, UINT16),
                               (3, 4, UINT32Z), (4, 2, UINT16)])
    builder.data(3, struct.pack('<BHIH', 0, 1, 123456789, 3121))

    builder.definition(0, 20, RECORD_FIELDS)
    for i, (power, cadence, hr) in enumerate(zip(POWER, CADENCE,
                                                 HEART_RATE)):
        builder.data(0, struct.pack(RECORD_FMT, T0 + i, power, cadence, hr,
                                    8333, 3000, 536870912, 71582788))

    builder.definition(1, 19, [(253, 4, UINT32), (2, 4, UINT32),
                               (7, 4, UINT32), (19, 2, UINT16),
                               (20, 2, UINT16)])
    builder.data(1, struct.pack('<IIIHH', T0 + 4, T0, 4000, 140, 250))

    builder.definition(2, 18, [(253, 4, UINT32), (2, 4, UINT32),
                               (5, 1, ENUM), (7, 4, UINT32),
                               (34, 2, UINT16)])
    builder.data(2, struct.pack('<IIBIH', T0 + 4, T0, 2, 4000, 180))

    return builder.build()


@pytest.fixture
def fit_builder():
    return FitBuilder


@pytest.fixture
def ride_bytes():
    return build_ride()


@pytest.fixture
def ride_file(tmp_path):
    path = tmp_path / 'ride.fit'
    path.write_bytes(build_ride())
    return str(path)
