#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from concurrent.futures import ThreadPoolExecutor
import struct

import pytest

from fitdash.fit import _protocol as protocol
from fitdash.fit._bytes import ByteReader
from fitdash.fit._messages import Record
from fitdash._util.exceptions import (
    FITCRCError, FITFileHeaderError, InvalidSignatureError,
    MalformedMessageError, OutOfBoundsError, TruncatedBufferError,
    UnknownLocalTypeError)


POWER = (7, 2, 0x84)
CADENCE = (3, 1, 0x02)
HEART_RATE = (4, 1, 0x02)
TIMESTAMP = (253, 4, 0x86)


def fit_ms(fit_seconds):
    return (fit_seconds + 631065600) * 1000


def decode(data, **kwargs):
    session = protocol.DecodeSession(data, **kwargs)
    return session, session.decode()


# File header
# -----------
def test_twelve_byte_header():
    data = bytes([12, 1, 0, 0, 100, 0, 0, 0]) + b'.FIT'
    reader = ByteReader(data)
    header = protocol.read_file_header(reader)

    assert header.header_size == 12
    assert header.protocol_version == 1
    assert header.profile_version == 0
    assert header.data_size == 100
    assert header.signature == '.FIT'
    assert header.crc is None
    assert header.data_end == 112
    assert reader.position == 12


def test_fourteen_byte_header(fit_builder):
    data = fit_builder(profile_version=2132).build()
    header = protocol.read_file_header(ByteReader(data))

    assert header.header_size == 14
    assert header.crc == protocol.calc_crc(data[:12])
    assert header.protocol == '1.0'
    assert header.profile == '21.32'


def test_bad_signature():
    data = bytes([12, 1, 0, 0, 100, 0, 0, 0]) + b'XFIT'
    with pytest.raises(InvalidSignatureError):
        protocol.read_file_header(ByteReader(data))


def test_short_buffer():
    with pytest.raises(TruncatedBufferError):
        protocol.read_file_header(ByteReader(b'\x0e\x10\x00'))


def test_impossible_header_size():
    data = bytes([8, 1, 0, 0, 0, 0, 0, 0]) + b'.FIT'
    with pytest.raises(FITFileHeaderError):
        protocol.read_file_header(ByteReader(data))


# Definitions and data
# --------------------
def test_definition_then_data(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER])
            .data(0, struct.pack('<H', 100))
            .build())
    session, messages = decode(data)

    assert messages == [Record({'power': 100})]
    assert len(session.definitions) == 1
    assert session.definitions.get_definition(0).name == 'record'


def test_invalid_value_is_absent(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER, HEART_RATE])
            .data(0, struct.pack('<HB', 0xFFFF, 140))
            .build())
    __, (record,) = decode(data)

    assert 'power' not in record
    assert record['heart_rate'] == 140


def test_cadence_and_heart_rate(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [CADENCE, HEART_RATE])
            .data(0, struct.pack('<2B', 90, 150))
            .data(0, struct.pack('<2B', 210, 150))
            .build())
    __, (record, implausible) = decode(data)

    assert record['cadence'] == 90
    assert record['heart_rate'] == 150
    assert 'cadence' not in implausible
    assert implausible['heart_rate'] == 150


def test_messages_in_order(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER])
            .data(0, struct.pack('<H', 1))
            .data(0, struct.pack('<H', 2))
            .build())
    kinds = [type(message).__name__
             for message in protocol.gen_fit_messages(data)]

    assert kinds == ['DefinitionMessage', 'DataMessage', 'DataMessage']


def test_redefinition_replaces(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER])
            .data(0, struct.pack('<H', 100))
            .definition(0, 20, [HEART_RATE])
            .data(0, struct.pack('<B', 150))
            .build())
    __, messages = decode(data)

    assert [m.to_dict() for m in messages] == [{'power': 100},
                                               {'heart_rate': 150}]


def test_big_endian(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [TIMESTAMP, POWER], big_endian=True)
            .data(0, struct.pack('>IH', 1000, 300))
            .build())
    __, (record,) = decode(data)

    assert record['power'] == 300
    assert record.timestamp == fit_ms(1000)


def test_developer_fields_carried(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER], dev_fields=[(1, 2, 0)])
            .data(0, struct.pack('<H', 100) + b'\x01\x02')
            .data(0, struct.pack('<H', 110) + b'\x03\x04')
            .build())
    __, (first, second) = decode(data)

    assert first['power'] == 100
    assert first.developer_fields == {(0, 1): b'\x01\x02'}
    assert second['power'] == 110


def test_unsupported_fields_skipped(fit_builder):
    fields = [POWER, (99, 3, 0x55), (3, 3, 0x84)]   # bad type, bad size
    data = (fit_builder()
            .definition(0, 20, fields)
            .data(0, struct.pack('<H', 100) + b'abc' + b'xyz')
            .data(0, struct.pack('<H', 200) + b'abc' + b'xyz')
            .build())
    __, messages = decode(data)

    assert [m.to_dict() for m in messages] == [{'power': 100},
                                               {'power': 200}]


def test_array_field(fit_builder):
    data = (fit_builder()
            .definition(0, 99, [(1, 6, 0x84)])
            .data(0, struct.pack('<3H', 1, 0xFFFF, 3))
            .build())
    __, (message,) = decode(data)

    assert message.mesg_num == 99
    assert message['unknown_1'] == (1, None, 3)


def test_string_field(fit_builder):
    data = (fit_builder()
            .definition(0, 99, [(2, 8, 0x07)])
            .data(0, b'edge\x00\x00\x00\x00')
            .build())
    __, (message,) = decode(data)

    assert message['unknown_2'] == 'edge'


# Compressed timestamps
# ---------------------
def test_resolve_compressed_timestamp():
    assert protocol.resolve_compressed_timestamp(1000, 8) == 1000
    assert protocol.resolve_compressed_timestamp(1000, 9) == 1001
    assert protocol.resolve_compressed_timestamp(1000, 5) == 1029   # rolls


def test_compressed_timestamp(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [TIMESTAMP, POWER])
            .definition(1, 20, [POWER])
            .data(0, struct.pack('<IH', 1000, 100))
            .compressed(1, 5, struct.pack('<H', 120))
            .compressed(1, 6, struct.pack('<H', 130))
            .build())
    session, (full, first, second) = decode(data)

    assert full.timestamp == fit_ms(1000)
    assert first.timestamp == fit_ms(1029)
    assert first['power'] == 120
    # compressed messages don't move the base
    assert second.timestamp == fit_ms(1030)
    assert session.last_timestamp == 1000


def test_compressed_timestamp_without_base(fit_builder):
    data = (fit_builder()
            .definition(1, 20, [POWER])
            .compressed(1, 5, struct.pack('<H', 120))
            .definition(0, 20, [TIMESTAMP, POWER])
            .data(0, struct.pack('<IH', 1000, 100))
            .build())
    session, messages = decode(data)

    assert session.dropped_messages == 1
    assert [m['power'] for m in messages] == [100]


# Resynchronisation
# -----------------
def test_unknown_local_types_skipped(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER])
            .raw(b'\x0f\x0e')
            .data(0, struct.pack('<H', 100))
            .raw(b'\x0d')
            .build())
    session, messages = decode(data)

    assert messages == [Record({'power': 100})]
    assert session.skipped_bytes == 3


def test_malformed_definition_skipped(fit_builder):
    data = (fit_builder()
            .raw(b'\x40\x00\x05')   # architecture 5
            .definition(0, 20, [POWER])
            .data(0, struct.pack('<H', 100))
            .build())
    session, messages = decode(data)

    assert messages == [Record({'power': 100})]
    assert session.skipped_bytes == 3


def test_strict_mode_raises(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER])
            .raw(b'\x0f')
            .data(0, struct.pack('<H', 100))
            .build())
    with pytest.raises(UnknownLocalTypeError):
        decode(data, strict=True)

    malformed = fit_builder().raw(b'\x40\x00\x05').build()
    with pytest.raises(MalformedMessageError):
        decode(malformed, strict=True)


def test_truncated_message_aborts(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER])
            .data(0, b'\x64')    # one byte short
            .build(crc=False))
    with pytest.raises(OutOfBoundsError):
        decode(data)


def test_stops_at_declared_size(fit_builder):
    data = (fit_builder()
            .definition(0, 20, [POWER])
            .data(0, struct.pack('<H', 100))
            .build())
    __, messages = decode(data + b'\xff' * 10)

    assert len(messages) == 1


# CRC
# ---
def test_crc_check_value():
    assert protocol.calc_crc(b'123456789') == 0xBB3D


def test_crc_ok(ride_bytes):
    __, messages = decode(ride_bytes, check_crc=True)
    assert messages


def test_crc_mismatch(ride_bytes):
    data = bytearray(ride_bytes)
    data[-3] ^= 0xFF
    with pytest.raises(FITCRCError):
        decode(bytes(data), check_crc=True)

    decode(bytes(data))   # not checked by default


def test_crc_missing(fit_builder):
    data = fit_builder().definition(0, 20, [POWER]).build(crc=False)
    with pytest.raises(FITCRCError):
        decode(data, check_crc=True)


# Bookkeeping
# -----------
def test_definition_table():
    table = protocol.DefinitionTable()
    assert table.get_definition(3) is None
    assert len(table) == 0

    table.set_definition(3, 'definition')
    assert table.get_definition(3) == 'definition'
    assert len(table) == 1

    with pytest.raises(ValueError):
        table.get_definition(16)


def test_concurrent_decodes(fit_builder, ride_bytes):
    other = (fit_builder()
             .definition(0, 20, [POWER])
             .data(0, struct.pack('<H', 42))
             .build())
    inputs = [ride_bytes, other] * 8

    def run(data):
        return [m.to_dict() for m in protocol.DecodeSession(data).decode()]

    expected = [run(data) for data in inputs]
    with ThreadPoolExecutor(max_workers=4) as pool:
        assert list(pool.map(run, inputs)) == expected
