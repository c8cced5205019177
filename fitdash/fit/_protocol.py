#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Implement the Flexible and Interoperable data Transfer (FIT) protocol.

Everything here works on a byte buffer that is already in memory. All of the
state a decode needs (cursor, definitions, last timestamp) is kept on a
`DecodeSession`, so separate decodes never interfere with one another.

"""
from collections import namedtuple
import logging
from struct import unpack

from fitdash.fit._bytes import ByteReader
from fitdash.fit._mapping import (
    field_profile, fit_to_epoch_ms, map_field, mesg_name)
from fitdash.fit._messages import message_cls
from fitdash.fit._profile import BASE_TYPES, MESG_NUMS_BY_NAME
from fitdash._util.exceptions import (
    CompressedTimestampError, FITCRCError, FITFileHeaderError,
    InvalidSignatureError, MalformedMessageError, TruncatedBufferError,
    UnknownLocalTypeError)


log = logging.getLogger(__name__)

MIN_HEADER_SIZE = 12
N_LOCAL_TYPES = 16
TIMESTAMP_FIELD = 253
RECORD_MESG_NUM = MESG_NUMS_BY_NAME['record']

CRC_TABLE = (0x0000, 0xCC01, 0xD801, 0x1400, 0xF001, 0x3C00, 0x2800, 0xE401,
             0xA001, 0x6C00, 0x7800, 0xB401, 0x5000, 0x9C01, 0x8801, 0x4400)


class FileHeader(namedtuple('FileHeader', (
        'header_size', 'protocol_version', 'profile_version',
        'data_size', 'signature', 'crc'))):
    """The 12 (or 14) byte file header. `crc` is None for 12 byte headers."""
    __slots__ = tuple()

    @property
    def data_end(self):
        return self.header_size + self.data_size

    @property
    def protocol(self):
        """Protocol version the way the FIT SDK prints it."""
        prot = self.protocol_version
        return '{}.{}'.format(prot >> 4, prot & 0xF)

    @property
    def profile(self):
        """Profile version the way the FIT SDK prints it."""
        prof = self.profile_version
        return '{}.{:02d}'.format(prof // 100, prof % 100)


class DefinitionTable:
    """The current definition for each local message type.

    A new definition for a local type replaces the old one outright.
    """
    __slots__ = ('_definitions',)

    def __init__(self):
        self._definitions = [None] * N_LOCAL_TYPES

    def __len__(self):
        return sum(1 for d in self._definitions if d is not None)

    def set_definition(self, local_message_type, definition):
        self._definitions[self._index(local_message_type)] = definition

    def get_definition(self, local_message_type):
        return self._definitions[self._index(local_message_type)]

    @staticmethod
    def _index(local_message_type):
        if not 0 <= local_message_type < N_LOCAL_TYPES:
            raise ValueError('local message type out of range (%d)'
                             % local_message_type)
        return local_message_type


class DecodeSession:
    """Everything that changes while a single buffer is decoded.

    Attributes
    ----------
    reader : ByteReader
        Cursor over the buffer.
    header : FileHeader
        Set by `read_header`.
    definitions : DefinitionTable
        Definition messages seen so far, by local message type.
    last_timestamp : int
        Most recent full record timestamp (seconds since the FIT epoch);
        the base for compressed timestamps.
    skipped_bytes, dropped_messages : int
        Diagnostics. Bytes skipped while resynchronising and data messages
        that were read but could not be used.
    strict : bool
        Raise, rather than skip, on unknown local types and malformed
        definitions.
    check_crc : bool
        Verify the header and file CRCs before decoding.
    """
    __slots__ = ('reader', 'header', 'definitions', 'last_timestamp',
                 'skipped_bytes', 'dropped_messages', 'strict', 'check_crc',
                 'end')

    def __init__(self, data, *, strict=False, check_crc=False):
        self.reader = ByteReader(data)
        self.header = None
        self.definitions = DefinitionTable()
        self.last_timestamp = None
        self.skipped_bytes = 0
        self.dropped_messages = 0
        self.strict = strict
        self.check_crc = check_crc
        self.end = 0

    def read_header(self):
        self.header = read_file_header(self.reader)
        if self.check_crc:
            check_crcs(self.reader.buffer, self.header)
        self.end = min(self.header.data_end, len(self.reader))
        return self.header

    def gen_messages(self):
        """Yield each DefinitionMessage and DataMessage in the buffer."""
        if self.header is None:
            self.read_header()

        reader = self.reader
        while reader.position < self.end:
            start = reader.position
            try:
                message = read_fit_message(self)
            except (UnknownLocalTypeError, MalformedMessageError) as e:
                if self.strict:
                    raise
                log.debug('offset %d: %s; skipping a byte', start, e)
                reader.position = start + 1
                self.skipped_bytes += 1
                continue
            except CompressedTimestampError as e:
                if self.strict:
                    raise
                log.debug('offset %d: %s; dropping message', start, e)
                self.dropped_messages += 1
                continue

            yield message

        log.info('read %d bytes (%d skipped, %d messages dropped)',
                 reader.position, self.skipped_bytes, self.dropped_messages)

    def decode(self):
        """Every data message in the buffer, decoded."""
        return [message.decode() for message in self.gen_messages()
                if isinstance(message, DataMessage)]


class FitMessageHeader:
    """From the FIT SDK release 20.03.00

    The record header is a one byte bit field. There are actually two types of
    record header: normal header and compressed timestamp header. The header
    type is indicated in the most significant bit (msb) of the record header.
    The normal header identifies whether the record is a definition or data
    message, and identifies the local message type. A compressed timestamp
    header is a special compressed header that may also be used with some
    local data messages to allow a compressed time format.
    """
    __slots__ = ('_message_cls', 'local_message_type', 'time_offset',
                 'has_developer_data')

    def message_cls(self, session):
        return self._message_cls(self, session)   # partial'd, kinda


class NormalHeader(FitMessageHeader):
    """From the FIT SDK release 20.03.00

    Normal Header Bit Field Description
    -----------------------------------

    =====  =============  ========================
    Bit        Value      Description
    =====  =============  ========================
      7          0        Normal header
      6        0 or 1     Message type:
                            1: definition message
                            0: data message
      5     0 (default)   Message type specific
                          (definitions: 1 if developer
                          data follows)
      4          0        Reserved
     0-3        0-15      Local message type
    =====  =============  ========================
    """
    __slots__ = tuple()

    def __init__(self, header_byte):
        is_definition = bool(header_byte & 0x40)
        self._message_cls = (
            DefinitionMessage if is_definition else DataMessage)
        self.local_message_type = header_byte & 0xF    # bits 0-3
        self.time_offset = None
        self.has_developer_data = is_definition and bool(header_byte & 0x20)


class CompressedTimestampHeader(FitMessageHeader):
    """From the FIT SDK release 20.03.00

    Compressed Timestamp Header Description
    ---------------------------------------

    The compressed timestamp header is a special form of record header that
    allows some timestamp information to be placed within the record header,
    rather than within the record content. In applicable use cases, this
    allows data to be recorded without the need of a 4 byte timestamp in every
    data record.

    =====  =============  ========================
    Bit        Value      Description
    =====  =============  ========================
      7          1        Compressed timestamp
     5-6        0-3       Local message type
     0-4        0-31      Time offset (seconds)
    =====  =============  ========================

    NOTE: this type of record header is used for a *data message only*.
    """
    __slots__ = tuple()

    def __init__(self, header_byte):
        self._message_cls = DataMessage
        self.local_message_type = (header_byte >> 5) & 0x3   # bits 5-6
        self.time_offset = header_byte & 0x1F                # bits 0-4
        self.has_developer_data = False


class DefinitionMessage:
    """From the FIT SDK release 20.03.00

    The definition message is used to create an association between the local
    message type contained in the record header, and a Global Message Number
    that relates to the global FIT message.


    Definition Message Contents
    ---------------------------

    ======  =======================  =============  ===========================
    Byte    Description                 Length      Value
    (bytes)
    ======  =======================  =============  ===========================
      0     Reserved                       1         0
      1     Architecture                   1         0 or 1
                                                       0: little endian
                                                       1: big endian
     2-3    Global message number          2         Unique to each message
      4     Fields                         1         Number of fields in the
                                                     data message
      5     Field definition(s)            3         See table below
     ...                              (per field)
     ...    Developer fields               1         Only when bit 5 of the
                                                     header is set
     ...    Developer field                3
            definition(s)             (per field)
    ======  =======================  =============  ===========================

    """
    __slots__ = ('header', 'name', 'global_mesg_num', 'little_endian',
                 'field_defs', 'dev_field_defs')

    def __init__(self, header, session):
        self.header = header
        reader = session.reader

        __, architecture = reader.unpack('<2B')   # ignore reserved
        if architecture not in (0, 1):
            raise MalformedMessageError(
                'unknown architecture (%d)' % architecture)
        self.little_endian = architecture == 0
        endian = '<' if self.little_endian else '>'

        self.global_mesg_num, field_count = reader.unpack(endian + 'HB')
        self.name = mesg_name(self.global_mesg_num)

        self.field_defs = [FieldDefinition(reader, self.global_mesg_num,
                                           endian)
                           for _ in range(field_count)]

        self.dev_field_defs = []
        if header.has_developer_data:
            dev_field_count = reader.read_uint8()
            self.dev_field_defs = [DeveloperFieldDefinition(reader)
                                   for _ in range(dev_field_count)]

        # Save this local message.
        session.definitions.set_definition(header.local_message_type, self)

    @property
    def local_message_type(self):
        return self.header.local_message_type

    @property
    def data_size(self):
        """Bytes in each data message using this definition."""
        return (sum(field.size for field in self.field_defs)
                + sum(field.size for field in self.dev_field_defs))


class DataMessage:
    """The useful part of a *.fit file.

    The header identifies an associated definition message. We pull the
    field definitions from that message and use them to parse data from
    the buffer.
    """
    __slots__ = ('header', 'definition', 'field_defs', 'field_values',
                 'dev_values', 'timestamp')

    def __init__(self, header, session):
        self.header = header

        definition = session.definitions.get_definition(
            header.local_message_type)
        if definition is None:
            raise UnknownLocalTypeError(header.local_message_type)
        self.definition = definition

        reader = session.reader
        field_defs = definition.field_defs
        field_values = [field.read(reader) for field in field_defs]

        self.dev_values = {
            (field.developer_data_index, field.field_def_num):
                reader.read_bytes(field.size)
            for field in definition.dev_field_defs}

        # Invalid values (and unsupported fields) are read as None.
        valid = [i for i, val in enumerate(field_values) if val is not None]
        # Get rid.
        self.field_defs = [field_defs[i] for i in valid]
        self.field_values = [field_values[i] for i in valid]

        if header.time_offset is not None:
            if session.last_timestamp is None:
                raise CompressedTimestampError
            self.timestamp = resolve_compressed_timestamp(
                session.last_timestamp, header.time_offset)
        else:
            self.timestamp = self.value_of(TIMESTAMP_FIELD)
            if (self.timestamp is not None
                    and definition.global_mesg_num == RECORD_MESG_NUM):
                session.last_timestamp = self.timestamp

    @property
    def name(self):
        return self.definition.name

    @property
    def global_mesg_num(self):
        return self.definition.global_mesg_num

    def value_of(self, field_def_num):
        """The raw value of a field, or None."""
        for field, value in zip(self.field_defs, self.field_values):
            if field.field_def_num == field_def_num:
                return value
        return None

    def decode(self):
        """Map raw values to named ones.

        Returns
        -------
        DecodedMessage
            Of the subclass matching this message's global number.
        """
        global_mesg_num = self.global_mesg_num
        fields = {}
        for field, value in zip(self.field_defs, self.field_values):
            mapped = map_field(global_mesg_num, field.field_def_num, value)
            if mapped is not None:
                name, value = mapped
                fields[name] = value

        if self.header.time_offset is not None:
            fields['timestamp'] = fit_to_epoch_ms(self.timestamp)

        cls = message_cls(global_mesg_num)
        return cls(fields, mesg_num=global_mesg_num,
                   developer_fields=self.dev_values)


class FieldDefinition:
    """From the FIT SDK release 20.03.00

    Field Definition Contents
    -------------------------

    ======  =================  ===============================================
     Byte    Name               Description
    ======  =================  ===============================================
      0     Field definition   Defined in the gloabl FIT profile for the
            number             specified FIT message.
      1     Size               Size (in bytes) of the specified FIT message's
                               field.
      2     Base type          Base type of the specified FIT message's field.
    ======  =================  ===============================================

    """
    __slots__ = ('field_def_num', 'size', 'base_type_num', 'base_type',
                 'profile', 'name', 'endian')

    def __init__(self, reader, global_mesg_num, endian):
        # NOTE: reading single bytes, so no need to apply endianness here.
        self.field_def_num, self.size, self.base_type_num = (
            reader.unpack('<3B'))

        base_type = BASE_TYPES.get(self.base_type_num)
        if base_type is not None and base_type.fmt != 's':
            # Sizes have to be whole multiples of the base type.
            if self.size == 0 or self.size % base_type.size:
                base_type = None
        self.base_type = base_type   # None --> skipped when read

        self.profile = field_profile(global_mesg_num, self.field_def_num)
        self.name = (self.profile['field_name'] if self.profile
                     else 'unknown_%d' % self.field_def_num)
        self.endian = endian   # for reference

    def __repr__(self):
        return 'FieldDefinition(%s, size=%d, base_type=%#04x)' % (
            self.name, self.size, self.base_type_num)

    @property
    def count(self):
        """Number of values in this field (more than one for arrays)."""
        return self.size // self.base_type.size

    @property
    def fmt(self):
        """Format for struct.unpacking."""
        if self.base_type.fmt == 's':
            return '%ds' % self.size
        return '{0.endian}{0.count}{0.base_type.fmt}'.format(self)

    def read(self, reader):
        """Read this field's bytes and parse them.

        The bytes are always consumed. Unsupported fields and invalid values
        give None.
        """
        raw = reader.read_bytes(self.size)
        if self.base_type is None:
            return None
        return self.parse(raw)

    def parse(self, raw):
        parse = self.base_type.parse
        values = unpack(self.fmt, raw)
        if self.base_type.fmt == 's':
            return parse(values[0])

        values = [parse(value) for value in values]
        if len(values) == 1:
            return values[0]
        if all(value is None for value in values):
            return None
        return tuple(values)


class DeveloperFieldDefinition:
    """Like a FieldDefinition, but the third byte identifies the developer
    data index. We don't interpret these, only carry the bytes around."""
    __slots__ = ('field_def_num', 'size', 'developer_data_index')

    def __init__(self, reader):
        self.field_def_num, self.size, self.developer_data_index = (
            reader.unpack('<3B'))


def read_file_header(reader):
    """Read the *.fit file header, leaving `reader` at the first message.

    Raises
    ------
    TruncatedBufferError
        If there aren't enough bytes for a header.
    InvalidSignatureError
        If the ".FIT" signature is missing.
    FITFileHeaderError
        If the declared header size is impossible.
    """
    if len(reader) < MIN_HEADER_SIZE:
        raise TruncatedBufferError(
            'cannot parse file: %d bytes is too short for a FIT header'
            % len(reader))

    # Larger fields are explicitly little endian from SDK.
    header_size, protocol_version, profile_version, data_size, signature = (
        reader.unpack_from('<2BHI4s', 0))

    if signature != b'.FIT':
        raise InvalidSignatureError(signature)

    if header_size < MIN_HEADER_SIZE:
        raise FITFileHeaderError('irregular file header size (%d)'
                                 % header_size)

    crc = None
    if header_size >= 14:
        crc, = reader.unpack_from('<H', 12)

    if header_size > len(reader):
        raise TruncatedBufferError
    reader.position = header_size

    return FileHeader(header_size=header_size,
                      protocol_version=protocol_version,
                      profile_version=profile_version,
                      data_size=data_size,
                      signature=signature.decode('ascii'),
                      crc=crc)


def read_fit_message(session):
    """Parse a message (header + contents)."""
    header_byte = session.reader.read_uint8()
    # A value of 0 in bit 7 indicates that this is a normal header.
    header_cls = (CompressedTimestampHeader if (header_byte & 0x80) else
                  NormalHeader)
    header = header_cls(header_byte)

    message = header.message_cls(session)

    return message


def resolve_compressed_timestamp(last_timestamp, time_offset):
    """The 5 bit offset counts on from the last full timestamp, rolling over
    every 32 seconds."""
    return last_timestamp + ((time_offset - (last_timestamp & 0x1F)) & 0x1F)


def calc_crc(data, crc=0):
    """The FIT SDK's CRC-16."""
    for byte in data:
        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[byte & 0xF]
        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[(byte >> 4) & 0xF]
    return crc


def check_crcs(buffer, header):
    """Raise FITCRCError unless both CRCs check out.

    A header CRC of zero means the writer didn't compute one.
    """
    if header.crc:
        computed = calc_crc(buffer[:MIN_HEADER_SIZE])
        if computed != header.crc:
            raise FITCRCError('header CRC mismatch (%#06x != %#06x)'
                              % (computed, header.crc))

    end = header.data_end
    if len(buffer) < end + 2:
        raise FITCRCError('file CRC missing')
    expected, = unpack('<H', buffer[end:end + 2])
    computed = calc_crc(buffer[:end])
    if computed != expected:
        raise FITCRCError('file CRC mismatch (%#06x != %#06x)'
                          % (computed, expected))


def gen_fit_messages(data, *, strict=False, check_crc=False):
    """Generator function for iterating over *.fit file messages.

    Parameters
    ----------
    data : bytes
        The whole file, already in memory.
    strict : bool, optional
        Raise on unknown local types and malformed definitions, instead of
        skipping a byte and carrying on.
    check_crc : bool, optional
        Verify CRCs before decoding.

    Yields
    ------
    DefinitionMessage or DataMessage
        Parsed messages from `data`.
    """
    session = DecodeSession(data, strict=strict, check_crc=check_crc)
    yield from session.gen_messages()
