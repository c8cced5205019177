#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Decoded data messages, one class per global message type we understand.

"""
REGISTRY = {}    # grows at import-time via the below metaclass


class MessageRegistrar(type):
    def __init__(cls, name, bases, namespace):
        if cls.global_mesg_num is not None:
            REGISTRY[cls.global_mesg_num] = cls
        super().__init__(name, bases, namespace)


class DecodedMessage(metaclass=MessageRegistrar):
    """Named field values from a single data message.

    Fields missing from the file, or holding an invalid value, are simply
    not present; they are never zero-filled.
    """
    __slots__ = ('fields', 'mesg_num', 'developer_fields')

    name = 'unknown'
    global_mesg_num = None

    def __init__(self, fields=None, *, mesg_num=None, developer_fields=None):
        self.fields = dict(fields or {})
        self.mesg_num = (self.global_mesg_num if mesg_num is None
                         else mesg_num)
        self.developer_fields = developer_fields or {}

    def __repr__(self):
        return '%s(%r)' % (type(self).__name__, self.fields)

    def __eq__(self, other):
        return (type(self) is type(other)
                and self.mesg_num == other.mesg_num
                and self.fields == other.fields)

    def __getitem__(self, key):
        return self.fields[key]

    def __setitem__(self, key, value):
        self.fields[key] = value

    def __contains__(self, key):
        return key in self.fields

    def __iter__(self):
        return iter(self.fields)

    def get(self, key, default=None):
        return self.fields.get(key, default)

    @property
    def timestamp(self):
        return self.fields.get('timestamp')

    def to_dict(self):
        return dict(self.fields)


class Unknown(DecodedMessage):
    __slots__ = tuple()


class FileId(DecodedMessage):
    __slots__ = tuple()
    name = 'file_id'
    global_mesg_num = 0


class Session(DecodedMessage):
    __slots__ = tuple()
    name = 'session'
    global_mesg_num = 18


class Lap(DecodedMessage):
    __slots__ = tuple()
    name = 'lap'
    global_mesg_num = 19


class Record(DecodedMessage):
    __slots__ = tuple()
    name = 'record'
    global_mesg_num = 20

    def has_data(self):
        """Does this record carry anything worth plotting?"""
        return any(key in self.fields for key in
                   ('power', 'cadence', 'heart_rate', 'timestamp'))


class DeviceInfo(DecodedMessage):
    __slots__ = tuple()
    name = 'device_info'
    global_mesg_num = 23


def message_cls(global_mesg_num):
    return REGISTRY.get(global_mesg_num, Unknown)
