#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The slice of the FIT profile ("Profile.xlsx" in the FIT SDK) that this
package understands.

Message types are keyed by name, then by field definition number. Each field
entry holds the field name, its profile type and, where the profile defines
them, scale, offset and units. ``valid_range`` is a local addition: values
outside ``[low, high)`` are treated as absent.

"""
from math import isnan
import struct


class BaseType:
    __slots__ = ('name', 'identifier', 'fmt', 'parse')

    def __init__(self, **kwargs):
        for name, value in kwargs.items():
            setattr(self, name, value)

    def __repr__(self):
        return 'BaseType(%s)' % self.name

    @property
    def size(self):
        return struct.calcsize(self.fmt)


def _invalid_if(sentinel):
    return lambda x: None if x == sentinel else x


def _parse_float(x):
    return None if isnan(x) else x


def _parse_string(x):
    return x.split(b'\x00')[0].decode('utf-8', 'replace') or None


# `parse` turns each base type's "invalid" sentinel into None.
BASE_TYPES = {
    0x00: BaseType(name='enum', identifier=0x00, fmt='B', parse=_invalid_if(0xFF)),
    0x01: BaseType(name='sint8', identifier=0x01, fmt='b', parse=_invalid_if(0x7F)),
    0x02: BaseType(name='uint8', identifier=0x02, fmt='B', parse=_invalid_if(0xFF)),
    0x83: BaseType(name='sint16', identifier=0x83, fmt='h', parse=_invalid_if(0x7FFF)),
    0x84: BaseType(name='uint16', identifier=0x84, fmt='H', parse=_invalid_if(0xFFFF)),
    0x85: BaseType(name='sint32', identifier=0x85, fmt='i', parse=_invalid_if(0x7FFFFFFF)),
    0x86: BaseType(name='uint32', identifier=0x86, fmt='I', parse=_invalid_if(0xFFFFFFFF)),
    0x07: BaseType(name='string', identifier=0x07, fmt='s', parse=_parse_string),
    0x88: BaseType(name='float32', identifier=0x88, fmt='f', parse=_parse_float),
    0x89: BaseType(name='float64', identifier=0x89, fmt='d', parse=_parse_float),
    0x0A: BaseType(name='uint8z', identifier=0x0A, fmt='B', parse=_invalid_if(0x0)),
    0x8B: BaseType(name='uint16z', identifier=0x8B, fmt='H', parse=_invalid_if(0x0)),
    0x8C: BaseType(name='uint32z', identifier=0x8C, fmt='I', parse=_invalid_if(0x0)),
    0x0D: BaseType(name='byte', identifier=0x0D, fmt='B', parse=_invalid_if(0xFF)),
    0x8E: BaseType(name='sint64', identifier=0x8E, fmt='q', parse=_invalid_if(0x7FFFFFFFFFFFFFFF)),
    0x8F: BaseType(name='uint64', identifier=0x8F, fmt='Q', parse=_invalid_if(0xFFFFFFFFFFFFFFFF)),
    0x90: BaseType(name='uint64z', identifier=0x90, fmt='Q', parse=_invalid_if(0x0)),
}


GLOBAL_MESG_NUMS = {
    0: 'file_id',
    18: 'session',
    19: 'lap',
    20: 'record',
    23: 'device_info',
}

MESG_NUMS_BY_NAME = {name: num for num, name in GLOBAL_MESG_NUMS.items()}


TYPES_INFO = {
    'file': {
        1: 'device', 2: 'settings', 3: 'sport', 4: 'activity', 5: 'workout',
        6: 'course', 7: 'schedules', 9: 'weight', 10: 'totals', 11: 'goals',
        14: 'blood_pressure', 15: 'monitoring_a', 20: 'activity_summary',
        28: 'monitoring_daily', 32: 'monitoring_b', 34: 'segment',
        35: 'segment_list',
    },
    'manufacturer': {
        1: 'garmin', 6: 'srm', 7: 'quarq', 13: 'dynastream_oem',
        15: 'dynastream', 23: 'suunto', 32: 'wahoo_fitness', 40: 'concept2',
        41: 'shimano', 69: 'stages_cycling', 89: 'tacx', 255: 'development',
        260: 'zwift', 263: 'favero_electronics', 294: 'coros',
    },
    'sport': {
        0: 'generic', 1: 'running', 2: 'cycling', 3: 'transition',
        4: 'fitness_equipment', 5: 'swimming', 6: 'basketball', 7: 'soccer',
        8: 'tennis', 9: 'american_football', 10: 'training', 11: 'walking',
        12: 'cross_country_skiing', 13: 'alpine_skiing', 14: 'snowboarding',
        15: 'rowing', 16: 'mountaineering', 17: 'hiking', 18: 'multisport',
        19: 'paddling', 254: 'all',
    },
    'sub_sport': {
        0: 'generic', 1: 'treadmill', 2: 'street', 3: 'trail', 4: 'track',
        5: 'spin', 6: 'indoor_cycling', 7: 'road', 8: 'mountain',
        9: 'downhill', 10: 'recumbent', 11: 'cyclocross', 12: 'hand_cycling',
        13: 'track_cycling', 14: 'indoor_rowing', 15: 'elliptical',
        16: 'stair_climbing', 17: 'lap_swimming', 18: 'open_water',
        58: 'virtual_activity', 254: 'all',
    },
}


_TIMESTAMP = {'field_name': 'timestamp', 'field_type': 'date_time', 'units': 's'}
_START_TIME = {'field_name': 'start_time', 'field_type': 'date_time', 'units': 's'}


def _summary_time(name):
    return {'field_name': name, 'field_type': 'uint32', 'scale': 1000, 'units': 's'}


MESSAGE_TYPES = {
    'file_id': {
        0: {'field_name': 'type', 'field_type': 'file'},
        1: {'field_name': 'manufacturer', 'field_type': 'manufacturer'},
        2: {'field_name': 'product', 'field_type': 'uint16'},
        3: {'field_name': 'serial_number', 'field_type': 'uint32z'},
        4: {'field_name': 'time_created', 'field_type': 'date_time', 'units': 's'},
        5: {'field_name': 'number', 'field_type': 'uint16'},
    },
    'session': {
        253: _TIMESTAMP,
        2: _START_TIME,
        5: {'field_name': 'sport', 'field_type': 'sport'},
        6: {'field_name': 'sub_sport', 'field_type': 'sub_sport'},
        7: _summary_time('total_elapsed_time'),
        8: _summary_time('total_timer_time'),
        9: {'field_name': 'total_distance', 'field_type': 'uint32', 'scale': 100, 'units': 'm'},
        16: {'field_name': 'avg_heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        17: {'field_name': 'max_heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        18: {'field_name': 'avg_cadence', 'field_type': 'uint8', 'units': 'rpm'},
        19: {'field_name': 'max_cadence', 'field_type': 'uint8', 'units': 'rpm'},
        20: {'field_name': 'avg_power', 'field_type': 'uint16', 'units': 'watts'},
        21: {'field_name': 'max_power', 'field_type': 'uint16', 'units': 'watts'},
        26: {'field_name': 'num_laps', 'field_type': 'uint16'},
        34: {'field_name': 'normalized_power', 'field_type': 'uint16', 'units': 'watts'},
    },
    'lap': {
        253: _TIMESTAMP,
        254: {'field_name': 'message_index', 'field_type': 'uint16'},
        2: _START_TIME,
        7: _summary_time('total_elapsed_time'),
        8: _summary_time('total_timer_time'),
        9: {'field_name': 'total_distance', 'field_type': 'uint32', 'scale': 100, 'units': 'm'},
        15: {'field_name': 'avg_heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        16: {'field_name': 'max_heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        17: {'field_name': 'avg_cadence', 'field_type': 'uint8', 'units': 'rpm'},
        18: {'field_name': 'max_cadence', 'field_type': 'uint8', 'units': 'rpm'},
        19: {'field_name': 'avg_power', 'field_type': 'uint16', 'units': 'watts'},
        20: {'field_name': 'max_power', 'field_type': 'uint16', 'units': 'watts'},
        33: {'field_name': 'normalized_power', 'field_type': 'uint16', 'units': 'watts'},
    },
    'record': {
        253: _TIMESTAMP,
        0: {'field_name': 'position_lat', 'field_type': 'sint32', 'units': 'semicircles'},
        1: {'field_name': 'position_long', 'field_type': 'sint32', 'units': 'semicircles'},
        2: {'field_name': 'altitude', 'field_type': 'uint16', 'scale': 5, 'offset': 500, 'units': 'm'},
        3: {'field_name': 'cadence', 'field_type': 'uint8', 'units': 'rpm', 'valid_range': (0, 200)},
        4: {'field_name': 'heart_rate', 'field_type': 'uint8', 'units': 'bpm'},
        5: {'field_name': 'distance', 'field_type': 'uint32', 'scale': 100, 'units': 'm'},
        6: {'field_name': 'speed', 'field_type': 'uint16', 'scale': 1000, 'units': 'm/s'},
        7: {'field_name': 'power', 'field_type': 'uint16', 'units': 'watts'},
        13: {'field_name': 'temperature', 'field_type': 'sint8', 'units': 'C'},
        # "enhanced" fields supersede the originals, so share their names
        73: {'field_name': 'speed', 'field_type': 'uint32', 'scale': 1000, 'units': 'm/s'},
        78: {'field_name': 'altitude', 'field_type': 'uint32', 'scale': 5, 'offset': 500, 'units': 'm'},
    },
    'device_info': {
        253: _TIMESTAMP,
        0: {'field_name': 'device_index', 'field_type': 'uint8'},
        2: {'field_name': 'manufacturer', 'field_type': 'manufacturer'},
        3: {'field_name': 'serial_number', 'field_type': 'uint32z'},
        4: {'field_name': 'product', 'field_type': 'uint16'},
        5: {'field_name': 'software_version', 'field_type': 'uint16', 'scale': 100},
    },
}
