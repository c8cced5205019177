#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Turn raw field values into named, engineering-unit values using the
`_profile` tables.

"""
from datetime import datetime
from numbers import Number
from math import isnan

from pandas import NaT, Timestamp
import pytz

from fitdash.fit._profile import GLOBAL_MESG_NUMS, MESSAGE_TYPES, TYPES_INFO
from fitdash._util.misc import mps_to_kph, semicircles_to_degrees


EMPTY_DICT = {}

# Seconds between the UNIX epoch and the FIT epoch (1989-12-31 00:00 UTC).
FIT_EPOCH_S = 631065600

UNIT_CONVERSIONS = {
    'semicircles': semicircles_to_degrees,
    'm/s': mps_to_kph,
}


def mesg_name(global_mesg_num):
    return GLOBAL_MESG_NUMS.get(global_mesg_num, 'unknown')


def field_profile(global_mesg_num, field_def_num):
    """The profile entry for a field, or None if we don't know it."""
    message_type = MESSAGE_TYPES.get(mesg_name(global_mesg_num), EMPTY_DICT)
    return message_type.get(field_def_num)


def map_field(global_mesg_num, field_def_num, raw_value,
              scale=None, offset=None):
    """Name and convert a single field value.

    Parameters
    ----------
    global_mesg_num, field_def_num : int
        Together these identify the field in the profile.
    raw_value
        As read from the file, with invalid values already set to None.
    scale, offset : number, optional
        Override whatever the profile says.

    Returns
    -------
    (name, value) or None
        None means the value should be treated as absent.
    """
    if raw_value is None:
        return None

    profile = field_profile(global_mesg_num, field_def_num)
    if profile is None:
        return 'unknown_%d' % field_def_num, raw_value

    value = convert_value(profile, raw_value, scale=scale, offset=offset)
    if value is None:
        return None
    return profile['field_name'], value


def convert_value(profile, raw_value, *, scale=None, offset=None):
    if isinstance(raw_value, (str, bytes, tuple)):
        return raw_value   # arrays and strings are passed through

    field_type = profile.get('field_type')
    if field_type == 'date_time':
        return fit_to_epoch_ms(raw_value)
    if field_type in TYPES_INFO:
        return TYPES_INFO[field_type].get(raw_value, raw_value)

    value = apply_scale_offset(
        raw_value,
        scale=profile.get('scale', 1) if scale is None else scale,
        offset=profile.get('offset', 0) if offset is None else offset)

    valid_range = profile.get('valid_range')
    if valid_range is not None:
        low, high = valid_range
        if not low <= value < high:
            return None

    convert = UNIT_CONVERSIONS.get(profile.get('units'))
    return convert(value) if convert else value


def apply_scale_offset(value, scale=1, offset=0):
    """From the FIT SDK release 20.03.00

    The FIT SDK supports applying a scale or offset to binary fields. This
    allows efficient representation of values within a particular range and
    provides a convenient method for representing floating point values in
    integer systems. A scale or offset may be specified in the FIT profile for
    binary fields (sint/uint etc.) only. When specified, the binary quantity
    is divided by the scale factor and then the offset is subtracted, yielding
    a floating point quantity.
    """
    if scale == 1 and offset == 0:
        return value
    return value / scale - offset


def fit_to_epoch_ms(fit_seconds):
    return (fit_seconds + FIT_EPOCH_S) * 1000


def to_epoch_ms(value):
    """Milliseconds since the UNIX epoch from any timestamp we come across.

    Accepts epoch milliseconds (int or float), datetimes (naive ones are
    taken as UTC), ISO 8601 strings and the nested ``{'value': {'iso': ...}}``
    dictionaries some parsers produce. Anything else gives None.

        >>> to_epoch_ms('2025-07-01T16:03:24.000Z')
        1751385804000
    """
    if value is None or value is NaT or isinstance(value, bool):
        return None

    if isinstance(value, dict):
        for key in ('iso', 'value'):
            if key in value:
                return to_epoch_ms(value[key])
        return None

    if isinstance(value, Number):
        return None if isnan(value) else int(value)

    if isinstance(value, (str, datetime)):
        try:
            stamp = Timestamp(value)
        except (ValueError, TypeError):
            return None
        if stamp is NaT:
            return None
        if stamp.tzinfo is None:
            stamp = stamp.tz_localize(pytz.utc)
        return stamp.value // 10**6   # nanoseconds --> milliseconds

    return None
