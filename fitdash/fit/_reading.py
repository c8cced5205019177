#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Translate the `_protocol` module functionality to be consistent with
this package's API.

"""
from datetime import datetime
import logging

import pytz

from fitdash.fit._aggregate import aggregate
from fitdash.fit._protocol import DataMessage, DecodeSession
from fitdash._types import ActivityData, special_columns
from fitdash._util.exceptions import NoValidRecordsError


log = logging.getLogger(__name__)

TZ_UTC = pytz.timezone('UTC')

COLUMN_SPEC = {     # record field names, see the `_profile` module
    'altitude': special_columns.Altitude,
    'cadence': special_columns.Cadence,
    'distance': special_columns.Distance,
    'heart_rate': special_columns.HeartRate,
    'lap': special_columns.LapCounter,
    'position_lat': special_columns.Latitude,
    'position_long': special_columns.Longitude,
    'power': special_columns.Power,
    'speed': special_columns.Speed._from_kph,
    'temperature': special_columns.Temperature,
}


def message_filter(message, keep=('record', 'lap')):
    return isinstance(message, DataMessage) and message.name in keep


def read_bytes(file_path):
    with open(file_path, 'rb') as fitfile:
        return fitfile.read()


def parse(data, *, strict=False, check_crc=False):
    """Decode a whole FIT file held in memory.

    Parameters
    ----------
    data : bytes
        Contents of the file.
    strict : bool, optional
        Raise on the first unusable message rather than skipping it.
    check_crc : bool, optional
        Verify the header and file CRCs first.

    Returns
    -------
    ParsedFitData

    Raises
    ------
    TruncatedBufferError
        The data stops before the header, or a message, is complete.
    InvalidSignatureError
        This isn't a FIT file.
    NoValidRecordsError
        Nothing in the file is worth looking at.
    """
    session = DecodeSession(data, strict=strict, check_crc=check_crc)
    messages = session.decode()
    parsed = aggregate(messages,
                       header=session.header,
                       skipped_bytes=session.skipped_bytes,
                       dropped_messages=session.dropped_messages)

    if not parsed.has_valid_records():
        raise NoValidRecordsError
    return parsed


def parse_file(file_path, **kwargs):
    """Like `parse`, reading the data from `file_path` first."""
    log.debug('parsing %s', file_path)
    return parse(read_bytes(file_path), **kwargs)


def gen_records(file_path, **kwargs):
    """Generator function for iterating over individual file records.

    "Records" are dictionary objects representing a single "sample" of data;
    i.e. a row in a tabular representation. Note this can be passed to
    the `from_records` constructor method of `pandas.DataFrame`s. Each one
    carries the (1-based) number of the lap it belongs to.
    """
    session = DecodeSession(read_bytes(file_path), **kwargs)
    messages = filter(message_filter, session.gen_messages())
    lap = 1
    for message in messages:
        if message.name == 'lap':
            lap += 1
        else:
            record = message.decode().to_dict()
            record['lap'] = lap
            yield record


def read_and_format(file_path, *, tz_str=None, **kwargs):
    parsed = parse_file(file_path, **kwargs)
    return to_activity_data(parsed, tz_str=tz_str)


def to_activity_data(parsed, *, tz_str=None):
    """Records as ActivityData, indexed by time since the first timestamp.

    Records without a timestamp can't be placed in time, so are dropped
    whenever any record has one.
    """
    rows = []
    lap = 1
    lap_ends = [lap_.timestamp for lap_ in parsed.laps
                if lap_.timestamp is not None]
    for record in parsed.records:
        row = record.to_dict()
        ts = row.get('timestamp')
        if ts is not None:
            lap = 1 + sum(1 for end in lap_ends if end < ts)
        row['lap'] = lap
        rows.append(row)

    data = ActivityData.from_records(rows)

    if 'timestamp' in data:
        data = data[data['timestamp'].notna()].drop(
            columns='elapsed_time', errors='ignore')
        timestamps = data.pop('timestamp')   # epoch ms, UTC

        timezone = pytz.timezone(tz_str) if tz_str is not None else TZ_UTC
        start = datetime.fromtimestamp(timestamps.iloc[0] / 1000, TZ_UTC)
        tstart = start.astimezone(timezone)

        timeoffsets = (timestamps - timestamps.iloc[0]) / 1000
        data._finish_up(column_spec=COLUMN_SPEC,
                        start=tstart, timeoffsets=timeoffsets.values)
    else:
        data._finish_up(column_spec=COLUMN_SPEC)

    return data
