#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from datetime import datetime
import struct

import numpy as np
import pytest
import pytz
from pandas import Timedelta, TimedeltaIndex

from fitdash import fit
from fitdash._types import ActivityData, special_columns
from fitdash._util.exceptions import (
    InvalidSignatureError, NoValidRecordsError, TruncatedBufferError)


T0 = 1000000000
T0_MS = 1631065600000


@pytest.fixture
def two_laps(fit_builder, tmp_path):
    data = (fit_builder()
            .definition(0, 20, [(253, 4, 0x86), (7, 2, 0x84)])
            .data(0, struct.pack('<IH', T0, 100))
            .data(0, struct.pack('<IH', T0 + 1, 110))
            .definition(1, 19, [(253, 4, 0x86)])
            .data(1, struct.pack('<I', T0 + 1))
            .data(0, struct.pack('<IH', T0 + 2, 120))
            .build())
    path = tmp_path / 'laps.fit'
    path.write_bytes(data)
    return str(path)


def test_parse(ride_bytes):
    parsed = fit.parse(ride_bytes)
    assert isinstance(parsed, fit.ParsedFitData)
    assert [r['power'] for r in parsed.records] == [100, 150, 200, 0, 250]
    assert [r['elapsed_time'] for r in parsed.records] == [0, 1, 2, 3, 4]


def test_parse_file(ride_file, ride_bytes):
    from_file = fit.parse_file(ride_file)
    assert from_file.records == fit.parse(ride_bytes).records


def test_parse_errors(fit_builder):
    with pytest.raises(TruncatedBufferError):
        fit.parse(b'')

    with pytest.raises(InvalidSignatureError):
        fit.parse(bytes([12, 16, 0, 0, 0, 0, 0, 0]) + b'XFIT')

    nothing_useful = (fit_builder()
                      .definition(0, 20, [(6, 2, 0x84)])
                      .data(0, struct.pack('<H', 5000))    # speed only
                      .definition(1, 18, [(5, 1, 0x00)])
                      .data(1, b'\x02')
                      .build())
    with pytest.raises(NoValidRecordsError):
        fit.parse(nothing_useful)


def test_gen_records(two_laps):
    records = list(fit.gen_records(two_laps))

    assert [r['lap'] for r in records] == [1, 1, 2]
    assert [r['power'] for r in records] == [100, 110, 120]
    assert records[0]['timestamp'] == T0_MS


def test_read(ride_file):
    data = fit.read(ride_file)

    assert isinstance(data, ActivityData)
    assert set(data.columns) == {'pwr', 'cad', 'hr', 'speed', 'alt',
                                 'lat', 'lon', 'lap'}
    assert isinstance(data.time, TimedeltaIndex)
    assert data.time[-1] == Timedelta(seconds=4)
    assert data.start == datetime(2021, 9, 8, 1, 46, 40, tzinfo=pytz.utc)

    assert isinstance(data['pwr'], special_columns.Power)
    assert data['pwr'].tolist() == [100, 150, 200, 0, 250]
    assert np.allclose(data['speed'], 29.9988 / 3.6)    # m/s
    assert np.allclose(data['alt'], 100)
    assert data['lap'].tolist() == [1] * 5


def test_read_timezone(ride_file):
    data = fit.read(ride_file, tz_str='Europe/London')
    assert data.start.utcoffset() == Timedelta(hours=1)    # BST
    assert data.start == datetime(2021, 9, 8, 1, 46, 40, tzinfo=pytz.utc)


def test_read_laps(two_laps):
    data = fit.read(two_laps)
    assert data['lap'].tolist() == [1, 1, 2]
    assert data.time[-1] == Timedelta(seconds=2)


def test_to_activity_data_without_timestamps():
    parsed = fit.ParsedFitData([fit.Record({'power': p}) for p in (1, 2)])
    data = fit.to_activity_data(parsed)

    assert data['pwr'].tolist() == [1, 2]
    assert data.start is None
