#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Collect decoded messages into the structure the rest of the package (and
anything downstream, like charts) works with.

"""
import logging

from pandas import DataFrame, Series, to_numeric

from fitdash.fit._messages import DeviceInfo, FileId, Lap, Record, Session


log = logging.getLogger(__name__)

STATS_FIELDS = ('power', 'cadence', 'heart_rate', 'speed', 'distance',
                'altitude', 'temperature')

CHART_FIELDS = ('power', 'cadence', 'heart_rate')


class ParsedFitData:
    """Everything we got out of one file.

    Attributes
    ----------
    records, laps, sessions : list
        `Record`, `Lap` and `Session` messages, in file order.
    device_info, file_id : DeviceInfo, FileId or None
        The last of each seen in the file.
    duration : float
        Seconds. See `aggregate` for how this is worked out.
    raw : dict
        Nested view of the whole file, for debugging.
    header : FileHeader or None
    skipped_bytes, dropped_messages : int
        Decoder diagnostics.
    """
    __slots__ = ('records', 'laps', 'sessions', 'device_info', 'file_id',
                 'duration', 'raw', 'header', 'skipped_bytes',
                 'dropped_messages')

    def __init__(self, records=(), laps=(), sessions=(), *, device_info=None,
                 file_id=None, duration=0, raw=None, header=None,
                 skipped_bytes=0, dropped_messages=0):
        self.records = list(records)
        self.laps = list(laps)
        self.sessions = list(sessions)
        self.device_info = device_info
        self.file_id = file_id
        self.duration = duration
        self.raw = raw if raw is not None else {}
        self.header = header
        self.skipped_bytes = skipped_bytes
        self.dropped_messages = dropped_messages

    def __repr__(self):
        return ('<ParsedFitData: %d records, %d laps, %d sessions, %gs>'
                % (len(self.records), len(self.laps), len(self.sessions),
                   self.duration))

    def has_valid_records(self):
        return any(record.has_data() for record in self.records)

    def to_frame(self):
        """Records as a plain DataFrame, one column per field."""
        return DataFrame.from_records(
            [record.to_dict() for record in self.records])

    def field_stats(self, fields=STATS_FIELDS):
        """Minimum, average and maximum of each numeric record field.

        Fields that never appear are left out.
        """
        frame = self.to_frame()
        stats = {}
        for name in fields:
            column = _numeric(frame, name)
            if column.empty:
                continue
            stats[name] = {'min': _scalar(column.min()),
                           'avg': _scalar(column.mean()),
                           'max': _scalar(column.max())}
        return stats

    def summary(self):
        """The scalars shown on summary cards.

        Only positive power, cadence and heart rate values count: zeros
        are coasting or dropouts.
        """
        frame = self.to_frame()
        power = _positive(frame, 'power')
        cadence = _positive(frame, 'cadence')
        heart_rate = _positive(frame, 'heart_rate')
        timestamps = _numeric(frame, 'timestamp')

        return {
            'record_count': len(self.records),
            'lap_count': len(self.laps),
            'session_count': len(self.sessions),
            'duration': self.duration,
            'avg_power': _rounded_mean(power),
            'min_power': _scalar(power.min()) if len(power) else None,
            'max_power': _scalar(power.max()) if len(power) else None,
            'avg_cadence': _rounded_mean(cadence),
            'avg_heart_rate': _rounded_mean(heart_rate),
            'first_timestamp': (_scalar(timestamps.iloc[0])
                                if len(timestamps) else None),
            'last_timestamp': (_scalar(timestamps.iloc[-1])
                               if len(timestamps) else None),
        }

    def chart_data(self):
        """Points for time series charts, time in minutes from the start.

        Records without a timestamp are assumed to be one second apart.
        """
        start = next((record.timestamp for record in self.records
                      if record.timestamp is not None), None)
        points = []
        for i, record in enumerate(self.records):
            if start is not None and record.timestamp is not None:
                time = (record.timestamp - start) / 60000
            else:
                time = i / 60
            point = {'time': time}
            point.update((name, record.get(name)) for name in CHART_FIELDS)
            points.append(point)
        return points


def aggregate(messages, *, header=None, skipped_bytes=0,
              dropped_messages=0):
    """Bucket decoded messages and work out the derived values.

    Duration is the span of the record timestamps when there are at least
    two of them, otherwise the first session's (then lap's) total elapsed
    time, otherwise zero.

    Parameters
    ----------
    messages : iterable of DecodedMessage
        In file order.
    header : FileHeader, optional
        Carried through to the result.

    Returns
    -------
    ParsedFitData
    """
    messages = list(messages)
    records, laps, sessions = [], [], []
    device_info = file_id = None

    for message in messages:
        if isinstance(message, Record):
            records.append(message)
        elif isinstance(message, Lap):
            laps.append(message)
        elif isinstance(message, Session):
            sessions.append(message)
        elif isinstance(message, DeviceInfo):
            device_info = message    # last wins
        elif isinstance(message, FileId):
            file_id = message

    add_elapsed_time(records)

    parsed = ParsedFitData(
        records, laps, sessions,
        device_info=device_info,
        file_id=file_id,
        duration=calc_duration(records, sessions, laps),
        raw=cascade(messages, header),
        header=header,
        skipped_bytes=skipped_bytes,
        dropped_messages=dropped_messages)

    log.info('aggregated %d records, %d laps, %d sessions over %gs',
             len(records), len(laps), len(sessions), parsed.duration)
    return parsed


def add_elapsed_time(records):
    """Seconds since the first timestamped record, on each timestamped
    record."""
    start = next((record.timestamp for record in records
                  if record.timestamp is not None), None)
    if start is None:
        return
    for record in records:
        if record.timestamp is not None:
            record['elapsed_time'] = (record.timestamp - start) / 1000


def calc_duration(records, sessions=(), laps=()):
    timestamps = [record.timestamp for record in records
                  if record.timestamp is not None]
    if len(timestamps) >= 2:
        return (max(timestamps) - min(timestamps)) / 1000

    for summary in (sessions[:1], laps[:1]):
        for message in summary:
            elapsed = message.get('total_elapsed_time')
            if elapsed is not None:
                return elapsed
    return 0


def cascade(messages, header=None):
    """Nest records in laps and laps in sessions.

    Lap and session messages are written when they end, so a lap owns the
    records seen since the previous lap (and likewise sessions and laps).
    Anything left over goes in a trailing entry with no fields of its own.
    """
    sessions, open_laps, open_records = [], [], []
    device_infos, unknown = [], []
    file_id = None

    for message in messages:
        if isinstance(message, Record):
            open_records.append(message.to_dict())
        elif isinstance(message, Lap):
            open_laps.append(dict(message.to_dict(), records=open_records))
            open_records = []
        elif isinstance(message, Session):
            sessions.append(dict(message.to_dict(), laps=open_laps))
            open_laps = []
        elif isinstance(message, DeviceInfo):
            device_infos.append(message.to_dict())
        elif isinstance(message, FileId):
            file_id = message.to_dict()
        else:
            unknown.append(dict(message.to_dict(), mesg_num=message.mesg_num))

    if open_records:
        open_laps.append({'records': open_records})
    if open_laps:
        sessions.append({'laps': open_laps})

    return {
        'header': header._asdict() if header is not None else None,
        'file_id': file_id,
        'device_infos': device_infos,
        'activity': {'sessions': sessions},
        'unknown': unknown,
    }


# Some local utilities
# --------------------
def _numeric(frame, name):
    if name not in frame:
        return Series(dtype=float)
    return to_numeric(frame[name], errors='coerce').dropna()


def _positive(frame, name):
    column = _numeric(frame, name)
    return column[column > 0]


def _scalar(value):
    """numpy scalar --> python scalar"""
    return value.item() if hasattr(value, 'item') else value


def _rounded_mean(column):
    return int(round(column.mean())) if len(column) else None
