#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from pandas import TimedeltaIndex, to_timedelta

from fitdash._types import DataFrameSubclass, special_columns


class ActivityData(DataFrameSubclass):
    """Decoded records as a table: one row per record, indexed by the time
    since the first one. ``start`` is the first record's timestamp."""
    _metadata = ['start']

    def __getitem__(self, key):
        """Create the illusion of Series subclasses in the DataFrame."""
        item = super().__getitem__(key)
        try:
            return special_columns.REGISTRY[key](item)
        except (KeyError, TypeError):   # not special, or not a column
            return item

    @property
    def time(self):
        if isinstance(self.index, TimedeltaIndex):
            return self.index
        else:
            # because recursion problems with super().__getattr__()
            raise AttributeError('index is not TimedeltaIndex')

    def _finish_up(self, *, column_spec, start=None, timeoffsets=None):
        """Rename decoded fields to their column names, and index by time.

        `column_spec` maps a record field name to a column class (or an
        alternative constructor of one).
        """
        for old_key, column_cls in column_spec.items():
            try:
                old_column = self.pop(old_key)  # no default
            except KeyError:
                continue

            new = column_cls(old_column)
            self[type(new).colname] = new

        self.start = start
        if timeoffsets is not None:
            self.index = to_timedelta(timeoffsets, unit='s').rename('time')

        # No point hanging on to completely empty columns
        self.dropna(axis=1, how='all', inplace=True)
