#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from pandas import DataFrame, Series


__all__ = ('DataFrameSubclass', 'SeriesSubclass')  # using * import elsewhere


class _KeepsMetadata:
    """pandas subclassing boilerplate: results of operations keep the
    subclass, and whatever is named in `_metadata`."""
    _metadata = []

    @property
    def _constructor(self):
        return self.__class__

    def __finalize__(self, other, method=None, **kwargs):
        for name in self._metadata:
            object.__setattr__(self, name, getattr(other, name, None))
        return self


class DataFrameSubclass(_KeepsMetadata, DataFrame):
    pass


class SeriesSubclass(_KeepsMetadata, Series):
    pass
