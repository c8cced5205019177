#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Named record columns for `ActivityData`.

Each class names its column (``colname``) and the unit its values are held
in (``base_unit``). Defining a class with a ``colname`` registers it, so
``ActivityData.__getitem__`` can hand back the right type.

"""
from fitdash._types.base import SeriesSubclass


REGISTRY = {}    # grows at import-time via the below metaclass


class SpecialRegistrar(type):
    def __init__(cls, name, bases, namespace):
        if 'colname' in namespace:
            REGISTRY[cls.colname] = cls
        super().__init__(name, bases, namespace)


class SpecialColumn(SeriesSubclass, metaclass=SpecialRegistrar):
    _metadata = ['colname', 'base_unit']

    def __init__(self, data, *args, **kwargs):
        super().__init__(data, *args, **kwargs)
        self.name = self.__class__.colname     # use *class* attribute


class Altitude(SpecialColumn):
    colname = 'alt'
    base_unit = 'm'


class Cadence(SpecialColumn):
    colname = 'cad'
    base_unit = 'rpm'


class Distance(SpecialColumn):
    colname = 'dist'
    base_unit = 'm'


class HeartRate(SpecialColumn):
    colname = 'hr'
    base_unit = 'bpm'


class LapCounter(SpecialColumn):
    colname = 'lap'
    base_unit = '#'


class LonLat(SpecialColumn):
    base_unit = 'degrees'


class Longitude(LonLat):
    colname = 'lon'


class Latitude(LonLat):
    colname = 'lat'


class Power(SpecialColumn):
    colname = 'pwr'
    base_unit = 'watts'


class Speed(SpecialColumn):
    colname = 'speed'
    base_unit = 'm/s'

    @classmethod
    def _from_kph(cls, data, *args, **kwargs):
        """Decoded records carry km/h."""
        return cls(data / 60**2 * 1000, *args, **kwargs)


class Temperature(SpecialColumn):
    colname = 'temp'
    base_unit = 'degrees_C'
