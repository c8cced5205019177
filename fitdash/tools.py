#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General tools that complement the API.

"""


def percent_difference(first, second, *, ndigits=1):
    """How much bigger (or smaller) `second` is than `first`, in percent.

        >>> percent_difference(200, 210)
        5.0

    Returns None when `first` is zero or missing.
    """
    if not first or second is None:
        return None
    return round((second - first) / first * 100, ndigits)


def compare(first, second):
    """Side-by-side summary of two parsed files.

    Parameters
    ----------
    first, second : ParsedFitData

    Returns
    -------
    dict
        Each file's average power and cadence and duration (minutes), plus
        the percentage difference in average power.
    """
    def describe(parsed):
        summary = parsed.summary()
        return {'avg_power': summary['avg_power'],
                'avg_cadence': summary['avg_cadence'],
                'duration_min': parsed.duration / 60}

    a, b = describe(first), describe(second)
    return {'first': a, 'second': b,
            'power_difference_pct': percent_difference(a['avg_power'],
                                                       b['avg_power'])}
