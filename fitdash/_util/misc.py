#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General utilities to be used internally.

"""


def semicircles_to_degrees(semicircles):
    """Positional data conversion for *.fit files

    https://github.com/kuperov/fit/blob/master/R/fit.R
    """
    return (semicircles * 180 / 2**31 + 180) % 360 - 180


def mps_to_kph(speed):
    """ metres/second --> kilometres/hour """
    return speed * 60**2 / 1000
