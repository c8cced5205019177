#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions for this package.

"""


class FitDashError(Exception):
    """Base exception."""
    _default_message = ''

    def __init__(self, message=None):
        super().__init__(message if message else self._default_message)


class InvalidFileError(FitDashError):
    def __init__(self, fmt):
        determiner = 'an' if fmt[0].lower() in 'aeiou' else 'a'  # grammar
        message = "this doesn't look like %s %s file!" % (determiner, fmt)
        super().__init__(message)


# Exceptions specific to the fit subpackage
# -----------------------------------------
class TruncatedBufferError(FitDashError):
    _default_message = 'cannot parse file: data ends unexpectedly'


class OutOfBoundsError(TruncatedBufferError):
    def __init__(self, position, size, length):
        super().__init__(
            'cannot parse file: reading %d byte(s) at offset %d overruns '
            'a %d byte buffer' % (size, position, length))


class InvalidSignatureError(InvalidFileError):
    def __init__(self, signature=None):
        super().__init__('FIT')
        self.signature = signature


class FITFileHeaderError(FitDashError):
    _default_message = 'irregular file header'


class FITCRCError(FitDashError):
    _default_message = 'CRC check failed'


class FITMessageHeaderError(FitDashError):
    pass


class UnknownLocalTypeError(FITMessageHeaderError):
    def __init__(self, local_message_type):
        super().__init__('no definition for local message type %d'
                         % local_message_type)
        self.local_message_type = local_message_type


class MalformedMessageError(FITMessageHeaderError):
    _default_message = 'malformed message'


class CompressedTimestampError(FITMessageHeaderError):
    _default_message = ('compressed timestamp found before any '
                        'full timestamp')


class NoValidRecordsError(FitDashError):
    _default_message = 'no valid data found'


def describe_failure(file_name, error):
    """A one-line, human readable reason for a failed decode."""
    if isinstance(error, InvalidSignatureError):
        reason = 'not a valid FIT file'
    elif isinstance(error, TruncatedBufferError):
        reason = 'cannot parse file'
    elif isinstance(error, NoValidRecordsError):
        reason = 'no valid data found'
    else:
        reason = str(error) or type(error).__name__
    return 'Cannot read %s: %s' % (file_name, reason)
