__version__ = '0.1.0'
# fitdash: decode FIT activity files for a training dashboard.
from fitdash.fit import parse, parse_file, read
from fitdash._util.exceptions import (
    FitDashError, InvalidSignatureError, NoValidRecordsError,
    TruncatedBufferError)
