"""
Decode the Flexible and Interoperable data Transfer (FIT) protocol [1]_.

The reading internals---i.e. the protocol implementation---are in the
`_protocol` module. Raw field values are named and converted to sensible
units using the `_profile` tables (a small slice of the "Profile.xlsx" file
that comes with the FIT SDK) by the `_mapping` module, and whole files are
summarised by `_aggregate`. `_inspect` is a separate, forgiving, low-level
view for files the decoder won't accept.


.. [1] https://www.thisisant.com/resources/fit

"""
from fitdash.fit._reading import read_and_format as read
from fitdash.fit._reading import (
    gen_records, parse, parse_file, to_activity_data)
from fitdash.fit._aggregate import ParsedFitData, aggregate
from fitdash.fit._inspect import hex_dump, inspect, search
from fitdash.fit._mapping import map_field, to_epoch_ms
from fitdash.fit._messages import (
    DecodedMessage, DeviceInfo, FileId, Lap, Record, Session, Unknown)
from fitdash.fit._protocol import (
    DecodeSession, DefinitionTable, FileHeader, gen_fit_messages)
