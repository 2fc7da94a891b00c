# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
This module turns the rows returned by ``multiget_slice`` and
``multiget_count`` into plain dicts.

A column decoder is a function that takes a name or value as received
from the server and returns the Python object the caller sees.  Two are
provided; :attr:`.Session.column_decoder` selects which one a session uses.
"""

import logging

log = logging.getLogger(__name__)


def utf8_column_decoder(value):
    """
    Decodes names and values as UTF-8 text.  This is the default.
    Invalid sequences are replaced rather than raising.
    """
    if isinstance(value, bytes):
        return value.decode('utf-8', 'replace')
    return value


def bytes_column_decoder(value):
    """ Returns names and values exactly as received. """
    return value


def _decode_columns(columns, column_decoder):
    return dict((column_decoder(c.name), column_decoder(c.value)) for c in columns)


def _counter_columns(columns, column_decoder):
    # counter values are integers already
    return dict((column_decoder(c.name), c.value) for c in columns)


def decode_row(entries, column_decoder=utf8_column_decoder):
    """
    Decodes one row, a list of :class:`~.ColumnOrSuperColumn`, into a dict.
    Standard columns map names to values; super columns map their name to
    a dict of their sub-columns.
    """
    row = {}
    for cosc in entries:
        if cosc.column is not None:
            row[column_decoder(cosc.column.name)] = column_decoder(cosc.column.value)
        elif cosc.super_column is not None:
            sc = cosc.super_column
            row[column_decoder(sc.name)] = _decode_columns(sc.columns or (), column_decoder)
        elif cosc.counter_column is not None:
            row[column_decoder(cosc.counter_column.name)] = cosc.counter_column.value
        elif cosc.counter_super_column is not None:
            sc = cosc.counter_super_column
            row[column_decoder(sc.name)] = _counter_columns(sc.columns or (), column_decoder)
        else:
            log.debug("Ignoring empty ColumnOrSuperColumn in slice result")
    return row


def decode_multiget_slice(result, column_decoder=utf8_column_decoder):
    """
    Decodes a ``multiget_slice`` result, ``{row key: [ColumnOrSuperColumn]}``,
    into ``{row key: {name: value or {sub name: value}}}``.

    Every row key in `result` appears in the output, with ``{}`` for rows
    holding no columns.  Row keys are left as received.
    """
    return dict((key, decode_row(entries or (), column_decoder))
                for key, entries in result.items())


def decode_multiget_count(result):
    """
    Decodes a ``multiget_count`` result, ``{row key: count}``.
    """
    return dict(result)
