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
This module builds the request structures used by slice reads:
:class:`~.ColumnParent` and :class:`~.SlicePredicate`.
"""

from cassthrift.ttypes import MAX_I32, ColumnParent, SlicePredicate, SliceRange

SLICE_OPTIONS = ('start', 'finish', 'reversed', 'limit')
"""
Names of the range options accepted by :func:`build_slice_predicate`.
"""


def to_bytes(value):
    """
    Encodes a key, column name or column value for the wire.  Text is
    encoded as UTF-8, bytes pass through and numbers are stringified.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, bytearray):
        return bytes(value)
    if isinstance(value, str):
        return value.encode('utf-8')
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value).encode('utf-8')
    raise TypeError("Expected text, bytes or a number, got %s" % (type(value).__name__,))


def names_list(names):
    """
    Normalizes one column name or a sequence of them into a list of bytes,
    preserving order.
    """
    if isinstance(names, (str, bytes, bytearray)):
        names = [names]
    return [to_bytes(n) for n in names]


def build_column_parent(column_family, super_column=None):
    """
    Returns a :class:`~.ColumnParent` for `column_family`.  The
    super column is only set when `super_column` is a non-empty name.
    """
    parent = ColumnParent(column_family=column_family)
    if super_column:
        parent.super_column = to_bytes(super_column)
    return parent


def _is_true(value):
    return value is True or value == 'true'


def _parse_limit(limit):
    if isinstance(limit, bool):
        raise ValueError("Slice limit must be an integer, got %r" % (limit,))
    if isinstance(limit, int):
        count = limit
    else:
        text = limit.decode('ascii', 'replace') if isinstance(limit, bytes) else str(limit)
        text = text.strip()
        if not text.lstrip('+-').isdigit():
            raise ValueError("Slice limit must be a base-10 integer, got %r" % (limit,))
        count = int(text, 10)
    if count < 0:
        raise ValueError("Slice limit must not be negative, got %r" % (limit,))
    if count > MAX_I32:
        raise ValueError("Slice limit must be at most %d, got %r" % (MAX_I32, limit))
    return count


def build_slice_predicate(column_names=None, options=None):
    """
    Returns a :class:`~.SlicePredicate`.

    A non-empty `column_names` selects exactly those columns and any
    `options` are ignored.  Otherwise, when `options` has a value for any of
    ``start``, ``finish``, ``reversed`` or ``limit``, a range is built:
    ``reversed`` is only true for the string ``"true"`` (or :const:`True`)
    and a non-empty ``limit`` becomes the range's count.  With neither, the
    predicate selects all columns.
    """
    options = dict(options or {})
    unknown = set(options) - set(SLICE_OPTIONS)
    if unknown:
        raise TypeError("Unknown slice options: %s" % (', '.join(sorted(unknown)),))

    if column_names:
        return SlicePredicate(column_names=names_list(column_names))

    slice_range = SliceRange(start=b'', finish=b'', reversed=False)
    if any(v is not None for v in options.values()):
        if options.get('start') is not None:
            slice_range.start = to_bytes(options['start'])
        if options.get('finish') is not None:
            slice_range.finish = to_bytes(options['finish'])
        slice_range.reversed = _is_true(options.get('reversed'))
        limit = options.get('limit')
        if limit is not None and limit != '' and limit != b'':
            slice_range.count = _parse_limit(limit)
    return SlicePredicate(slice_range=slice_range)
