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
Structures of the Cassandra Thrift interface used by this driver.

Encoding and decoding is done by :class:`thrift.protocol.TBase.TBase` from
each structure's ``thrift_spec``, laid out as the Thrift compiler generates
it: ``(field id, TType, attribute name, type arguments, default)`` indexed
by field id.  Unset (:const:`None`) attributes are not written, so fields the
interface requires carry a default that the constructor applies.
"""

from thrift.Thrift import TType
from thrift.protocol.TBase import TBase

from cassthrift import InvalidRequest, Unavailable, Timeout, AuthenticationFailed, Unauthorized

BINARY = 'BINARY'

MAX_I32 = 2 ** 31 - 1
""" Largest value of an ``i32`` field such as a slice count or a column ttl. """


class ThriftStruct(TBase):
    """
    Base for structures exchanged with the server.  Constructor keywords are
    the attribute names from :attr:`thrift_spec`; attributes not given take
    the field default, normally :const:`None`.
    """

    __slots__ = ()
    thrift_spec = ()

    def __init__(self, **kwargs):
        for field in self.thrift_spec:
            if field is not None:
                setattr(self, field[2], kwargs.pop(field[2], field[4]))
        if kwargs:
            raise TypeError("%s got unexpected fields %s" % (self.__class__.__name__, sorted(kwargs)))

    def __repr__(self):
        attrs = ['%s=%r' % (name, getattr(self, name)) for name in self.__slots__
                 if getattr(self, name) is not None]
        return '%s(%s)' % (self.__class__.__name__, ', '.join(attrs))


class Column(ThriftStruct):
    """
    A named value with the client-assigned timestamp (microseconds since
    the epoch) used to resolve concurrent writes, and an optional ``ttl``
    in seconds.
    """
    __slots__ = ('name', 'value', 'timestamp', 'ttl')
    thrift_spec = (
        None,
        (1, TType.STRING, 'name', BINARY, None),
        (2, TType.STRING, 'value', BINARY, None),
        (3, TType.I64, 'timestamp', None, None),
        (4, TType.I32, 'ttl', None, None),
    )


class SuperColumn(ThriftStruct):
    """ A named group of :class:`Column` instances. """
    __slots__ = ('name', 'columns')
    thrift_spec = (
        None,
        (1, TType.STRING, 'name', BINARY, None),
        (2, TType.LIST, 'columns', (TType.STRUCT, (Column, None), False), None),
    )


class CounterColumn(ThriftStruct):
    __slots__ = ('name', 'value')
    thrift_spec = (
        None,
        (1, TType.STRING, 'name', BINARY, None),
        (2, TType.I64, 'value', None, None),
    )


class CounterSuperColumn(ThriftStruct):
    __slots__ = ('name', 'columns')
    thrift_spec = (
        None,
        (1, TType.STRING, 'name', BINARY, None),
        (2, TType.LIST, 'columns', (TType.STRUCT, (CounterColumn, None), False), None),
    )


class ColumnOrSuperColumn(ThriftStruct):
    """
    One entry of a row as returned by a slice: exactly one of the four
    attributes is set.
    """
    __slots__ = ('column', 'super_column', 'counter_column', 'counter_super_column')
    thrift_spec = (
        None,
        (1, TType.STRUCT, 'column', (Column, None), None),
        (2, TType.STRUCT, 'super_column', (SuperColumn, None), None),
        (3, TType.STRUCT, 'counter_column', (CounterColumn, None), None),
        (4, TType.STRUCT, 'counter_super_column', (CounterSuperColumn, None), None),
    )


class ColumnParent(ThriftStruct):
    """
    Where a slice reads from: a column family and, for super column
    families, optionally one super column.
    """
    __slots__ = ('column_family', 'super_column')
    thrift_spec = (
        None,
        None,
        None,
        (3, TType.STRING, 'column_family', None, None),
        (4, TType.STRING, 'super_column', BINARY, None),
    )


DEFAULT_SLICE_COUNT = 100
"""
Count of a :class:`SliceRange` built without an explicit ``count``; the
interface requires the field.
"""


class SliceRange(ThriftStruct):
    """
    A contiguous range of column names, from ``start`` to ``finish``
    (empty meaning unbounded), optionally ``reversed`` and limited to
    ``count`` columns.
    """
    __slots__ = ('start', 'finish', 'reversed', 'count')
    thrift_spec = (
        None,
        (1, TType.STRING, 'start', BINARY, None),
        (2, TType.STRING, 'finish', BINARY, None),
        (3, TType.BOOL, 'reversed', None, False),
        (4, TType.I32, 'count', None, DEFAULT_SLICE_COUNT),
    )


class SlicePredicate(ThriftStruct):
    """
    Selects columns either by an explicit ``column_names`` list or by a
    ``slice_range``, never both.
    """
    __slots__ = ('column_names', 'slice_range')
    thrift_spec = (
        None,
        (1, TType.LIST, 'column_names', (TType.STRING, BINARY, False), None),
        (2, TType.STRUCT, 'slice_range', (SliceRange, None), None),
    )

    def __init__(self, **kwargs):
        ThriftStruct.__init__(self, **kwargs)
        if self.column_names is not None and self.slice_range is not None:
            raise ValueError("A SlicePredicate takes column_names or slice_range, not both")


class Deletion(ThriftStruct):
    """
    Removes data older than ``timestamp``: the whole row when neither
    ``super_column`` nor ``predicate`` is set, the named columns when
    ``predicate`` lists them, inside ``super_column`` when it is set.
    """
    __slots__ = ('timestamp', 'super_column', 'predicate')
    thrift_spec = (
        None,
        (1, TType.I64, 'timestamp', None, None),
        (2, TType.STRING, 'super_column', BINARY, None),
        (3, TType.STRUCT, 'predicate', (SlicePredicate, None), None),
    )


class Mutation(ThriftStruct):
    """ Either an insert (``column_or_supercolumn``) or a ``deletion``. """
    __slots__ = ('column_or_supercolumn', 'deletion')
    thrift_spec = (
        None,
        (1, TType.STRUCT, 'column_or_supercolumn', (ColumnOrSuperColumn, None), None),
        (2, TType.STRUCT, 'deletion', (Deletion, None), None),
    )

    def __init__(self, **kwargs):
        ThriftStruct.__init__(self, **kwargs)
        if self.column_or_supercolumn is not None and self.deletion is not None:
            raise ValueError("A Mutation is an insertion or a deletion, not both")


class EndpointDetails(ThriftStruct):
    __slots__ = ('host', 'datacenter', 'rack')
    thrift_spec = (
        None,
        (1, TType.STRING, 'host', None, None),
        (2, TType.STRING, 'datacenter', None, None),
        (3, TType.STRING, 'rack', None, None),
    )


class TokenRange(ThriftStruct):
    """ A range of the ring and the nodes replicating it. """
    __slots__ = ('start_token', 'end_token', 'endpoints', 'rpc_endpoints', 'endpoint_details')
    thrift_spec = (
        None,
        (1, TType.STRING, 'start_token', None, None),
        (2, TType.STRING, 'end_token', None, None),
        (3, TType.LIST, 'endpoints', (TType.STRING, None, False), None),
        (4, TType.LIST, 'rpc_endpoints', (TType.STRING, None, False), None),
        (5, TType.LIST, 'endpoint_details', (TType.STRUCT, (EndpointDetails, None), False), None),
    )


class AuthenticationRequest(ThriftStruct):
    __slots__ = ('credentials',)
    thrift_spec = (
        None,
        (1, TType.MAP, 'credentials', (TType.STRING, None, TType.STRING, None, False), None),
    )


# Exceptions declared by the calls this driver makes.  They are decoded like
# any other structure and turned into driver exceptions with to_exception().

class InvalidRequestException(ThriftStruct):
    __slots__ = ('why',)
    thrift_spec = (
        None,
        (1, TType.STRING, 'why', None, None),
    )

    def to_exception(self, consistency_level=None):
        return InvalidRequest(self.why)


class UnavailableException(ThriftStruct):
    __slots__ = ()
    thrift_spec = ()

    def to_exception(self, consistency_level=None):
        return Unavailable("Not enough replicas available", consistency=consistency_level)


class TimedOutException(ThriftStruct):
    __slots__ = ('acknowledged_by', 'acknowledged_by_batchlog')
    thrift_spec = (
        None,
        (1, TType.I32, 'acknowledged_by', None, None),
        (2, TType.BOOL, 'acknowledged_by_batchlog', None, None),
    )

    def to_exception(self, consistency_level=None):
        return Timeout("Replicas timed out", consistency=consistency_level,
                       acknowledged_by=self.acknowledged_by)


class AuthenticationException(ThriftStruct):
    __slots__ = ('why',)
    thrift_spec = (
        None,
        (1, TType.STRING, 'why', None, None),
    )

    def to_exception(self, consistency_level=None):
        return AuthenticationFailed(self.why)


class AuthorizationException(ThriftStruct):
    __slots__ = ('why',)
    thrift_spec = (
        None,
        (1, TType.STRING, 'why', None, None),
    )

    def to_exception(self, consistency_level=None):
        return Unauthorized(self.why)
