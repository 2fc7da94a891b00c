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
This module houses the main classes you will interact with,
:class:`.Cluster` and :class:`.Session`.
"""

import logging
from threading import RLock

from cassthrift import (ConsistencyLevel, ConsistencyLevels, check_consistency_level,
                        DriverException, NotFound)
from cassthrift.auth import PlainTextAuthProvider
from cassthrift.batch import build_insert_batch, build_delete_batch
from cassthrift.connection import Connection, ConnectionShutdown
from cassthrift.decoder import utf8_column_decoder, decode_multiget_slice, decode_multiget_count
from cassthrift.endpoint import DEFAULT_PORT, parse_endpoint
from cassthrift.metadata import Metadata
from cassthrift.query import to_bytes, build_column_parent, build_slice_predicate
from cassthrift.timestamps import MonotonicTimestampGenerator

log = logging.getLogger(__name__)


class Cluster(object):
    """
    The connection configuration for one Cassandra cluster.

    Example usage::

        >>> from cassthrift.cluster import Cluster
        >>> cluster = Cluster('192.168.1.1:9160')
        >>> session = cluster.connect('Keyspace1')
        >>> session.insert('Standard1', 'jsmith', {'first': 'John'})
        >>> session.get('Standard1', 'jsmith')
        {'first': 'John'}
        >>> cluster.shutdown()

    ``Cluster`` and ``Session`` also provide context management functions
    which implicitly handle shutdown when leaving scope.
    """

    contact_point = 'localhost:9160'
    """
    The node to connect to, as ``"host"`` or ``"host:port"``.  Sessions
    only ever talk to this node.
    """

    port = DEFAULT_PORT
    """
    The server-side port used when :attr:`contact_point` names none.
    Defaults to 9160.
    """

    framed_transport = True
    """
    Whether to use a framed transport, as servers do by default.  Set to
    :const:`False` for servers running the unframed (buffered) transport.
    """

    timeout = None
    """
    The socket timeout in seconds for connecting and for every call, or
    :const:`None` to block indefinitely.
    """

    auth_provider = None
    """
    An optional :class:`~.AuthProvider`.  When set, every new session logs
    in with its credentials before binding the keyspace.
    """

    default_consistency_levels = ConsistencyLevels(ConsistencyLevel.QUORUM, ConsistencyLevel.QUORUM)
    """
    The :class:`~.ConsistencyLevels` new sessions start with.
    """

    timestamp_generator = None
    """
    A callable returning the microsecond timestamps attached to inserted
    columns and deletions.  Defaults to a
    :class:`~.MonotonicTimestampGenerator` shared by this cluster's
    sessions.
    """

    connection_class = Connection
    """
    The class used to open connections.
    """

    is_shutdown = False

    def __init__(self,
                 contact_point='localhost:9160',
                 port=DEFAULT_PORT,
                 framed_transport=True,
                 timeout=None,
                 auth_provider=None,
                 default_consistency_levels=None,
                 timestamp_generator=None,
                 connection_class=None):
        self.contact_point = contact_point
        self.port = port
        self.endpoint = parse_endpoint(contact_point, port)
        self.framed_transport = framed_transport
        self.timeout = timeout

        if auth_provider is not None:
            if not hasattr(auth_provider, 'new_credentials'):
                raise TypeError("auth_provider must implement new_credentials()")
            self.auth_provider = auth_provider

        if default_consistency_levels is not None:
            self.default_consistency_levels = ConsistencyLevels.coerce(default_consistency_levels)

        self.timestamp_generator = timestamp_generator or MonotonicTimestampGenerator()

        if connection_class is not None:
            self.connection_class = connection_class

        self.sessions = set()
        self._lock = RLock()

    def connect(self, keyspace):
        """
        Opens a connection to :attr:`contact_point`, logs in when an
        :attr:`auth_provider` is configured, binds `keyspace` and returns a
        new :class:`~.Session` using it.

        Failing to open the connection raises
        :exc:`~.ConnectionException`; there is no retry.
        """
        with self._lock:
            if self.is_shutdown:
                raise DriverException("Cluster is already shut down")

        log.debug("Connecting to %s, keyspace %s", self.endpoint, keyspace)
        connection = self.connection_class(self.endpoint, framed_transport=self.framed_transport,
                                           timeout=self.timeout)
        try:
            if self.auth_provider is not None:
                log.debug("Logging in to %s", self.endpoint)
                connection.login(self.auth_provider.new_auth_request(self.endpoint.address))
            connection.set_keyspace(keyspace)
            log.debug("Bound keyspace %s on %s", keyspace, self.endpoint)
            metadata = Metadata(cluster_name=connection.describe_cluster_name(),
                                version=connection.describe_version())
        except Exception:
            connection.close()
            raise

        session = Session(self, connection, keyspace, metadata)
        with self._lock:
            self.sessions.add(session)
        return session

    def shutdown(self):
        """
        Closes all sessions opened through this Cluster.  Once shutdown, a
        Cluster should not be used for any purpose.
        """
        with self._lock:
            if self.is_shutdown:
                return
            else:
                self.is_shutdown = True

        for session in tuple(self.sessions):
            session.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.shutdown()


def _result_key(key):
    # result dicts need hashable keys
    return bytes(key) if isinstance(key, bytearray) else key


class Session(object):
    """
    One connection to a node, bound to a keyspace.  Instances of this class
    should not be created directly, only using :meth:`.Cluster.connect()`.

    Every operation makes exactly one blocking call.  Sessions are not
    thread safe; use one per thread or serialize access.

    Reads take these selection arguments:

    - `super_column`: read inside this super column
    - `columns`: a name or list of names to read; when given, the range
      arguments are ignored
    - `start`, `finish`: the bounds of a range of column names
    - `reversed`: read the range in reverse order when ``"true"``
    - `limit`: the maximum number of columns per row

    Any operation also takes a `consistency_level` overriding the session
    default for that call only.
    """

    cluster = None
    keyspace = None
    metadata = None
    is_shutdown = False

    _column_decoder = staticmethod(utf8_column_decoder)

    @property
    def column_decoder(self):
        """
        The function applied to every column name and value read.  By
        default names and values are decoded as UTF-8 text.  Use
        :func:`cassthrift.decoder.bytes_column_decoder` to receive bytes.
        """
        return self._column_decoder

    @column_decoder.setter
    def column_decoder(self, decoder):
        if not callable(decoder):
            raise TypeError("column_decoder must be callable")
        self._column_decoder = decoder

    def __init__(self, cluster, connection, keyspace, metadata=None):
        self.cluster = cluster
        self.keyspace = keyspace
        self.metadata = metadata if metadata is not None else Metadata()
        self.timestamp_generator = cluster.timestamp_generator
        self._connection = connection
        self._consistency_levels = cluster.default_consistency_levels
        self._lock = RLock()

    @property
    def cluster_name(self):
        """ The cluster name reported when the session connected. """
        return self.metadata.cluster_name

    @property
    def version(self):
        """ The API version reported when the session connected. """
        return self.metadata.version

    @property
    def nodes(self):
        """ The read-only set of nodes found by :meth:`discover_nodes`. """
        return self.metadata.nodes

    def consistency_level(self, levels=None):
        """
        Returns the session's default :class:`~.ConsistencyLevels`.

        When `levels` is given, a :class:`~.ConsistencyLevels` or a mapping
        with both ``read`` and ``write``, it replaces both defaults first.
        """
        if levels is not None:
            self._consistency_levels = ConsistencyLevels.coerce(levels)
            log.debug("Session consistency levels set to %r", self._consistency_levels)
        return self._consistency_levels

    def _read_level(self, consistency_level):
        if consistency_level is None:
            return self._consistency_levels.read
        return check_consistency_level(consistency_level)

    def _write_level(self, consistency_level):
        if consistency_level is None:
            return self._consistency_levels.write
        return check_consistency_level(consistency_level)

    def _get_connection(self):
        if self.is_shutdown:
            raise ConnectionShutdown("Session is already shut down", self.cluster.endpoint)
        return self._connection

    def login(self, username, password):
        """
        Authenticates the connection as `username`.  Failures raise
        :exc:`~.AuthenticationFailed` or :exc:`~.Unauthorized`.
        """
        provider = PlainTextAuthProvider(username, password)
        log.debug("Logging in to %s as %s", self.cluster.endpoint, username)
        self._get_connection().login(provider.new_auth_request(self.cluster.endpoint.address))

    def _key_map(self, keys):
        if isinstance(keys, (str, bytes, bytearray)):
            raise TypeError("keys must be a sequence of row keys, got a single key %r" % (keys,))
        key_map = {}
        for key in keys:
            key_map[to_bytes(key)] = _result_key(key)
        return key_map

    def _slice(self, column_family, super_column, columns, start, finish, reversed, limit):
        parent = build_column_parent(column_family, super_column)
        predicate = build_slice_predicate(columns, {'start': start, 'finish': finish,
                                                    'reversed': reversed, 'limit': limit})
        return parent, predicate

    def multiget(self, column_family, keys, super_column=None, columns=None, start=None,
                 finish=None, reversed=None, limit=None, consistency_level=None):
        """
        Reads several rows of `column_family` and returns
        ``{key: {name: value}}``, with super columns as nested dicts.
        Every requested key is in the result, with ``{}`` for rows holding
        no matching columns.
        """
        key_map = self._key_map(keys)
        if not key_map:
            return {}
        parent, predicate = self._slice(column_family, super_column, columns, start, finish, reversed, limit)
        result = self._get_connection().multiget_slice(list(key_map), parent, predicate,
                                                       self._read_level(consistency_level))
        rows = decode_multiget_slice(result, self._column_decoder)
        return dict((key_map.get(k, k), row) for k, row in rows.items())

    def get(self, column_family, key, super_column=None, columns=None, start=None,
            finish=None, reversed=None, limit=None, consistency_level=None):
        """
        Reads one row like :meth:`multiget` and returns its dict.  Raises
        :exc:`~.NotFound` when the row holds no matching columns.
        """
        rows = self.multiget(column_family, [key], super_column, columns, start, finish,
                             reversed, limit, consistency_level)
        row = rows.get(_result_key(key))
        if not row:
            raise NotFound("No columns found for key %r in column family %s" % (key, column_family))
        return row

    def multiget_count(self, column_family, keys, super_column=None, columns=None, start=None,
                       finish=None, reversed=None, limit=None, consistency_level=None):
        """
        Counts the matching columns of several rows and returns
        ``{key: count}``.
        """
        key_map = self._key_map(keys)
        if not key_map:
            return {}
        parent, predicate = self._slice(column_family, super_column, columns, start, finish, reversed, limit)
        result = self._get_connection().multiget_count(list(key_map), parent, predicate,
                                                       self._read_level(consistency_level))
        counts = decode_multiget_count(result)
        return dict((key_map.get(k, k), count) for k, count in counts.items())

    def get_count(self, column_family, key, super_column=None, columns=None, start=None,
                  finish=None, reversed=None, limit=None, consistency_level=None):
        """
        Counts the matching columns of one row.  A row with no matching
        columns counts ``0``; :exc:`~.NotFound` is raised when the server
        reports no entry for `key`.
        """
        counts = self.multiget_count(column_family, [key], super_column, columns, start, finish,
                                     reversed, limit, consistency_level)
        key = _result_key(key)
        if key not in counts:
            raise NotFound("Key %r not found in column family %s" % (key, column_family))
        return counts[key]

    def insert(self, column_family, key, columns, ttl=None, consistency_level=None):
        """
        Writes `columns`, a dict of names to values, into row `key`.  A dict
        value writes a super column holding its entries.  `ttl` makes the
        columns expire after that many seconds.
        """
        batch = build_insert_batch(key, column_family, columns, self.timestamp_generator, ttl)
        self._get_connection().batch_mutate(batch, self._write_level(consistency_level))

    def remove(self, column_family, key, columns=None, consistency_level=None):
        """
        Deletes from row `key`: the whole row when `columns` is
        :const:`None`, otherwise the column name, names, or
        ``{super column: None | name | [names]}`` it selects.
        """
        batch = build_delete_batch(key, column_family, columns, self.timestamp_generator)
        self._get_connection().batch_mutate(batch, self._write_level(consistency_level))

    def truncate(self, column_family):
        """ Removes every row of `column_family` on all nodes. """
        log.debug("Truncating column family %s", column_family)
        self._get_connection().truncate(column_family)

    def discover_nodes(self):
        """
        Asks the node for the ring of this session's keyspace, adds every
        endpoint to :attr:`nodes` and returns it.
        """
        ring = self._get_connection().describe_ring(self.keyspace)
        return self.metadata.update_from_ring(ring)

    def get_column_family(self, name):
        """ Returns a :class:`ColumnFamily` for `name` bound to this session. """
        return ColumnFamily(self, name)

    def shutdown(self):
        """
        Closes the connection.  ``Session`` instances should not be used
        for any purpose after being shutdown.
        """
        with self._lock:
            if self.is_shutdown:
                return
            else:
                self.is_shutdown = True

        self._connection.close()
        self.cluster.sessions.discard(self)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.shutdown()


class ColumnFamily(object):
    """
    Binds a column family name to a :class:`Session`, so that calls take
    the row key first.

    Example usage::

        >>> users = session.get_column_family('Users')
        >>> users.insert('jsmith', {'first': 'John'})
        >>> users.get('jsmith', columns=['first'])
        {'first': 'John'}
    """

    def __init__(self, session, name):
        self.session = session
        self.name = name

    def get(self, key, **kwargs):
        return self.session.get(self.name, key, **kwargs)

    def multiget(self, keys, **kwargs):
        return self.session.multiget(self.name, keys, **kwargs)

    def get_count(self, key, **kwargs):
        return self.session.get_count(self.name, key, **kwargs)

    def multiget_count(self, keys, **kwargs):
        return self.session.multiget_count(self.name, keys, **kwargs)

    def insert(self, key, columns, ttl=None, consistency_level=None):
        return self.session.insert(self.name, key, columns, ttl, consistency_level)

    def remove(self, key, columns=None, consistency_level=None):
        return self.session.remove(self.name, key, columns, consistency_level)

    def truncate(self):
        return self.session.truncate(self.name)

    def __repr__(self):
        return "<%s: %s>" % (self.__class__.__name__, self.name)
