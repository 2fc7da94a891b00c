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

import logging
import socket
import sys
from threading import RLock

from thrift.Thrift import TApplicationException
from thrift.transport import TSocket, TTransport
from thrift.transport.TTransport import TTransportException
from thrift.protocol import TBinaryProtocol

from cassthrift import DriverException
from cassthrift.protocol import CassandraClient

log = logging.getLogger(__name__)


class ConnectionException(Exception):
    """
    An unrecoverable error was hit when attempting to use a connection,
    or the connection was already closed or defunct.
    """

    def __init__(self, message, endpoint=None):
        Exception.__init__(self, message)
        self.endpoint = endpoint

    @property
    def host(self):
        return self.endpoint.address if self.endpoint is not None else None


class ConnectionShutdown(ConnectionException):
    """
    Raised when a connection has been marked as defunct or has been closed.
    """
    pass


class ProtocolError(Exception):
    """
    Communication did not match the protocol that this driver expects, or
    the server rejected a call with a Thrift application error.
    """
    pass


def default_socket_factory(endpoint, timeout=None):
    """
    Returns a normal :class:`TSocket` connected to `endpoint` on open.
    `timeout` is in seconds.
    """
    tsocket = TSocket.TSocket(endpoint.address, endpoint.port)
    if timeout is not None:
        tsocket.setTimeout(timeout * 1000.0)
    return tsocket


def framed_transport_factory(tsocket):
    """
    Returns a :class:`TFramedTransport` wrapping `tsocket`.  This is what
    servers using the default ``thrift_framed_transport_size_in_mb`` expect.
    """
    return TTransport.TFramedTransport(tsocket)


def buffered_transport_factory(tsocket):
    """
    Returns a :class:`TBufferedTransport` wrapping `tsocket`, for servers
    running the unframed transport.
    """
    return TTransport.TBufferedTransport(tsocket)


# a mismatched reply leaves the stream unusable
_DESYNC_ERRORS = (TApplicationException.BAD_SEQUENCE_ID, TApplicationException.WRONG_METHOD_NAME)


def _rpc(name):

    def call(self, *args):
        return self._execute(name, args)

    call.__name__ = name
    call.__doc__ = "Calls ``%s`` on the server; see :class:`~.CassandraClient`." % (name,)
    return call


class Connection(object):
    """
    One blocking Thrift connection to a node.

    The connection is opened on construction.  Transport errors, and any
    other failure part way through a call apart from the exceptions the
    server declares, mark the connection defunct and close it; every later
    call raises :exc:`ConnectionShutdown`.
    """

    is_defunct = False
    is_closed = False
    last_error = None

    def __init__(self, endpoint, framed_transport=True, timeout=None,
                 socket_factory=default_socket_factory, transport_factory=None):
        self.endpoint = endpoint
        self.lock = RLock()
        if transport_factory is None:
            transport_factory = framed_transport_factory if framed_transport else buffered_transport_factory

        tsocket = socket_factory(endpoint, timeout)
        self.transport = transport_factory(tsocket)
        self.client = CassandraClient(TBinaryProtocol.TBinaryProtocol(self.transport))
        try:
            self.transport.open()
        except (TTransportException, socket.error) as exc:
            raise ConnectionException("Failed to connect to %s: %s" % (endpoint, exc), endpoint)
        log.debug("Opened %s transport to %s",
                  "framed" if framed_transport else "buffered", endpoint)

    def close(self):
        with self.lock:
            if self.is_closed:
                return
            self.is_closed = True
        log.debug("Closing connection (%s) to %s", id(self), self.endpoint)
        self.transport.close()

    def defunct(self, exc):
        with self.lock:
            if self.is_defunct or self.is_closed:
                return
            self.is_defunct = True

        exc_info = sys.exc_info()
        if any(exc_info):
            log.debug("Defuncting connection (%s) to %s:",
                      id(self), self.endpoint, exc_info=exc_info)
        else:
            log.debug("Defuncting connection (%s) to %s: %s",
                      id(self), self.endpoint, exc)

        self.last_error = exc
        self.close()
        return exc

    def _execute(self, name, args):
        if self.is_defunct:
            raise ConnectionShutdown("Connection to %s is defunct: %s" % (self.endpoint, self.last_error),
                                     self.endpoint)
        elif self.is_closed:
            raise ConnectionShutdown("Connection to %s is closed" % (self.endpoint,), self.endpoint)

        try:
            return getattr(self.client, name)(*args)
        except TApplicationException as exc:
            if exc.type in _DESYNC_ERRORS:
                self.defunct(exc)
            raise ProtocolError("%s failed on %s: %s" % (name, self.endpoint, exc.message))
        except DriverException:
            raise
        except (TTransportException, socket.error, EOFError) as exc:
            self.defunct(exc)
            raise ConnectionException("%s failed on %s: %s" % (name, self.endpoint, exc), self.endpoint)
        except Exception as exc:
            # the call may have stopped part way through a message
            self.defunct(exc)
            raise

    login = _rpc('login')
    set_keyspace = _rpc('set_keyspace')
    multiget_slice = _rpc('multiget_slice')
    multiget_count = _rpc('multiget_count')
    batch_mutate = _rpc('batch_mutate')
    truncate = _rpc('truncate')
    describe_cluster_name = _rpc('describe_cluster_name')
    describe_version = _rpc('describe_version')
    describe_ring = _rpc('describe_ring')
