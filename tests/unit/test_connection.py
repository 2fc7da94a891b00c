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

import socket
import struct
import unittest
from unittest.mock import ANY, Mock, patch

from thrift.Thrift import TApplicationException
from thrift.transport import TTransport
from thrift.transport.TTransport import TTransportException
from thrift.protocol.TProtocol import TProtocolException

from cassthrift import ConsistencyLevel, InvalidRequest
from cassthrift.connection import (Connection, ConnectionException, ConnectionShutdown, ProtocolError,
                                   default_socket_factory, framed_transport_factory,
                                   buffered_transport_factory)
from cassthrift.endpoint import DefaultEndPoint
from cassthrift.ttypes import ColumnParent, SlicePredicate, SliceRange


class TransportFactoryTest(unittest.TestCase):

    @patch('cassthrift.connection.TSocket')
    def test_default_socket_factory(self, tsocket_module):
        tsocket = default_socket_factory(DefaultEndPoint('db1', 9161), timeout=2.5)
        tsocket_module.TSocket.assert_called_once_with('db1', 9161)
        self.assertIs(tsocket, tsocket_module.TSocket.return_value)
        tsocket.setTimeout.assert_called_once_with(2500.0)

    @patch('cassthrift.connection.TSocket')
    def test_no_timeout(self, tsocket_module):
        tsocket = default_socket_factory(DefaultEndPoint('db1'))
        tsocket.setTimeout.assert_not_called()

    def test_transport_factories(self):
        self.assertIsInstance(framed_transport_factory(Mock()), TTransport.TFramedTransport)
        self.assertIsInstance(buffered_transport_factory(Mock()), TTransport.TBufferedTransport)


class ConnectionTest(unittest.TestCase):

    def make_connection(self, **kwargs):
        self.transport = Mock()
        self.transport_factory = Mock(return_value=self.transport)
        self.socket_factory = Mock()
        conn = Connection(DefaultEndPoint('127.0.0.1'), socket_factory=self.socket_factory,
                          transport_factory=self.transport_factory, **kwargs)
        conn.client = Mock()
        return conn

    def test_open(self):
        conn = self.make_connection(timeout=5)
        self.socket_factory.assert_called_once_with(DefaultEndPoint('127.0.0.1'), 5)
        self.transport_factory.assert_called_once_with(self.socket_factory.return_value)
        self.transport.open.assert_called_once_with()
        self.assertFalse(conn.is_defunct)
        self.assertFalse(conn.is_closed)

    def test_transport_selection(self):
        with patch('cassthrift.connection.buffered_transport_factory') as buffered, \
                patch('cassthrift.connection.framed_transport_factory') as framed:
            Connection(DefaultEndPoint('127.0.0.1'), framed_transport=False, socket_factory=Mock())
            buffered.assert_called_once_with(ANY)
            framed.assert_not_called()

            Connection(DefaultEndPoint('127.0.0.1'), socket_factory=Mock())
            framed.assert_called_once_with(ANY)

    def test_open_failure(self):
        transport = Mock()
        transport.open.side_effect = TTransportException(TTransportException.NOT_OPEN, 'Could not connect')
        with self.assertRaises(ConnectionException) as cm:
            Connection(DefaultEndPoint('127.0.0.1'), socket_factory=Mock(),
                       transport_factory=Mock(return_value=transport))
        self.assertEqual(cm.exception.host, '127.0.0.1')

    def test_calls_delegate_to_client(self):
        conn = self.make_connection()
        conn.client.describe_version.return_value = '19.4.0'
        self.assertEqual(conn.describe_version(), '19.4.0')

        conn.batch_mutate({'k': {}}, 2)
        conn.client.batch_mutate.assert_called_once_with({'k': {}}, 2)

    def test_server_exceptions_propagate(self):
        conn = self.make_connection()
        conn.client.set_keyspace.side_effect = InvalidRequest('Keyspace Foo does not exist')
        self.assertRaises(InvalidRequest, conn.set_keyspace, 'Foo')
        self.assertFalse(conn.is_defunct)

    def test_transport_error_defuncts(self):
        for error in (TTransportException(TTransportException.END_OF_FILE, 'TSocket read 0 bytes'),
                      socket.error('reset'), EOFError()):
            conn = self.make_connection()
            conn.client.multiget_slice.side_effect = error
            self.assertRaises(ConnectionException, conn.multiget_slice, [b'k'], None, None, 1)
            self.assertTrue(conn.is_defunct)
            self.assertIs(conn.last_error, error)
            self.transport.close.assert_called_once_with()

            with self.assertRaises(ConnectionShutdown):
                conn.describe_version()

    def test_application_error(self):
        conn = self.make_connection()
        conn.client.truncate.side_effect = TApplicationException(
            TApplicationException.UNKNOWN_METHOD, 'Invalid method name')
        with self.assertRaises(ProtocolError) as cm:
            conn.truncate('CF')
        self.assertIn('Invalid method name', str(cm.exception))
        self.assertFalse(conn.is_defunct)

    def test_desynchronized_reply_defuncts(self):
        conn = self.make_connection()
        conn.client.describe_ring.side_effect = TApplicationException(
            TApplicationException.BAD_SEQUENCE_ID, 'bad seqid')
        self.assertRaises(ProtocolError, conn.describe_ring, 'Keyspace1')
        self.assertTrue(conn.is_defunct)

    def test_close(self):
        conn = self.make_connection()
        conn.close()
        conn.close()
        self.transport.close.assert_called_once_with()
        self.assertTrue(conn.is_closed)
        self.assertRaises(ConnectionShutdown, conn.describe_cluster_name)
        conn.client.describe_cluster_name.assert_not_called()

    def test_encoding_error_defuncts(self):
        conn = self.make_connection()
        conn.client.multiget_slice.side_effect = struct.error("'i' format requires -2147483648 <= number <= 2147483647")
        self.assertRaises(struct.error, conn.multiget_slice, [b'k'], None, None, 1)
        self.assertTrue(conn.is_defunct)
        self.transport.close.assert_called_once_with()
        self.assertRaises(ConnectionShutdown, conn.describe_version)

    def test_partial_message_not_reused(self):
        transport = TTransport.TFramedTransport(TTransport.TMemoryBuffer())
        conn = Connection(DefaultEndPoint('127.0.0.1'), socket_factory=Mock(),
                          transport_factory=Mock(return_value=transport))
        predicate = SlicePredicate(slice_range=SliceRange(start=b'', finish=b'', count=2 ** 31))
        with self.assertRaises((struct.error, TProtocolException)):
            conn.multiget_slice([b'k'], ColumnParent(column_family='CF'), predicate, ConsistencyLevel.ONE)
        self.assertTrue(conn.is_defunct)
        self.assertTrue(conn.is_closed)
        self.assertRaises(ConnectionShutdown, conn.describe_version)
