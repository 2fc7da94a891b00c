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
The Cassandra RPC calls used by this driver, sent over any Thrift protocol
object (normally a ``TBinaryProtocol`` on a framed transport).

Every call writes a ``CALL`` message holding the call's argument structure
and reads back the matching reply.  Exceptions declared by the interface are
translated to driver exceptions; a ``TApplicationException`` from the server,
or a reply that does not match the call, is raised as a
:exc:`thrift.Thrift.TApplicationException` for the connection to report.
"""

import logging

from thrift.Thrift import TType, TMessageType, TApplicationException

from cassthrift import ConsistencyLevel
from cassthrift.ttypes import (ThriftStruct, BINARY, AuthenticationRequest, ColumnParent,
                               SlicePredicate, ColumnOrSuperColumn, Mutation, TokenRange,
                               InvalidRequestException, UnavailableException,
                               TimedOutException, AuthenticationException, AuthorizationException)

log = logging.getLogger(__name__)

_ire = (1, TType.STRUCT, 'ire', (InvalidRequestException, None), None)
_ue = (2, TType.STRUCT, 'ue', (UnavailableException, None), None)
_te = (3, TType.STRUCT, 'te', (TimedOutException, None), None)


class _Result(ThriftStruct):
    """
    A call's reply: ``success`` (field 0) holds the return value, the other
    fields the exceptions the call may raise.
    """

    __slots__ = ()
    exception_fields = ()

    def raise_for_exception(self, consistency_level=None):
        for name in self.exception_fields:
            exc = getattr(self, name)
            if exc is not None:
                raise exc.to_exception(consistency_level)


class login_args(ThriftStruct):
    __slots__ = ('auth_request',)
    thrift_spec = (
        None,
        (1, TType.STRUCT, 'auth_request', (AuthenticationRequest, None), None),
    )


class login_result(_Result):
    __slots__ = ('authnx', 'authzx')
    thrift_spec = (
        None,
        (1, TType.STRUCT, 'authnx', (AuthenticationException, None), None),
        (2, TType.STRUCT, 'authzx', (AuthorizationException, None), None),
    )
    exception_fields = ('authnx', 'authzx')


class set_keyspace_args(ThriftStruct):
    __slots__ = ('keyspace',)
    thrift_spec = (
        None,
        (1, TType.STRING, 'keyspace', None, None),
    )


class set_keyspace_result(_Result):
    __slots__ = ('ire',)
    thrift_spec = (
        None,
        _ire,
    )
    exception_fields = ('ire',)


class multiget_slice_args(ThriftStruct):
    __slots__ = ('keys', 'column_parent', 'predicate', 'consistency_level')
    thrift_spec = (
        None,
        (1, TType.LIST, 'keys', (TType.STRING, BINARY, False), None),
        (2, TType.STRUCT, 'column_parent', (ColumnParent, None), None),
        (3, TType.STRUCT, 'predicate', (SlicePredicate, None), None),
        (4, TType.I32, 'consistency_level', None, ConsistencyLevel.ONE),
    )


class multiget_slice_result(_Result):
    __slots__ = ('success', 'ire', 'ue', 'te')
    thrift_spec = (
        (0, TType.MAP, 'success',
         (TType.STRING, BINARY, TType.LIST, (TType.STRUCT, (ColumnOrSuperColumn, None), False), False), None),
        _ire,
        _ue,
        _te,
    )
    exception_fields = ('ire', 'ue', 'te')


# multiget_count takes the same arguments as multiget_slice
class multiget_count_args(multiget_slice_args):
    pass


class multiget_count_result(_Result):
    __slots__ = ('success', 'ire', 'ue', 'te')
    thrift_spec = (
        (0, TType.MAP, 'success', (TType.STRING, BINARY, TType.I32, None, False), None),
        _ire,
        _ue,
        _te,
    )
    exception_fields = ('ire', 'ue', 'te')


class batch_mutate_args(ThriftStruct):
    __slots__ = ('mutation_map', 'consistency_level')
    thrift_spec = (
        None,
        (1, TType.MAP, 'mutation_map',
         (TType.STRING, BINARY, TType.MAP,
          (TType.STRING, None, TType.LIST, (TType.STRUCT, (Mutation, None), False), False), False), None),
        (2, TType.I32, 'consistency_level', None, ConsistencyLevel.ONE),
    )


class batch_mutate_result(_Result):
    __slots__ = ('ire', 'ue', 'te')
    thrift_spec = (
        None,
        _ire,
        _ue,
        _te,
    )
    exception_fields = ('ire', 'ue', 'te')


class truncate_args(ThriftStruct):
    __slots__ = ('cfname',)
    thrift_spec = (
        None,
        (1, TType.STRING, 'cfname', None, None),
    )


class truncate_result(batch_mutate_result):
    pass


class describe_cluster_name_args(ThriftStruct):
    __slots__ = ()
    thrift_spec = ()


class describe_cluster_name_result(_Result):
    __slots__ = ('success',)
    thrift_spec = (
        (0, TType.STRING, 'success', None, None),
    )


class describe_version_args(ThriftStruct):
    __slots__ = ()
    thrift_spec = ()


class describe_version_result(describe_cluster_name_result):
    pass


class describe_ring_args(ThriftStruct):
    __slots__ = ('keyspace',)
    thrift_spec = (
        None,
        (1, TType.STRING, 'keyspace', None, None),
    )


class describe_ring_result(_Result):
    __slots__ = ('success', 'ire')
    thrift_spec = (
        (0, TType.LIST, 'success', (TType.STRUCT, (TokenRange, None), False), None),
        _ire,
    )
    exception_fields = ('ire',)


class CassandraClient(object):
    """
    Issues Cassandra RPC calls over `iprot` and `oprot` (one protocol for
    both when `oprot` is not given).  Calls block until the reply has been
    read and are not safe to make from several threads at once.
    """

    def __init__(self, iprot, oprot=None):
        self._iprot = self._oprot = iprot
        if oprot is not None:
            self._oprot = oprot
        self._seqid = 0

    def _send(self, name, args):
        self._seqid += 1
        self._oprot.writeMessageBegin(name, TMessageType.CALL, self._seqid)
        args.write(self._oprot)
        self._oprot.writeMessageEnd()
        self._oprot.trans.flush()

    def _recv(self, name, result_class):
        (fname, mtype, rseqid) = self._iprot.readMessageBegin()
        if mtype == TMessageType.EXCEPTION:
            x = TApplicationException()
            x.read(self._iprot)
            self._iprot.readMessageEnd()
            raise x
        result = result_class()
        result.read(self._iprot)
        self._iprot.readMessageEnd()
        if fname != name:
            raise TApplicationException(TApplicationException.WRONG_METHOD_NAME,
                                        "%s received a reply to %s" % (name, fname))
        if rseqid != self._seqid:
            raise TApplicationException(TApplicationException.BAD_SEQUENCE_ID,
                                        "%s received reply %d, expected %d" % (name, rseqid, self._seqid))
        return result

    def _call(self, name, args, result_class, consistency_level=None, returns=True):
        log.debug("Sending %s request", name)
        self._send(name, args)
        result = self._recv(name, result_class)
        result.raise_for_exception(consistency_level)
        if not returns:
            return None
        if result.success is None:
            raise TApplicationException(TApplicationException.MISSING_RESULT,
                                        "%s failed: unknown result" % (name,))
        return result.success

    def login(self, auth_request):
        self._call('login', login_args(auth_request=auth_request), login_result, returns=False)

    def set_keyspace(self, keyspace):
        self._call('set_keyspace', set_keyspace_args(keyspace=keyspace),
                   set_keyspace_result, returns=False)

    def multiget_slice(self, keys, column_parent, predicate, consistency_level):
        args = multiget_slice_args(keys=keys, column_parent=column_parent,
                                   predicate=predicate, consistency_level=consistency_level)
        return self._call('multiget_slice', args, multiget_slice_result, consistency_level)

    def multiget_count(self, keys, column_parent, predicate, consistency_level):
        args = multiget_count_args(keys=keys, column_parent=column_parent,
                                   predicate=predicate, consistency_level=consistency_level)
        return self._call('multiget_count', args, multiget_count_result, consistency_level)

    def batch_mutate(self, mutation_map, consistency_level):
        args = batch_mutate_args(mutation_map=mutation_map, consistency_level=consistency_level)
        self._call('batch_mutate', args, batch_mutate_result, consistency_level, returns=False)

    def truncate(self, cfname):
        self._call('truncate', truncate_args(cfname=cfname), truncate_result, returns=False)

    def describe_cluster_name(self):
        return self._call('describe_cluster_name', describe_cluster_name_args(),
                          describe_cluster_name_result)

    def describe_version(self):
        return self._call('describe_version', describe_version_args(), describe_version_result)

    def describe_ring(self, keyspace):
        return self._call('describe_ring', describe_ring_args(keyspace=keyspace),
                          describe_ring_result)
