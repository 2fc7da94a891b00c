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

from collections import namedtuple
import logging


class NullHandler(logging.Handler):

    def emit(self, record):
        pass

logging.getLogger('cassthrift').addHandler(NullHandler())

__version_info__ = (0, 4, 0)
__version__ = '.'.join(map(str, __version_info__))


class ConsistencyLevel(object):
    """
    Specifies how many replicas must respond for an operation to be considered
    a success.  The values are the ones used on the wire by the Thrift
    interface.  Sessions default to ``QUORUM`` for both reads and writes.
    """

    ONE = 1
    """
    Only one replica needs to respond to consider the operation a success
    """

    QUORUM = 2
    """
    ``ceil(RF/2)`` replicas must respond to consider the operation a success
    """

    LOCAL_QUORUM = 3
    """
    Requires a quorum of replicas in the local datacenter
    """

    EACH_QUORUM = 4
    """
    Requires a quorum of replicas in each datacenter
    """

    ALL = 5
    """
    All replicas must respond to consider the operation a success
    """

    ANY = 6
    """
    Only requires that one replica receives the write *or* the coordinator
    stores a hint to replay later. Valid only for writes.
    """


ConsistencyLevel.value_to_name = {
    ConsistencyLevel.ONE: 'ONE',
    ConsistencyLevel.QUORUM: 'QUORUM',
    ConsistencyLevel.LOCAL_QUORUM: 'LOCAL_QUORUM',
    ConsistencyLevel.EACH_QUORUM: 'EACH_QUORUM',
    ConsistencyLevel.ALL: 'ALL',
    ConsistencyLevel.ANY: 'ANY',
}

ConsistencyLevel.name_to_value = {v: k for k, v in ConsistencyLevel.value_to_name.items()}


def consistency_value_to_name(value):
    return ConsistencyLevel.value_to_name[value] if value is not None else "Not Set"


class ConsistencyLevels(namedtuple('ConsistencyLevels', ['read', 'write'])):
    """
    The pair of default :class:`ConsistencyLevel` values a
    :class:`~.Session` uses when a call does not name one.  Instances are
    immutable; sessions replace the whole pair at once through
    :meth:`.Session.consistency_level`.
    """

    __slots__ = ()

    @classmethod
    def coerce(cls, levels):
        """
        Builds a :class:`ConsistencyLevels` from another instance or from
        a mapping holding both ``read`` and ``write``.  Level values may be
        given as :class:`ConsistencyLevel` constants or their names.
        """
        if isinstance(levels, cls):
            read, write = levels
        else:
            try:
                read, write = levels['read'], levels['write']
            except (KeyError, TypeError):
                raise ValueError("Consistency levels must name both 'read' and 'write', got %r" % (levels,))
        return cls(check_consistency_level(read), check_consistency_level(write))

    def __repr__(self):
        return "ConsistencyLevels(read=%s, write=%s)" % (
            consistency_value_to_name(self.read), consistency_value_to_name(self.write))


def check_consistency_level(level):
    """
    Returns the :class:`ConsistencyLevel` value for `level`, given as a
    value or a case-insensitive name.  Raises :exc:`ValueError` for
    anything else.
    """
    if isinstance(level, bool):
        raise ValueError("Unknown consistency level %r" % (level,))
    if isinstance(level, str):
        try:
            return ConsistencyLevel.name_to_value[level.upper()]
        except KeyError:
            raise ValueError("Unknown consistency level %r" % (level,))
    if level not in ConsistencyLevel.value_to_name:
        raise ValueError("Unknown consistency level %r" % (level,))
    return level


class DriverException(Exception):
    """
    Base for all exceptions explicitly raised by the driver.
    """
    pass


class RequestExecutionException(DriverException):
    """
    Base for request execution exceptions returned from the server.
    """
    pass


class NotFound(RequestExecutionException):
    """
    The store holds no data for the requested key or column.  Raised by
    single-key reads instead of returning an empty result.
    """
    pass


class Unavailable(RequestExecutionException):
    """
    There were not enough live replicas to satisfy the requested consistency
    level, so the coordinator node immediately failed the request without
    forwarding it to any replicas.
    """

    consistency = None
    """ The requested :class:`ConsistencyLevel` """

    def __init__(self, summary_message, consistency=None):
        self.consistency = consistency
        Exception.__init__(self, summary_message + ' info=' +
                           repr({'consistency': consistency_value_to_name(consistency)}))


class Timeout(RequestExecutionException):
    """
    Replicas failed to respond to the coordinator node before timing out.
    """

    consistency = None
    """ The requested :class:`ConsistencyLevel` """

    acknowledged_by = None
    """
    The number of replicas that acknowledged the write before the
    coordinator timed out, when the server reports it
    """

    def __init__(self, summary_message, consistency=None, acknowledged_by=None):
        self.consistency = consistency
        self.acknowledged_by = acknowledged_by
        Exception.__init__(self, summary_message + ' info=' +
                           repr({'consistency': consistency_value_to_name(consistency),
                                 'acknowledged_by': acknowledged_by}))


class RequestValidationException(DriverException):
    """
    Server request validation failed
    """
    pass


class InvalidRequest(RequestValidationException):
    """
    A request was made that was invalid for some reason, such as naming a
    column family that does not exist or sending a malformed predicate.
    The server's explanation is the exception message.
    """
    pass


class Unauthorized(RequestValidationException):
    """
    The current user is not authorized to perform the requested operation.
    """
    pass


class AuthenticationFailed(DriverException):
    """
    Failed to authenticate.
    """
    pass


class UnsupportedOperation(DriverException):
    """
    An attempt was made to use a feature that cannot be expressed with the
    store's mutation model, such as deleting a range of columns.
    """
    pass
