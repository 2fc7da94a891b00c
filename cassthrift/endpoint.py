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

from functools import total_ordering

DEFAULT_PORT = 9160
""" The port the Thrift RPC service listens on unless configured otherwise. """


@total_ordering
class DefaultEndPoint(object):
    """
    The address and port of a node's Thrift RPC service.
    """

    def __init__(self, address, port=DEFAULT_PORT):
        self._address = address
        self._port = port

    @property
    def address(self):
        return self._address

    @property
    def port(self):
        return self._port

    def resolve(self):
        return self._address, self._port

    def __eq__(self, other):
        return isinstance(other, DefaultEndPoint) and \
               self.address == other.address and self.port == other.port

    def __hash__(self):
        return hash((self.address, self.port))

    def __lt__(self, other):
        return (self.address, self.port) < (other.address, other.port)

    def __str__(self):
        return str("%s:%d" % (self.address, self.port))

    def __repr__(self):
        return "<%s: %s:%d>" % (self.__class__.__name__, self.address, self.port)


def parse_endpoint(contact_point, default_port=DEFAULT_PORT):
    """
    Parses ``"host"``, ``"host:port"`` or ``"[ipv6]:port"`` into a
    :class:`DefaultEndPoint`.  An existing endpoint is returned unchanged.
    """
    if isinstance(contact_point, DefaultEndPoint):
        return contact_point

    text = contact_point.strip()
    if not text:
        raise ValueError("Empty contact point")

    if text.startswith('['):
        host, sep, rest = text[1:].partition(']')
        if not sep:
            raise ValueError("Unterminated IPv6 address in contact point %r" % (contact_point,))
        port = rest[1:] if rest.startswith(':') else None
    elif text.count(':') == 1:
        host, port = text.split(':')
    else:
        # bare hostname or bare IPv6 address
        host, port = text, None

    if port is None or port == '':
        return DefaultEndPoint(host, default_port)
    if not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError("Invalid port in contact point %r" % (contact_point,))
    return DefaultEndPoint(host, int(port))
