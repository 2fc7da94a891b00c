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

log = logging.getLogger(__name__)


class Metadata(object):
    """
    Holds a representation of the cluster as seen by one session: its name
    and version, fetched once at connect time, and the nodes found by
    :meth:`.Session.discover_nodes`.
    """

    cluster_name = None
    """ The string name of the cluster. """

    version = None
    """ The Thrift API version string reported by the node. """

    token_ranges = None
    """
    The :class:`~.TokenRange` list from the last ring description, or
    :const:`None` before the first one.
    """

    def __init__(self, cluster_name=None, version=None):
        self.cluster_name = cluster_name
        self.version = version
        self._nodes = frozenset()

    @property
    def nodes(self):
        """
        A read-only set of the addresses of every node seen in a ring
        description.  The driver does not route requests to them.
        """
        return self._nodes

    def update_from_ring(self, token_ranges):
        """
        Adds the endpoints of every range in `token_ranges` to :attr:`nodes`
        and returns the new set.
        """
        self.token_ranges = list(token_ranges)
        found = set()
        for token_range in self.token_ranges:
            found.update(token_range.endpoints or ())
        new_nodes = found - self._nodes
        if new_nodes:
            log.debug("Discovered new nodes: %s", ', '.join(sorted(new_nodes)))
        self._nodes = self._nodes | found
        return self._nodes

    def __repr__(self):
        return "<%s: cluster_name=%r, version=%r, nodes=%d>" % (
            self.__class__.__name__, self.cluster_name, self.version, len(self._nodes))
