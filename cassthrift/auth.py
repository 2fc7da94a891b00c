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

from cassthrift.ttypes import AuthenticationRequest

log = logging.getLogger(__name__)


class AuthProvider(object):
    """
    An abstract class that defines the interface that will be used for
    creating the credentials sent with ``login`` when a
    :class:`~.Cluster` opens a connection.
    """

    def new_credentials(self, host):
        """
        Implementations of this class should return a dict of credential
        names to values for the node at `host`.
        """
        raise NotImplementedError()

    def new_auth_request(self, host):
        credentials = dict(self.new_credentials(host))
        log.debug("Sending login for %s with credentials %s", host, sorted(credentials))
        return AuthenticationRequest(credentials=credentials)


class PlainTextAuthProvider(AuthProvider):
    """
    An :class:`~.AuthProvider` that works with Cassandra's
    SimpleAuthenticator and PasswordAuthenticator.

    Example usage::

        from cassthrift.cluster import Cluster
        from cassthrift.auth import PlainTextAuthProvider

        auth_provider = PlainTextAuthProvider(
                username='cassandra', password='cassandra')
        cluster = Cluster(auth_provider=auth_provider)
    """

    def __init__(self, username, password):
        self.username = username
        self.password = password

    def new_credentials(self, host):
        return {'username': self.username, 'password': self.password}
