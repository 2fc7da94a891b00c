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

import re
import unittest

from cassthrift import (Unavailable, Timeout, ConsistencyLevel, ConsistencyLevels, DriverException,
                        RequestExecutionException, RequestValidationException, NotFound,
                        InvalidRequest, Unauthorized, AuthenticationFailed, UnsupportedOperation)
from cassthrift.connection import ConnectionException, ConnectionShutdown


class ConsistencyExceptionTest(unittest.TestCase):
    """
    Verify exception string representation
    """

    def extract_consistency(self, msg):
        """
        Given message that has 'consistency': 'value', extract consistency value as a string
        :param msg: message with consistency value
        :return: String representing consistency value
        """
        match = re.search(r"'consistency':\s+'([\w\s]+)'", msg)
        return match and match.group(1)

    def test_timeout_consistency(self):
        consistency_str = self.extract_consistency(repr(Timeout("Timeout Message", consistency=None)))
        self.assertEqual(consistency_str, 'Not Set')
        for c in ConsistencyLevel.value_to_name.keys():
            consistency_str = self.extract_consistency(repr(Timeout("Timeout Message", consistency=c)))
            self.assertEqual(consistency_str, ConsistencyLevel.value_to_name[c])

    def test_unavailable_consistency(self):
        consistency_str = self.extract_consistency(repr(Unavailable("Unavailable Message", consistency=None)))
        self.assertEqual(consistency_str, 'Not Set')
        for c in ConsistencyLevel.value_to_name.keys():
            consistency_str = self.extract_consistency(repr(Unavailable("Unavailable Message", consistency=c)))
            self.assertEqual(consistency_str, ConsistencyLevel.value_to_name[c])

    def test_timeout_acknowledged_by(self):
        exc = Timeout("Timeout Message", consistency=ConsistencyLevel.QUORUM, acknowledged_by=2)
        self.assertEqual(exc.acknowledged_by, 2)
        self.assertIn("'acknowledged_by': 2", str(exc))


class ExceptionHierarchyTest(unittest.TestCase):

    def test_hierarchy(self):
        for exc_class in (NotFound, Unavailable, Timeout):
            self.assertTrue(issubclass(exc_class, RequestExecutionException))
        for exc_class in (InvalidRequest, Unauthorized):
            self.assertTrue(issubclass(exc_class, RequestValidationException))
        for exc_class in (RequestExecutionException, RequestValidationException,
                          AuthenticationFailed, UnsupportedOperation):
            self.assertTrue(issubclass(exc_class, DriverException))
        self.assertTrue(issubclass(ConnectionShutdown, ConnectionException))


class ConsistencyLevelsTest(unittest.TestCase):

    def test_names_and_values(self):
        self.assertEqual(ConsistencyLevel.name_to_value['QUORUM'], 2)
        self.assertEqual(ConsistencyLevel.value_to_name[6], 'ANY')

    def test_coerce(self):
        self.assertEqual(ConsistencyLevels.coerce({'read': 'one', 'write': 'Quorum'}),
                         ConsistencyLevels(ConsistencyLevel.ONE, ConsistencyLevel.QUORUM))
        levels = ConsistencyLevels(ConsistencyLevel.ALL, ConsistencyLevel.ANY)
        self.assertEqual(ConsistencyLevels.coerce(levels), levels)
        self.assertEqual(repr(levels), 'ConsistencyLevels(read=ALL, write=ANY)')

        for bad in ({}, {'read': 1}, None, {'read': True, 'write': 1}, {'read': 0, 'write': 1}):
            self.assertRaises(ValueError, ConsistencyLevels.coerce, bad)
