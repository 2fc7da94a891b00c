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

import unittest
from unittest import mock

from cassthrift import timestamps
from threading import Thread, Lock


class _TimestampTestMixin(object):

    def _call_and_check_results(self, clock_expected_stamp_pairs, **kwargs):
        """
        For each element in an iterable of (clock value, expected_timestamp)
        pairs, call a :class:`cassthrift.timestamps.MonotonicTimestampGenerator`
        whose clock returns the clock values in turn, then assert that the
        result is expected_timestamp.
        """
        clock_values, expected_timestamps = zip(*clock_expected_stamp_pairs)
        clock = mock.Mock(side_effect=clock_values)
        tsg = timestamps.MonotonicTimestampGenerator(clock=clock, **kwargs)

        for expected in expected_timestamps:
            self.assertEqual(tsg(), expected)

        # every clock value was consumed
        with self.assertRaises(StopIteration):
            tsg()


class TestTimestampGeneratorOutput(unittest.TestCase, _TimestampTestMixin):
    """
    Inject a clock and test the output of MonotonicTimestampGenerator.__call__
    given different patterns of changing results.
    """

    def test_timestamps_follow_increasing_clock(self):
        self._call_and_check_results(
            clock_expected_stamp_pairs=(
                (1000, 1000),
                (1001, 1001),
                (5000, 5000))
        )

    def test_timestamps_during_and_after_same_clock_value(self):
        """
        Output increases by 1 while the clock stands still, then returns to
        the clock once it moves ahead again.
        """
        self._call_and_check_results(
            clock_expected_stamp_pairs=(
                (15000000, 15000000),
                (15000000, 15000001),
                (15000000, 15000002),
                (15010000, 15010000))
        )

    def test_timestamps_during_and_after_backwards_clock(self):
        self._call_and_check_results(
            clock_expected_stamp_pairs=(
                (15000000, 15000000),
                (13000000, 15000001),
                (14000000, 15000002),
                (13500000, 15000003),
                (15010000, 15010000)),
            warn_on_drift=False
        )

    def test_float_clock_values_are_truncated(self):
        self._call_and_check_results(
            clock_expected_stamp_pairs=(
                (10.7, 10),
                (10.9, 11))
        )

    def test_default_clock_is_microseconds(self):
        with mock.patch('cassthrift.timestamps.time') as patched_time_module:
            patched_time_module.time.return_value = 15.5
            self.assertEqual(timestamps.microsecond_clock(), 15500000)
            self.assertEqual(timestamps.MonotonicTimestampGenerator()(), 15500000)


class TestTimestampGeneratorLogging(unittest.TestCase):

    def setUp(self):
        self.log_patcher = mock.patch('cassthrift.timestamps.log')
        self.addCleanup(self.log_patcher.stop)
        self.patched_timestamp_log = self.log_patcher.start()

    def assertLastCallArgRegex(self, call, pattern):
        last_warn_args, last_warn_kwargs = call
        self.assertEqual(len(last_warn_args), 1)
        self.assertEqual(len(last_warn_kwargs), 0)
        self.assertRegex(last_warn_args[0], pattern)

    def test_basic_log_content(self):
        tsg = timestamps.MonotonicTimestampGenerator(
            warning_threshold=1e-6,
            warning_interval=1e-6
        )
        tsg._last_warn = 12

        tsg._next_timestamp(20, tsg.last)
        self.assertEqual(len(self.patched_timestamp_log.warning.call_args_list), 0)
        tsg._next_timestamp(16, tsg.last)

        self.assertEqual(len(self.patched_timestamp_log.warning.call_args_list), 1)
        self.assertLastCallArgRegex(
            self.patched_timestamp_log.warning.call_args,
            r'Clock skew detected:.*\b16\b.*\b4\b.*\b20\b'
        )

    def test_disable_logging(self):
        no_warn_tsg = timestamps.MonotonicTimestampGenerator(warn_on_drift=False)

        no_warn_tsg.last = 100
        no_warn_tsg._next_timestamp(99, no_warn_tsg.last)
        self.assertEqual(len(self.patched_timestamp_log.warning.call_args_list), 0)

    def test_warning_threshold_respected_no_logging(self):
        tsg = timestamps.MonotonicTimestampGenerator(
            warning_threshold=2e-6,
        )
        tsg.last, tsg._last_warn = 100, 97
        tsg._next_timestamp(98, tsg.last)
        self.assertEqual(len(self.patched_timestamp_log.warning.call_args_list), 0)

    def test_warning_threshold_respected_logs(self):
        tsg = timestamps.MonotonicTimestampGenerator(
            warning_threshold=1e-6,
            warning_interval=1e-6
        )
        tsg.last, tsg._last_warn = 100, 97
        tsg._next_timestamp(98, tsg.last)
        self.assertEqual(len(self.patched_timestamp_log.warning.call_args_list), 1)

    def test_warning_interval_respected(self):
        tsg = timestamps.MonotonicTimestampGenerator(
            warning_threshold=1e-6,
            warning_interval=2e-6
        )
        tsg.last = 100
        tsg._next_timestamp(70, tsg.last)
        self.assertEqual(len(self.patched_timestamp_log.warning.call_args_list), 1)

        tsg._next_timestamp(71, tsg.last)
        self.assertEqual(len(self.patched_timestamp_log.warning.call_args_list), 1)

        tsg._next_timestamp(72, tsg.last)
        self.assertEqual(len(self.patched_timestamp_log.warning.call_args_list), 2)


class TestTimestampGeneratorMultipleThreads(unittest.TestCase):

    def test_should_generate_incrementing_timestamps_for_all_threads(self):
        lock = Lock()

        def request_time():
            for _ in range(timestamp_to_generate):
                timestamp = tsg()
                with lock:
                    generated_timestamps.append(timestamp)

        tsg = timestamps.MonotonicTimestampGenerator(clock=lambda: 1000000)
        num_threads = 5

        timestamp_to_generate = 1000
        generated_timestamps = []

        threads = []
        for _ in range(num_threads):
            threads.append(Thread(target=request_time))

        for t in threads:
            t.start()

        for t in threads:
            t.join()

        self.assertEqual(len(generated_timestamps), num_threads * timestamp_to_generate)
        self.assertEqual(len(set(generated_timestamps)), len(generated_timestamps))
        for i, timestamp in enumerate(sorted(generated_timestamps)):
            self.assertEqual(1000000 + i, timestamp)
