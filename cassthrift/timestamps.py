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
This module contains utilities for generating the client-side timestamps
attached to every column and deletion.
"""

import logging
import time
from threading import Lock

log = logging.getLogger(__name__)


def microsecond_clock():
    """ The current wall-clock time in microseconds since the UNIX epoch. """
    return int(time.time() * 1e6)


class MonotonicTimestampGenerator(object):
    """
    An object that, when called, returns the value of its `clock` (by
    default :func:`microsecond_clock`) when possible, but, if that value
    doesn't increase, drifts into the future and logs warnings.  Columns
    written through one generator therefore never go back in time, which
    the store's last-write-wins resolution relies on.

    `clock` is any callable returning integer microseconds; tests pass a
    deterministic one.
    """

    warn_on_drift = True
    """
    If true, log warnings when timestamps drift into the future as allowed by
    :attr:`warning_threshold` and :attr:`warning_interval`.
    """

    warning_threshold = 1
    """
    Only warn when the returned timestamp drifts more than
    ``warning_threshold`` seconds into the future.
    """

    warning_interval = 1
    """
    Only warn every ``warning_interval`` seconds.
    """

    def __init__(self, clock=microsecond_clock, warn_on_drift=True, warning_threshold=1, warning_interval=1):
        self.clock = clock
        self.lock = Lock()
        with self.lock:
            self.last = 0
            self._last_warn = 0
        self.warn_on_drift = warn_on_drift
        self.warning_threshold = warning_threshold
        self.warning_interval = warning_interval

    def _next_timestamp(self, now, last):
        """
        Returns the timestamp to use if ``now`` is the current clock value
        and ``last`` is the last timestamp returned by this object.
        """
        if now > last:
            self.last = now
            return now
        else:
            self._maybe_warn(now=now)
            self.last = last + 1
            return self.last

    def __call__(self):
        with self.lock:
            return self._next_timestamp(now=int(self.clock()), last=self.last)

    def _maybe_warn(self, now):
        # called with self.lock held
        diff = self.last - now
        since_last_warn = now - self._last_warn

        warn = (self.warn_on_drift and
                (diff >= self.warning_threshold * 1e6) and
                (since_last_warn >= self.warning_interval * 1e6))
        if warn:
            log.warning(
                "Clock skew detected: current tick ({now}) was {diff} "
                "microseconds behind the last generated timestamp "
                "({last}), returned timestamps will be artificially "
                "incremented to guarantee monotonicity.".format(
                    now=now, diff=diff, last=self.last))
            self._last_warn = now
