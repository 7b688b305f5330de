# Copyright (c) 2010-2012 OpenStack Foundation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or
# implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Miscellaneous utility functions for use with s3presign."""

import eventlet.queue
from eventlet import GreenPool

from s3presign.common.utils.base import (  # noqa
    utf8encode,
    utf8decode,
    quote,
    scrub_query,
)
from s3presign.common.utils.logs import (  # noqa
    NOTICE,
    LogAdapter,
    LogFormatter,
    get_logger,
    logging_monkey_patch,
    timing_since,
)
from s3presign.common.utils.config import (  # noqa
    TRUE_VALUES,
    config_true_value,
    config_positive_int_value,
    non_negative_float,
    readconf,
)


logging_monkey_patch()


class ContextPool(GreenPool):
    """GreenPool subclassed to kill its coros when it gets gc'ed"""

    def __enter__(self):
        return self

    def __exit__(self, type, value, traceback):
        self.close()

    def close(self):
        for coro in list(self.coroutines_running):
            coro.kill()


class GreenAsyncPile(object):
    """
    Runs jobs in a pool of green threads, and the results can be retrieved by
    using this object as an iterator.

    Results come back as they become available rather than in the order the
    jobs were launched. A job that raised has its exception re-raised by the
    iteration that picks it up; ``failed`` is set as soon as any job raises.

    Correlating results with jobs (if necessary) is left to the caller.
    """

    def __init__(self, size_or_pool):
        """
        :param size_or_pool: thread pool size or a pool to use
        """
        if isinstance(size_or_pool, GreenPool):
            self._pool = size_or_pool
        else:
            self._pool = GreenPool(size_or_pool)
        self._responses = eventlet.queue.LightQueue()
        self._inflight = 0
        self.failed = False

    def _run_func(self, func, args, kwargs):
        try:
            self._responses.put((None, func(*args, **kwargs)))
        except Exception as err:
            self.failed = True
            self._responses.put((err, None))
        finally:
            self._inflight -= 1

    @property
    def inflight(self):
        return self._inflight

    def spawn(self, func, *args, **kwargs):
        """
        Spawn a job in a green thread on the pile; blocks while the pool is
        full.
        """
        self._inflight += 1
        self._pool.spawn(self._run_func, func, args, kwargs)

    def __iter__(self):
        return self

    def __next__(self):
        try:
            err, rv = self._responses.get_nowait()
        except eventlet.queue.Empty:
            if self._inflight == 0:
                raise StopIteration()
            err, rv = self._responses.get()
        if err is not None:
            raise err
        return rv
