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

"""
Sources of the bytes being uploaded, and the plan that cuts them into
parts.
"""

import os
from collections import namedtuple

from s3presign.common.exceptions import ConfigurationError, SourceReadError
from s3presign.common.s3.utils import MIN_PART_SIZE, MAX_PARTS


Part = namedtuple('Part', ['number', 'offset', 'length'])


def iter_parts(total_size, part_size):
    """
    Cut ``total_size`` bytes into parts of ``part_size`` bytes; only the last
    part may be shorter. Part numbers start at 1. An empty source is a
    single empty part 1.

    :returns: a list of :class:`Part`
    """
    parts = []
    offset = 0
    while offset < total_size:
        length = min(part_size, total_size - offset)
        parts.append(Part(len(parts) + 1, offset, length))
        offset += length
    if not parts:
        parts.append(Part(1, 0, 0))
    return parts


def check_part_plan(total_size, part_size, max_parts=MAX_PARTS):
    """
    :raises ConfigurationError: if ``part_size`` is below the minimum part
                                size, or ``total_size`` would need more than
                                ``max_parts`` parts
    """
    if part_size < MIN_PART_SIZE:
        raise ConfigurationError(
            'Part size %d is below the minimum of %d bytes'
            % (part_size, MIN_PART_SIZE))
    num_parts = max(1, -(-total_size // part_size))
    if num_parts > max_parts:
        raise ConfigurationError(
            '%d bytes need %d parts of %d bytes; at most %d are allowed'
            % (total_size, num_parts, part_size, max_parts))
    return num_parts


class BytesSource(object):
    """Content held in memory."""

    def __init__(self, data):
        self.data = bytes(data)
        self.size = len(self.data)

    def read_part(self, part):
        chunk = self.data[part.offset:part.offset + part.length]
        if len(chunk) != part.length:
            raise SourceReadError(
                'Short read of part %d' % part.number,
                expected=part.length, provided=len(chunk))
        return chunk

    def __repr__(self):
        return '%s(<%d bytes>)' % (self.__class__.__name__, self.size)


class FileSource(object):
    """
    Content read from a local file one part at a time. The size is taken
    when the source is created; the file is reopened for every part so
    parts may be read from several green threads.
    """

    def __init__(self, path):
        self.path = path
        try:
            self.size = os.path.getsize(path)
        except OSError as err:
            raise SourceReadError('Unable to stat %s: %s' % (path, err))

    def read_part(self, part):
        try:
            with open(self.path, 'rb') as fp:
                fp.seek(part.offset)
                chunk = fp.read(part.length)
        except (IOError, OSError) as err:
            raise SourceReadError('Unable to read part %d of %s: %s'
                                  % (part.number, self.path, err))
        if len(chunk) != part.length:
            raise SourceReadError(
                'Short read of part %d of %s' % (part.number, self.path),
                expected=part.length, provided=len(chunk))
        return chunk

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, self.path)


def as_source(content):
    """
    Wrap ``bytes``-like content in a :class:`BytesSource`; anything with
    ``size`` and ``read_part`` is returned as is.
    """
    if hasattr(content, 'read_part') and hasattr(content, 'size'):
        return content
    if isinstance(content, (bytes, bytearray, memoryview)):
        return BytesSource(content)
    raise ConfigurationError('Unsupported upload source: %r'
                             % type(content).__name__)
