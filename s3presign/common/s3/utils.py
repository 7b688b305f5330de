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

from s3presign.common import utils
from s3presign.common.exceptions import ConfigurationError

# Protocol limits for multipart uploads
MIN_PART_SIZE = 5 * 1024 * 1024
MAX_PARTS = 10000

AMZ_HEADER_PREFIX = 'x-amz-'
AUTH_SCHEME = 'AWS'
DEFAULT_CONTENT_TYPE = 'application/octet-stream'
COMPLETE_CONTENT_TYPE = 'text/plain'


def is_amz_header(name):
    return name.lower().startswith(AMZ_HEADER_PREFIX)


class UploadConfig(dict):
    DEFAULTS = {
        'access_key': '',
        'secret_key': '',
        'part_size': MIN_PART_SIZE,
        'max_parts': MAX_PARTS,
        'concurrency': 1,
        'abort_on_failure': True,
        'conn_timeout': 5.0,
        'response_timeout': 60.0,
        'send_timeout': 600.0,
        'expires_in': 8 * 24 * 60 * 60,
        'content_type': DEFAULT_CONTENT_TYPE,
    }

    def __init__(self, base=None):
        self.update(self.DEFAULTS)
        if base is not None:
            self.update(base)

    def __getattr__(self, name):
        if name not in self:
            raise AttributeError("No attribute '%s'" % name)

        return self[name]

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        del self[name]

    def __repr__(self):
        return '%s(%r)' % (self.__class__.__name__, dict(
            (k, '***' if k == 'secret_key' and v else v)
            for k, v in self.items()))

    def update(self, other):
        if hasattr(other, 'keys'):
            for key in other.keys():
                self[key] = other[key]
        else:
            for key, value in other:
                self[key] = value

    def __setitem__(self, key, value):
        if isinstance(self.get(key), bool):
            dict.__setitem__(self, key, utils.config_true_value(value))
        elif isinstance(self.get(key), int):
            try:
                dict.__setitem__(self, key, int(value))
            except ValueError:
                if value:  # No need to raise the error if value is ''
                    raise ConfigurationError(
                        'Invalid value for %s: %r' % (key, value))
        elif isinstance(self.get(key), float):
            try:
                dict.__setitem__(self, key, float(value))
            except ValueError:
                raise ConfigurationError(
                    'Invalid value for %s: %r' % (key, value))
        else:
            dict.__setitem__(self, key, value)

    def validate(self):
        """
        Check the multipart options against the protocol limits.

        :raises ConfigurationError: if an option is out of range
        """
        if self.part_size < MIN_PART_SIZE:
            raise ConfigurationError(
                'part_size must be at least %d bytes, not %d'
                % (MIN_PART_SIZE, self.part_size))
        if not 1 <= self.max_parts <= MAX_PARTS:
            raise ConfigurationError(
                'max_parts must be between 1 and %d, not %d'
                % (MAX_PARTS, self.max_parts))
        for key in ('concurrency', 'expires_in'):
            try:
                utils.config_positive_int_value(self[key])
            except ValueError as err:
                raise ConfigurationError('%s: %s' % (key, err))
        for key in ('conn_timeout', 'response_timeout', 'send_timeout'):
            try:
                utils.non_negative_float(self[key])
            except ValueError as err:
                raise ConfigurationError('%s: %s' % (key, err))
        return self
