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
Miscellaneous utility functions that may be used in other utils modules.

This module is imported by other utils modules.
This module should not import from other utils modules.
"""

from urllib.parse import quote as _quote

from s3presign.common.exceptions import ConfigurationError


def utf8encode(s):
    """
    Encode a native string as UTF-8 bytes; bytes and None pass through.

    :raises ConfigurationError: if ``s`` cannot be encoded (e.g. it holds
                                lone surrogates)
    """
    if s is None or isinstance(s, bytes):
        return s
    try:
        return s.encode('utf8')
    except UnicodeEncodeError as err:
        raise ConfigurationError('Value is not UTF-8 encodable: %s' % err)


def utf8decode(s):
    if isinstance(s, bytes):
        s = s.decode('utf8')
    return s


def quote(value, safe='/'):
    """
    Patched version of urllib.quote that encodes utf-8 strings before quoting
    """
    quoted = _quote(utf8encode(value), safe)
    if isinstance(value, bytes):
        quoted = quoted.encode('utf-8')
    return quoted


def scrub_query(url, names=('Signature',)):
    """
    Return ``url`` with the values of the given query parameters replaced,
    suitable for logging a pre-signed URL.
    """
    base, sep, query = url.partition('?')
    if not sep:
        return url
    params = []
    for param in query.split('&'):
        key = param.partition('=')[0]
        if key in names:
            param = '%s=...' % key
        params.append(param)
    return '%s?%s' % (base, '&'.join(params))
