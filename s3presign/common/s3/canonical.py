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
Canonical forms of an S3 request, as used by signature version 2.

Both the signer and the verifying service must rebuild these strings
bit-for-bit, so every ordering here is part of the signature contract:
``x-amz-*`` headers and query subresources are always emitted sorted by
key.
"""

from collections import OrderedDict
from urllib.parse import parse_qsl, urlsplit

from s3presign.common.exceptions import ConfigurationError
from s3presign.common.s3.utils import is_amz_header


# Query parameters that must be maintained as part of the HMAC
# signature string.
SUB_RESOURCES = frozenset([
    'acl', 'lifecycle', 'location', 'logging', 'notification', 'partNumber',
    'policy', 'requestPayment', 'torrent', 'uploadId', 'uploads',
    'versionId', 'versioning', 'versions', 'website',
])

RESPONSE_OVERRIDE_HEADERS = frozenset([
    'response-content-type', 'response-content-language', 'response-expires',
    'response-cache-control', 'response-content-disposition',
    'response-content-encoding',
])

# The last three labels of a virtual-hosted-style host name the service
# endpoint (e.g. ``s3.amazonaws.com``); anything before them is the bucket.
ENDPOINT_LABELS = 3


def split_uri(uri):
    """
    Split a target URI, insisting on an absolute URL.

    :raises ConfigurationError: if the URI has no scheme or host
    """
    try:
        parts = urlsplit(uri)
        host = parts.hostname
    except (AttributeError, TypeError, ValueError) as err:
        raise ConfigurationError('Invalid target URI %r: %s' % (uri, err))
    if not parts.scheme or not host:
        raise ConfigurationError('Invalid target URI %r' % (uri,))
    return parts


def get_bucket(host):
    """
    Return the bucket encoded in a virtual-hosted-style host name, or ''
    for path-style addressing.

    ``mybucket.sub.s3.example.com`` -> ``mybucket.sub``;
    ``s3.example.com`` -> ``''``
    """
    labels = host.split('.')
    if len(labels) > ENDPOINT_LABELS:
        return '.'.join(labels[:-ENDPOINT_LABELS])
    return ''


def _fold(mapping, key, value, new_first=False):
    if key in mapping:
        if new_first:
            value = '%s,%s' % (value, mapping[key])
        else:
            value = '%s,%s' % (mapping[key], value)
    mapping[key] = value


def _iter_header_items(headers):
    if not headers:
        return ()
    if hasattr(headers, 'items'):
        return headers.items()
    return headers


def canonicalize_query(query):
    """
    Pick the signed parameters out of a query string.

    Values are URL-decoded once. A repeated key folds into a single entry,
    the newer value first.

    :param query: a raw query string (without the leading ``?``)
    :returns: a tuple of two ``OrderedDict`` sorted by key: the
              subresources and the response header overrides
    """
    subresources = {}
    overrides = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key in SUB_RESOURCES:
            _fold(subresources, key, value, new_first=True)
        elif key in RESPONSE_OVERRIDE_HEADERS:
            _fold(overrides, key, value, new_first=True)
    return (OrderedDict(sorted(subresources.items())),
            OrderedDict(sorted(overrides.items())))


def get_canonicalized_resource(uri):
    """
    Create the ``CanonicalizedResource`` element for ``uri``.

    :param uri: absolute target URI, optionally with a query string
    :returns: ``[/bucket]/path[?subresources&overrides]``
    :raises ConfigurationError: if the URI is not absolute
    """
    parts = split_uri(uri)
    bucket = get_bucket(parts.hostname)
    resource = parts.path or '/'
    if bucket:
        resource = '/%s%s' % (bucket, resource)

    subresources, overrides = canonicalize_query(parts.query)
    params = []
    for key, value in subresources.items():
        params.append('%s=%s' % (key, value) if value.strip() else key)
    for key, value in overrides.items():
        params.append('%s=%s' % (key, value))
    if params:
        resource += '?' + '&'.join(params)
    return resource


def select_amz_headers(headers):
    """
    Pick the ``x-amz-*`` headers of a request as given, in order.

    :param headers: a mapping or an iterable of ``(name, value)`` pairs
    :returns: a list of ``(name, value)`` pairs, names and values untouched
    """
    return [(key, value) for key, value in _iter_header_items(headers)
            if is_amz_header(key)]


def canonicalize_amz_headers(headers):
    """
    Select and fold the ``x-amz-*`` headers of a request.

    :param headers: a mapping or an iterable of ``(name, value)`` pairs;
                    pairs allow the same name to appear more than once
    :returns: an ``OrderedDict`` of lower-cased name to stripped value,
              sorted by name; duplicate names are comma-joined in the order
              they were given
    """
    amz_headers = {}
    for key, value in _iter_header_items(headers):
        if not is_amz_header(key):
            continue
        _fold(amz_headers, key.strip().lower(), str(value).strip())
    return OrderedDict(sorted(amz_headers.items()))


def create_canonicalized_amz_headers_string(headers):
    """
    Create the ``CanonicalizedAmzHeaders`` element: one ``name:value\\n``
    line per folded header, or '' when there are none.
    """
    return ''.join('%s:%s\n' % item
                   for item in canonicalize_amz_headers(headers).items())


def has_header(headers, name):
    name = name.lower()
    return any(key.lower() == name for key, _ in _iter_header_items(headers))
