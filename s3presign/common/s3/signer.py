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
S3 signature version 2.

A request is authenticated by an HMAC-SHA1 over its ``StringToSign``::

    VERB\\n
    Content-MD5\\n
    Content-Type\\n
    Date or Expires\\n
    CanonicalizedAmzHeaders + CanonicalizedResource

The signature either travels in an ``Authorization: AWS <access>:<sig>``
header (the date is the request's ``Date``) or in the query string of a
pre-signed URL (the date is replaced by the ``Expires`` epoch seconds).
"""

import base64
import calendar
import datetime
import email.utils
import hmac
from hashlib import sha1

from s3presign.common.exceptions import ConfigurationError, SigningError
from s3presign.common.s3.canonical import get_canonicalized_resource, \
    create_canonicalized_amz_headers_string, has_header, split_uri
from s3presign.common.s3.utils import AUTH_SCHEME
from s3presign.common.utils import quote, utf8encode


def to_epoch_seconds(value):
    """
    Convert a datetime (naive values are taken as UTC) or a number of
    seconds to integer Unix epoch seconds.

    :raises ConfigurationError: if ``value`` is neither
    """
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc)
        return calendar.timegm(value.timetuple())
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError('Invalid timestamp: %r' % (value,))


def format_date(value):
    """Format a datetime or epoch seconds as an RFC 1123 date."""
    return email.utils.formatdate(to_epoch_seconds(value), usegmt=True)


def _string_to_sign(uri, verb, content_md5, content_type, date_value,
                    headers):
    return '%s\n%s\n%s\n%s\n%s%s' % (
        verb, content_md5 or '', content_type or '', date_value,
        create_canonicalized_amz_headers_string(headers),
        get_canonicalized_resource(uri))


def create_string_to_sign(uri, verb, content_md5, content_type, date,
                          headers=None):
    """
    Create the ``StringToSign`` for header authentication.

    When an ``x-amz-date`` header is present it carries the date, and the
    date line is left empty.

    :param uri: absolute target URI, including any query string
    :param verb: HTTP method
    :param content_md5: value of the Content-MD5 header, or ''
    :param content_type: value of the Content-Type header, or ''
    :param date: request time as a datetime or epoch seconds
    :param headers: request headers (mapping or list of pairs)
    """
    if has_header(headers, 'x-amz-date'):
        date_value = ''
    else:
        date_value = format_date(date)
    return _string_to_sign(uri, verb, content_md5, content_type, date_value,
                           headers)


def create_expiring_string_to_sign(uri, verb, content_md5, content_type,
                                   expires, headers=None):
    """
    Create the ``StringToSign`` for query-string (pre-signed URL)
    authentication; the date line is the expiry in epoch seconds.
    """
    return _string_to_sign(uri, verb, content_md5, content_type,
                           '%d' % to_epoch_seconds(expires), headers)


def create_signature(secret, string_to_sign):
    """
    Returns the base64 encoded HMAC-SHA1 of ``string_to_sign``.

    :param secret: the secret access key
    :param string_to_sign: the ``StringToSign``
    :raises ConfigurationError: if either argument cannot be UTF-8 encoded
    :raises SigningError: if either argument is not a string
    """
    try:
        digest = hmac.new(utf8encode(secret), utf8encode(string_to_sign),
                          sha1).digest()
    except (AttributeError, TypeError) as err:
        raise SigningError('Unable to sign request: %s' % err)
    return base64.b64encode(digest).decode('ascii')


def authorization_header(access_key, signature):
    return '%s %s:%s' % (AUTH_SCHEME, access_key, signature)


def presign_url(access_key, secret, uri, verb, expires, content_md5='',
                content_type='', headers=None):
    """
    Returns ``uri`` with ``AWSAccessKeyId``, ``Signature`` and ``Expires``
    query parameters appended, granting ``verb`` on it until ``expires``.

    :param access_key: the access key id
    :param secret: the secret access key
    :param uri: absolute target URI; an existing query string is kept and
                its subresources are signed
    :param verb: HTTP method the URL will be used with
    :param expires: expiry as a datetime or epoch seconds
    :param content_md5: Content-MD5 the request will carry, if any
    :param content_type: Content-Type the request will carry, if any
    :param headers: ``x-amz-*`` headers the request will carry, if any
    """
    expires = to_epoch_seconds(expires)
    signature = create_signature(secret, create_expiring_string_to_sign(
        uri, verb, content_md5, content_type, expires, headers))
    query = 'AWSAccessKeyId=%s&Signature=%s&Expires=%d' % (
        quote(access_key, safe=''), quote(signature, safe=''), expires)
    sep = '&' if split_uri(uri).query else '?'
    return '%s%s%s' % (uri, sep, query)
