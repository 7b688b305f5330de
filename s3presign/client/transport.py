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
Transports send one HTTP request and hand back the complete response.

The uploader only depends on :class:`Transport`; tests substitute a
scripted fake, and :class:`HTTPTransport` talks to a real endpoint.
"""

import socket
from collections import namedtuple
from http.client import HTTPException
from urllib.parse import urlsplit

from eventlet import Timeout
from eventlet.green.http import client as green_http_client

from s3presign.common.bufferedhttp import http_connect_raw
from s3presign.common.exceptions import ConnectionTimeout, \
    ResponseTimeout, SendTimeout, TransportError

CHUNK_SIZE = 65536


class ResponseHeaders(dict):
    """
    Response headers keyed by lower-cased name, so lookups ignore case.
    Repeated headers are joined with ``,``.
    """

    def __init__(self, headers=None):
        super(ResponseHeaders, self).__init__()
        if headers:
            items = headers.items() if hasattr(headers, 'items') else headers
            for key, value in items:
                key = key.lower()
                if key in self:
                    value = '%s,%s' % (dict.__getitem__(self, key), value)
                self[key] = value

    def __getitem__(self, key):
        return dict.__getitem__(self, key.lower())

    def __setitem__(self, key, value):
        if isinstance(value, bytes):
            value = value.decode('latin-1')
        dict.__setitem__(self, key.lower(), str(value))

    def __contains__(self, key):
        return dict.__contains__(self, key.lower())

    def __delitem__(self, key):
        dict.__delitem__(self, key.lower())

    def get(self, key, default=None):
        return dict.get(self, key.lower(), default)


Response = namedtuple('Response', ['status', 'headers', 'body'])


class Transport(object):
    """
    Sends a single request. Implementations return a :class:`Response` for
    every status the server answers with and raise
    :class:`~s3presign.common.exceptions.TransportError` only when no
    response could be had.
    """

    def request(self, method, url, headers=None, body=b''):
        """
        :param method: HTTP method
        :param url: absolute URL, query string included
        :param headers: dict of request headers
        :param body: request body bytes
        :returns: a :class:`Response`
        """
        raise NotImplementedError()


class HTTPTransport(Transport):

    def __init__(self, conn_timeout=5, response_timeout=60,
                 send_timeout=600, chunk_size=CHUNK_SIZE):
        self.conn_timeout = float(conn_timeout)
        self.response_timeout = float(response_timeout)
        self.send_timeout = float(send_timeout)
        self.chunk_size = chunk_size

    def request(self, method, url, headers=None, body=b''):
        parts = urlsplit(url)
        headers = dict(headers or {})
        body = body or b''
        headers['Content-Length'] = str(len(body))
        context = dict(http_scheme=parts.scheme, http_host=parts.hostname,
                       http_port=parts.port or '', http_path=parts.path)
        try:
            with ConnectionTimeout(self.conn_timeout):
                conn = http_connect_raw(
                    parts.hostname, parts.port, method, parts.path or '/',
                    headers=headers, query_string=parts.query,
                    ssl=(parts.scheme == 'https'))
            try:
                with SendTimeout(self.send_timeout,
                                 'sending %d bytes' % len(body)):
                    view = memoryview(body)
                    for offset in range(0, len(body), self.chunk_size):
                        conn.send(view[offset:offset + self.chunk_size])
                with ResponseTimeout(self.response_timeout):
                    resp = conn.getresponse()
                    content = resp.read()
            finally:
                conn.close()
        except Timeout as err:
            raise TransportError('%s timed out (%s)' % (
                method, err.__class__.__name__), **context)
        except (socket.error, HTTPException,
                green_http_client.HTTPException) as err:
            raise TransportError('%s failed: %s' % (method, err), **context)
        return Response(resp.status, ResponseHeaders(resp.getheaders()),
                        content)
