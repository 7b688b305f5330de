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

""" S3Presign tests """

from collections import namedtuple
from urllib.parse import parse_qs, urlsplit

from s3presign.client.transport import Response, ResponseHeaders, Transport


FakeRequest = namedtuple('FakeRequest', ['method', 'url', 'headers', 'body'])


def initiate_body(upload_id, namespace=True):
    xmlns = ' xmlns="http://s3.amazonaws.com/doc/2006-03-01/"' \
        if namespace else ''
    return (b'<?xml version="1.0" encoding="UTF-8"?>\n'
            b'<InitiateMultipartUploadResult%s>'
            b'<Bucket>bucket</Bucket><Key>obj</Key>'
            b'<UploadId>%s</UploadId>'
            b'</InitiateMultipartUploadResult>'
            % (xmlns.encode('ascii'), upload_id.encode('ascii')))


def query_of(url):
    """Parse the query string of ``url`` into a dict of single values."""
    return dict((k, v[0]) for k, v in
                parse_qs(urlsplit(url).query, keep_blank_values=True).items())


class FakeTransport(Transport):
    """
    Records every request and answers from ``responses``, in order.

    Each response is a :class:`Response`, a ``(status, headers, body)``
    tuple or an exception instance to raise. A ``responder`` callable taking
    ``(method, url, headers, body)`` may be given instead.
    """

    def __init__(self, responses=None, responder=None):
        self.responses = list(responses or [])
        self.responder = responder
        self.requests = []

    def request(self, method, url, headers=None, body=b''):
        self.requests.append(
            FakeRequest(method, url, dict(headers or {}), body))
        if self.responder is not None:
            rv = self.responder(method, url, headers, body)
        elif self.responses:
            rv = self.responses.pop(0)
        else:
            raise AssertionError('Unexpected request %s %s' % (method, url))
        if isinstance(rv, Exception):
            raise rv
        if not isinstance(rv, Response):
            status, headers, body = rv
            rv = Response(status, ResponseHeaders(headers), body)
        return rv

    @property
    def methods(self):
        return [req.method for req in self.requests]


def s3_responder(upload_id='XYZ', fail_part=None, fail_status=500):
    """
    Returns a responder acting like a multipart capable object store: part
    ``n`` gets ETag ``en``, and part ``fail_part`` fails with
    ``fail_status``.
    """
    def responder(method, url, headers, body):
        query = query_of(url)
        if method == 'POST' and 'uploads' in query:
            return 200, {}, initiate_body(upload_id)
        if method == 'PUT':
            number = int(query['partNumber'])
            if number == fail_part:
                return fail_status, {}, b'<Error/>'
            return 200, {'ETag': 'e%d' % number}, b''
        if method == 'POST':
            return 200, {}, b'<CompleteMultipartUploadResult/>'
        if method == 'DELETE':
            return 204, {}, b''
        raise AssertionError('Unexpected request %s %s' % (method, url))
    return responder
