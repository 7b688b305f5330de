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
Helper functions to make green HTTP(S) connections to the object store.

Connections are created with eventlet's green ``http.client`` so that
several part uploads can share one process when a bounded worker pool is
in use.
"""

import logging
import time
import socket

from eventlet.green.http.client import HTTPConnection, HTTPSConnection


class BufferedHTTPConnection(HTTPConnection):
    """HTTPConnection class that logs request timing"""

    def connect(self):
        self._connected_time = time.time()
        ret = HTTPConnection.connect(self)
        self.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        return ret

    def putrequest(self, method, url, skip_host=0, skip_accept_encoding=0):
        '''Send a request to the server.

        :param method: specifies an HTTP request method, e.g. 'GET'.
        :param url: specifies the object being requested, e.g. '/index.html'.
        :param skip_host: if True does not add automatically a 'Host:' header
        :param skip_accept_encoding: if True does not add automatically an
           'Accept-Encoding:' header
        '''
        self._method = method
        self._path = url
        return HTTPConnection.putrequest(self, method, url, skip_host,
                                         skip_accept_encoding)

    def getresponse(self):
        response = HTTPConnection.getresponse(self)
        # only the path: the query string may carry a signature
        logging.debug("HTTP PERF: %(time).5f seconds to %(method)s "
                      "%(host)s:%(port)s %(path)s",
                      {'time': time.time() - self._connected_time,
                       'method': self._method, 'host': self.host,
                       'port': self.port,
                       'path': self._path.partition('?')[0]})
        return response


class BufferedHTTPSConnection(HTTPSConnection, BufferedHTTPConnection):
    """HTTPSConnection class that logs request timing"""

    def connect(self):
        self._connected_time = time.time()
        return HTTPSConnection.connect(self)


def http_connect_raw(host, port, method, path, headers=None,
                     query_string=None, ssl=False):
    """
    Helper function to create an HTTPConnection object and send the request
    line and headers; the caller sends any body and reads the response.

    :param host: host name or IP address to connect to
    :param port: port to connect to; defaults to 443 or 80
    :param method: HTTP method to request ('GET', 'PUT', 'POST', etc.)
    :param path: request path, already quoted
    :param headers: dictionary of headers
    :param query_string: request query string
    :param ssl: set True if SSL should be used (default: False)
    :returns: HTTPConnection object
    """
    if not port:
        port = 443 if ssl else 80
    if ssl:
        conn = BufferedHTTPSConnection('%s:%s' % (host, port))
    else:
        conn = BufferedHTTPConnection('%s:%s' % (host, port))
    if query_string:
        path += '?' + query_string
    conn.path = path
    conn.putrequest(method, path,
                    skip_host=bool(headers and 'Host' in headers))
    if headers:
        for header, value in headers.items():
            conn.putheader(header, str(value))
    conn.endheaders()
    return conn
