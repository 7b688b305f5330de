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
Multipart upload of a single object, signed with signature version 2.

An upload runs through three phases, each request signed on its own:

1. initiate: ``POST <resource>?uploads=`` with an ``Authorization`` header;
   the response names the upload id.
2. upload parts: ``PUT <resource>?uploadId=<id>&partNumber=<n>`` through
   pre-signed URLs, one per part, collecting each part's ETag.
3. complete: pre-signed ``POST <resource>?uploadId=<id>`` with the list of
   parts in ascending order.

On success a pre-signed GET URL for the object is returned. If anything
fails after initiation the upload is aborted (``DELETE
<resource>?uploadId=<id>``) so the service can discard the stored parts.
"""

import time
from collections import namedtuple
from urllib.parse import urlsplit

from eventlet.semaphore import Semaphore

from s3presign.common.exceptions import AbortError, CompletionError, \
    ConfigurationError, PartUploadError, ProtocolError, SourceReadError, \
    TransportError, UploadInitiationError
from s3presign.common.http import is_success
from s3presign.common.s3.canonical import canonicalize_amz_headers, \
    select_amz_headers
from s3presign.common.s3.etree import Element, SubElement, fromstring, \
    tostring
from s3presign.common.s3.signer import authorization_header, \
    create_signature, create_string_to_sign, format_date, presign_url, \
    to_epoch_seconds
from s3presign.common.s3.utils import COMPLETE_CONTENT_TYPE, \
    DEFAULT_CONTENT_TYPE, UploadConfig
from s3presign.common.utils import ContextPool, GreenAsyncPile, \
    get_logger, quote, scrub_query, timing_since
from s3presign.client.source import as_source, check_part_plan, iter_parts
from s3presign.client.transport import ResponseHeaders

IDLE = 'idle'
INITIATED = 'initiated'
UPLOADING = 'uploading'
COMPLETED = 'completed'
ABORTED = 'aborted'


class Credential(namedtuple('Credential', ['access_key', 'secret_key'])):
    __slots__ = ()

    def __new__(cls, access_key, secret_key):
        if not access_key or not secret_key:
            raise ConfigurationError(
                'Both an access key and a secret key are required')
        return super(Credential, cls).__new__(cls, access_key, secret_key)

    def __repr__(self):
        return 'Credential(access_key=%r, secret_key=***)' % self.access_key


class UploadSession(namedtuple('UploadSession',
                               ['upload_id', 'resource', 'expires'])):
    __slots__ = ()

    def __new__(cls, upload_id, resource, expires):
        if not upload_id:
            raise ConfigurationError('An upload id is required')
        return super(UploadSession, cls).__new__(
            cls, upload_id, resource, to_epoch_seconds(expires))

    def url(self, query=''):
        """
        Returns the session's resource with ``uploadId`` and ``query``
        appended.
        """
        params = 'uploadId=%s' % quote(self.upload_id, safe='')
        if query:
            params = '%s&%s' % (params, query)
        return with_query(self.resource, params)


def with_query(resource, query):
    sep = '&' if urlsplit(resource).query else '?'
    return '%s%s%s' % (resource, sep, query)


def build_completion_body(part_etags):
    """
    Build the ``CompleteMultipartUpload`` document.

    :param part_etags: dict of part number -> ETag
    :returns: the XML document as bytes, parts in ascending part number
              order
    """
    root = Element('CompleteMultipartUpload')
    for number in sorted(part_etags):
        part = SubElement(root, 'Part')
        SubElement(part, 'PartNumber').text = str(number)
        SubElement(part, 'ETag').text = part_etags[number]
    return tostring(root, use_s3ns=False)


def parse_upload_id(body):
    """
    Find the ``UploadId`` in an initiate response body; the S3 namespace is
    optional.

    :raises ProtocolError: if the body is not XML or has no upload id
    """
    elem = fromstring(body)
    upload_id = elem.findtext('.//UploadId')
    if not upload_id:
        raise ProtocolError('No UploadId in initiate response')
    return upload_id


class MultipartUploader(object):
    """
    Drives the multipart upload of one object at a time.

    :param credential: a :class:`Credential`
    :param transport: a :class:`~s3presign.client.transport.Transport`
    :param conf: dict or :class:`UploadConfig` of upload options
    :param logger: logger to use; defaults to ``get_logger(conf)``
    :param clock: returns the current time in epoch seconds
    """

    def __init__(self, credential, transport, conf=None, logger=None,
                 clock=time.time):
        self.credential = credential
        self.transport = transport
        self.conf = UploadConfig(conf or {}).validate()
        self.logger = logger or get_logger(self.conf)
        self.clock = clock
        self.state = IDLE

    def _presign(self, url, verb, expires, content_type=''):
        return presign_url(self.credential.access_key,
                           self.credential.secret_key, url, verb, expires,
                           content_type=content_type)

    def _send(self, error_class, method, url, headers, body, **kwargs):
        """
        Send a request, raising ``error_class`` unless the service answers
        with a 2xx status.
        """
        try:
            resp = self.transport.request(method, url, headers=headers,
                                          body=body)
        except TransportError as err:
            raise error_class('%s request failed' % method, cause=err,
                              **kwargs) from err
        if not is_success(resp.status):
            parts = urlsplit(url)
            body = resp.body or b''
            err = TransportError(
                'Unexpected response', http_scheme=parts.scheme,
                http_host=parts.hostname, http_port=parts.port or '',
                http_path=parts.path, http_status=resp.status,
                http_response_content=body.decode('utf-8', 'replace'),
                http_headers=ResponseHeaders(resp.headers))
            raise error_class('%s request failed' % method, cause=err,
                              **kwargs) from err
        return resp

    def _notify(self, on_part_started, part_number, remaining):
        if on_part_started is None:
            return
        try:
            on_part_started(part_number, remaining)
        except Exception:
            self.logger.exception(
                'Progress callback failed for part %d', part_number)

    def initiate_multipart_upload(self, resource, request_time=None,
                                  content_type=DEFAULT_CONTENT_TYPE,
                                  extra_headers=None):
        """
        Start a multipart upload of ``resource``.

        Only ``x-amz-*`` headers from ``extra_headers`` are sent. They go
        out as given and are signed in their canonical form.

        :param resource: absolute URL of the object
        :param request_time: time of the request (datetime or epoch
                             seconds); defaults to now
        :param content_type: content type the object will be stored with
        :param extra_headers: dict or list of (name, value) pairs
        :returns: the upload id
        :raises UploadInitiationError: if the request fails or the response
                                       carries no upload id
        """
        if request_time is None:
            request_time = self.clock()
        url = with_query(resource, 'uploads=')
        amz_headers = canonicalize_amz_headers(extra_headers)
        signature = create_signature(
            self.credential.secret_key,
            create_string_to_sign(url, 'POST', '', content_type,
                                  request_time, amz_headers))
        headers = {
            'Authorization': authorization_header(
                self.credential.access_key, signature),
            'Date': format_date(request_time),
            'Content-Type': content_type,
            'Content-Length': '0',
        }
        for key, value in select_amz_headers(extra_headers):
            if key in headers:
                value = '%s,%s' % (headers[key], value)
            headers[key] = value
        resp = self._send(UploadInitiationError, 'POST', url, headers, b'')
        try:
            upload_id = parse_upload_id(resp.body)
        except ProtocolError as err:
            raise UploadInitiationError(
                'Unreadable initiate response', cause=err) from err
        self.state = INITIATED
        self.logger.info('Initiated upload %s of %s', upload_id, resource)
        return upload_id

    def _upload_part(self, session, source, part):
        url = self._presign(
            session.url('partNumber=%d' % part.number), 'PUT',
            session.expires)
        try:
            body = source.read_part(part)
        except SourceReadError as err:
            raise PartUploadError(
                'Unable to read part', part_number=part.number,
                upload_id=session.upload_id, cause=err) from err
        self.logger.debug('Uploading part %d (%d bytes) to %s',
                          part.number, part.length, scrub_query(url))
        start_time = time.time()
        resp = self._send(PartUploadError, 'PUT', url, {}, body,
                          part_number=part.number,
                          upload_id=session.upload_id)
        self.logger.debug('Part %d of upload %s stored in %.3fs',
                          part.number, session.upload_id,
                          timing_since(start_time))
        etag = ResponseHeaders(resp.headers).get('etag')
        if not etag:
            err = ProtocolError('No ETag in part upload response')
            raise PartUploadError(
                'Part upload not acknowledged', part_number=part.number,
                upload_id=session.upload_id, cause=err) from err
        return etag

    def upload_parts(self, resource, upload_id, source, expires,
                     on_part_started=None):
        """
        Upload ``source`` in parts of ``part_size`` bytes.

        ``on_part_started(part_number, remaining_bytes)`` is called before
        each part is sent; ``remaining_bytes`` counts the part itself.
        Nothing is retried: the first failure stops the upload.

        :param resource: absolute URL of the object
        :param upload_id: id returned by :meth:`initiate_multipart_upload`
        :param source: bytes, a ``BytesSource`` or a ``FileSource``
        :param expires: expiry of the pre-signed part URLs (datetime or
                        epoch seconds)
        :param on_part_started: optional progress callback
        :returns: dict of part number -> ETag
        :raises PartUploadError: if a part cannot be read or uploaded
        """
        session = UploadSession(upload_id, resource, expires)
        source = as_source(source)
        check_part_plan(source.size, self.conf.part_size,
                        self.conf.max_parts)
        parts = iter_parts(source.size, self.conf.part_size)
        self.state = UPLOADING
        part_etags = {}
        if self.conf.concurrency > 1 and len(parts) > 1:
            self._upload_parts_concurrently(session, source, parts,
                                            part_etags, on_part_started)
        else:
            for part in parts:
                self._notify(on_part_started, part.number,
                             source.size - part.offset)
                part_etags[part.number] = self._upload_part(
                    session, source, part)
        return part_etags

    def _upload_parts_concurrently(self, session, source, parts, part_etags,
                                   on_part_started):
        lock = Semaphore()

        def upload(part):
            etag = self._upload_part(session, source, part)
            with lock:
                part_etags[part.number] = etag

        with ContextPool(self.conf.concurrency) as pool:
            pile = GreenAsyncPile(pool)
            for part in parts:
                if pile.failed:
                    break
                self._notify(on_part_started, part.number,
                             source.size - part.offset)
                pile.spawn(upload, part)
            # raises the first failure; leaving the pool kills the rest
            for _junk in pile:
                pass

    def complete_multipart_upload(self, resource, upload_id, part_etags,
                                  expires):
        """
        Complete the upload and sign a GET URL for the object.

        :param resource: absolute URL of the object
        :param upload_id: id returned by :meth:`initiate_multipart_upload`
        :param part_etags: dict of part number -> ETag
        :param expires: expiry of the completion request and of the
                        returned URL (datetime or epoch seconds)
        :returns: pre-signed GET URL of the object
        :raises CompletionError: if the service rejects the completion
        """
        session = UploadSession(upload_id, resource, expires)
        url = self._presign(session.url(), 'POST', session.expires,
                            content_type=COMPLETE_CONTENT_TYPE)
        self._send(CompletionError, 'POST', url,
                   {'Content-Type': COMPLETE_CONTENT_TYPE},
                   build_completion_body(part_etags),
                   upload_id=upload_id)
        self.state = COMPLETED
        self.logger.notice('Completed upload %s of %s (%d parts)',
                           upload_id, resource, len(part_etags))
        return self._presign(resource, 'GET', session.expires)

    def abort_multipart_upload(self, resource, upload_id, expires):
        """
        Abort the upload so the service discards any stored parts.

        :raises AbortError: if the service does not accept the abort
        """
        session = UploadSession(upload_id, resource, expires)
        self.logger.warning('Aborting upload %s of %s', upload_id, resource)
        url = self._presign(session.url(), 'DELETE', session.expires)
        self._send(AbortError, 'DELETE', url, {}, b'', upload_id=upload_id)
        self.state = ABORTED

    def upload_file(self, resource, source, expires,
                    content_type=DEFAULT_CONTENT_TYPE, extra_headers=None,
                    on_part_started=None):
        """
        Upload ``source`` to ``resource`` and return a pre-signed GET URL
        for it, valid until ``expires``.

        The phases run strictly in order. When a phase fails after
        initiation the upload is aborted (if ``abort_on_failure``) and the
        original error is raised.
        """
        expires = to_epoch_seconds(expires)
        source = as_source(source)
        check_part_plan(source.size, self.conf.part_size,
                        self.conf.max_parts)
        upload_id = None
        try:
            upload_id = self.initiate_multipart_upload(
                resource, content_type=content_type,
                extra_headers=extra_headers)
            part_etags = self.upload_parts(resource, upload_id, source,
                                           expires, on_part_started)
            return self.complete_multipart_upload(resource, upload_id,
                                                  part_etags, expires)
        except Exception as err:
            self.logger.error('Upload of %s failed: %s', resource, err)
            if upload_id and self.conf.abort_on_failure:
                try:
                    self.abort_multipart_upload(resource, upload_id, expires)
                except AbortError as abort_err:
                    self.logger.error('%s', abort_err)
            raise
