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

from eventlet import Timeout


class MessageTimeout(Timeout):

    def __init__(self, seconds=None, msg=None):
        Timeout.__init__(self, seconds=seconds)
        self.msg = msg

    def __str__(self):
        return '%s: %s' % (Timeout.__str__(self), self.msg)


class ConnectionTimeout(Timeout):
    pass


class ResponseTimeout(Timeout):
    pass


class SendTimeout(MessageTimeout):
    pass


class S3PresignException(Exception):
    pass


class ConfigurationError(S3PresignException):
    pass


class SigningError(S3PresignException):
    pass


class ProtocolError(S3PresignException):
    pass


class SourceReadError(S3PresignException):

    def __init__(self, msg, expected=None, provided=None):
        super(SourceReadError, self).__init__(msg)
        self.expected = expected
        self.provided = provided


class ClientException(S3PresignException):

    def __init__(self, msg, http_scheme='', http_host='', http_port='',
                 http_path='', http_query='', http_status=None, http_reason='',
                 http_response_content='', http_headers=None):
        super(ClientException, self).__init__(msg)
        self.msg = msg
        self.http_scheme = http_scheme
        self.http_host = http_host
        self.http_port = http_port
        self.http_path = http_path
        self.http_query = http_query
        self.http_status = http_status
        self.http_reason = http_reason
        self.http_response_content = http_response_content
        self.http_headers = http_headers or {}

    def __str__(self):
        a = self.msg
        b = ''
        if self.http_scheme:
            b += '%s://' % self.http_scheme
        if self.http_host:
            b += self.http_host
        if self.http_port:
            b += ':%s' % self.http_port
        if self.http_path:
            b += self.http_path
        if self.http_status:
            if b:
                b = '%s %s' % (b, self.http_status)
            else:
                b = str(self.http_status)
        if self.http_reason:
            if b:
                b = '%s %s' % (b, self.http_reason)
            else:
                b = '- %s' % self.http_reason
        if self.http_response_content:
            if len(self.http_response_content) <= 60:
                b += '   %s' % self.http_response_content
            else:
                b += '  [first 60 chars of response] %s' \
                    % self.http_response_content[:60]
        return b and '%s: %s' % (a, b) or a


class TransportError(ClientException):
    """
    The request could not be sent, timed out, or came back with a
    non-success status.

    ``http_query`` is accepted but never rendered by ``__str__``: pre-signed
    query strings carry the request signature.
    """


class UploadError(S3PresignException):
    """
    A multipart upload phase failed.

    :param msg: human readable message
    :param phase: one of ``initiate``, ``upload_part``, ``complete`` or
                  ``abort``
    :param part_number: the part being uploaded, if any
    :param upload_id: the upload id issued by the service, if any
    :param cause: the underlying exception
    """
    phase = None

    def __init__(self, msg, part_number=None, upload_id=None, cause=None):
        super(UploadError, self).__init__(msg)
        self.msg = msg
        self.part_number = part_number
        self.upload_id = upload_id
        self.cause = cause

    @property
    def http_status(self):
        return getattr(self.cause, 'http_status', None)

    def __str__(self):
        details = ['phase=%s' % self.phase]
        if self.upload_id:
            details.append('upload_id=%s' % self.upload_id)
        if self.part_number is not None:
            details.append('part=%d' % self.part_number)
        msg = '%s (%s)' % (self.msg, ', '.join(details))
        if self.cause is not None:
            msg += ': %s' % self.cause
        return msg


class UploadInitiationError(UploadError):
    phase = 'initiate'


class PartUploadError(UploadError):
    phase = 'upload_part'


class CompletionError(UploadError):
    phase = 'complete'


class AbortError(UploadError):
    phase = 'abort'
