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
Upload a file to an S3-compatible object store with a signature version 2
multipart upload, then print a pre-signed GET URL for it.

Options are read from the [upload] section of the config file, if given;
command line options override them. Credentials come from the config file
(access_key, secret_key) or from AWS_ACCESS_KEY_ID and
AWS_SECRET_ACCESS_KEY.
"""

import argparse
import os
import sys
import time

from s3presign.client.multipart import Credential, MultipartUploader
from s3presign.client.source import FileSource
from s3presign.client.transport import HTTPTransport
from s3presign.common.exceptions import ConfigurationError, \
    S3PresignException
from s3presign.common.s3.signer import format_date
from s3presign.common.s3.utils import UploadConfig
from s3presign.common.utils import get_logger, readconf

CONF_SECTION = 'upload'


def header_arg(value):
    name, sep, header_value = value.partition(':')
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(
            'header must look like NAME:VALUE, not %r' % value)
    return name.strip(), header_value.strip()


def load_conf(args, environ=None):
    """
    Merge the config file, the environment and the command line into an
    :class:`UploadConfig`.

    :raises ConfigurationError: if the config file cannot be read or a
                                value is invalid
    """
    if environ is None:
        environ = os.environ
    conf = UploadConfig()
    if args.config:
        try:
            conf.update(readconf(args.config, CONF_SECTION))
        except (IOError, ValueError) as err:
            raise ConfigurationError(str(err))
    if not conf.access_key:
        conf.access_key = environ.get('AWS_ACCESS_KEY_ID', '')
    if not conf.secret_key:
        conf.secret_key = environ.get('AWS_SECRET_ACCESS_KEY', '')
    for key in ('expires_in', 'content_type', 'concurrency', 'part_size'):
        value = getattr(args, key)
        if value is not None:
            conf[key] = value
    if args.verbose:
        conf['log_level'] = 'DEBUG'
    return conf.validate()


def print_progress(part_number, remaining):
    print('part[%d] : bytesToBeUploaded=%d' % (part_number, remaining))


def main(args=None):
    parser = argparse.ArgumentParser(
        description=__doc__,
        formatter_class=argparse.RawTextHelpFormatter)
    parser.add_argument('--config', help='config file with an [%s] section'
                        % CONF_SECTION)
    parser.add_argument('--expires-in', type=int,
                        help='lifetime of the signed URLs in seconds '
                        '(default: 691200)')
    parser.add_argument('--content-type',
                        help='content type of the object '
                        '(default: application/octet-stream)')
    parser.add_argument('--concurrency', type=int,
                        help='parts uploaded at once (default: 1)')
    parser.add_argument('--part-size', type=int,
                        help='part size in bytes (default: 5242880)')
    parser.add_argument('--header', type=header_arg, action='append',
                        default=[], metavar='NAME:VALUE',
                        help='x-amz-* header to send when initiating; '
                        'may be repeated')
    parser.add_argument('--verbose', action='store_true',
                        help='log requests to stderr')
    parser.add_argument('file', help='local file to upload')
    parser.add_argument('url', help='URL of the object to create')
    args = parser.parse_args(args)

    try:
        conf = load_conf(args)
        logger = get_logger(conf, log_route='s3presign-upload',
                            log_to_console=args.verbose)
        uploader = MultipartUploader(
            Credential(conf.access_key, conf.secret_key),
            HTTPTransport(conf.conn_timeout, conf.response_timeout,
                          conf.send_timeout),
            conf, logger=logger)
        expires = int(time.time()) + conf.expires_in
        url = uploader.upload_file(
            args.url, FileSource(args.file), expires,
            content_type=conf.content_type, extra_headers=args.header,
            on_part_started=print_progress)
    except S3PresignException as err:
        print('Error: %s' % err, file=sys.stderr)
        return 1
    print(url)
    print('Expires: %s' % format_date(expires))
    return 0


if __name__ == '__main__':
    sys.exit(main())
