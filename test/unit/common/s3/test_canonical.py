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

import unittest
from collections import OrderedDict

from s3presign.common.exceptions import ConfigurationError
from s3presign.common.s3 import canonical


class TestBucket(unittest.TestCase):

    def test_get_bucket(self):
        self.assertEqual(canonical.get_bucket('mybucket.sub.s3.example.com'),
                         'mybucket.sub')
        self.assertEqual(canonical.get_bucket('bucket.s3.amazonaws.com'),
                         'bucket')
        self.assertEqual(canonical.get_bucket('s3.example.com'), '')
        self.assertEqual(canonical.get_bucket('localhost'), '')

    def test_resource_with_bucket(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://mybucket.sub.s3.example.com/photos/cat.jpg'),
            '/mybucket.sub/photos/cat.jpg')

    def test_resource_without_bucket(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/bucket/photos/cat.jpg'),
            '/bucket/photos/cat.jpg')

    def test_port_is_not_part_of_the_host(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'http://bucket.s3.example.com:8080/obj'),
            '/bucket/obj')

    def test_empty_path(self):
        self.assertEqual(canonical.get_canonicalized_resource(
            'https://s3.example.com'), '/')
        self.assertEqual(canonical.get_canonicalized_resource(
            'https://bucket.s3.example.com'), '/bucket/')

    def test_path_is_not_decoded(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/b/a%20b'),
            '/b/a%20b')

    def test_invalid_uri(self):
        for uri in ('', '/no/host', 'bucket/obj', 'http://'):
            with self.assertRaises(ConfigurationError):
                canonical.get_canonicalized_resource(uri)


class TestQuery(unittest.TestCase):

    def test_subresources_and_overrides_sorted(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/b/key?uploadId=abc&partNumber=3'
                '&response-content-type=text%2Fplain'),
            '/b/key?partNumber=3&uploadId=abc'
            '&response-content-type=text/plain')

    def test_overrides_sorted_after_subresources(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/b/key?response-expires=1'
                '&response-content-disposition=inline&versionId=7'),
            '/b/key?versionId=7&response-content-disposition=inline'
            '&response-expires=1')

    def test_unsigned_parameters_dropped(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/b/key?foo=bar&AWSAccessKeyId=a'
                '&Signature=s&Expires=1'),
            '/b/key')

    def test_blank_subresource_is_bare_key(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/b/key?uploads='),
            '/b/key?uploads')
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/b/key?acl'),
            '/b/key?acl')
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/b/key?acl=%20'),
            '/b/key?acl')

    def test_values_decoded_once(self):
        self.assertEqual(
            canonical.get_canonicalized_resource(
                'https://s3.example.com/b/key'
                '?response-content-disposition=a%2520b'),
            '/b/key?response-content-disposition=a%20b')

    def test_repeated_key_newest_first(self):
        subresources, overrides = canonical.canonicalize_query(
            'versionId=1&versionId=2&response-expires=a&response-expires=b')
        self.assertEqual(subresources, OrderedDict([('versionId', '2,1')]))
        self.assertEqual(overrides,
                         OrderedDict([('response-expires', 'b,a')]))

    def test_canonicalize_query_ordering(self):
        subresources, overrides = canonical.canonicalize_query(
            'versions=&uploadId=u&acl=&partNumber=2')
        self.assertEqual(list(subresources),
                         ['acl', 'partNumber', 'uploadId', 'versions'])
        self.assertEqual(overrides, OrderedDict())


class TestAmzHeaders(unittest.TestCase):

    def test_no_amz_headers(self):
        self.assertEqual(
            canonical.create_canonicalized_amz_headers_string(
                {'Content-Type': 'text/plain', 'Date': 'now'}), '')
        self.assertEqual(
            canonical.create_canonicalized_amz_headers_string(None), '')

    def test_selection_and_normalization(self):
        headers = {'X-Amz-Meta-Color': '  blue ',
                   'Content-MD5': 'abc',
                   'x-amz-acl': 'private'}
        self.assertEqual(
            canonical.canonicalize_amz_headers(headers),
            OrderedDict([('x-amz-acl', 'private'),
                         ('x-amz-meta-color', 'blue')]))

    def test_duplicates_folded_in_order_and_sorted(self):
        headers = [('X-Amz-Meta-Tag', 'one'),
                   ('x-amz-date', 'Tue, 27 Mar 2007 21:20:26 +0000'),
                   ('x-amz-meta-tag', 'two')]
        self.assertEqual(
            canonical.create_canonicalized_amz_headers_string(headers),
            'x-amz-date:Tue, 27 Mar 2007 21:20:26 +0000\n'
            'x-amz-meta-tag:one,two\n')

    def test_select_keeps_names_values_and_order(self):
        headers = [('X-Amz-Meta-Tag', ' one '), ('Content-MD5', 'abc'),
                   ('x-amz-acl', 'private'), ('X-Amz-Meta-Tag', 'two')]
        self.assertEqual(canonical.select_amz_headers(headers), [
            ('X-Amz-Meta-Tag', ' one '), ('x-amz-acl', 'private'),
            ('X-Amz-Meta-Tag', 'two')])
        self.assertEqual(canonical.select_amz_headers(None), [])
        self.assertEqual(canonical.select_amz_headers({'Date': 'd'}), [])

    def test_sort_order_is_by_name(self):
        headers = [('x-amz-z', '1'), ('x-amz-a', '2'), ('x-amz-m', '3')]
        self.assertEqual(list(canonical.canonicalize_amz_headers(headers)),
                         ['x-amz-a', 'x-amz-m', 'x-amz-z'])

    def test_has_header(self):
        self.assertTrue(canonical.has_header({'X-Amz-Date': 'd'},
                                             'x-amz-date'))
        self.assertTrue(canonical.has_header([('x-amz-date', 'd')],
                                             'X-AMZ-DATE'))
        self.assertFalse(canonical.has_header({'Date': 'd'}, 'x-amz-date'))
        self.assertFalse(canonical.has_header(None, 'x-amz-date'))


class TestDeterminism(unittest.TestCase):

    def test_same_input_same_output(self):
        uri = ('https://bucket.s3.example.com/key?uploadId=u&partNumber=1'
               '&response-content-type=text%2Fplain')
        headers = [('x-amz-meta-b', '2'), ('x-amz-meta-a', '1'),
                   ('x-amz-meta-b', '3')]
        first = (canonical.get_canonicalized_resource(uri),
                 canonical.create_canonicalized_amz_headers_string(headers))
        for _ in range(5):
            self.assertEqual(
                first,
                (canonical.get_canonicalized_resource(uri),
                 canonical.create_canonicalized_amz_headers_string(
                     list(headers))))


if __name__ == '__main__':
    unittest.main()
