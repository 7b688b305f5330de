#!/usr/bin/env python3
# Copyright (c) 2010-2011 OpenStack, LLC.
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

from setuptools import setup, find_packages

from s3presign import __canonical_version__ as version


name = 's3presign'


setup(
    name=name,
    version=version,
    description='S3 signature v2 multipart uploads with pre-signed URLs',
    license='Apache License (2.0)',
    author='OpenStack, LLC.',
    author_email='openstack-admins@lists.launchpad.net',
    packages=find_packages(exclude=['test', 'test.*', 'bin']),
    python_requires='>=3.7',
    classifiers=[
        'Development Status :: 4 - Beta',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Environment :: Console',
        ],
    install_requires=[
        'eventlet',
        'lxml',
        ],
    extras_require={
        'test': [
            'pytest',
            ],
        },
    scripts=[
        'bin/s3presign-upload',
    ],
    )
