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

import importlib.metadata

# Bumped by hand on release; used when running from a source checkout
# (setup.py imports it before the distribution metadata exists).
__version__ = __canonical_version__ = '1.0.0'

try:
    __version__ = __canonical_version__ = importlib.metadata.distribution(
        's3presign').version
except importlib.metadata.PackageNotFoundError:
    pass
