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

import lxml.etree
from copy import deepcopy

from s3presign.common.exceptions import ProtocolError
from s3presign.common.utils import utf8decode

XMLNS_S3 = 'http://s3.amazonaws.com/doc/2006-03-01/'


class XMLSyntaxError(ProtocolError):
    pass


class DocumentInvalid(ProtocolError):
    pass


def cleanup_namespaces(elem):
    def remove_ns(tag, ns):
        if tag.startswith('{%s}' % ns):
            tag = tag[len('{%s}' % ns):]
        return tag

    if not isinstance(elem.tag, str):
        # elem is a comment element.
        return

    # remove s3 namespace
    elem.tag = remove_ns(elem.tag, XMLNS_S3)

    # remove default namespace
    if elem.nsmap and None in elem.nsmap:
        elem.tag = remove_ns(elem.tag, elem.nsmap[None])

    for e in elem.iterchildren():
        cleanup_namespaces(e)


def fromstring(text, root_tag=None, logger=None):
    """
    Parse a response body, stripping the S3 (or default) namespace from
    every tag so callers can look elements up by their bare names.

    :param text: the XML document as bytes
    :param root_tag: if given, the expected name of the root element
    :param logger: optional logger for parser diagnostics
    :raises XMLSyntaxError: if the document does not parse
    :raises DocumentInvalid: if the root element is not ``root_tag``
    """
    try:
        elem = lxml.etree.fromstring(text, parser)
    except (lxml.etree.XMLSyntaxError, ValueError) as e:
        if logger:
            logger.debug(e)
        raise XMLSyntaxError(e)

    cleanup_namespaces(elem)

    if root_tag is not None and elem.tag != root_tag:
        raise DocumentInvalid('Expected root element %s, not %s'
                              % (root_tag, elem.tag))

    return elem


def tostring(tree, use_s3ns=True, xml_declaration=True):
    if use_s3ns:
        nsmap = tree.nsmap.copy()
        nsmap[None] = XMLNS_S3

        root = Element(tree.tag, attrib=tree.attrib, nsmap=nsmap)
        root.text = tree.text
        root.extend(deepcopy(list(tree)))
        tree = root

    return lxml.etree.tostring(tree, xml_declaration=xml_declaration,
                               encoding='UTF-8')


class _Element(lxml.etree.ElementBase):
    """
    Wrapper Element class of lxml.etree.Element that accepts utf-8 encoded
    bytes and integers (part numbers) as text.
    """
    def __init__(self, *args, **kwargs):
        # pylint: disable-msg=E1002
        super(_Element, self).__init__(*args, **kwargs)

    @property
    def text(self):
        return lxml.etree.ElementBase.text.__get__(self)

    @text.setter
    def text(self, value):
        if isinstance(value, int):
            value = str(value)
        lxml.etree.ElementBase.text.__set__(self, utf8decode(value))


parser_lookup = lxml.etree.ElementDefaultClassLookup(element=_Element)
parser = lxml.etree.XMLParser(resolve_entities=False, no_network=True)
parser.set_element_class_lookup(parser_lookup)

Element = parser.makeelement
SubElement = lxml.etree.SubElement
