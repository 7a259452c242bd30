"""
Parsing of markup into the document model and rendering back.
"""

import io

import pytest

from tagflow.document import Element, Text, Comment, render
from tagflow.errors import MarkupError
from tagflow.parser import parse, parse_file


def test_structure():
    root = parse('<div id="main"><p>a<b>b</b>c</p><!-- note --></div>')
    assert root.name == 'div' and root.namespace is None
    assert root.attrs.get('id') == 'main'

    p, comment = root.children
    assert p.children[0] == Text('a')
    assert p.children[1] == Element('b', children = ['b'])
    assert comment == Comment(' note ')

def test_cdata_is_text():
    root = parse('<p>x<![CDATA[ <not> & markup ]]>y</p>')
    assert root.text == 'x <not> & markup y'
    assert render(root) == '<p>x &lt;not&gt; &amp; markup y</p>'

def test_namespaces_and_prefixes():
    root = parse('<t:a xmlns:t="urn:t" xmlns="urn:d"><b t:k="1" k="2"/></t:a>')
    assert (root.name, root.namespace, root.prefix) == ('a', 'urn:t', 't')
    assert set(root.scope) == {('t', 'urn:t'), (None, 'urn:d')}

    b = root.children[0]
    assert (b.name, b.namespace, b.prefix) == ('b', 'urn:d', None)
    k1, k2 = b.attrs
    assert (k1.key, k1.namespace, k1.prefix, k1.value) == ('k', 'urn:t', 't', '1')
    assert (k2.key, k2.namespace, k2.prefix, k2.value) == ('k', None, None, '2')

def test_attribute_order_is_kept():
    root = parse('<p z="1" a="2" m="3"/>')
    assert [a.key for a in root.attrs] == ['z', 'a', 'm']

@pytest.mark.parametrize('src', [
    '<a href="http://www.yahoo.com">A simple Link</a>',
    '<html xmlns="urn:h"><body><p class="c">x</p></body></html>',
    '<t:a xmlns:t="urn:t"><t:b t:k="v"/><c/></t:a>',
    '<a xmlns="urn:h"><b xmlns=""><c/></b></a>',
])
def test_round_trip(src):
    assert render(parse(src)) == src

def test_sources():
    src = '<p>zażółć</p>'
    assert parse(src).text == 'zażółć'
    assert parse(src.encode('utf-8')).text == 'zażółć'
    assert parse(io.BytesIO(src.encode('utf-8'))).text == 'zażółć'

def test_parse_file(tmp_path):
    path = tmp_path / 'doc.xml'
    path.write_text('<?xml version="1.0"?>\n<!-- top --><doc>ok</doc>\n', encoding = 'utf-8')
    assert parse_file(path) == Element('doc', children = ['ok'])

@pytest.mark.parametrize('src', ['<a>', '<a></b>', '', 'text', '<a><b></a>', '<x:a/>'])
def test_malformed(src):
    with pytest.raises(MarkupError):
        parse(src, name = 'broken.xml')

def test_malformed_message():
    with pytest.raises(MarkupError, match = "can't parse markup in 'broken.xml'"):
        parse('<a>', name = 'broken.xml')

def test_declared_encoding_of_decoded_text():
    src = '<?xml version="1.0" encoding="iso-8859-1"?><a>é</a>'
    assert parse(src).text == 'é'
    assert parse(src.encode('iso-8859-1')).text == 'é'
