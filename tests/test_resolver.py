"""
Handler resolution: dynamic lookup by qualified names, signature checks, caching, receivers, explicit registry.
"""

import pytest

from tagflow import resolver, runtime
from tagflow.config import config, NS
from tagflow.document import Element, Attribute, Sequence, Text
from tagflow.errors import ConfigError
from tagflow.tag import registry, ElementHandler, AttributeHandler, element
from tagflow.template import Template

from tests import handlers


#####################################################################################################################################################
#####
#####  DYNAMIC RESOLUTION
#####

def test_resolve_method():
    handler = resolver.resolve('tests.handlers.Widgets.my_element_handler', 'element')
    assert isinstance(handler, ElementHandler)
    assert handler.name == 'tests.handlers.Widgets.my_element_handler'
    assert handler.apply(Sequence(), None) == (Sequence(Text("This test passed!")), None)

def test_resolve_attribute_method():
    handler = resolver.resolve('tests.handlers.Widgets.my_attribute', 'attribute')
    assert isinstance(handler, AttributeHandler)
    assert handler(Attribute('x')) == Attribute('class', 'flibber')

def test_resolve_kinds_are_separate():
    assert resolver.resolve('tests.handlers.Widgets.my_attribute', 'element') is None
    assert resolver.resolve('tests.handlers.Widgets.my_element_handler', 'attribute') is None
    assert resolver.resolve('tests.handlers.not_callable_shape', 'attribute') is None

def test_resolve_never_raises():
    for name in ['', '.', 'nodots', 'no.such.module.func', 'tests.handlers.missing', 'tests.handlers.Widgets.missing',
                 'tests.handlers.Widgets.broken_element_handler', 'tests.handlers.Unconstructible.handler']:
        assert resolver.resolve(name, 'element') is None, name

def test_conforms():
    def two(a, b): pass
    def two_annotated(a, b) -> Sequence: pass
    def returns_int(a, b) -> int: pass
    def varargs(*args): pass
    def defaults(a, b, c = None): pass
    def keyword_only(a, *, b): pass

    assert resolver.conforms(two, 'element')
    assert resolver.conforms(two_annotated, 'element')
    assert resolver.conforms(varargs, 'element')
    assert resolver.conforms(defaults, 'element')
    assert not resolver.conforms(returns_int, 'element')
    assert not resolver.conforms(keyword_only, 'element')
    assert not resolver.conforms(two, 'attribute')
    assert resolver.conforms(two, 'attribute', skip_first = True)

def test_resolutions_are_cached(monkeypatch):
    name = 'tests.handlers.Widgets.my_element_handler'
    assert resolver.resolve(name, 'element') is not None

    calls = []
    monkeypatch.setattr(resolver, 'lookup', lambda *args: calls.append(args))
    assert resolver.resolve(name, 'element') is not None
    assert calls == []

    resolver.clear_cache()
    assert resolver.resolve(name, 'element') is None
    assert calls == [(name, 'element')]

def test_fresh_receiver_outside_session():
    first  = resolver.resolve('tests.handlers.Widgets.counter', 'element')
    second = resolver.resolve('tests.handlers.Widgets.counter', 'element')
    assert first.function.__self__ is not second.function.__self__
    assert first(Sequence(), None) == second(Sequence(), None) == Text('1')

def test_shared_receiver_inside_session():
    with runtime.session() as session:
        first  = resolver.resolve('tests.handlers.Widgets.counter', 'element')
        second = resolver.resolve('tests.handlers.Widgets.counter', 'element')
        assert first.function.__self__ is second.function.__self__
        assert len(session) == 1

        other = resolver.resolve('tests.handlers.Widgets.my_identity', 'element')
        assert other.function.__self__ is not first.function.__self__       # one receiver per method
        assert len(session) == 2

    assert first(Sequence(), None) == Text('1')
    assert second(Sequence(), None) == Text('2')

def test_replacer_as_class_attribute():
    src = f'<div xmlns:f="{NS}" xmlns:u="urn:u"><f:tests.handlers.Widgets.signup><form><label><u:nameLabel/></label></form></f:tests.handlers.Widgets.signup></div>'
    out = Template.parse(src).eval()
    assert str(out[0]) == f'<div xmlns:f="{NS}" xmlns:u="urn:u"><form><label>Name:</label></form></div>'


#####################################################################################################################################################
#####
#####  REGISTRY
#####

def test_registry_decorators():
    @registry.element('site.menu')
    def menu(body, attrs):
        return Element('ul', children = [Element('li', children = [attrs.get('title')])])

    @registry.attribute()
    def secret(attr):
        return Attribute('data-secret', '***')

    assert 'site.menu' in registry and 'secret' in registry
    assert callable(menu)

    src = f'<nav xmlns:f="{NS}"><f:site.menu title="Home"/><p f:secret="x"/></nav>'
    out = Template.parse(src).eval()
    assert out.text == 'Home'
    assert out[0].children[1].attrs.as_dict() == {'data-secret': '***'}

def test_registry_takes_precedence():
    registry.add('tests.handlers.Widgets.my_element_handler', ElementHandler(lambda body, attrs: "registered"))
    src = f'<f:tests.handlers.Widgets.my_element_handler xmlns:f="{NS}"/>'
    assert Template.parse(src).eval().text == 'registered'

def test_registry_kind_mismatch():
    registry.add('both', AttributeHandler(lambda attr: None))
    assert registry.get('both', 'attribute') is not None
    assert registry.get('both', 'element') is None
    assert resolver.find_element_handler(Element('both', namespace = NS)) is None

def test_registry_add_module():
    registry.add_module(handlers, prefix = 'h')
    assert registry.get('h.greet', 'element') is handlers.greet
    assert registry.get('h.upper', 'attribute') is handlers.upper
    assert 'h.Widgets' not in registry

    src = f'<p xmlns:f="{NS}" f:h.upper="abc"><f:h.greet/></p>'
    out = Template.parse(src).eval()[0]
    assert out.attrs.as_dict() == {'upper': 'ABC'}
    assert out.text == 'Hello, world!'

def test_registry_rejects_untagged():
    with pytest.raises(TypeError):
        registry.add('plain', lambda body, attrs: None)

def test_tag_decorators():
    @element
    def hello(body, attrs):
        return "hello"
    assert isinstance(hello, ElementHandler)
    assert hello.apply(Sequence(), None) == (Sequence(Text("hello")), None)


#####################################################################################################################################################
#####
#####  CONFIG
#####

def test_default_slots():
    assert config.find_document('anything') is None
    assert config.find_element_handler is resolver.find_element_handler
    assert config.is_handled_element(Element('x', namespace = NS))
    assert not config.is_handled_element(Element('x'))
    assert config.is_handled_attribute(Attribute('x', namespace = NS), Element('p'))
    assert not config.is_handled_attribute(Attribute('x'), Element('p'))
    assert config.debug("nothing", 1) is None

def test_configure_rejects_unknown_slots():
    with pytest.raises(ConfigError):
        config.configure(find_template = lambda name: None)
    with pytest.raises(ConfigError):
        config.configure(find_document = 'not callable')

def test_override_restores_slots():
    original = config.find_document
    with pytest.raises(KeyError):
        with config.override(find_document = lambda name: None):
            assert config.find_document is not original
            raise KeyError()
    assert config.find_document is original

def test_log_debug(caplog):
    import logging
    from tagflow.config import log_debug

    config.debug = log_debug
    with caplog.at_level(logging.DEBUG, logger = 'tagflow'):
        Template.parse(f'<f:tests.handlers.Widgets.my_element_handler xmlns:f="{NS}"/>').eval()
    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith('eval: ') for m in messages)
    assert any(m.startswith('handle_element: tests.handlers.Widgets.my_element_handler') for m in messages)
