"""
Handlers used by the tests. They are referenced from test documents by their qualified names,
e.g. <f:tests.handlers.Widgets.outer/>, and resolved dynamically.
"""

import itertools

from tagflow.document import Element, Text, Attribute, EMPTY
from tagflow.replace import replacer, Match
from tagflow.tag import element, attribute


_serials = itertools.count(1)       # every Widgets instance gets a unique serial number


class Widgets:

    def __init__(self):
        self.serial = next(_serials)
        self.calls  = 0

    def my_attribute(self, attr):
        return Attribute('class', 'flibber')

    def two_attributes(self, attr):
        return [Attribute('data-a', '1'), Attribute('data-b', attr.value)]

    def drop_attribute(self, attr):
        return None

    def my_element_handler(self, body, attrs):
        return Text("This test passed!")

    def my_identity(self, body, attrs):
        return Text(f'widget-{self.serial}')

    def counter(self, body, attrs):
        self.calls += 1
        return Text(str(self.calls))

    def inner(self, body, attrs):
        return EMPTY

    def outer(self, body, attrs):
        texts = [node.text for node in body]
        if not texts: return Text("I saw nothing!")
        return Text("I saw " + ", ".join(texts))

    def wrap(self, body, attrs):
        """Output contains another handled element, which must be evaluated, too."""
        ns = 'urn:tagflow:1'
        return Element('section', children = [Element('tests.handlers.Widgets.my_element_handler', namespace = ns, prefix = 'f')])

    def failing(self, body, attrs):
        raise ValueError("handler failure")

    def failing_attribute(self, attr):
        raise KeyError('missing')

    def bad_output(self, body, attrs):
        return 42

    # this has the right params, but wrong return type
    def broken_element_handler(self, body, attrs) -> None:
        pass

    def wrong_arity(self, body):
        return body

    def exclaim(self, body, attrs):
        return itertools.chain(body, ['!'])

    def deep_attribute(self, attr):
        return _descend(8)

    @staticmethod
    def shout(body, attrs):
        return body.text.upper()

    signup = replacer((Match('nameLabel'), Text("Name:")))


class Unconstructible:

    def __init__(self, required):
        self.required = required

    def handler(self, body, attrs):
        return Text("never")


def module_function(body, attrs):
    return ['from', ' ', Text('function')]

def not_callable_shape(attr, extra, more):
    return attr

NOT_A_FUNCTION = 'just a string'


def _descend(depth):
    if depth == 0: raise LookupError("bottom of the stack")
    return _descend(depth - 1)


class Named:
    """Its handler method is inherited by subclasses; each subclass needs its own receiver."""

    def tag(self, body, attrs):
        return Text(type(self).__name__)

class First(Named): pass
class Second(Named): pass


def mapped(body, attrs):
    return map(str.upper, ['x', 'y'])


@element
def greet(body, attrs):
    return f"Hello, {attrs.get('who', 'world')}!"

@attribute
def upper(attr):
    return Attribute(attr.key.rsplit('.', 1)[-1], attr.value.upper())
