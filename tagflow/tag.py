"""
Handlers: python functions that process elements and attributes of a template during its evaluation.

- ElementHandler wraps a function   f(body, attrs) -> nodes   that replaces a handled element
  with a (possibly empty) sequence of nodes; `body` is a Sequence of child nodes, `attrs` is Attributes.
- AttributeHandler wraps a function   f(attr) -> attribute(s)   that replaces a handled attribute
  with an Attribute, a list of Attributes, or None (no attribute).

Handlers are found either in the explicit `registry` below, or by dynamic resolution of their qualified
names (see tagflow.resolver).
"""

import inspect

from tagflow.document import Sequence, Attribute


########################################################################################################################################################
#####
#####  HANDLERS
#####

class Handler:
    """Base class for tagged handler values."""

    kind = None         # 'element' or 'attribute'

    def __init__(self, function, name = None):
        self.function = function
        self.name = name or getattr(function, '__qualname__', None) or repr(function)

    def __repr__(self):
        return f'{self.__class__.__name__}({self.name})'

    def __call__(self, *args):
        return self.function(*args)

    def apply(self, *args):
        """
        Invoke the handler and normalize its output. Return a pair (output, fault), where exactly one of them
        is meaningful: `fault` is the exception raised by the handler or during normalization, or None on success.
        """
        try:
            return self.normalize(self.function(*args)), None
        except Exception as ex:
            return None, ex

    def normalize(self, output):
        raise NotImplementedError


class ElementHandler(Handler):

    kind = 'element'

    def normalize(self, output):
        return Sequence(output)


class AttributeHandler(Handler):

    kind = 'attribute'

    def normalize(self, output):
        if output is None: return ()
        if isinstance(output, Attribute): return (output,)
        if isinstance(output, str):
            raise TypeError(f"attribute handler {self.name} returned a string instead of an Attribute")
        attrs = tuple(output)
        for attr in attrs:
            if not isinstance(attr, Attribute):
                raise TypeError(f"attribute handler {self.name} returned {type(attr)} instead of an Attribute")
        return attrs


def element(function):
    """Decorator that marks a function as an element handler."""
    return ElementHandler(function)

def attribute(function):
    """Decorator that marks a function as an attribute handler."""
    return AttributeHandler(function)


########################################################################################################################################################
#####
#####  REGISTRY
#####

class Registry:
    """
    Explicit mapping of qualified names to tagged handlers, populated by the host application at startup:

        @registry.element('site.menu')
        def menu(body, attrs): ...

    A name registered as an element handler is invisible to attribute lookups and vice versa.
    """

    handlers = None         # dict of handlers indexed by qualified names: {name: Handler}

    def __init__(self):
        self.handlers = {}

    def __contains__(self, name):
        return name in self.handlers

    def __len__(self):
        return len(self.handlers)

    def add(self, name, handler):
        """Register a tagged `handler` under a given name; override an existing one if present."""
        if not isinstance(handler, Handler):
            raise TypeError(f"expected an ElementHandler or AttributeHandler under '{name}', got {handler!r}")
        self.handlers[name] = handler
        return handler

    def element(self, name = None):
        def decorator(function):
            handler = function if isinstance(function, ElementHandler) else ElementHandler(function)
            self.add(name or handler.function.__name__, handler)
            return function
        return decorator

    def attribute(self, name = None):
        def decorator(function):
            handler = function if isinstance(function, AttributeHandler) else AttributeHandler(function)
            self.add(name or handler.function.__name__, handler)
            return function
        return decorator

    def add_module(self, module, prefix = None):
        """
        Register all tagged handlers defined as top-level symbols of `module`, under names "prefix.symbol",
        where `prefix` defaults to the module's python path. Symbols starting with "_" are skipped.
        """
        prefix = module.__name__ if prefix is None else prefix
        for symbol, value in inspect.getmembers(module, lambda obj: isinstance(obj, Handler)):
            if symbol[0] == '_': continue
            self.add(f'{prefix}.{symbol}' if prefix else symbol, value)

    def get(self, name, kind = None):
        """Handler registered under `name`, or None; if `kind` is given, a handler of a different kind is not returned."""
        handler = self.handlers.get(name)
        if handler is None or (kind and handler.kind != kind): return None
        return handler

    def remove(self, name):
        self.handlers.pop(name, None)

    def clear(self):
        self.handlers = {}


registry = Registry()
