"""
Resolution of qualified handler names to executable handlers.

A name of the form "package.module.Class.method" or "package.module.function" is split on its last dot
into a *container* (module or class) and a *member*. The container is imported dynamically, the member is
looked up and its signature is checked against the expected handler shape. Successful resolutions are
cached by name, so repeated dispatch avoids the cost of dynamic lookup.

Methods need a receiver: an instance of their class, created with a no-argument constructor.
Inside an evaluation session (see tagflow.runtime) the same receiver is reused for all calls of a given method,
so handlers can keep state during one evaluation; outside a session a fresh receiver is created on every call.
"""

import inspect
from collections.abc import Iterable
from importlib import import_module

from django.utils.module_loading import import_string

from tagflow.config import config
from tagflow.document import Node, Attribute
from tagflow.runtime import current_session
from tagflow.tag import Handler, ElementHandler, AttributeHandler, registry


HANDLER_CLASSES = {cls.kind: cls for cls in (ElementHandler, AttributeHandler)}

ARITY   = {'element': 2, 'attribute': 1}                # no. of positional arguments passed to a handler, receiver excluded
RETURNS = {'element': (Node, Iterable), 'attribute': (Attribute, Iterable)}     # acceptable return annotations

_cache = {}     # successful resolutions: {(name, kind): Resolution}; inserts are idempotent, no locking needed


#####################################################################################################################################################
#####
#####  RESOLUTION
#####

class Resolution:
    """
    Result of a successful dynamic lookup of a handler. Stateless and shareable between threads;
    bind() produces an executable Handler, with a receiver appropriate for the current session.
    """

    name     = None         # qualified name as written in a template
    kind     = None         # 'element' or 'attribute'
    member   = None         # name of the function/method inside its container
    function = None         # the underlying function; together with `owner` identifies the receiver in a session
    owner    = None         # class to be instantiated as a receiver, or None if `function` needs no receiver

    def __init__(self, name, kind, member, function, owner = None):
        self.name = name
        self.kind = kind
        self.member = member
        self.function = function
        self.owner = owner

    def __repr__(self):
        return f'Resolution({self.name!r}, {self.kind})'

    def receiver(self):
        session = current_session()
        if session is None:
            return self.owner()
        return session.receiver((self.owner, self.function), self.owner)

    def bind(self):
        if isinstance(self.function, Handler):
            return self.function
        if self.owner is None:
            target = self.function
        else:
            target = self.function.__get__(self.receiver(), self.owner)
        return HANDLER_CLASSES[self.kind](target, self.name)


def conforms(function, kind, skip_first = False):
    """
    Check if `function` can serve as a handler of a given kind: it must accept the right number
    of positional arguments, and its return annotation (if any) must be compatible with the handler's output.
    """
    try:
        sig = inspect.signature(function)
    except (TypeError, ValueError):
        return False

    params = list(sig.parameters.values())
    if skip_first:
        if not params or params[0].kind not in (params[0].POSITIONAL_ONLY, params[0].POSITIONAL_OR_KEYWORD):
            return False
        params = params[1:]
    try:
        sig.replace(parameters = params).bind(*[None] * ARITY[kind])
    except TypeError:
        return False

    ret = sig.return_annotation
    if ret is sig.empty: return True
    if ret is None or ret is type(None) or ret == 'None': return False
    if isinstance(ret, type): return issubclass(ret, RETURNS[kind])
    return True


def _import(path):
    """Import a module or a class (module attribute) identified by a dotted `path`."""
    try:
        return import_module(path)
    except ImportError:
        return import_string(path)


def lookup(name, kind):
    """Dynamic lookup of a handler by its qualified `name`. Return a Resolution, or None if not found or not conforming."""

    dot = name.rfind('.')
    if dot <= 0: return None
    path, member = name[:dot], name[dot+1:]

    container = _import(path)
    raw = inspect.getattr_static(container, member)

    if isinstance(raw, Handler):
        if raw.kind != kind: return None
        return Resolution(name, kind, member, raw)

    if inspect.isclass(container):
        if isinstance(raw, staticmethod):
            function, owner, bound = raw.__func__, None, False
        elif isinstance(raw, classmethod):
            function, owner, bound = getattr(container, member), None, False
        elif inspect.isfunction(raw):
            function, owner, bound = raw, container, True
        else:
            return None
    elif callable(raw):
        function, owner, bound = raw, None, False
    else:
        return None

    if not conforms(function, kind, skip_first = bound):
        config.debug("lookup: '", name, "' doesn't conform to the ", kind, " handler signature")
        return None

    return Resolution(name, kind, member, function, owner)


def resolve(name, kind):
    """
    Find an executable handler of a given kind by dynamic resolution of its qualified `name`.
    Never raises: any failure (import error, missing member, wrong signature, failing constructor) yields None.
    """
    try:
        resolution = _cache.get((name, kind))
        if resolution is None:
            resolution = lookup(name, kind)
            if resolution is None: return None
            resolution = _cache.setdefault((name, kind), resolution)
        return resolution.bind()
    except Exception as ex:
        config.debug("resolve: '", name, "' failed: ", repr(ex))
        return None

def clear_cache():
    _cache.clear()


#####################################################################################################################################################
#####
#####  DEFAULT FINDERS
#####

def find_handler(name, kind):
    """Explicitly registered handlers take precedence over dynamically resolved ones."""
    return registry.get(name, kind) or resolve(name, kind)

def find_element_handler(element):
    """
    The local name of an element is presumed to be a qualified name of an element handler, e.g.,
    <t:myapp.widgets.Menu.render/> indicates the method "render" of class "Menu" in module "myapp.widgets".
    """
    return find_handler(element.name, ElementHandler.kind)

def find_attribute_handler(attr, parent):
    """The local name of an attribute is presumed to be a qualified name of an attribute handler."""
    return find_handler(attr.key, AttributeHandler.kind)
