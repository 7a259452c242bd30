"""
Document Object Model of tagflow templates.

A document is an immutable tree of nodes:
- Element   - tag name + namespace + ordered attributes + ordered children
- Text      - a leaf with character data (CDATA sections are loaded as Text, too)
- Comment   - a leaf with the contents of an XML comment

Nodes are never modified after creation. Every transformation (evaluation of handlers, replace(), ...)
builds new nodes, sharing unchanged subtrees with the original tree. This makes a parsed Template safe
for concurrent reuse by many evaluations.
"""

from collections.abc import Iterable
from xml.sax.saxutils import escape, quoteattr


########################################################################################################################################################
#####
#####  ATTRIBUTES
#####

class Attribute:
    """A single attribute of an element: local `key`, string `value`, optional namespace URI and prefix."""

    __slots__ = ('key', 'value', 'namespace', 'prefix')

    def __init__(self, key, value = '', namespace = None, prefix = None):
        object.__setattr__(self, 'key', key)
        object.__setattr__(self, 'value', '' if value is None else str(value))
        object.__setattr__(self, 'namespace', namespace or None)
        object.__setattr__(self, 'prefix', prefix or None)

    def __setattr__(self, name, value):
        raise AttributeError(f"attributes are immutable, can't assign '{name}'")

    @property
    def qname(self):
        """Key as written in markup, with the prefix if present."""
        return f'{self.prefix}:{self.key}' if self.prefix else self.key

    def copy(self, **changes):
        params = dict(key = self.key, value = self.value, namespace = self.namespace, prefix = self.prefix)
        params.update(changes)
        return Attribute(**params)

    def _eq_key(self):
        return self.namespace, self.key, self.value

    def __eq__(self, other):
        return isinstance(other, Attribute) and self._eq_key() == other._eq_key()

    def __hash__(self):
        return hash(self._eq_key())

    def __repr__(self):
        return f'Attribute({self.qname!r}, {self.value!r})'

    def render(self):
        return f'{self.qname}={quoteattr(self.value)}'


class Attributes:
    """
    Ordered, immutable list of Attribute objects of an element. This is what element handlers receive
    as their 2nd argument. Lookup by key with get() matches *unqualified* attributes by default,
    which is how reserved attributes like `name`, `with` or `eager` are written.
    """

    __slots__ = ('items',)

    def __init__(self, items = ()):
        items = tuple(items)
        for attr in items:
            if not isinstance(attr, Attribute):
                raise TypeError(f"found {type(attr)} instead of an Attribute on an attribute list")
        object.__setattr__(self, 'items', items)

    def __setattr__(self, name, value):
        raise AttributeError(f"attribute lists are immutable, can't assign '{name}'")

    def __bool__(self):             return bool(self.items)
    def __len__(self):              return len(self.items)
    def __iter__(self):             return iter(self.items)
    def __getitem__(self, pos):
        if isinstance(pos, slice):
            return Attributes(self.items[pos])
        return self.items[pos]

    def __eq__(self, other):
        if isinstance(other, Attributes): return self.items == other.items
        if isinstance(other, (list, tuple)): return self.items == tuple(other)
        return NotImplemented

    def __hash__(self):
        return hash(self.items)

    def __add__(self, other):
        return Attributes(self.items + tuple(other))

    def __repr__(self):
        return f'Attributes({list(self.items)!r})'

    def find(self, predicate):
        """Return the first attribute satisfying `predicate(attr)`, or None."""
        for attr in self.items:
            if predicate(attr): return attr
        return None

    def get(self, key, default = None, namespace = None):
        """Value of the attribute with a given `key` and `namespace` (None = no namespace), or `default`."""
        attr = self.find(lambda a: a.key == key and a.namespace == namespace)
        return default if attr is None else attr.value

    def replace(self, pos, attrs):
        """New list where the attribute at `pos` is replaced with a (possibly empty) sequence of `attrs`."""
        return Attributes(self.items[:pos] + tuple(attrs) + self.items[pos+1:])

    def as_dict(self):
        """{qname: value} of all attributes, in document order."""
        return {attr.qname: attr.value for attr in self.items}


########################################################################################################################################################
#####
#####  SEQUENCE OF NODES
#####

class Sequence:
    """
    Immutable list of nodes that comprise the children of an element, an input/output of a handler,
    or a result of evaluation. Nested lists/sequences are flattened and None's dropped during construction;
    plain strings are converted to Text nodes.
    """

    __slots__ = ('nodes',)

    def __init__(self, *nodes, _strict = True):
        object.__setattr__(self, 'nodes', tuple(self._flatten(nodes)) if _strict else tuple(nodes))

    def __setattr__(self, name, value):
        raise AttributeError(f"sequences are immutable, can't assign '{name}'")

    def __bool__(self):             return bool(self.nodes)
    def __len__(self):              return len(self.nodes)
    def __iter__(self):             return iter(self.nodes)
    def __getitem__(self, pos):
        if isinstance(pos, slice):
            return Sequence(*self.nodes[pos], _strict = False)
        return self.nodes[pos]

    def __add__(self, other):
        return Sequence(self, other)

    def __eq__(self, other):
        if isinstance(other, Sequence): return self.nodes == other.nodes
        return NotImplemented

    def __hash__(self):
        return hash(self.nodes)

    def __repr__(self):
        return f'Sequence({", ".join(map(repr, self.nodes))})'

    @staticmethod
    def _flatten(nodes):
        """Flatten nested iterables of nodes (lists, generators, map objects, ...) into the top-level list; drop None's."""
        result = []
        for n in nodes:
            if n is None: continue
            if isinstance(n, Node):
                result.append(n)
            elif isinstance(n, str):
                result.append(Text(n))
            elif isinstance(n, Iterable):
                result += Sequence._flatten(n)
            else:
                raise TypeError(f"found {type(n)} instead of a Node as an element of a document")
        return result

    @property
    def text(self):
        """Concatenated character data of all nodes, recursively."""
        return ''.join(node.text for node in self.nodes)

    def elements(self):
        """Top-level Element nodes of this sequence."""
        return [n for n in self.nodes if isinstance(n, Element)]

    def descendants(self):
        """All nodes of this sequence and their descendants, in document order."""
        for node in self.nodes:
            yield node
            if isinstance(node, Element):
                yield from node.children.descendants()

    def render(self, scope = ()):
        return ''.join(node.render(scope) for node in self.nodes)


########################################################################################################################################################
#####
#####  NODES
#####

class Node:
    """Base class for all nodes of a document. Nodes are immutable."""

    __slots__ = ()

    def __setattr__(self, name, value):
        raise AttributeError(f"document nodes are immutable, can't assign '{name}'")

    text = ''

    def render(self, scope = ()):
        raise NotImplementedError

    def __str__(self):
        return self.render()


class Text(Node):
    """A leaf node containing character data."""

    __slots__ = ('data',)

    def __init__(self, data = ''):
        object.__setattr__(self, 'data', str(data))

    @property
    def text(self):
        return self.data

    def __eq__(self, other):
        return isinstance(other, Text) and type(other) is type(self) and self.data == other.data

    def __hash__(self):
        return hash((Text, self.data))

    def __repr__(self):
        return f'Text({self.data!r})'

    def render(self, scope = ()):
        return escape(self.data)


class Comment(Text):
    """An XML comment. Carries no text content for the purpose of Sequence.text."""

    __slots__ = ()

    @property
    def text(self):
        return ''

    def __hash__(self):
        return hash((Comment, self.data))

    def __repr__(self):
        return f'Comment({self.data!r})'

    def render(self, scope = ()):
        return f'<!--{self.data}-->'


class Element(Node):
    """
    An element node. `scope` is a tuple of (prefix, uri) namespace bindings in effect at this element,
    as declared in the source document (prefix=None for the default namespace); it is used during rendering
    to output xmlns declarations, but does not take part in structural comparison of elements.
    """

    __slots__ = ('name', 'namespace', 'prefix', 'attrs', 'children', 'scope')

    def __init__(self, name, attrs = (), children = (), namespace = None, prefix = None, scope = ()):
        object.__setattr__(self, 'name', name)                      # local name of the tag
        object.__setattr__(self, 'namespace', namespace or None)
        object.__setattr__(self, 'prefix', prefix or None)
        object.__setattr__(self, 'attrs', attrs if isinstance(attrs, Attributes) else Attributes(attrs))
        object.__setattr__(self, 'children', children if isinstance(children, Sequence) else Sequence(children))
        object.__setattr__(self, 'scope', tuple(scope))

    @property
    def qname(self):
        return f'{self.prefix}:{self.name}' if self.prefix else self.name

    @property
    def text(self):
        return self.children.text

    def copy(self, **changes):
        """New Element with some of the fields replaced; unchanged fields are shared with self."""
        params = dict(name = self.name, attrs = self.attrs, children = self.children,
                      namespace = self.namespace, prefix = self.prefix, scope = self.scope)
        params.update(changes)
        return Element(**params)

    def _eq_key(self):
        return self.namespace, self.name, self.attrs, self.children

    def __eq__(self, other):
        return isinstance(other, Element) and self._eq_key() == other._eq_key()

    def __hash__(self):
        return hash(self._eq_key())

    def __repr__(self):
        return f'<Element {self.qname} at {id(self):#x}>'

    def __iter__(self):
        return iter(self.children)

    def iter(self, name = None, namespace = None):
        """Yield self and all descendant elements, optionally filtered by local `name` and `namespace`."""
        nodes = [self] + list(self.children.descendants())
        for node in nodes:
            if not isinstance(node, Element): continue
            if name is not None and node.name != name: continue
            if namespace is not None and node.namespace != namespace: continue
            yield node

    def render(self, scope = ()):

        # namespace declarations needed by this element that are not in effect already in the enclosing element
        outer  = dict(scope)
        inner  = dict(outer)
        decls  = []
        wanted = list(self.scope)
        wanted.append((self.prefix, self.namespace))
        wanted += [(a.prefix, a.namespace) for a in self.attrs if a.namespace and a.prefix]

        for prefix, uri in wanted:
            if prefix is None and uri is None:
                if inner.get(None): uri = ''            # un-declare an inherited default namespace
                else: continue
            if inner.get(prefix, '') == (uri or ''): continue
            inner[prefix] = uri
            decls.append(f'xmlns:{prefix}={quoteattr(uri)}' if prefix else f'xmlns={quoteattr(uri)}')

        tag   = ' '.join([self.qname] + [a.render() for a in self.attrs] + decls)
        scope = tuple(inner.items())

        if not self.children:
            return f'<{tag}/>'
        return f'<{tag}>' + self.children.render(scope) + f'</{self.qname}>'


########################################################################################################################################################
#####
#####  UTILITIES
#####

def render(nodes):
    """Serialize a node or a sequence of nodes to an XML string."""
    if isinstance(nodes, Node):
        return nodes.render()
    return Sequence(nodes).render()

EMPTY = Sequence()
