"""
Loading of markup documents into the immutable tagflow document model.
Parsing itself is delegated to the standard expat parser; this module only builds the tree.
"""

from xml.parsers import expat

from tagflow.document import Element, Text, Comment, Attribute
from tagflow.errors import MarkupError


########################################################################################################################################################
#####
#####  TREE BUILDER
#####

class TreeBuilder:
    """
    Collects elements, text and comments reported by expat into a tree of immutable nodes.
    Children are accumulated on a stack of open elements and an Element is created only when its end tag arrives.
    """

    SEPARATOR = ' '             # expat reports namespaced names as "uri local prefix", joined with this separator

    def __init__(self):
        self.root    = None
        self.stack   = []       # open elements: [(name, namespace, prefix, attrs, scope, children)]
        self.scopes  = [()]     # namespace bindings in effect: stack of tuples of (prefix, uri)
        self.pending = []       # prefix mappings declared on the next element to be opened
        self.text    = []       # character data not yet converted to a Text node

    def create_parser(self):
        parser = expat.ParserCreate(namespace_separator = self.SEPARATOR)
        parser.namespace_prefixes = True
        parser.ordered_attributes = True
        parser.buffer_text = True

        parser.StartNamespaceDeclHandler = self.start_namespace
        parser.StartElementHandler       = self.start_element
        parser.EndElementHandler         = self.end_element
        parser.CharacterDataHandler      = self.characters
        parser.CommentHandler            = self.comment
        return parser

    @classmethod
    def _split(cls, name):
        """Split an expat name into (local, namespace, prefix)."""
        parts = name.split(cls.SEPARATOR)
        if len(parts) == 1: return parts[0], None, None
        if len(parts) == 2: return parts[1], parts[0], None
        return parts[1], parts[0], parts[2]

    def _flush_text(self):
        if not self.text: return
        data = ''.join(self.text)
        self.text = []
        if self.stack:
            self.stack[-1][5].append(Text(data))

    def start_namespace(self, prefix, uri):
        self.pending.append((prefix or None, uri or None))

    def start_element(self, name, attrs):
        self._flush_text()

        scope = dict(self.scopes[-1])
        scope.update(self.pending)
        scope = tuple(scope.items())
        self.pending = []
        self.scopes.append(scope)

        attributes = []
        for i in range(0, len(attrs), 2):
            key, namespace, prefix = self._split(attrs[i])
            attributes.append(Attribute(key, attrs[i+1], namespace = namespace, prefix = prefix))

        local, namespace, prefix = self._split(name)
        self.stack.append((local, namespace, prefix, attributes, scope, []))

    def end_element(self, name):
        self._flush_text()
        local, namespace, prefix, attrs, scope, children = self.stack.pop()
        self.scopes.pop()

        element = Element(local, attrs, children, namespace = namespace, prefix = prefix, scope = scope)
        if self.stack:
            self.stack[-1][5].append(element)
        else:
            self.root = element

    def characters(self, data):
        if self.stack: self.text.append(data)

    def comment(self, data):
        if not self.stack: return               # comments outside the root element are dropped
        self._flush_text()
        self.stack[-1][5].append(Comment(data))


########################################################################################################################################################
#####
#####  API
#####

def parse(source, name = None):
    """
    Parse a markup document from a string, bytes or a binary file object and return its root Element.
    Raise MarkupError when the document is not well-formed.
    """
    builder = TreeBuilder()
    parser  = builder.create_parser()
    try:
        if isinstance(source, (str, bytes)):
            parser.Parse(source, True)          # for str, expat ignores the encoding declared in the document
        else:
            parser.ParseFile(source)
    except expat.ExpatError as ex:
        where = f" in '{name}'" if name else ''
        raise MarkupError(f"can't parse markup{where}: {ex}") from ex

    return builder.root


def parse_file(path):
    with open(path, 'rb') as f:
        return parse(f, name = str(path))
