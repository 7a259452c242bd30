"""
Templates and their evaluation.

A Template wraps a well-formed markup document (or fragment). Elements and attributes satisfying
config.is_handled_element and config.is_handled_attribute are treated as functions over their content
when the template is evaluated: they are replaced with the output of handlers found by config.find_element_handler
and config.find_attribute_handler. Evaluation always builds a new tree; the template itself is never modified.
"""

from types import MappingProxyType

from tagflow.config import config, NS
from tagflow.document import Element, Attributes, Sequence
from tagflow.parser import parse, parse_file
from tagflow.runtime import session


RESERVED_EAGER = 'eager'        # boolean attribute of a dispatched element: evaluate children before calling the handler


#####################################################################################################################################################
#####
#####  TEMPLATE
#####

class Template:
    """
    A parsed document ready for evaluation. Template instances have no mutable state and are thread-safe.

    `bind_ats` is a read-only mapping of slot names to contents of all <bind-at name="..."> elements
    in the tagflow namespace found in the document, precomputed once for use by <surround>.
    """

    root     = None
    bind_ats = None

    def __init__(self, root):
        if not isinstance(root, Element):
            raise TypeError(f"template root must be an Element, got {type(root)}")
        self.root = root

        bind_ats = {}
        for element in root.iter('bind-at', NS):
            name = element.attrs.get('name')
            if name is not None:
                bind_ats[name] = element.children
        self.bind_ats = MappingProxyType(bind_ats)

    @classmethod
    def parse(cls, source, name = None):
        return cls(parse(source, name = name))

    @classmethod
    def load(cls, path):
        return cls(parse_file(path))

    def __repr__(self):
        return f'<Template {self.root.qname} at {id(self):#x}>'

    def eval(self, nodes = None):
        """
        Evaluate a sequence of nodes (the whole document if None) in the context of this template, recursively
        invoking element and attribute handlers to generate dynamic content. Return a new Sequence.
        """
        if nodes is None: nodes = Sequence(self.root)
        config.debug("eval: ", _preview(nodes))

        output = []
        for node in nodes:
            if isinstance(node, Element):
                if self.is_handled_element(node):
                    output.append(self.eval(self.handle_element(node)))
                else:
                    output.append(node.copy(attrs = self.eval_attributes(node.attrs, node), children = self.eval(node.children)))
            else:
                output.append(node)

        return Sequence(output)

    def eval_attributes(self, attrs, parent):
        """
        Evaluate attributes of an element, replacing every handled attribute in place with the output
        of its attribute handler. Unhandled attributes are kept unchanged and in order.
        """
        output = []
        for attr in attrs:
            if config.is_handled_attribute(attr, parent):
                output += self.handle_attribute(attr, parent)
            else:
                output.append(attr)
        return Attributes(output)

    def handle_attribute(self, attr, parent):
        """Find an attribute handler for `attr` and execute it. Return a tuple of replacement attributes."""
        handler = config.find_attribute_handler(attr, parent)
        config.debug("handle_attribute: ", attr.key, " -> ", handler)

        if handler is None:
            return _as_attrs(config.attribute_error("Can't find attribute handler", None, attr, parent))

        output, fault = handler.apply(attr)
        if fault is not None:
            return _as_attrs(config.attribute_error("Unhandled exception in attribute handler", fault, attr, parent))
        return output

    def handle_element(self, element):
        """Find an element handler for `element` and execute it. Return the replacement Sequence, not evaluated yet."""
        handler = self.find_element_handler(element)
        config.debug("handle_element: ", element.name, " -> ", handler)

        if handler is None:
            return Sequence(config.element_error(f"Can't find element handler for '{element.name}'", None, element))

        body = self.eval(element.children) if is_eager(element) else element.children
        output, fault = handler.apply(body, element.attrs)
        if fault is not None:
            return Sequence(config.element_error("Unhandled exception in element handler", fault, element))
        return output

    def find_element_handler(self, element):
        """Built-in handlers are tried first and can't be shadowed by handlers found through config.find_element_handler."""
        from tagflow.builtin import find_builtin
        return find_builtin(element, self) or config.find_element_handler(element)

    def is_handled_element(self, element):
        from tagflow.builtin import find_builtin
        return find_builtin(element, self) is not None or config.is_handled_element(element)


#####################################################################################################################################################
#####
#####  UTILITIES
#####

def is_eager(element):
    attr = element.attrs.find(lambda a: a.key == RESERVED_EAGER)
    return attr is not None and attr.value == 'true'

def _as_attrs(output):
    if output is None: return ()
    if isinstance(output, Attributes): return tuple(output)
    if isinstance(output, (list, tuple)): return tuple(output)
    return (output,)

class _preview:
    """Short text of a node sequence for debug messages, rendered only if the message gets printed."""

    def __init__(self, nodes, size = 10):
        self.nodes = nodes
        self.size = size

    def __str__(self):
        text = Sequence(self.nodes).render()
        return text if len(text) <= self.size else text[:self.size] + " ..."


def as_template(document):
    """Convert the output of a document finder (Template, Element or None) to a Template or None."""
    if document is None or isinstance(document, Template): return document
    return Template(document)

def find_template(name):
    return as_template(config.find_document(name))


#####################################################################################################################################################
#####
#####  ENTRY POINT
#####

def evaluate(name):
    """
    Find and evaluate the named document. This is the main entry point for using templates.
    The evaluation runs in a new session, so handler receivers are shared by all handler calls
    made while evaluating this document (and documents it includes), but not with other evaluations.
    If the document can't be found, the document_error markup is returned instead.
    """
    template = find_template(name)
    if template is None:
        return Sequence(config.document_error(f"Can't find template '{name}'", None, name))
    with session():
        return template.eval()
