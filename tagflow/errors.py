"""
Exceptions of tagflow and default renderers of error markup.

Handler failures are never propagated out of template evaluation: they are converted to substitute markup
by the functions below (or their replacements installed in tagflow.config), so that a partially broken
document still renders as well-formed output.
"""

import traceback

from tagflow.document import Element, Attribute, Sequence


class TagflowError(Exception): pass

class ConfigError(TagflowError):
    """Unknown configuration slot, or incorrect TAGFLOW settings."""

class MarkupError(TagflowError):
    """A document could not be parsed."""

class DocumentNotFound(TagflowError):
    """Raised by loaders when asked to load a resource that doesn't exist."""


########################################################################################################################################################
#####
#####  ERROR MARKUP
#####

ERROR_CLASS = 'template-error'      # class attribute of the element that wraps an error message

def frames(ex, limit = None):
    """Lines describing the call stack of an exception `ex`, innermost frame last; at most `limit` innermost frames."""
    tb = traceback.extract_tb(ex.__traceback__)
    if limit: tb = tb[-limit:]
    return [f'{f.filename}:{f.lineno} in {f.name}' for f in tb]

def describe(ex):
    return f'{type(ex).__name__}: {ex}'

def _stack(ex):
    if ex is None: return None
    items = [Element('li', children = [line]) for line in frames(ex)]
    return Element('div', children = [Element('h2', children = [describe(ex)]), Element('ul', children = items)])

def element_error(message, exception = None, element = None):
    """
    Default renderer of an error that occurred while processing an element. Returns a <div class="template-error">
    with the message as a heading, followed by the exception and its stack frames, if an exception was caught.
    """
    return Element('div', [Attribute('class', ERROR_CLASS)], [Element('h1', children = [message]), _stack(exception)])

def attribute_error(message, exception, attr, parent):
    """
    Default renderer of an error that occurred while processing an attribute. Returns a replacement for `attr`:
    an unqualified attribute with the same local name whose value describes the problem.
    """
    value = message
    if exception is not None:
        value += ': ' + describe(exception) + ': ' + '; '.join(frames(exception, limit = 5)) + ' ...'
    return Attribute(attr.key, value)

def document_error(message, exception, name):
    """Default substitute for a document that can't be found or loaded: a complete <html> page with an error."""
    return Element('html', children = [Element('body', children = [element_error(message, exception)])])


def is_error(node):
    """True if `node` is an element produced by the default error renderers."""
    return isinstance(node, Element) and node.attrs.get('class') == ERROR_CLASS

def find_errors(nodes):
    """All error elements found anywhere in a node sequence."""
    return [n for n in Sequence(nodes).descendants() if is_error(n)]
