"""
Built-in element handlers: control structures reserved in the tagflow namespace.
They are checked before any handler found through configuration, so they can't be shadowed.

    <t:ignore>...</t:ignore>                 -- body is removed
    <t:children>...</t:children>             -- body is kept, the element itself is dropped
    <t:include name="doc"/>                  -- replaced with the evaluated document "doc"
    <t:surround with="layout">               -- replaced with the evaluated document "layout", whose <t:bind name="X"/>
        <t:bind-at name="X">...</t:bind-at>     elements are replaced with contents of the corresponding <t:bind-at name="X">
    </t:surround>
"""

from functools import partial

from tagflow.config import config, NS
from tagflow.document import EMPTY
from tagflow.runtime import bindings, current_bindings
from tagflow.tag import ElementHandler


#####################################################################################################################################################
#####
#####  CONTROL HANDLERS
#####

def ignore(body, attrs):
    """Body of this element is removed during evaluation."""
    return EMPTY

def children(body, attrs):
    """
    Body of this element is returned during evaluation and is subject to further processing.
    Useful as a container for a sequence of nodes when a surrounding context requires a single element.
    """
    return body

def include(body, attrs):
    """
    Insert one document inside another; the document to be inserted is identified by the "name" attribute,
    e.g. <t:include name="header.xml"/>. The name must be understood by config.find_document.
    """
    from tagflow.template import find_template

    name = attrs.get('name')
    if name is None:
        return included_not_found("Missing 'name' attribute on 'include' element")

    template = find_template(name)
    if template is None:
        return included_not_found(f"Can't find template '{name}'")
    return template.eval()

def bind(body, attrs):
    """Replace a <bind> element with the content of a corresponding <bind-at> element of the surrounded document."""
    name  = attrs.get('name')
    table = current_bindings()
    if name is None or table is None:
        return EMPTY
    return table.get(name, EMPTY)

def bind_at(body, attrs):
    """<bind-at> elements are consumed by <surround>; evaluated in any other place they produce nothing."""
    return EMPTY

def surround(body, attrs, template):
    """
    Load a layout document and insert content of the calling `template` inside of it,
    at places defined by <bind> elements. The layout is identified by the "with" (or "name") attribute.
    """
    from tagflow.template import find_template

    attr = attrs.find(lambda a: a.key in ('with', 'name') and a.namespace is None)
    if attr is None:
        return included_not_found("Missing 'with' or 'name' attribute on 'surround' element")

    layout = find_template(attr.value)
    if layout is None:
        return included_not_found(f"Can't find template '{attr.value}'")

    with bindings(template.bind_ats):
        return layout.eval()


def included_not_found(message):
    return config.element_error(message, None, None)


#####################################################################################################################################################
#####
#####  LOOKUP
#####

BUILTIN_TAGS = {
    'ignore':   ElementHandler(ignore),
    'children': ElementHandler(children),
    'include':  ElementHandler(include),
    'bind':     ElementHandler(bind),
    'bind-at':  ElementHandler(bind_at),
}

def find_builtin(element, template):
    """Built-in handler for `element` evaluated within `template`, or None if the element is not a built-in tag."""
    if element.namespace != NS: return None
    if element.name == 'surround':
        return ElementHandler(partial(surround, template = template), 'surround')
    return BUILTIN_TAGS.get(element.name)
