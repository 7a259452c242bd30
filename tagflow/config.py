"""
Global configuration: extension/customization hooks for template processing.

Every hook is a *slot* of the `config` object holding a plain function, which can be replaced at runtime:

    from tagflow.config import config
    config.find_document = my_finder

Slots are process-wide and meant to be configured once at startup; they are read concurrently during evaluation.
"""

import logging
from contextlib import contextmanager

from tagflow.errors import ConfigError


NS = 'urn:tagflow:1'        # namespace of tagflow artifacts: built-in tags, reserved attributes, dispatched elements

log = logging.getLogger('tagflow')


#####################################################################################################################################################
#####
#####  DEFAULTS
#####

def is_handled_element(element):
    """An element is handled if it is in the NS namespace."""
    return element.namespace == NS

def is_handled_attribute(attr, parent):
    """An attribute is handled if it is in the NS namespace."""
    return attr.namespace == NS

def find_nothing(name):
    """Default document finder: no documents available until the host installs its own finder."""
    return None

def no_debug(*msg):
    """Debug logging is disabled by default."""

def log_debug(*msg):
    """A `debug` slot value that sends messages to the standard 'tagflow' logger."""
    if log.isEnabledFor(logging.DEBUG):
        log.debug(''.join(map(str, msg)))


#####################################################################################################################################################
#####
#####  CONFIG
#####

class TemplateConfig:
    """
    Container of replaceable hooks (slots):

    is_handled_element(element)             -- True if `element` should be dispatched to an element handler
    is_handled_attribute(attr, parent)      -- True if `attr` of `parent` should be dispatched to an attribute handler
    find_element_handler(element)           -- ElementHandler for `element`, or None
    find_attribute_handler(attr, parent)    -- AttributeHandler for `attr`, or None
    find_document(name)                     -- Template (or root Element) of a named document, or None
    document_error(message, exception, name)            -- substitute Element for a missing/broken document
    element_error(message, exception, element)          -- substitute Element for a failed element
    attribute_error(message, exception, attr, parent)   -- substitute Attribute(s) for a failed attribute
    debug(*msg)                             -- diagnostic hook, no-op by default
    """

    SLOTS = ('is_handled_element', 'is_handled_attribute', 'find_element_handler', 'find_attribute_handler',
             'find_document', 'document_error', 'element_error', 'attribute_error', 'debug')

    def __getattr__(self, name):
        # slots are initialized with defaults on first use
        if name not in self.SLOTS: raise AttributeError(name)
        for slot, value in self.defaults().items():
            if slot not in self.__dict__: setattr(self, slot, value)
        return self.__dict__[name]

    @staticmethod
    def defaults():
        from tagflow import errors, resolver
        return dict(
            is_handled_element      = is_handled_element,
            is_handled_attribute    = is_handled_attribute,
            find_element_handler    = resolver.find_element_handler,
            find_attribute_handler  = resolver.find_attribute_handler,
            find_document           = find_nothing,
            document_error          = errors.document_error,
            element_error           = errors.element_error,
            attribute_error         = errors.attribute_error,
            debug                   = no_debug,
        )

    def reset(self):
        """Restore default values of all slots."""
        for name, value in self.defaults().items():
            setattr(self, name, value)

    def configure(self, **slots):
        """Assign new values to a number of slots at once. Unknown slot names raise ConfigError."""
        unknown = set(slots) - set(self.SLOTS)
        if unknown: raise ConfigError(f"unknown configuration slot(s): {', '.join(sorted(unknown))}")
        for name, value in slots.items():
            if not callable(value): raise ConfigError(f"configuration slot '{name}' must be callable, got {value!r}")
            setattr(self, name, value)

    def snapshot(self):
        return {name: getattr(self, name) for name in self.SLOTS}

    @contextmanager
    def override(self, **slots):
        """Temporarily replace some slots; previous values are restored on exit, also on error."""
        saved = self.snapshot()
        try:
            self.configure(**slots)
            yield self
        finally:
            for name, value in saved.items():
                setattr(self, name, value)


config = TemplateConfig()
