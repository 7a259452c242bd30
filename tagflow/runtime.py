"""
Dynamic context of a particular evaluation:

- session   - cache of receiver instances of handler methods, alive during a single top-level evaluate() call,
              so that stateful handlers can share state across multiple invocations within one evaluation;
- bindings  - the Bind-At Table: {slot name: content} collected from a document that called <surround>,
              visible to <bind> elements of the surrounding document.

Both are kept in context variables, which makes them local to a thread (and to an asyncio task), and are entered
with context managers that restore the previous value on exit, including exit by exception.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType


_session  = ContextVar('tagflow_session', default = None)
_bindings = ContextVar('tagflow_bindings', default = None)


#####################################################################################################################################################
#####
#####  SESSION
#####

class Session:
    """Receivers of handler methods created during one evaluation, indexed by the receiver class and the underlying function."""

    receivers = None        # {(class, function): instance}

    def __init__(self):
        self.receivers = {}

    def __len__(self):
        return len(self.receivers)

    def receiver(self, key, factory):
        """Return the receiver cached under `key`, or create it with factory() and cache."""
        instance = self.receivers.get(key)
        if instance is None:
            instance = self.receivers.setdefault(key, factory())
        return instance


def current_session():
    """Session of the ongoing evaluation, or None if called outside of any session."""
    return _session.get()

@contextmanager
def session(new = None):
    """Run the enclosed code within a new evaluation session (or a given one)."""
    token = _session.set(new if new is not None else Session())
    try:
        yield _session.get()
    finally:
        _session.reset(token)


#####################################################################################################################################################
#####
#####  BIND-AT TABLE
#####

def current_bindings():
    """The active Bind-At Table as a read-only mapping, or None if no <surround> is being evaluated."""
    return _bindings.get()

@contextmanager
def bindings(table):
    """Make `table` the active Bind-At Table within the enclosed code; nested calls form a stack."""
    token = _bindings.set(MappingProxyType(dict(table)))
    try:
        yield _bindings.get()
    finally:
        _bindings.reset(token)
