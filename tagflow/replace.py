"""
Convenience functions for element handlers that substitute nodes of their body, e.g.:

    @registry.element('myapp.form')
    def form(body, attrs):
        return replace(body,
            (Match('nameLabel', prefix = 'u'), Text("Name:")),
            (Match('nameInput', prefix = 'u'), lambda e: Element('input', [Attribute('name', 'name')] + list(e.attrs))),
        )

A rule is either a function  f(node) -> replacement or None  (None = node not matched), or a pair
(pattern, replacement), where `pattern` is a predicate on nodes (a Match object or any function) and
`replacement` is either a function of the matched node or a constant node/sequence; a matched node whose
replacement is None is removed.
Rules are tried in order, the first matching one wins. Nodes are matched at any depth; replacement output
is not matched again (single pass). The tagflow configuration is not consulted at all.
"""

from tagflow.document import Element, Sequence, EMPTY
from tagflow.tag import ElementHandler


#####################################################################################################################################################
#####
#####  PATTERNS
#####

ANY = object()          # wildcard for Match fields


class Match:
    """
    Structural pattern for elements. Every field left as ANY matches anything;
    `attrs` is a dict of {key: value} of unqualified attributes that must be present (value=ANY: just present).
    """

    def __init__(self, name = ANY, prefix = ANY, namespace = ANY, attrs = None):
        self.name = name
        self.prefix = prefix
        self.namespace = namespace
        self.attrs = attrs or {}

    def __repr__(self):
        fields = [f'{k}={v!r}' for k, v in vars(self).items() if v is not ANY and v != {}]
        return f'Match({", ".join(fields)})'

    def __call__(self, node):
        if not isinstance(node, Element): return False
        if self.name is not ANY and node.name != self.name: return False
        if self.prefix is not ANY and node.prefix != self.prefix: return False
        if self.namespace is not ANY and node.namespace != self.namespace: return False

        for key, value in self.attrs.items():
            actual = node.attrs.get(key)
            if actual is None: return False
            if value is not ANY and actual != value: return False
        return True


def _rule(rule):
    """Convert a (pattern, replacement) pair to a function node -> replacement or None."""
    if callable(rule): return rule
    pattern, replacement = rule

    def apply(node):
        if not pattern(node): return None
        output = replacement(node) if callable(replacement) else replacement
        return EMPTY if output is None else output
    return apply


#####################################################################################################################################################
#####
#####  REPLACE
#####

def replace(nodes, *rules):
    """Return a new Sequence where every node matched by one of `rules` is replaced, at any depth."""
    rules = [_rule(r) for r in rules]
    return Sequence(_replace(Sequence(nodes), rules))

def _replace(nodes, rules):
    output = []
    for node in nodes:
        for rule in rules:
            replacement = rule(node)
            if replacement is not None:
                output.append(replacement)
                break
        else:
            if isinstance(node, Element) and node.children:
                children = Sequence(_replace(node.children, rules))
                node = node if children == node.children else node.copy(children = children)
            output.append(node)
    return output


def replacer(*rules):
    """
    Create an ElementHandler that replaces nodes in its body based on `rules`, for instance:

        class Forms:
            signup = replacer((Match('nameLabel'), Text("Name:")), ...)

    Then <t:myapp.Forms.signup>...</t:myapp.Forms.signup> will have its body rewritten by these rules.
    """
    rules = [_rule(r) for r in rules]

    def handler(body, attrs):
        return Sequence(_replace(Sequence(body), rules))
    return ElementHandler(handler, 'replacer')
