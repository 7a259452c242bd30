"""
tagflow: evaluation of markup documents whose elements and attributes are dispatched to python handlers.
"""

from tagflow.config import config, NS
from tagflow.document import Element, Text, Comment, Attribute, Attributes, Sequence, render
from tagflow.errors import TagflowError, ConfigError, MarkupError, DocumentNotFound
from tagflow.parser import parse
from tagflow.replace import replace, replacer, Match
from tagflow.tag import ElementHandler, AttributeHandler, registry
from tagflow.template import Template, evaluate
