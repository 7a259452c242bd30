# -*- coding: utf-8 -*-
"""
Loaders: classes that provide name-based access to template documents, with caching of parsed Templates.
They implement the host side of config.find_document; the evaluator itself doesn't know about files.

    config.find_document = DocumentFinder(FileLoader('/srv/app/templates'))
"""

import os, time

from tagflow.config import config
from tagflow.errors import DocumentNotFound, MarkupError
from tagflow.template import Template


########################################################################################################################################################
###
###  BASE LOADER
###

class Loader:
    """Base class for loaders: classes that provide name-based access to documents, possibly with caching.
    The cached object is a parsed Template, not the original source, so that parsing is avoided altogether
    when a cached version is available.
    """

    def canonical(self, name):
        """Returns full canonical name of the resource ('fullname'). All other loader's methods take canonical names as arguments."""
        return name

    def load(self, fullname):
        """
        Loads a given resource from its original external location. Returns a pair: (source, metadata),
        where 'metadata' is any loader-specific object that keeps extra information about the resource, as needed for cache management,
        and must be passed to subsequent cache() call. Raises DocumentNotFound if the resource doesn't exist.
        """
        raise DocumentNotFound(f"Resource not found: {fullname}")

    def get(self, fullname):
        "Return a cached Template, or None if the resource is missing in cache or outdated."
        # no caching by default
        return None

    def cache(self, fullname, template, meta):
        "Store the parsed template in cache for future use, together with its metadata as returned by load()."
        # no caching by default

    def reset(self, fullname = None):
        "Clear the whole cache if fullname=None, or remove just the resource 'fullname'."
        # no caching by default


class Cache:
    "The cache part of loaders implementation, inherited by subclasses."

    cached = None           # the dictionary of all cached templates and their metadata: fullname -> (template, meta)

    def __init__(self):
        self.cached = {}

    def get(self, fullname):
        entry = self.cached.get(fullname)
        if entry is None: return None
        if self.uptodate(fullname, entry[1]):
            return entry[0]
        self.cached.pop(fullname, None)             # remove from cache to avoid repeated uptodate checks
        return None

    def cache(self, fullname, template, meta):
        self.cached[fullname] = (template, meta)

    def reset(self, fullname = None):
        if fullname is None:
            self.cached = {}
        else:
            self.cached.pop(fullname, None)

    def uptodate(self, fullname, meta):
        """A `virtual` method to be overriden in subclasses. Returns True if a given resource in the cache is still up to date
        and can be safely returned by get() instead of loading it from the original external location."""
        raise NotImplementedError()


########################################################################################################################################################
###
###  CUSTOM LOADERS
###

class DictLoader(Loader):
    "Loads documents stored in a dict, as strings or ready Templates. For testing and embedded documents."

    def __init__(self, resources = None, **kwargs):
        "The mapping can be passed as a dict and/or via keyword arguments."
        self.resources = dict(resources or {})
        self.resources.update(kwargs)

    def load(self, fullname):
        if fullname not in self.resources:
            raise DocumentNotFound(f"Resource not found: {fullname}")
        return self.resources[fullname], None       # no caching, meta = None


class FileLoader(Cache, Loader):
    """
    Loads documents from files located below a `root` folder. Names are interpreted relative to the root,
    leading slashes are ignored (a request path like "/pages/index.xml" can be passed directly),
    and names that point outside of the root are rejected.
    A cached template is returned until its file gets modified on disk after the template was loaded.
    """

    root = None

    def __init__(self, root):
        self.root = os.path.realpath(root)
        Cache.__init__(self)

    def canonical(self, name):
        """Compute the filesystem-canonical (normalized & absolute) path of the resource."""
        fullname = os.path.realpath(os.path.join(self.root, name.lstrip('/')))
        if os.path.commonpath([self.root, fullname]) != self.root:
            raise DocumentNotFound(f"Resource outside of the templates folder: {name}")
        return fullname

    def load(self, fullname):
        # To detect changes to the file on disk, we keep the current Unix time, time.time(),
        # and compare it later on with the file modification time returned by getmtime().
        meta = time.time()
        try:
            with open(fullname, 'rb') as f:
                source = f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as ex:
            raise DocumentNotFound(f"Resource not found: {fullname}") from ex
        return source, meta

    def uptodate(self, fullname, loaded):
        "Checks if the file has changed after the resource was loaded."
        try:
            return os.path.getmtime(fullname) <= loaded
        except OSError:                         # file removed from disk? must refresh
            return False


########################################################################################################################################################
###
###  FINDER
###

class DocumentFinder:
    """
    Adapter of a loader to the config.find_document slot. Returns a Template or None if the document doesn't exist.
    A document that exists but can't be parsed is replaced with a Template of the config.document_error markup,
    so that the error gets displayed instead of failing the whole evaluation.
    """

    def __init__(self, loader):
        self.loader = loader

    def __call__(self, name):
        try:
            fullname = self.loader.canonical(name)
            template = self.loader.get(fullname)
            config.debug("find_document: ", name, " -> ", fullname, " (cached)" if template else "")
            if template is not None:
                return template

            source, meta = self.loader.load(fullname)

        except DocumentNotFound as ex:
            config.debug("find_document: ", ex)
            return None

        try:
            template = source if isinstance(source, Template) else Template.parse(source, name = name)
        except MarkupError as ex:
            return Template(config.document_error(str(ex), ex, name))

        self.loader.cache(fullname, template, meta)
        return template
