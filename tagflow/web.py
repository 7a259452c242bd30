"""
Django integration. Add to settings.py:

    TAGFLOW = {
        'DIRS':     [BASE_DIR / 'templates'],       # folder(s) with documents; the 1st one is used
        'HANDLERS': ['myapp.tags'],                 # modules imported on startup, to register their handlers
        'DEBUG':    False,                          # if True, debug messages go to the 'tagflow' logger
    }

and route requests to the view:

    urlpatterns = [path('<path:name>', tagflow.web.render)]
"""

from importlib import import_module

from django.conf import settings
from django.http import HttpResponse

from tagflow.config import config, log_debug
from tagflow.document import render as render_nodes
from tagflow.errors import ConfigError
from tagflow.loaders import DocumentFinder, FileLoader
from tagflow.template import evaluate


CONTENT_TYPE = 'text/html; charset=utf-8'

_ready = False      # set to True after the first successful setup(); setup is performed on the first request


def setup(force = False):
    """Configure tagflow from the TAGFLOW dict in Django settings. Runs only once, unless `force` is True."""
    global _ready
    if _ready and not force: return

    options = getattr(settings, 'TAGFLOW', {})
    unknown = set(options) - {'DIRS', 'HANDLERS', 'DEBUG'}
    if unknown: raise ConfigError(f"unknown TAGFLOW setting(s): {', '.join(sorted(unknown))}")

    dirs = options.get('DIRS')
    if dirs:
        config.find_document = DocumentFinder(FileLoader(str(dirs[0])))

    for module in options.get('HANDLERS', ()):
        import_module(module)

    if options.get('DEBUG'):
        config.debug = log_debug

    _ready = True


def render(request, name = None):
    """Evaluate the document named `name`, or by the request path, and send it as an HTML response."""
    setup()
    output = evaluate(name if name is not None else request.path)
    return HttpResponse(render_nodes(output), content_type = CONTENT_TYPE)
