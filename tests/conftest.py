import pytest

from tagflow.config import config
from tagflow.loaders import DictLoader, DocumentFinder
from tagflow.resolver import clear_cache
from tagflow.tag import registry


@pytest.fixture(autouse = True)
def clean_config():
    """Every test starts with default configuration slots, an empty registry and an empty resolution cache."""
    config.reset()
    registry.clear()
    clear_cache()
    yield
    config.reset()
    registry.clear()
    clear_cache()


@pytest.fixture
def documents():
    """Install a document finder serving given sources: documents(name = source, ...)."""
    def install(**sources):
        config.find_document = DocumentFinder(DictLoader(sources))
        return config.find_document
    return install
