"""Shared fixtures for the ideshell test suite."""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from ideshell.backends import MemoryBackend, SQLBackend
from ideshell.filestore import FileStore
from ideshell.interpreter import ShellInterpreter


def make_backend(kind):
    if kind == 'memory':
        return MemoryBackend()
    backend = SQLBackend('sqlite://')
    backend.probe()
    return backend


@pytest.fixture(params=['memory', 'sql'])
def store(request):
    """An empty (root-only) store on each backend."""
    store = FileStore(make_backend(request.param))
    yield store
    store.close()


@pytest.fixture
def memory_store():
    """An empty store on the in-memory backend."""
    store = FileStore(MemoryBackend())
    yield store
    store.close()


@pytest.fixture
def shell(store):
    """An interpreter over an empty store, on each backend."""
    return ShellInterpreter(store)
