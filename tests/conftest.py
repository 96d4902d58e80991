"""Shared fixtures."""

import pytest

from refx import CallbackRebuildable, Container, HistoryObserver


@pytest.fixture
def observer():
    return HistoryObserver.all()


@pytest.fixture
def container(observer):
    return Container(observer=observer)


@pytest.fixture
def make_subscriber():
    def _make(label=None, on_rebuild=None):
        return CallbackRebuildable(on_rebuild, debug_label=label)

    return _make
