import pytest

from plateconfig.controller import ConfiguratorController

from motifs import split_motif


@pytest.fixture
def motif():
    return split_motif()


@pytest.fixture
def messages():
    return []


@pytest.fixture
def controller(messages):
    ctrl = ConfiguratorController(status_cb=messages.append)
    ctrl.set_box(800, 400)
    return ctrl
