import pytest

from olive_timeline.config import get_settings
from olive_timeline.core.models import InputFlag, ValueType
from olive_timeline.core.node import Project
from olive_timeline.core.undo import CommandStack

_ENV_VARS = (
    "OLIVE_TIMELINE_UNDO_LIMIT",
    "OLIVE_TIMELINE_DEFAULT_INTERPOLATION",
    "OLIVE_TIMELINE_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def project():
    return Project("Test")


@pytest.fixture
def transform(project):
    node = project.add_node("transform", "Transform")
    node.add_input("opacity", ValueType.FLOAT, 1.0)
    node.add_input("position", ValueType.VEC2, (0.0, 0.0))
    node.add_input("points", ValueType.VEC2, flags=InputFlag.ARRAY, array_size=2)
    node.add_input("label", ValueType.TEXT, "hi", flags=InputFlag.NOT_KEYFRAMABLE | InputFlag.NOT_CONNECTABLE)
    return node


@pytest.fixture
def stack(project):
    return CommandStack(project)
