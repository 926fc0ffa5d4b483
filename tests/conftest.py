import pytest

QT_PREFIXES = ("q", "Q", "Qt")


@pytest.fixture
def qt_config():
    from safebind.config import ProjectorConfig

    return ProjectorConfig(crate_name="qt_core", prefixes_to_remove=QT_PREFIXES)


@pytest.fixture
def make_ctx(qt_config):
    """Context over declarations given in their JSON form."""
    from safebind.context import ProjectionContext
    from safebind.decls import DeclarationSet

    def _make(decls: dict, config=None):
        obj = {"library": "qt_core", **decls}
        return ProjectionContext.create(DeclarationSet.from_dict(obj), config or qt_config)

    return _make


@pytest.fixture
def run_projection(qt_config):
    from safebind.decls import DeclarationSet
    from safebind.projector import project

    def _run(decls: dict, config=None, dependencies=()):
        obj = {"library": "qt_core", **decls}
        return project(DeclarationSet.from_dict(obj), config or qt_config, dependencies)

    return _run
