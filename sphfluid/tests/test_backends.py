"""
Backend selection and dispatch tests.
"""

import pytest
from sphfluid.core import backend as backend_module
from sphfluid.core.backend import (
    Backend, BackendManager, auto_select_backend, dispatch, get_backend,
    list_backends, set_backend
)


@pytest.fixture(autouse=True)
def restore_backend():
    yield
    set_backend("cpu")


class TestBackendSelection:
    """Global backend state."""

    def test_cpu_always_available(self):
        assert list_backends()["cpu"] is True
        assert set(list_backends()) == {"cpu", "numba"}

    def test_set_and_get(self, backend):
        assert set_backend(backend) is True
        assert get_backend() == backend

    def test_invalid_name(self):
        with pytest.warns(UserWarning):
            assert set_backend("cuda") is False
        assert get_backend() == "cpu"

    def test_auto_select_small(self):
        assert auto_select_backend(10) == "cpu"

    def test_auto_select_large(self):
        expected = "numba" if list_backends()["numba"] else "cpu"
        assert auto_select_backend(5000) == expected


class TestDispatch:
    """Registration and fallback."""

    def test_registered_functions(self):
        manager = backend_module._backend_manager
        for name in ("find_neighbors", "compute_density_pressure",
                     "compute_forces", "resolve_collisions"):
            assert manager.get_implementation(name, Backend.CPU) is not None

    def test_fallback_to_cpu(self):
        manager = BackendManager()
        manager.register_implementation("double", Backend.CPU, lambda x: 2 * x)
        with pytest.warns(UserWarning):
            assert manager.dispatch("double", 4, backend=Backend.NUMBA) == 8

    def test_numba_implementation_preferred(self):
        manager = BackendManager()
        manager.register_implementation("ident", Backend.CPU, lambda: "cpu")
        manager.register_implementation("ident", Backend.NUMBA, lambda: "numba")
        assert manager.dispatch("ident", backend=Backend.NUMBA) == "numba"
        assert manager.dispatch("ident") == "cpu"

    def test_unknown_function(self):
        with pytest.raises(ValueError):
            dispatch("no_such_function")

    def test_describe_marks_selection(self):
        lines = backend_module._backend_manager.describe()
        assert len(lines) == 2
        assert lines[0].startswith("* cpu")
