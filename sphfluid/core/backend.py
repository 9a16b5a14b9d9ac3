"""
Compute backends for the per-substep stages.

Every expensive stage (neighbor search, density/pressure, forces,
collisions) exists twice: a NumPy version that always works and a Numba
version compiled on first use. Implementations register themselves under a
stage name; callers ask for a stage and get whichever version matches the
selected backend, falling back to NumPy when a stage has no Numba twin.

    @backend_function("compute_forces")
    @for_backend(Backend.NUMBA)
    def compute_forces_numba(...):
        ...
"""

import enum
import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Below this many particles the JIT loops do not pay for their dispatch cost
NUMBA_THRESHOLD = 500


class Backend(enum.Enum):
    """Where the stage loops run."""
    CPU = "cpu"      # NumPy
    NUMBA = "numba"  # Numba JIT

    @classmethod
    def parse(cls, name: str) -> "Backend":
        """Case-insensitive lookup; raises ValueError for unknown names."""
        return cls(str(name).strip().lower())


@dataclass
class BackendInfo:
    """Availability of one backend as detected at import."""
    backend: Backend
    available: bool
    description: str = "unavailable"


def _probe_numba() -> BackendInfo:
    try:
        import numba
    except ImportError:
        return BackendInfo(Backend.NUMBA, False)
    return BackendInfo(Backend.NUMBA, True, f"Numba {numba.__version__}")


class BackendManager:
    """Stage registry plus the currently selected backend."""

    def __init__(self):
        self._selected = Backend.CPU
        self._info: Dict[Backend, BackendInfo] = {
            Backend.CPU: BackendInfo(Backend.CPU, True, "NumPy"),
            Backend.NUMBA: _probe_numba(),
        }
        self._stages: Dict[str, Dict[Backend, Callable]] = {}

    @property
    def current_backend(self) -> Backend:
        return self._selected

    @property
    def available_backends(self) -> List[Backend]:
        return [b for b, info in self._info.items() if info.available]

    def is_available(self, backend: Backend) -> bool:
        return self._info[backend].available

    def availability(self) -> Dict[str, bool]:
        return {b.value: info.available for b, info in self._info.items()}

    def set_backend(self, backend: Backend) -> bool:
        """Select ``backend`` for calls that do not name one.

        Returns:
            False (with a warning) when the backend is not installed
        """
        if not self.is_available(backend):
            warnings.warn(f"Backend {backend.value} not available, keeping {self._selected.value}")
            return False
        self._selected = backend
        logger.info("Backend set to: %s (%s)", backend.value, self._info[backend].description)
        return True

    def auto_select_backend(self, n_particles: int) -> Backend:
        if n_particles > NUMBA_THRESHOLD and self.is_available(Backend.NUMBA):
            return Backend.NUMBA
        return Backend.CPU

    def register_implementation(self, stage: str, backend: Backend, implementation: Callable):
        self._stages.setdefault(stage, {})[backend] = implementation
        logger.debug("Registered %s for %s", stage, backend.value)

    def get_implementation(self, stage: str, backend: Optional[Backend] = None) -> Callable:
        """Resolve ``stage`` for ``backend`` (the selected one when None).

        Raises:
            ValueError: If nothing usable is registered under ``stage``
        """
        versions = self._stages.get(stage)
        if not versions:
            raise ValueError(f"No implementations registered for {stage}")
        wanted = self._selected if backend is None else backend
        if wanted in versions:
            return versions[wanted]
        if Backend.CPU not in versions:
            raise ValueError(f"No {wanted.value} or cpu implementation for {stage}")
        warnings.warn(f"No {wanted.value} implementation for {stage}, using cpu")
        return versions[Backend.CPU]

    def dispatch(self, stage: str, *args, backend: Optional[Backend] = None, **kwargs):
        return self.get_implementation(stage, backend)(*args, **kwargs)

    def describe(self) -> List[str]:
        """Human-readable availability table."""
        lines = []
        for backend, info in self._info.items():
            mark = "*" if backend is self._selected else " "
            state = info.description if info.available else "not installed"
            stages = sum(backend in v for v in self._stages.values())
            lines.append(f"{mark} {backend.value:6s} {state} ({stages} stages)")
        return lines


_backend_manager = BackendManager()


def set_backend(backend: str) -> bool:
    """Select the global backend by name ('cpu' or 'numba')."""
    try:
        choice = Backend.parse(backend)
    except ValueError:
        warnings.warn(f"Invalid backend: {backend}. Choose from: cpu, numba")
        return False
    return _backend_manager.set_backend(choice)


def get_backend() -> str:
    return _backend_manager.current_backend.value


def list_backends() -> Dict[str, bool]:
    """Backend name -> installed."""
    return _backend_manager.availability()


def auto_select_backend(n_particles: int) -> str:
    """Select and return the fastest backend for ``n_particles``."""
    choice = _backend_manager.auto_select_backend(n_particles)
    _backend_manager.set_backend(choice)
    return choice.value


def print_backend_info():
    print("Backends:")
    for line in _backend_manager.describe():
        print(line)


def for_backend(backend: Backend):
    """Tag a function with the backend it implements."""
    def decorator(func):
        func._backend = backend
        return func
    return decorator


def backend_function(stage: str):
    """Register a function tagged by :func:`for_backend` under ``stage``."""
    def decorator(func):
        backend = getattr(func, '_backend', None)
        if backend is not None:
            _backend_manager.register_implementation(stage, backend, func)
        return func
    return decorator


def dispatch(stage: str, *args, backend: Optional[str] = None, **kwargs):
    """Call ``stage`` on ``backend`` (the selected one when None)."""
    choice = Backend.parse(backend) if backend else None
    return _backend_manager.dispatch(stage, *args, backend=choice, **kwargs)
