"""Tests to verify hexagonal architecture structure."""

import importlib
import inspect
from pathlib import Path

import pytest

import src.domain.errors as domain_errors
from src.domain import AdminDeskError

# Compute project root relative to this test file
PROJECT_ROOT = Path(__file__).parent.parent.parent

LAYERS = ["domain", "application", "infrastructure", "api"]


@pytest.fixture
def src_path() -> Path:
    """Return the src directory path."""
    return PROJECT_ROOT / "src"


def _import_lines(py_file: Path, prefix: str) -> list[str]:
    return [
        line.strip()
        for line in py_file.read_text().splitlines()
        if line.strip().startswith((f"from {prefix}", f"import {prefix}"))
    ]


def test_main_layers_exist(src_path: Path) -> None:
    """Verify all main layer directories exist."""
    for layer in LAYERS:
        assert (src_path / layer).is_dir(), f"Missing layer: {layer}"
        assert (src_path / layer / "__init__.py").is_file(), (
            f"Missing {layer}/__init__.py"
        )


def test_domain_has_no_outer_layer_imports(src_path: Path) -> None:
    """Domain code imports only itself, config tables and the stdlib.

    The state machine, router and diff synthesizer must be usable without a
    database, web framework or metrics backend.
    """
    forbidden = ["src.application", "src.infrastructure", "src.api", "src.bootstrap"]
    third_party = ["fastapi", "sqlalchemy", "prometheus_client", "structlog"]

    for py_file in (src_path / "domain").rglob("*.py"):
        for prefix in forbidden + third_party:
            lines = _import_lines(py_file, prefix)
            assert not lines, f"{py_file} contains forbidden import: {lines}"


def test_application_has_no_forbidden_imports(src_path: Path) -> None:
    """Application services reach infrastructure only through ports.

    Observability (logging, correlation) is the one cross-cutting import
    allowed here.
    """
    allowed_infra = ("src.infrastructure.observability",)

    for py_file in (src_path / "application").rglob("*.py"):
        assert not _import_lines(py_file, "src.api"), f"{py_file} imports the api layer"
        infra = [
            line
            for line in _import_lines(py_file, "src.infrastructure")
            if not any(pattern in line for pattern in allowed_infra)
        ]
        assert not infra, f"{py_file} contains forbidden infrastructure import: {infra}"


def test_api_has_no_direct_adapter_imports(src_path: Path) -> None:
    """Routes get services from the bootstrap wiring, never from adapters.

    Stubs (health backend check), observability and monitoring (metrics
    endpoint) are the allowed infrastructure imports.
    """
    allowed_infra = (
        "src.infrastructure.stubs",
        "src.infrastructure.observability",
        "src.infrastructure.monitoring",
    )

    for py_file in (src_path / "api").rglob("*.py"):
        infra = [
            line
            for line in _import_lines(py_file, "src.infrastructure")
            if not any(pattern in line for pattern in allowed_infra)
        ]
        assert not infra, f"{py_file} contains forbidden infrastructure import: {infra}"


def test_admin_desk_error_accepts_message() -> None:
    """Verify AdminDeskError can be instantiated with a message."""
    assert str(AdminDeskError("test message")) == "test message"
    assert str(AdminDeskError()) == ""


def test_every_domain_error_is_admin_desk_error() -> None:
    """The HTTP error mapping relies on a single base class."""
    exported = [getattr(domain_errors, name) for name in domain_errors.__all__]
    assert exported
    for error_class in exported:
        assert inspect.isclass(error_class)
        assert issubclass(error_class, AdminDeskError), error_class.__name__


def test_layer_docstrings_state_import_rules() -> None:
    """Each layer package documents what it may import."""
    for layer in LAYERS:
        module = importlib.import_module(f"src.{layer}")
        doc = module.__doc__ or ""
        assert "layer" in doc, f"src.{layer} docstring missing layer summary"
        assert "IMPORT RULES" in doc, f"src.{layer} docstring missing import rules"
