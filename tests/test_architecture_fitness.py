"""Architectural fitness functions to enforce clean architecture principles.

These tests keep the layering intact: core is framework-agnostic, services
talk to the outside world only through ports, and adapters are wired in by
the bootstrap and API factory.
"""

import re
from pathlib import Path

ROOT = Path(__file__).parent.parent
PACKAGE = ROOT / "bt_study_engine"


def _violations(directory: Path, patterns: list[str]) -> list[str]:
    found = []
    for py_file in directory.rglob("*.py"):
        content = py_file.read_text(encoding="utf-8")
        if any(re.search(pattern, content, re.MULTILINE) for pattern in patterns):
            found.append(str(py_file.relative_to(PACKAGE)))
    return found


def test_no_python_modules_at_root():
    """Only entry points may live at the repository root."""
    allowed = {"conftest.py", "main.py", "__main__.py"}
    violations = [f.name for f in ROOT.glob("*.py") if f.name not in allowed]

    assert not violations, (
        f"Unexpected Python modules at root: {violations}\n"
        "Code belongs inside the bt_study_engine/ package."
    )


def test_no_fastapi_in_core():
    """Core layer must not import FastAPI."""
    violations = _violations(PACKAGE / "core", [r"^\s*import fastapi", r"^\s*from fastapi"])
    assert not violations, f"Core layer imports FastAPI: {violations}"


def test_no_http_client_in_core_or_services():
    """HTTP access goes through the ports implemented in adapters/."""
    patterns = [r"^\s*import httpx", r"^\s*from httpx"]
    violations = _violations(PACKAGE / "core", patterns) + _violations(PACKAGE / "services", patterns)
    assert not violations, f"httpx imported outside adapters: {violations}"


def test_services_do_not_import_adapters_or_apps():
    """Services depend on ports, never on concrete adapters or the API layer."""
    patterns = [r"^\s*from bt_study_engine\.adapters", r"^\s*from bt_study_engine\.apps"]
    violations = _violations(PACKAGE / "services", patterns)
    assert not violations, f"Services import outer layers: {violations}"


def test_core_does_not_import_services():
    """Core models and ports stay independent of the service layer."""
    violations = _violations(PACKAGE / "core", [r"^\s*from bt_study_engine\.services"])
    assert not violations, f"Core imports services: {violations}"
