"""Architectural tests for the form session engine.

The engine under barometer/logic must stay usable without the HTTP layer:
no module there imports FastAPI or the route/handler packages, and only the
storage and session-manager seams touch SQLAlchemy. Checks parse source with
the ast module so nothing is imported at test time.
"""

from __future__ import annotations

import ast
import os
from typing import Iterable, List, Set

import pytest


PACKAGE_DIR = "barometer"
LOGIC_DIR = os.path.join(PACKAGE_DIR, "logic")
MODELS_DIR = os.path.join(PACKAGE_DIR, "models")

SQL_SEAMS = {"storage.py", "session_manager.py"}


def _python_files(directory: str) -> List[str]:
    assert os.path.isdir(directory), f"Package directory missing: {directory}"
    return sorted(
        os.path.join(directory, name)
        for name in os.listdir(directory)
        if name.endswith(".py")
    )


def _imported_modules(path: str) -> Set[str]:
    with open(path, "r", encoding="utf-8") as f:
        tree = ast.parse(f.read(), filename=path)
    found: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            found.add(node.module)
    return found


def _offending(modules: Iterable[str], prefixes: Iterable[str]) -> List[str]:
    prefixes = tuple(prefixes)
    return sorted(m for m in modules if any(m == p or m.startswith(p + ".") for p in prefixes))


@pytest.mark.parametrize("path", _python_files(LOGIC_DIR))
def test_logic_modules_do_not_import_http_layer(path: str):
    imports = _imported_modules(path)
    bad = _offending(imports, ("fastapi", "starlette", "barometer.routes", "barometer.http", "barometer.main"))
    assert not bad, f"{path} imports HTTP-layer modules: {bad}"


@pytest.mark.parametrize("path", _python_files(LOGIC_DIR))
def test_sqlalchemy_confined_to_storage_seams(path: str):
    if os.path.basename(path) in SQL_SEAMS:
        pytest.skip("storage seam")
    bad = _offending(_imported_modules(path), ("sqlalchemy", "barometer.db"))
    assert not bad, f"{path} reaches the database directly: {bad}"


@pytest.mark.parametrize("path", _python_files(MODELS_DIR))
def test_models_do_not_import_frameworks(path: str):
    bad = _offending(_imported_modules(path), ("fastapi", "sqlalchemy", "httpx"))
    assert not bad, f"{path} imports framework modules: {bad}"


def test_logic_and_models_have_no_package_init():
    # Imported by path as namespace packages
    assert not os.path.exists(os.path.join(LOGIC_DIR, "__init__.py"))
    assert not os.path.exists(os.path.join(MODELS_DIR, "__init__.py"))
