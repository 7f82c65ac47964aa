"""Tests for architecture import boundaries.

The layers only depend inwards:
- domain imports nothing from application, infrastructure or CLI
- application may use the domain but not infrastructure or CLI
- infrastructure never imports the CLI
"""

from __future__ import annotations

import ast
from pathlib import Path
import re

import pytest

# Root of the qc_reconcile package
PACKAGE_ROOT = Path(__file__).parent.parent.parent.parent / "qc_reconcile"


def get_python_files(directory: Path) -> list[Path]:
    return list(directory.rglob("*.py"))


def extract_imports_from_file(file_path: Path) -> list[str]:
    """Extract all imported module names from a Python file.

    Relative imports are returned without their leading dots, so
    ``from ...infrastructure import x`` yields ``infrastructure``.
    """
    imports = []
    tree = ast.parse(file_path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            imports.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            imports.append(node.module)
    return imports


def find_violations(layer: str, forbidden_pattern: str) -> list[str]:
    pattern = re.compile(forbidden_pattern)
    violations = []
    for py_file in get_python_files(PACKAGE_ROOT / layer):
        forbidden = [
            imp for imp in extract_imports_from_file(py_file) if pattern.search(imp)
        ]
        if forbidden:
            rel_path = py_file.relative_to(PACKAGE_ROOT.parent)
            violations.append(f"{rel_path}: {forbidden}")
    return violations


class TestCLIImportBoundary:
    """The CLI is the outermost layer; nothing outside it may import it."""

    @pytest.mark.parametrize("layer", ["domain", "application", "infrastructure"])
    def test_layer_does_not_import_cli(self, layer):
        violations = find_violations(layer, r"(^|\.)cli(\.|$)")
        assert not violations, f"{layer} imports CLI modules:\n" + "\n".join(
            violations
        )


class TestInnerLayers:
    def test_domain_is_self_contained(self):
        violations = find_violations(
            "domain", r"(^|\.)(application|infrastructure|config)(\.|$)"
        )
        assert not violations, "Domain imports outer layers:\n" + "\n".join(
            violations
        )

    def test_application_does_not_import_infrastructure(self):
        violations = find_violations("application", r"(^|\.)infrastructure(\.|$)")
        assert not violations, (
            "Application imports infrastructure:\n" + "\n".join(violations)
        )

    def test_domain_does_not_touch_io_libraries(self):
        violations = find_violations("domain", r"^(pyreadstat|openpyxl|rich|click)")
        assert not violations, "Domain imports I/O libraries:\n" + "\n".join(
            violations
        )
