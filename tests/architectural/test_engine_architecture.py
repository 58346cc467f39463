"""Architectural tests for the forms engine.

Static checks on the package layout: the journey logic stays independent of
the web framework, and every component kind and controller name declared in
the definition model has an implementation registered for it.
"""

from __future__ import annotations

import ast
import os
from typing import Iterator, List, Tuple

import pytest

from forms_engine.logic.components.factory import COMPONENT_TYPES
from forms_engine.logic.pages import PAGE_CONTROLLERS
from forms_engine.logic.components.kinds import ComponentKind
from forms_engine.models.definition import ControllerType

PACKAGE_DIR = "forms_engine"
FRAMEWORK_MODULES = ("fastapi", "starlette")


def _python_files(root: str) -> Iterator[str]:
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            if name.endswith(".py"):
                yield os.path.join(dirpath, name)


def _imports(path: str) -> List[Tuple[int, str]]:
    with open(path, "r", encoding="utf-8") as f:
        tree = ast.parse(f.read(), filename=path)
    found: List[Tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.extend((node.lineno, alias.name) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            found.append((node.lineno, node.module))
    return found


@pytest.mark.parametrize("layer", ["logic", "models"])
def test_core_layers_do_not_import_the_web_framework(layer: str) -> None:
    offenders = []
    for path in _python_files(os.path.join(PACKAGE_DIR, layer)):
        for lineno, module in _imports(path):
            if module.split(".")[0] in FRAMEWORK_MODULES:
                offenders.append(f"{path}:{lineno} imports {module}")
    assert not offenders, "Framework imports in core layer:\n" + "\n".join(offenders)


@pytest.mark.parametrize(
    "module",
    ["logic/state.py", "logic/form_context.py", "logic/pages/base.py"],
)
def test_state_walking_does_not_depend_on_services(module: str) -> None:
    path = os.path.join(PACKAGE_DIR, module)
    offenders = [
        f"{path}:{lineno} imports {imported}"
        for lineno, imported in _imports(path)
        if imported.startswith("forms_engine.services")
    ]
    assert not offenders, "Service imports in state handling:\n" + "\n".join(offenders)


def test_every_component_kind_is_registered() -> None:
    missing = [kind.value for kind in ComponentKind if kind not in COMPONENT_TYPES]
    assert not missing, f"Component kinds without an implementation: {missing}"


def test_every_controller_type_is_registered() -> None:
    missing = [controller.value for controller in ControllerType if controller.value not in PAGE_CONTROLLERS]
    assert not missing, f"Controllers without an implementation: {missing}"


def test_package_modules_declare_exports() -> None:
    undeclared = []
    for path in _python_files(PACKAGE_DIR):
        if os.path.basename(path) == "__init__.py":
            continue
        with open(path, "r", encoding="utf-8") as f:
            tree = ast.parse(f.read(), filename=path)
        names = {
            target.id
            for node in tree.body
            if isinstance(node, ast.Assign)
            for target in node.targets
            if isinstance(target, ast.Name)
        }
        if "__all__" not in names:
            undeclared.append(path)
    assert not undeclared, f"Modules without __all__: {undeclared}"
