from __future__ import annotations

import ast
from pathlib import Path

PACKAGE = Path(__file__).resolve().parents[2]
FEATURES = PACKAGE / "features"


def _iter_python_files(base: Path) -> list[Path]:
    return sorted(file for file in base.rglob("*.py") if "__pycache__" not in file.parts)


def _imports_for(file_path: Path) -> list[tuple[str, int]]:
    tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
    imports: list[tuple[str, int]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.append((alias.name, node.lineno))
        elif isinstance(node, ast.ImportFrom):
            module = node.module or ""
            if node.level > 0:
                module = f"{'.' * node.level}{module}"
            imports.append((module, node.lineno))
    return imports


def test_feature_service_and_repo_do_not_import_api_modules() -> None:
    violations: list[str] = []
    for file_path in _iter_python_files(FEATURES):
        if file_path.name not in {"service.py", "repo.py", "pipeline.py", "context.py"}:
            continue
        for module, lineno in _imports_for(file_path):
            if module.startswith("advisorhub.") and "api" in module.split(".")[1:]:
                violations.append(f"{file_path}:{lineno} imports '{module}'")
            if module.startswith(".api") or module.startswith("..api"):
                violations.append(f"{file_path}:{lineno} imports '{module}'")
    assert not violations, "Service/repo modules cannot import API modules:\n" + "\n".join(violations)


def test_chat_and_attachments_do_not_import_agent_runtime() -> None:
    violations: list[str] = []
    for feature_name in ("chat", "attachments"):
        for file_path in _iter_python_files(FEATURES / feature_name):
            for module, lineno in _imports_for(file_path):
                if module.startswith("advisorhub.features.agent"):
                    violations.append(f"{file_path}:{lineno} imports '{module}'")
    assert not violations, "Chat/attachments modules cannot import agent modules:\n" + "\n".join(violations)


def test_extraction_stays_independent_of_http_and_storage() -> None:
    forbidden_prefixes = (
        "fastapi",
        "sqlalchemy",
        "advisorhub.db",
        "advisorhub.features.attachments",
        "advisorhub.features.chat",
        "advisorhub.features.agent",
    )
    violations: list[str] = []
    for file_path in _iter_python_files(FEATURES / "extraction"):
        for module, lineno in _imports_for(file_path):
            if any(module == prefix or module.startswith(f"{prefix}.") for prefix in forbidden_prefixes):
                violations.append(f"{file_path}:{lineno} imports '{module}'")
    assert not violations, "Extraction modules must not depend on HTTP or storage:\n" + "\n".join(violations)
