from __future__ import annotations

DEFAULT_IGNORES = {
    "tests",
    "test",
    "conftest",
    "migrations",
    "__main__",
    "__pycache__",
}


def should_ignore_module(module_name: str) -> bool:
    return any(part in DEFAULT_IGNORES for part in module_name.split("."))
