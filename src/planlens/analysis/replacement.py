"""Replacement triggers: human-readable replace paths and path matching."""

from typing import Any, List, Sequence


def format_replace_path(path: Any) -> str:
    """Render a replace path like ["network_interface", 0, "subnet_id"] as network_interface.[0].subnet_id."""
    if isinstance(path, str):
        return path
    if isinstance(path, (list, tuple)):
        parts = []
        for part in path:
            if isinstance(part, bool):
                continue
            if isinstance(part, (int, float)):
                parts.append(f"[{int(part)}]")
            elif isinstance(part, str):
                parts.append(part)
        return ".".join(parts)
    return ""


def replacement_hints(replace_paths: Sequence[Any]) -> List[str]:
    """Ordered, deduplicated hints for every non-empty replace path."""
    hints = []
    for path in replace_paths or []:
        hint = format_replace_path(path)
        if hint and hint not in hints:
            hints.append(hint)
    return hints


def forces_replacement(path: Sequence[Any], replace_paths: Sequence[Any]) -> bool:
    """True if ``path`` equals or lies under any replace path (component-wise)."""
    if not path:
        return False
    for replace_path in replace_paths or []:
        parts = [replace_path] if isinstance(replace_path, str) else list(replace_path or [])
        if parts and len(parts) <= len(path) and [str(p) for p in path[:len(parts)]] == [str(p) for p in parts]:
            return True
    return False
