"""Path and route utilities."""

import re

_PARAM_RE = re.compile(r"{([^{}]+)}")


def extract_path_params(path: str) -> list[str]:
    """Return all {param} placeholders from a path, in order."""
    if not path:
        return []
    return _PARAM_RE.findall(path)

