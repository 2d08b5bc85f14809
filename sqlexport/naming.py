"""
资源名称规范化。
"""

import re

_PARENS = re.compile(r"[()]")
_NON_WORD = re.compile(r"\W", re.ASCII)


def canonicalize(name: str) -> str:
    """Turn a display name into a token usable as a resource name."""
    name = _PARENS.sub("", name)
    name = _NON_WORD.sub("_", name)
    return name.lower()
