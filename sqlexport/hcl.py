"""
HCL 文本输出的基础工具：引号、缩进、列表和 heredoc。
"""

import json
from contextlib import contextmanager
from typing import Iterable, Iterator, List

INDENT = "  "


def quote(value: str) -> str:
    """Double-quoted string literal with backslash escapes."""
    return json.dumps(value, ensure_ascii=False)


class BlockWriter:
    """Accumulates lines of configuration text."""

    def __init__(self):
        self._lines: List[str] = []
        self._depth = 0

    def line(self, text: str = ""):
        self._lines.append(INDENT * self._depth + text if text else "")

    def raw(self, text: str):
        """Append text exactly as given, without indentation."""
        self._lines.append(text)

    def attr(self, key: str, value: str):
        self.line(f"{key} = {quote(value)}")

    def strings(self, key: str, values: Iterable[str]):
        self.line(f"{key} = [")
        with self._indented():
            for v in values:
                self.line(f"{quote(v)},")
        self.line("]")

    def heredoc(self, key: str, marker: str, body: str | None):
        self.line(f"{key} = <<{marker}")
        if body is not None:
            self.raw(body)
        self.raw(marker)

    @contextmanager
    def block(self, header: str) -> Iterator["BlockWriter"]:
        self.line(f"{header} {{")
        with self._indented():
            yield self
        self.line("}")

    @contextmanager
    def _indented(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    def getvalue(self) -> str:
        return "\n".join(self._lines) + "\n"
