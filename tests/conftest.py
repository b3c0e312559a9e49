import os
from typing import Any

import pytest

from minic.minic_grammar import GrammarTable
from minic.minic_lexer import tokenize
from minic.minic_parser import ParseResult, Parser

# Monkeypatch coverage to bypass teardown crash in act/docker
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop


@pytest.fixture(scope="session")  # type: ignore[misc]
def table() -> GrammarTable:
    return GrammarTable()


def parse(source: str) -> ParseResult:
    return Parser(tokenize(source)).parse()


def kinds(source: str) -> list[str]:
    return [tok.type for tok in tokenize(source)]
