"""
Defines the parse tree node structure produced by the MINIC parser.

Classes:
    ParseTreeNode:
        One node of the concrete syntax tree. Non-terminal nodes own one child per
        symbol of the production chosen for them; terminal nodes carry the literal
        text and position of the token they matched.

    TreeDict:
        TypedDict representation for serializing ParseTreeNode instances to plain
        Python dictionaries, suitable for JSON output or debugging.

Each ParseTreeNode tracks:
    symbol (Symbol): The grammar symbol the node stands for.
    children (list[ParseTreeNode]): Ordered, exclusively owned children.
    value (str, optional): Literal text of a matched token (terminal nodes only).
    line (int): Source line of the matched token.
    col (int): Source column of the matched token.
    error (bool): True for nodes inside an error region (see the parser's recovery).

Nodes carry no parent reference. Walkers that need the path to a node keep it
themselves (see `walk_with_path`).

Example:
    >>> from minic.minic_lexer import tokenize
    >>> from minic.minic_parser import Parser
    >>> print(Parser(tokenize("int x;")).parse().tree.format_tree())
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, TypedDict

from minic.minic_grammar import NonTerminal, Symbol, Terminal, symbol_name


class TreeDict(TypedDict, total=False):
    """
    TypedDict representation of a ParseTreeNode used for serialization.

    Fields:
        symbol (str): Token kind or non-terminal name.
        terminal (bool): Whether the node is a terminal leaf.
        value (str | None): Matched literal text for terminals.
        line (int): Source line of the matched token.
        col (int): Source column of the matched token.
        error (bool): Whether the node lies in an error region.
        children (list[TreeDict]): Child nodes in order.
    """

    symbol: str
    terminal: bool
    value: str | None
    line: int
    col: int
    error: bool
    children: list["TreeDict"]


class ParseTreeNode:
    """
    A node in the concrete parse tree.

    Args:
        symbol (Symbol): The Terminal or NonTerminal this node derives.
        children (list[ParseTreeNode], optional): Initial children.
        value (str, optional): Literal text for terminal nodes.
        line (int): Source line number (default is 0).
        col (int): Source column number (default is 0).
    """

    def __init__(
        self,
        symbol: Symbol,
        children: list[ParseTreeNode] | None = None,
        value: str | None = None,
        line: int = 0,
        col: int = 0,
    ):
        self.symbol = symbol
        self.children: list[ParseTreeNode] = children or []
        self.value = value
        self.line = line
        self.col = col
        self.error = False

    @property
    def name(self) -> str:
        return symbol_name(self.symbol)

    @property
    def is_terminal(self) -> bool:
        if isinstance(self.symbol, Terminal):
            return True
        if isinstance(self.symbol, NonTerminal):
            return False
        raise TypeError(f"Not a grammar symbol: {self.symbol!r}")

    def walk(self) -> Iterator[ParseTreeNode]:
        """Yields this node and every descendant in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def walk_postorder(self) -> Iterator[ParseTreeNode]:
        """Yields every descendant before its parent, children left to right."""
        stack: list[tuple[ParseTreeNode, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                yield node
                continue
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))

    def walk_with_path(
        self,
    ) -> Iterator[tuple[ParseTreeNode, tuple[ParseTreeNode, ...]]]:
        """Yields ``(node, ancestors)`` pairs in pre-order; ancestors are root first."""
        stack: list[tuple[ParseTreeNode, tuple[ParseTreeNode, ...]]] = [(self, ())]
        while stack:
            node, path = stack.pop()
            yield node, path
            below = path + (node,)
            stack.extend((child, below) for child in reversed(node.children))

    def find_all(self, name: str) -> list[ParseTreeNode]:
        """Returns every node (self included) whose symbol is called `name`."""
        return [node for node in self.walk() if node.name == name]

    def child(self, name: str) -> ParseTreeNode | None:
        """Returns the first direct child whose symbol is called `name`."""
        for node in self.children:
            if node.name == name:
                return node
        return None

    def tokens(self) -> list[str]:
        """Returns the literal text of every matched terminal below this node, in order."""
        return [
            node.value
            for node in self.walk()
            if node.is_terminal and node.value is not None
        ]

    def text(self) -> str:
        return " ".join(self.tokens())

    def label(self) -> str:
        parts = [self.name]
        if self.is_terminal and self.value is not None:
            parts.append(repr(self.value))
        if self.error:
            parts.append("<error>")
        return " ".join(parts)

    def format_tree(self) -> str:
        """Renders the subtree with branch prefixes, one node per line.

        Example::

            Program
            └─ Declarations
        """
        lines: list[str] = []
        # (node, prefix of its own line, prefix inherited by its children)
        stack: list[tuple[ParseTreeNode, str, str]] = [(self, "", "")]
        while stack:
            node, own_prefix, child_prefix = stack.pop()
            lines.append(f"{own_prefix}{node.label()}")
            last = len(node.children) - 1
            for i in range(last, -1, -1):
                if i == last:
                    entry = (node.children[i], child_prefix + "└─ ", child_prefix + "   ")
                else:
                    entry = (node.children[i], child_prefix + "├─ ", child_prefix + "│  ")
                stack.append(entry)
        return "\n".join(lines)

    def __repr__(self) -> str:
        parts = [self.name]
        if self.value is not None:
            parts.append(f"value={self.value!r}")
        if self.error:
            parts.append("error=True")
        if self.children:
            preview = ", ".join(repr(c) for c in self.children[:3])
            if len(self.children) > 3:
                preview += ", ..."
            parts.append(f"children=[{preview}]")
        return f"ParseTreeNode({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ParseTreeNode):
            return False
        return (
            self.symbol == other.symbol
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
            and self.error == other.error
            and self.children == other.children
        )

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> TreeDict:
        return {
            "symbol": self.name,
            "terminal": self.is_terminal,
            "value": self.value,
            "line": self.line,
            "col": self.col,
            "error": self.error,
            "children": [c.to_dict() for c in self.children],
        }
