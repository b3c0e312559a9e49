"""
Declaration and type consistency checks over a MINIC parse tree.

The analyzer walks the concrete tree produced by `minic_parser` and keeps its
own scope stack; tree nodes have no parent links, so all context (enclosing
function, loop depth, open scopes) lives in the analyzer.

Checks
------
- Duplicate declaration of a name within one lexical block
  (globals, a function's parameters and body, nested blocks, `for` headers).
- Use, assignment or call of an undeclared identifier.
- Calling something that is not a function, or using a function as a value.
- Call argument count differing from the declared parameter count.
- Initialiser, assignment, argument and `return` types differing from the
  declared type, and operands of the wrong type inside expressions.
- `if` and `for` conditions that are not ``bool``.
- `break` / `continue` outside of a `for` loop.

Types are the declared names ``int``, ``bool`` and ``char`` plus ``string`` for
string literals. Unknown types (from earlier errors) never produce further
reports.

Subtrees flagged ``error`` by the parser's recovery are skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from minic.minic_errors import Diagnostic, DiagnosticKind, DiagnosticLog
from minic.minic_tree import ParseTreeNode

logger = logging.getLogger(__name__)

NUMERIC = frozenset({"int", "char"})

# Binary expression level -> (operator kind -> result type, accepted operand types).
# None as operand types means "both sides of the same type".
BINARY_LEVELS: dict[str, tuple[str, frozenset[str] | None]] = {
    "LogicalOr": ("bool", frozenset({"bool"})),
    "LogicalAnd": ("bool", frozenset({"bool"})),
    "Equality": ("bool", None),
    "Relational": ("bool", NUMERIC),
    "Additive": ("int", NUMERIC),
    "Multiplicative": ("int", NUMERIC),
}

LITERAL_TYPES = {
    "IntegerLiteral": "int",
    "BooleanLiteral": "bool",
    "CharacterLiteral": "char",
    "StringLiteral": "string",
}


class Declared:
    """One entry of a scope: a variable, parameter or function."""

    def __init__(
        self,
        name: str,
        kind: str,
        type_: str | None,
        line: int = 0,
        col: int = 0,
        params: list[str] | None = None,
    ):
        self.name = name
        self.kind = kind
        self.type = type_
        self.line = line
        self.col = col
        self.params = params
        self.array = False

    @property
    def is_function(self) -> bool:
        return self.kind == "function"

    def __repr__(self) -> str:
        return f"Declared({self.kind} {self.type} {self.name})"


def _chain(node: ParseTreeNode | None, item: str) -> Iterator[ParseTreeNode]:
    """Iterates a right-recursive list such as ``Statements -> Statement Statements``."""
    while node is not None and node.children and not node.error:
        head = node.children[0]
        if head.name == item:
            yield head
        node = node.children[-1] if len(node.children) > 1 else None


def _leaf(node: ParseTreeNode | None) -> ParseTreeNode | None:
    """Returns the first matched terminal below `node`."""
    if node is None:
        return None
    for sub in node.walk():
        if sub.is_terminal and sub.value is not None:
            return sub
    return None


def _has_error(node: ParseTreeNode) -> bool:
    """True if `node` lies in an error region, not looking inside nested statement lists.

    Statements are checked one at a time, so a broken statement only hides itself.
    """
    stack = [node]
    while stack:
        sub = stack.pop()
        if sub.error:
            return True
        if sub.name != "Statements":
            stack.extend(sub.children)
    return False


class SemanticAnalyzer:
    """
    Runs every check over a parse tree and collects the findings.

    Attributes:
        scopes (list[dict[str, Declared]]): Open scopes, innermost last.
        diagnostics (DiagnosticLog): Findings of the last `analyze` call.
    """

    def __init__(self) -> None:
        self.scopes: list[dict[str, Declared]] = []
        self.diagnostics = DiagnosticLog()
        self._function: Declared | None = None
        self._loop_depth = 0

    def analyze(self, tree: ParseTreeNode) -> list[Diagnostic]:
        """Checks a tree rooted at ``Program`` and returns the diagnostics found."""
        self.scopes = [{}]
        self.diagnostics = DiagnosticLog()
        self._function = None
        self._loop_depth = 0

        for declarations in tree.children[:1]:
            for declaration in _chain(declarations, "Declaration"):
                self._declaration(declaration)

        logger.debug("semantic pass found %d problem(s)", len(self.diagnostics))
        return list(self.diagnostics)

    # Scopes

    def _lookup(self, name: str) -> Declared | None:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        return None

    def _declare(self, entry: Declared) -> Declared:
        scope = self.scopes[-1]
        previous = scope.get(entry.name)
        if previous is not None:
            self._report(
                DiagnosticKind.DUPLICATE_DECLARATION,
                f"'{entry.name}' is already declared in this block "
                f"(line {previous.line}, col {previous.col})",
                entry.line,
                entry.col,
                found=entry.name,
            )
            return previous
        scope[entry.name] = entry
        return entry

    def _report(
        self,
        kind: DiagnosticKind,
        message: str,
        line: int,
        col: int,
        expected: tuple[str, ...] = (),
        found: str | None = None,
    ) -> None:
        self.diagnostics.report(kind, message, expected, found, line, col)

    def _report_at(
        self,
        node: ParseTreeNode,
        kind: DiagnosticKind,
        message: str,
        expected: tuple[str, ...] = (),
        found: str | None = None,
    ) -> None:
        leaf = _leaf(node)
        line, col = (leaf.line, leaf.col) if leaf else (0, 0)
        self._report(kind, message, line, col, expected, found)

    # Declarations

    def _declaration(self, node: ParseTreeNode) -> None:
        if _has_error(node):
            return
        type_node, var_or_func = node.children
        ident, rest = var_or_func.children
        type_name = type_node.children[0].value
        choice = rest.children[0]
        if choice.name == "FunctionRest":
            self._function_definition(type_name, ident, choice)
        else:
            self._variables(type_name, ident, choice)

    def _variables(
        self, type_name: str | None, ident: ParseTreeNode, var_decl_rest: ParseTreeNode
    ) -> None:
        """Handles ``Identifier Initialization MoreIdentifiers ;``."""
        initialization, more, _ = var_decl_rest.children
        self._variable(type_name, ident, initialization)
        while more.children:
            _, ident, initialization, more = more.children
            self._variable(type_name, ident, initialization)

    def _variable(
        self,
        type_name: str | None,
        ident: ParseTreeNode,
        initialization: ParseTreeNode,
    ) -> None:
        leaf = ident.children[0]
        name = leaf.value or ""
        entry = Declared(name, "variable", type_name, leaf.line, leaf.col)
        # The initialiser is checked before the name is visible: `int x = x;` fails.
        self._initialization(entry, initialization)
        self._declare(entry)

    def _initialization(self, entry: Declared, node: ParseTreeNode) -> None:
        while node.children:
            head = node.children[0]
            if head.name == "ASSIGN":
                self._expect_type(entry.type, node.children[1], f"initialiser of '{entry.name}'")
                return
            entry.array = True
            node = node.children[-1]

    def _function_definition(
        self, type_name: str | None, ident: ParseTreeNode, rest: ParseTreeNode
    ) -> None:
        _, parameters, _, block = rest.children
        params = [
            (p.children[0].children[0].value, p.children[1]) for p in self._parameters(parameters)
        ]
        leaf = ident.children[0]
        function = Declared(
            leaf.value or "",
            "function",
            type_name,
            leaf.line,
            leaf.col,
            params=[p_type or "" for p_type, _ in params],
        )
        self._declare(function)

        outer = self._function
        self._function = function
        # The body sees this definition even when the name was already taken.
        self.scopes.append({function.name: function})
        self.scopes.append({})
        for p_type, p_ident in params:
            p_leaf = p_ident.children[0]
            self._declare(
                Declared(p_leaf.value or "", "parameter", p_type, p_leaf.line, p_leaf.col)
            )
        # Parameters and the outermost block of the body share one scope.
        self._statements(block.children[1])
        del self.scopes[-2:]
        self._function = outer

    def _parameters(self, node: ParseTreeNode) -> list[ParseTreeNode]:
        if not node.children:
            return []
        parameter_list = node.children[0]
        first, more = parameter_list.children
        found = [first]
        while more.children:
            _, parameter, more = more.children
            found.append(parameter)
        return found

    # Statements

    def _block(self, block: ParseTreeNode) -> None:
        self.scopes.append({})
        self._statements(block.children[1])
        self.scopes.pop()

    def _statements(self, statements: ParseTreeNode) -> None:
        for statement in _chain(statements, "Statement"):
            if not _has_error(statement):
                self._statement(statement)

    def _statement(self, node: ParseTreeNode) -> None:
        head = node.children[0]
        name = head.name
        if name == "LocalDeclaration":
            type_node, ident, rest = head.children
            self._variables(type_node.children[0].value, ident, rest)
        elif name == "IfStatement":
            self._if(head)
        elif name == "ForStatement":
            self._for(head)
        elif name == "Block":
            self._block(head)
        elif name == "PrintStatement":
            arguments = head.children[2]
            if arguments.children:
                self._type_of(arguments.children[0])
                more = arguments.children[1]
                while more.children:
                    _, expression, more = more.children
                    self._type_of(expression)
        elif name == "ReturnStatement":
            self._return(head)
        elif name in ("BreakStatement", "ContinueStatement"):
            if self._loop_depth == 0:
                keyword = head.children[0]
                self._report(
                    DiagnosticKind.MISPLACED_JUMP,
                    f"'{keyword.value}' outside of a loop",
                    keyword.line,
                    keyword.col,
                    found=keyword.value,
                )
        elif name == "Identifier":
            self._assign_or_call(head, node.children[1])

    def _if(self, node: ParseTreeNode) -> None:
        while True:
            _, _, condition, _, block, else_clause = node.children
            self._expect_type("bool", condition, "condition of 'if'")
            self._block(block)
            if not else_clause.children:
                return
            body = else_clause.children[1].children[0]
            if body.name == "Block":
                self._block(body)
                return
            node = body

    def _for(self, node: ParseTreeNode) -> None:
        _, _, init, _, condition, _, update, _, block = node.children
        self.scopes.append({})
        if init.children:
            head = init.children[0]
            if head.name == "ForDeclaration":
                type_node, ident, initialization = head.children
                self._variable(type_node.children[0].value, ident, initialization)
            else:
                self._assignment(head.children[0], head.children[2])
        if condition.children:
            self._expect_type("bool", condition.children[0], "condition of 'for'")
        if update.children:
            assignment = update.children[0]
            self._assignment(assignment.children[0], assignment.children[2])
        self._loop_depth += 1
        self._block(block)
        self._loop_depth -= 1
        self.scopes.pop()

    def _return(self, node: ParseTreeNode) -> None:
        value = node.children[1]
        if self._function is None:
            return
        if value.children:
            self._expect_type(
                self._function.type,
                value.children[0],
                f"return value of '{self._function.name}'",
            )
        else:
            keyword = node.children[0]
            self._report(
                DiagnosticKind.TYPE_MISMATCH,
                f"'{self._function.name}' must return a value of type {self._function.type}",
                keyword.line,
                keyword.col,
                expected=(self._function.type or "",),
                found="void",
            )

    def _assign_or_call(self, ident: ParseTreeNode, rest: ParseTreeNode) -> None:
        if rest.children[0].name == "ASSIGN":
            self._assignment(ident, rest.children[1])
        else:
            self._call(ident, rest.children[1])

    def _assignment(self, ident: ParseTreeNode, expression: ParseTreeNode) -> None:
        leaf = ident.children[0]
        target = self._lookup(leaf.value or "")
        if target is None:
            self._report(
                DiagnosticKind.UNDECLARED_IDENTIFIER,
                f"assignment to undeclared identifier '{leaf.value}'",
                leaf.line,
                leaf.col,
                found=leaf.value,
            )
            self._type_of(expression)
            return
        if target.is_function:
            self._report(
                DiagnosticKind.TYPE_MISMATCH,
                f"cannot assign to function '{leaf.value}'",
                leaf.line,
                leaf.col,
                found="function",
            )
            self._type_of(expression)
            return
        self._expect_type(target.type, expression, f"assignment to '{target.name}'")

    # Expressions

    def _expect_type(
        self, declared: str | None, expression: ParseTreeNode, what: str
    ) -> None:
        actual = self._type_of(expression)
        if declared is None or actual is None or declared == actual:
            return
        self._report_at(
            expression,
            DiagnosticKind.TYPE_MISMATCH,
            f"{what}: expected {declared}, found {actual}",
            expected=(declared,),
            found=actual,
        )

    def _type_of(self, node: ParseTreeNode) -> str | None:
        """Infers the type of an expression-level node, reporting problems inside it."""
        name = node.name
        if name in ("Expression", "ForCondition", "ReturnValue"):
            return self._type_of(node.children[0]) if node.children else None
        if name in BINARY_LEVELS:
            return self._binary(node)
        if name == "Unary":
            return self._unary(node)
        if name == "Primary":
            return self._primary(node)
        if name in LITERAL_TYPES:
            return LITERAL_TYPES[name]
        return None

    def _binary(self, node: ParseTreeNode) -> str | None:
        result, accepted = BINARY_LEVELS[node.name]
        operand, pre = node.children
        left = self._type_of(operand)
        if not pre.children:
            return left
        while pre.children:
            op, operand, pre = pre.children
            right = self._type_of(operand)
            self._check_operands(op, left, right, accepted)
            left = result
        return result

    def _check_operands(
        self,
        op: ParseTreeNode,
        left: str | None,
        right: str | None,
        accepted: frozenset[str] | None,
    ) -> None:
        if left is None or right is None:
            return
        if accepted is None:
            if left != right:
                self._report(
                    DiagnosticKind.TYPE_MISMATCH,
                    f"operator '{op.value}' compares {left} with {right}",
                    op.line,
                    op.col,
                    expected=(left,),
                    found=right,
                )
            return
        for side in (left, right):
            if side not in accepted:
                self._report(
                    DiagnosticKind.TYPE_MISMATCH,
                    f"operator '{op.value}' does not accept {side} operands",
                    op.line,
                    op.col,
                    expected=tuple(sorted(accepted)),
                    found=side,
                )
                return

    def _unary(self, node: ParseTreeNode) -> str | None:
        head = node.children[0]
        if head.name == "Primary":
            return self._primary(head)
        operand = self._type_of(node.children[1])
        if head.name == "NOT":
            self._check_operands(head, "bool", operand, frozenset({"bool"}))
            return "bool"
        self._check_operands(head, "int", operand, NUMERIC)
        return "int"

    def _primary(self, node: ParseTreeNode) -> str | None:
        head = node.children[0]
        if head.name == "LPAREN":
            return self._type_of(node.children[1])
        if head.name == "Identifier":
            call_suffix = node.children[1]
            if call_suffix.children:
                return self._call(head, call_suffix.children[1])
            return self._variable_use(head)
        return self._type_of(head)

    def _variable_use(self, ident: ParseTreeNode) -> str | None:
        leaf = ident.children[0]
        entry = self._lookup(leaf.value or "")
        if entry is None:
            self._report(
                DiagnosticKind.UNDECLARED_IDENTIFIER,
                f"use of undeclared identifier '{leaf.value}'",
                leaf.line,
                leaf.col,
                found=leaf.value,
            )
            return None
        if entry.is_function:
            self._report(
                DiagnosticKind.TYPE_MISMATCH,
                f"function '{leaf.value}' used as a value",
                leaf.line,
                leaf.col,
                found="function",
            )
            return None
        return entry.type

    def _call(self, ident: ParseTreeNode, arguments: ParseTreeNode) -> str | None:
        leaf = ident.children[0]
        args: list[ParseTreeNode] = []
        if arguments.children:
            args.append(arguments.children[0])
            more = arguments.children[1]
            while more.children:
                _, expression, more = more.children
                args.append(expression)

        callee = self._lookup(leaf.value or "")
        if callee is None:
            self._report(
                DiagnosticKind.UNDECLARED_IDENTIFIER,
                f"call to undeclared function '{leaf.value}'",
                leaf.line,
                leaf.col,
                found=leaf.value,
            )
            for arg in args:
                self._type_of(arg)
            return None
        if not callee.is_function:
            self._report(
                DiagnosticKind.NOT_CALLABLE,
                f"'{leaf.value}' is a {callee.kind}, not a function",
                leaf.line,
                leaf.col,
                found=callee.kind,
            )
            for arg in args:
                self._type_of(arg)
            return None

        params = callee.params or []
        if len(args) != len(params):
            self._report(
                DiagnosticKind.ARGUMENT_COUNT_MISMATCH,
                f"'{callee.name}' takes {len(params)} argument(s), {len(args)} given",
                leaf.line,
                leaf.col,
                expected=(str(len(params)),),
                found=str(len(args)),
            )
            for arg in args:
                self._type_of(arg)
            return callee.type
        for index, (arg, param_type) in enumerate(zip(args, params), start=1):
            self._expect_type(param_type, arg, f"argument {index} of '{callee.name}'")
        return callee.type


def analyze(tree: ParseTreeNode) -> list[Diagnostic]:
    return SemanticAnalyzer().analyze(tree)


__all__ = ["Declared", "SemanticAnalyzer", "analyze"]
