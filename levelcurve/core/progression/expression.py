"""
LEVELCURVE - FORMULA EXPRESSION ENGINE
======================================

Restricted arithmetic evaluator for designer-authored formulas.

Pipeline:
    formula string → Lexer → tokens → Parser → AST → Evaluator → float

Grammar (case-insensitive identifiers):
    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := "-" unary | power
    power      := primary ("^" unary)?          # right associative
    primary    := NUMBER | VARIABLE | call | "(" expression ")"
    call       := FUNCTION "(" expression ("," expression)* ")"

Variables: level (alias x), size
Functions: MAX(a, b), MIN(a, b), ROUND(a), FLOOR(a), CEIL(a), SQRT(a)

Nothing outside this grammar is accepted: any other character or identifier
is rejected at lexing/parsing time, and evaluation only walks the AST.

Example:
    >>> evaluate("MAX(10, level*2)", {"level": 3})
    10.0
    >>> evaluate("level^2 + 1", {"level": 4})
    17.0
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import EvaluationError, FormulaDomainError, FormulaSyntaxError


MAX_FORMULA_LENGTH = 1000
MAX_NESTING_DEPTH = 64

VARIABLE_ALIASES: Dict[str, str] = {
    "level": "level",
    "x": "level",
    "size": "size",
}


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def _sqrt(value: float) -> float:
    if value < 0:
        raise FormulaDomainError(f"SQRT of negative value {value}")
    return math.sqrt(value)


# name → (arity, implementation)
FUNCTIONS: Dict[str, Tuple[int, Callable[..., float]]] = {
    "MAX": (2, max),
    "MIN": (2, min),
    "ROUND": (1, _round_half_up),
    "FLOOR": (1, lambda v: float(math.floor(v))),
    "CEIL": (1, lambda v: float(math.ceil(v))),
    "SQRT": (1, _sqrt),
}


# ============================================================================
# LEXER
# ============================================================================

class TokenType(str, Enum):
    NUMBER = "number"
    VARIABLE = "variable"
    FUNCTION = "function"
    OPERATOR = "operator"
    LPAREN = "lparen"
    RPAREN = "rparen"
    COMMA = "comma"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    position: int


class Lexer:
    """
    Splits a formula into tokens.

    Identifiers are normalized at this stage: variables map to their
    canonical binding name, function names are upper-cased. Anything else
    is a FormulaSyntaxError.
    """

    OPERATORS = "+-*/^"

    def __init__(self, formula: str):
        self.formula = formula
        self.pos = 0

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        text = self.formula

        while self.pos < len(text):
            char = text[self.pos]

            if char.isspace():
                self.pos += 1
                continue

            if char.isdigit() or (char == "." and self._peek_digit()):
                tokens.append(self._read_number())
                continue

            if char.isalpha() or char == "_":
                tokens.append(self._read_identifier())
                continue

            if char in self.OPERATORS:
                tokens.append(Token(TokenType.OPERATOR, char, self.pos))
            elif char == "(":
                tokens.append(Token(TokenType.LPAREN, char, self.pos))
            elif char == ")":
                tokens.append(Token(TokenType.RPAREN, char, self.pos))
            elif char == ",":
                tokens.append(Token(TokenType.COMMA, char, self.pos))
            else:
                raise FormulaSyntaxError(
                    f"Unexpected character '{char}' at position {self.pos}",
                    formula=self.formula,
                    position=self.pos
                )
            self.pos += 1

        tokens.append(Token(TokenType.EOF, "", self.pos))
        return tokens

    def _peek_digit(self) -> bool:
        nxt = self.pos + 1
        return nxt < len(self.formula) and self.formula[nxt].isdigit()

    def _read_number(self) -> Token:
        start = self.pos
        seen_dot = False
        while self.pos < len(self.formula):
            char = self.formula[self.pos]
            if char.isdigit():
                self.pos += 1
            elif char == "." and not seen_dot:
                seen_dot = True
                self.pos += 1
            else:
                break

        literal = self.formula[start:self.pos]
        if self.pos < len(self.formula) and self.formula[self.pos] == ".":
            raise FormulaSyntaxError(
                f"Malformed number '{literal}.' at position {start}",
                formula=self.formula,
                position=start
            )
        return Token(TokenType.NUMBER, literal, start)

    def _read_identifier(self) -> Token:
        start = self.pos
        while self.pos < len(self.formula) and (
            self.formula[self.pos].isalnum() or self.formula[self.pos] == "_"
        ):
            self.pos += 1

        word = self.formula[start:self.pos]
        lowered = word.lower()
        upper = word.upper()

        if lowered in VARIABLE_ALIASES:
            return Token(TokenType.VARIABLE, VARIABLE_ALIASES[lowered], start)
        if upper in FUNCTIONS:
            return Token(TokenType.FUNCTION, upper, start)

        raise FormulaSyntaxError(
            f"Unknown identifier '{word}' at position {start}",
            formula=self.formula,
            position=start
        )


# ============================================================================
# AST
# ============================================================================

@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    operator: str
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    operator: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Call:
    name: str
    args: Tuple["Node", ...]


Node = Union[Number, Variable, UnaryOp, BinaryOp, Call]


# ============================================================================
# PARSER
# ============================================================================

class Parser:
    """Recursive descent parser producing an immutable AST."""

    def __init__(self, tokens: List[Token], formula: str = ""):
        self.tokens = tokens
        self.formula = formula
        self.current = 0
        self.depth = 0

    def parse(self) -> Node:
        if self._peek().type == TokenType.EOF:
            raise self._error("Empty formula", self._peek())

        node = self._expression()

        token = self._peek()
        if token.type != TokenType.EOF:
            raise self._error(f"Unexpected '{token.value}' after expression", token)
        return node

    # --- helpers -------------------------------------------------------------

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _advance(self) -> Token:
        token = self.tokens[self.current]
        if token.type != TokenType.EOF:
            self.current += 1
        return token

    def _expect(self, token_type: TokenType, what: str) -> Token:
        token = self._peek()
        if token.type != token_type:
            found = token.value or "end of formula"
            raise self._error(f"Expected {what} but got '{found}'", token)
        return self._advance()

    def _is_operator(self, *operators: str) -> bool:
        token = self._peek()
        return token.type == TokenType.OPERATOR and token.value in operators

    def _error(self, message: str, token: Token) -> FormulaSyntaxError:
        return FormulaSyntaxError(
            f"{message} at position {token.position}",
            formula=self.formula,
            position=token.position
        )

    # --- grammar -------------------------------------------------------------

    def _expression(self) -> Node:
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise self._error("Formula nested too deeply", self._peek())

        left = self._term()
        while self._is_operator("+", "-"):
            operator = self._advance().value
            left = BinaryOp(operator, left, self._term())

        self.depth -= 1
        return left

    def _term(self) -> Node:
        left = self._unary()
        while self._is_operator("*", "/"):
            operator = self._advance().value
            left = BinaryOp(operator, left, self._unary())
        return left

    def _unary(self) -> Node:
        if self._is_operator("-"):
            self._advance()
            self.depth += 1
            if self.depth > MAX_NESTING_DEPTH:
                raise self._error("Formula nested too deeply", self._peek())
            operand = self._unary()
            self.depth -= 1
            return UnaryOp("-", operand)
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._is_operator("^"):
            self._advance()
            # Exponent may itself be negated or chained: 2^-1, 2^3^2
            self.depth += 1
            if self.depth > MAX_NESTING_DEPTH:
                raise self._error("Formula nested too deeply", self._peek())
            exponent = self._unary()
            self.depth -= 1
            return BinaryOp("^", base, exponent)
        return base

    def _primary(self) -> Node:
        token = self._peek()

        if token.type == TokenType.NUMBER:
            self._advance()
            return Number(float(token.value))

        if token.type == TokenType.VARIABLE:
            self._advance()
            return Variable(token.value)

        if token.type == TokenType.FUNCTION:
            return self._call()

        if token.type == TokenType.LPAREN:
            self._advance()
            node = self._expression()
            self._expect(TokenType.RPAREN, "')'")
            return node

        if token.type == TokenType.EOF:
            raise self._error("Unexpected end of formula", token)
        raise self._error(f"Unexpected '{token.value}'", token)

    def _call(self) -> Node:
        name_token = self._advance()
        name = name_token.value
        self._expect(TokenType.LPAREN, f"'(' after {name}")

        args: List[Node] = []
        if self._peek().type != TokenType.RPAREN:
            args.append(self._expression())
            while self._peek().type == TokenType.COMMA:
                self._advance()
                args.append(self._expression())
        self._expect(TokenType.RPAREN, "')'")

        arity = FUNCTIONS[name][0]
        if len(args) != arity:
            raise self._error(
                f"{name} takes {arity} argument{'s' if arity != 1 else ''}, got {len(args)}",
                name_token
            )
        return Call(name, tuple(args))


@lru_cache(maxsize=256)
def parse(formula: str) -> Node:
    """
    Parse formula into an AST.

    Cached: curves evaluate the same few formulas for every level.

    Raises:
        FormulaSyntaxError: On any input outside the grammar
    """
    if not isinstance(formula, str):
        raise FormulaSyntaxError("Formula must be a string", formula=str(formula))
    if len(formula) > MAX_FORMULA_LENGTH:
        raise FormulaSyntaxError(
            f"Formula longer than {MAX_FORMULA_LENGTH} characters",
            formula=formula[:50] + "..."
        )

    tokens = Lexer(formula).tokenize()
    try:
        return Parser(tokens, formula).parse()
    except RecursionError as e:
        raise FormulaSyntaxError("Formula nested too deeply", formula=formula) from e


# ============================================================================
# EVALUATOR
# ============================================================================

class Evaluator:
    """
    Walks an AST against numeric bindings.

    Usage:
        evaluator = Evaluator({"level": 5, "size": 20})
        value = evaluator.evaluate(parse("level * size"))
    """

    def __init__(self, bindings: Mapping[str, float], formula: str = ""):
        self.bindings = bindings
        self.formula = formula

    def evaluate(self, node: Node) -> float:
        if isinstance(node, Number):
            return node.value

        if isinstance(node, Variable):
            value = self.bindings.get(node.name)
            if value is None:
                raise FormulaSyntaxError(
                    f"Variable '{node.name}' is not bound",
                    formula=self.formula
                )
            return float(value)

        if isinstance(node, UnaryOp):
            return -self.evaluate(node.operand)

        if isinstance(node, BinaryOp):
            return self._binary(node)

        if isinstance(node, Call):
            _, func = FUNCTIONS[node.name]
            args = [self.evaluate(arg) for arg in node.args]
            try:
                return float(func(*args))
            except FormulaDomainError as e:
                raise FormulaDomainError(e.message, formula=self.formula) from e
            except (ValueError, OverflowError) as e:
                raise FormulaDomainError(f"{node.name}: {e}", formula=self.formula) from e

        raise FormulaSyntaxError(f"Unsupported node {node!r}", formula=self.formula)

    def _binary(self, node: BinaryOp) -> float:
        if node.operator == "^":
            return self._apply("^", self.evaluate(node.left), self.evaluate(node.right))

        # Left-associative chains (1+1+...+1) are walked along the left spine
        spine: List[BinaryOp] = []
        while isinstance(node, BinaryOp) and node.operator != "^":
            spine.append(node)
            node = node.left

        value = self.evaluate(node)
        for step in reversed(spine):
            value = self._apply(step.operator, value, self.evaluate(step.right))
        return value

    def _apply(self, op: str, left: float, right: float) -> float:
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            if right == 0:
                raise FormulaDomainError("Division by zero", formula=self.formula)
            return left / right

        # "^" is exponentiation; math.pow refuses complex results
        try:
            return math.pow(left, right)
        except (ValueError, OverflowError) as e:
            raise FormulaDomainError(
                f"Invalid power {left}^{right}: {e}",
                formula=self.formula
            ) from e


def _normalize_bindings(bindings: Optional[Mapping[str, float]]) -> Dict[str, float]:
    normalized: Dict[str, float] = {}
    for key, value in (bindings or {}).items():
        canonical = VARIABLE_ALIASES.get(str(key).lower())
        if canonical is not None and value is not None:
            normalized[canonical] = value
    return normalized


def evaluate(formula: str, bindings: Optional[Mapping[str, float]] = None) -> float:
    """
    Evaluate formula against bindings.

    Args:
        formula: Formula in the restricted grammar
        bindings: {"level": ..., "size": ...} ("x" accepted for level)

    Returns:
        Finite float result (not floored)

    Raises:
        FormulaSyntaxError: Unparseable formula, unknown or unbound identifier
        FormulaDomainError: Division by zero, non-finite or NaN result
    """
    tree = parse(formula)
    try:
        result = Evaluator(_normalize_bindings(bindings), formula).evaluate(tree)
    except RecursionError as e:
        raise FormulaSyntaxError("Formula nested too deeply", formula=formula) from e

    if math.isnan(result) or math.isinf(result):
        raise FormulaDomainError(f"Non-finite result {result}", formula=formula)
    return result


def try_evaluate(formula: str, bindings: Optional[Mapping[str, float]] = None) -> Optional[float]:
    """Evaluate formula, returning None (undefined) instead of raising."""
    try:
        return evaluate(formula, bindings)
    except EvaluationError:
        return None


def validate_formula(formula: str) -> Tuple[bool, Optional[str]]:
    """
    Check formula syntax without evaluating it.

    Returns:
        (True, None) if valid, (False, error message) otherwise
    """
    try:
        parse(formula)
        return True, None
    except FormulaSyntaxError as e:
        return False, e.message
