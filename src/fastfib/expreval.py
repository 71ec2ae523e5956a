"""Parse a Fibonacci index from user text: literals, grouped digits, 2e7, 2**30."""
from __future__ import annotations

import ast
import operator as op
import re

from fastfib.utility import UserInputError, max_index_bits, validate_index

# ---- simple number parsing helpers ----
_THIN_SPACES = ("\u2009", "\u202F", "\u00A0")  # thin, narrow no-break, no-break
_SEP_CLASS = r"[ ,._\u00A0\u2009\u202F]"      # spaces/commas/dots/underscores & NBSP variants
_GROUPED_RE = re.compile(rf"^[+-]?\d{{1,3}}(?:{_SEP_CLASS}\d{{3}})+$")

# ---- allowed operators (safe subset) ----
_ALLOWED_BINOPS = {
    ast.Add:      op.add,
    ast.Sub:      op.sub,
    ast.Mult:     op.mul,
    ast.FloorDiv: op.floordiv,
    ast.Mod:      op.mod,
    ast.LShift:   op.lshift,
    ast.RShift:   op.rshift,
}
_ALLOWED_UNARYOPS = {
    ast.UAdd: op.pos,
    ast.USub: op.neg,
}

_MAX_NODES = 64  # sanity guard

_SCI_NOTATION_TOKEN = re.compile(
    r"""
    (?<![\w.])          # not immediately after a word char or dot
    (\d+)               # mantissa (digits)
    [eE]
    ([+\-]?\d+)         # exponent (optional sign + digits)
    (?![\w.])           # not immediately before a word char or dot
    """,
    re.VERBOSE,
)


class _IntExprError(Exception):
    pass


def _parse_int_literal(text: str) -> int | None:
    """Accepts: 42  1_000_000  0xFF  20,000,000  20 000 000
       Rejects: 3.14  1,23  0xG1"""
    s = text.strip()
    if not s:
        return None

    for ch in _THIN_SPACES:
        s = s.replace(ch, " ")

    if s.lower().startswith(("0x", "0b", "0o")):
        try:
            return int(s.replace("_", ""), 0)
        except ValueError:
            return None

    if re.fullmatch(r"[+-]?\d[\d_]*", s):
        try:
            return int(s.replace("_", ""))
        except ValueError:
            return None

    if _GROUPED_RE.match(s):
        return int(re.sub(_SEP_CLASS, "", s))

    return None


def _rewrite_scientific_notation(expr: str) -> str:
    """
    2e7 -> (2)*10**(7). Negative exponents are not integers and are rejected.
    """

    def repl(m: re.Match) -> str:
        mant, exp = m.group(1), int(m.group(2))
        if exp < 0:
            raise _IntExprError("scientific notation with negative exponent is not an integer")
        return f"({mant})*10**({exp})"

    return _SCI_NOTATION_TOKEN.sub(repl, expr)


def _eval_int_expr(expr: str, bit_limit: int) -> int:
    """
    Evaluate a small integer expression.

    Allowed: integers, parentheses, + - * // % ** << >>, unary +/-.
    Anything whose intermediate value would exceed a few times the index
    width is refused before it is built, so '10**10**10' cannot hang.
    """
    expr = _rewrite_scientific_notation(expr.replace("^", "**"))

    try:
        tree = ast.parse(expr, mode="eval")
    except SyntaxError as e:
        raise _IntExprError("invalid integer expression") from e

    if sum(1 for _ in ast.walk(tree)) > _MAX_NODES:
        raise _IntExprError("expression too large")

    guard = 4 * bit_limit

    def _checked(val: int) -> int:
        if abs(val).bit_length() > guard:
            raise UserInputError(f"Invalid input: expression exceeds the {bit_limit}-bit index limit.")
        return val

    def _eval(node) -> int:
        if isinstance(node, ast.Expression):
            return _eval(node.body)

        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool) or not isinstance(node.value, int):
                raise _IntExprError("non-integer values are not allowed")
            return _checked(node.value)

        if isinstance(node, ast.UnaryOp) and type(node.op) in _ALLOWED_UNARYOPS:
            return _ALLOWED_UNARYOPS[type(node.op)](_eval(node.operand))

        if isinstance(node, ast.BinOp):
            op_type = type(node.op)
            left = _eval(node.left)
            right = _eval(node.right)

            if op_type is ast.Pow:
                if right < 0:
                    raise UserInputError("Invalid input: negative exponents are not allowed.")
                # bits(base**exp) is about exp * bits(base)
                if abs(left) > 1 and right * (abs(left).bit_length() - 1) > guard:
                    raise UserInputError(f"Invalid input: expression exceeds the {bit_limit}-bit index limit.")
                return _checked(left ** right)

            if op_type in (ast.LShift, ast.RShift) and right < 0:
                raise _IntExprError("negative shift count")

            if op_type is ast.LShift and right > guard:
                raise UserInputError(f"Invalid input: expression exceeds the {bit_limit}-bit index limit.")

            if op_type in (ast.FloorDiv, ast.Mod) and right == 0:
                raise _IntExprError("division by zero")

            if op_type in _ALLOWED_BINOPS:
                return _checked(_ALLOWED_BINOPS[op_type](left, right))

        raise _IntExprError(f"unsupported syntax: {type(node).__name__}")

    return _eval(tree)


def parse_index(text: str) -> int:
    """
    Turn user text into a validated Fibonacci index.
    Raises UserInputError for anything that is not a non-negative integer
    inside the configured index width.
    """
    if text is None or not str(text).strip():
        raise UserInputError("Invalid input: empty index.")
    s = str(text).strip()

    n = _parse_int_literal(s)
    if n is None:
        try:
            n = _eval_int_expr(s, max_index_bits())
        except _IntExprError:
            raise UserInputError(f"Invalid input: '{s}' is not a non-negative integer.") from None

    return validate_index(n)
