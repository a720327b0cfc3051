"""Restricted arithmetic evaluator exposed to the agent as a tool.

The expression is parsed with ``ast`` and only numeric literals,
unary +/-, the binary operators + - * / // % ** and parentheses are
evaluated. Anything else (names, calls, attributes, strings,
comparisons) is rejected, so the model can never reach ``eval``.
"""

import ast
import math
import operator

from agent_ops.errors import ToolError

MAX_EXPRESSION_LENGTH = 200
MAX_EXPONENT = 100
# Integer results wider than this are refused (about 1200 decimal digits)
MAX_RESULT_BITS = 4096

_BINARY_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def _check_size(value: int | float) -> int | float:
    if isinstance(value, int) and value.bit_length() > MAX_RESULT_BITS:
        raise ToolError("Result too large")
    return value


def _evaluate(node: ast.AST) -> int | float:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)

    if isinstance(node, ast.Constant):
        # bool is a subclass of int; reject True/False explicitly
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise ToolError(f"Unsupported literal: {node.value!r}")
        return node.value

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _check_size(_UNARY_OPS[type(node.op)](_evaluate(node.operand)))

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        left = _evaluate(node.left)
        right = _evaluate(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise ToolError(f"Exponent too large (max {MAX_EXPONENT})")
        if (
            isinstance(node.op, ast.Pow)
            and isinstance(left, int)
            and isinstance(right, int)
            and abs(left).bit_length() * right > MAX_RESULT_BITS
        ):
            raise ToolError("Result too large")
        try:
            result = _BINARY_OPS[type(node.op)](left, right)
        except ZeroDivisionError:
            raise ToolError("Division by zero")
        except OverflowError:
            raise ToolError("Result too large")
        except TypeError:
            raise ToolError("Result is not a real number")
        return _check_size(result)

    raise ToolError(f"Unsupported expression element: {type(node).__name__}")


def _render(value: int | float) -> str:
    if isinstance(value, complex):
        raise ToolError("Result is not a real number")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ToolError("Result is not finite")
        if value.is_integer():
            return str(int(value))
    return str(value)


def calculate(expression: str) -> str:
    """Evaluate a basic arithmetic expression and return the result as text.

    Args:
        expression: Arithmetic such as "2 + 3 * (4 - 1)".

    Returns:
        The result, e.g. "11".
    """
    if not isinstance(expression, str):
        raise ToolError(f"Expression must be text, got {type(expression).__name__}")
    expression = expression.strip()
    if not expression:
        raise ToolError("Empty expression")
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise ToolError(f"Expression too long (max {MAX_EXPRESSION_LENGTH} characters)")

    try:
        tree = ast.parse(expression, mode="eval")
    except SyntaxError:
        raise ToolError(f"Invalid expression: {expression!r}")

    return _render(_evaluate(tree))
