"""
Reasoning tools: a scratchpad ("think") and an arithmetic calculator.
The calculator walks the parsed expression instead of calling eval().
"""
from __future__ import annotations

import ast
import logging
import math
import operator
from typing import Any

logger = logging.getLogger(__name__)

_BIN_OPS: dict[type, Any] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPS: dict[type, Any] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

_FUNCTIONS: dict[str, Any] = {
    "abs": abs,
    "round": round,
    "min": min,
    "max": max,
    "sqrt": math.sqrt,
    "log": math.log,
    "log10": math.log10,
    "exp": math.exp,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "floor": math.floor,
    "ceil": math.ceil,
}

_CONSTANTS: dict[str, float] = {"pi": math.pi, "e": math.e}

# Keeps 10**10**10 style inputs from hanging the process
MAX_EXPONENT = 1000


def _eval_node(node: ast.AST) -> Any:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        left = _eval_node(node.left)
        right = _eval_node(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise ValueError(f"Exponent too large: {right}")
        return _BIN_OPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    if isinstance(node, ast.Name) and node.id in _CONSTANTS:
        return _CONSTANTS[node.id]
    if (
        isinstance(node, ast.Call)
        and isinstance(node.func, ast.Name)
        and node.func.id in _FUNCTIONS
        and not node.keywords
    ):
        return _FUNCTIONS[node.func.id](*[_eval_node(a) for a in node.args])
    raise ValueError(f"Unsupported expression element: {type(node).__name__}")


def evaluate_expression(expression: str) -> float | int:
    tree = ast.parse(expression.replace("^", "**"), mode="eval")
    return _eval_node(tree)


async def calculator(context: dict, params: dict) -> str:
    """Evaluates an arithmetic expression."""
    expression = (params.get("expression") or "").strip()
    if not expression:
        return "Error: expression is required"
    try:
        result = evaluate_expression(expression)
    except (SyntaxError, ValueError, TypeError, ZeroDivisionError, OverflowError) as e:
        return f"Error evaluating {expression!r}: {e}"
    return f"{expression} = {result}"


async def think(context: dict, params: dict) -> str:
    """Records a planning thought. Nothing is executed; the model sees its own note acknowledged."""
    thought = params.get("thought") or ""
    logger.debug(f"think: {thought[:200]}")
    return "Thought recorded. Continue with your plan."
