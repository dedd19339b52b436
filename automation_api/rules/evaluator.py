"""Evaluación de umbrales.

Función pura y total sobre floats IEEE-754. `=` y `!=` usan igualdad
exacta, sin epsilon: 0.1 + 0.2 no es igual a 0.3.
"""

from __future__ import annotations

import operator as _op
from typing import Callable, Dict

from .models import Operator


_COMPARATORS: Dict[Operator, Callable[[float, float], bool]] = {
    Operator.LT: _op.lt,
    Operator.GT: _op.gt,
    Operator.EQ: _op.eq,
    Operator.LE: _op.le,
    Operator.GE: _op.ge,
    Operator.NE: _op.ne,
}


def evaluate(value: float, operator: Operator, threshold: float) -> bool:
    """Compara `value` contra `threshold` con el operador de la regla."""
    return bool(_COMPARATORS[operator](float(value), float(threshold)))
