"""Forward-mode automatic differentiation with gradient numbers.

A :class:`Gradient` carries a value together with its partial derivatives
with respect to a fixed set of free variables. Arithmetic and trigonometric
operations propagate the derivatives exactly (chain rule), so a closed-form
model written with gradients yields its Jacobian row at no extra cost and
without the cancellation errors of finite differences.

Example
-------
>>> x = Gradient.variable(2, 0, 0.5)
>>> y = Gradient.variable(2, 1, 2.0)
>>> z = x.sin() * y
>>> z.value, z.gradient
(0.958..., array([1.755..., 0.479...]))
"""

from __future__ import annotations

import math
from typing import Union

import numpy as np

Operand = Union["Gradient", float, int]


class Gradient:
    """Value with first order partial derivatives.

    Parameters
    ----------
    value : float
        Value of the function
    gradient : array_like
        Partial derivatives with respect to the free variables
    """

    __slots__ = ("_value", "_gradient")

    def __init__(self, value: float, gradient):
        self._value = float(value)
        self._gradient = np.asarray(gradient, dtype=float)

    @classmethod
    def variable(cls, free_parameters: int, index: int, value: float) -> Gradient:
        """Build an independent variable.

        Parameters
        ----------
        free_parameters : int
            Total number of free variables
        index : int
            Index of this variable among the free variables
        value : float
            Value of the variable

        Returns
        -------
        Gradient
            Gradient whose derivative is 1 with respect to itself, 0 otherwise
        """
        if not 0 <= index < free_parameters:
            raise ValueError(
                f"variable index {index} out of range [0, {free_parameters})"
            )
        gradient = np.zeros(free_parameters)
        gradient[index] = 1.0
        return cls(value, gradient)

    @classmethod
    def constant(cls, free_parameters: int, value: float) -> Gradient:
        """Build a constant (all derivatives equal to 0)."""
        return cls(value, np.zeros(free_parameters))

    @property
    def value(self) -> float:
        return self._value

    @property
    def gradient(self) -> np.ndarray:
        """Copy of the partial derivatives."""
        return self._gradient.copy()

    @property
    def free_parameters(self) -> int:
        return self._gradient.shape[0]

    def partial(self, index: int) -> float:
        return float(self._gradient[index])

    # ------------------------------------------------------------------
    # arithmetic
    # ------------------------------------------------------------------

    def _check(self, other: Gradient) -> None:
        if other._gradient.shape != self._gradient.shape:
            raise ValueError(
                f"dimension mismatch: {self.free_parameters} != {other.free_parameters}"
            )

    def __add__(self, other: Operand) -> Gradient:
        if isinstance(other, Gradient):
            self._check(other)
            return Gradient(self._value + other._value, self._gradient + other._gradient)
        return Gradient(self._value + other, self._gradient)

    __radd__ = __add__

    def __sub__(self, other: Operand) -> Gradient:
        if isinstance(other, Gradient):
            self._check(other)
            return Gradient(self._value - other._value, self._gradient - other._gradient)
        return Gradient(self._value - other, self._gradient)

    def __rsub__(self, other: float) -> Gradient:
        return Gradient(other - self._value, -self._gradient)

    def __neg__(self) -> Gradient:
        return Gradient(-self._value, -self._gradient)

    def __mul__(self, other: Operand) -> Gradient:
        if isinstance(other, Gradient):
            self._check(other)
            return Gradient(
                self._value * other._value,
                self._gradient * other._value + other._gradient * self._value,
            )
        return Gradient(self._value * other, self._gradient * other)

    __rmul__ = __mul__

    def __truediv__(self, other: Operand) -> Gradient:
        if isinstance(other, Gradient):
            self._check(other)
            inv = 1.0 / other._value
            quotient = self._value * inv
            return Gradient(
                quotient, (self._gradient - other._gradient * quotient) * inv
            )
        return Gradient(self._value / other, self._gradient / other)

    def __rtruediv__(self, other: float) -> Gradient:
        inv = 1.0 / self._value
        quotient = other * inv
        return Gradient(quotient, -self._gradient * (quotient * inv))

    # ------------------------------------------------------------------
    # trigonometry
    # ------------------------------------------------------------------

    def sin(self) -> Gradient:
        return Gradient(math.sin(self._value), self._gradient * math.cos(self._value))

    def cos(self) -> Gradient:
        return Gradient(math.cos(self._value), -self._gradient * math.sin(self._value))

    def sin_cos(self) -> tuple[Gradient, Gradient]:
        """Compute sine and cosine together.

        Returns
        -------
        tuple[Gradient, Gradient]
            (sin, cos) of the gradient number
        """
        s = math.sin(self._value)
        c = math.cos(self._value)
        return Gradient(s, self._gradient * c), Gradient(c, -self._gradient * s)

    def __repr__(self) -> str:
        return f"Gradient(value={self._value!r}, gradient={self._gradient.tolist()!r})"
