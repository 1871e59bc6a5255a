"""Prismatic rule geometry and measurement model.

The cross-section of a prismatic rule is a triangle with vertices A1, A2,
A3, described by its circumscribed circle radius R and its angles α1, α2,
α3. Only R, α1 and α2 are free: α3 = π − α1 − α2 is always derived.

A measurement is taken with the rule resting on one face (the base) and
the opposite vertex on top. Two cylindrical pins of diameter d, raised by
spacer blocks of height h, rest against the two slanted faces adjacent to
the base; the distance m across the pins is measured. With αA and αB the
two bottom angles, the theoretical measurement is

    m = 2 R sin(αA + αB) + offset(αA) + offset(αB)

    offset(α) = [d (1 + sin α) − (d + 2h) cos α] / (2 sin α)

The pin touches its face at distance

    l(α) = [2h + d (1 − cos α)] / (2 sin α)

from the bottom vertex, which is used to locate residuals along faces.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

import numpy as np

from prisma.core.gradient import Gradient

# Indices of the free variables
R_INDEX = 0
ALPHA_1_INDEX = R_INDEX + 1
ALPHA_2_INDEX = ALPHA_1_INDEX + 1
N_PARAMETERS = ALPHA_2_INDEX + 1


class Vertex(Enum):
    """Triangle vertex used as top vertex of a measurement."""

    A1 = 1
    A2 = 2
    A3 = 3

    @classmethod
    def parse(cls, name: str) -> Vertex:
        """Get a vertex from its name ("A1", "A2" or "A3")."""
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"unknown vertex: {name}") from None


class Face(Enum):
    """Triangle face, named after its two vertices in cyclic order."""

    A1A2 = (Vertex.A1, Vertex.A2)
    A2A3 = (Vertex.A2, Vertex.A3)
    A3A1 = (Vertex.A3, Vertex.A1)

    @property
    def first(self) -> Vertex:
        return self.value[0]

    @property
    def second(self) -> Vertex:
        return self.value[1]

    @property
    def opposite(self) -> Vertex:
        """Vertex not on this face."""
        (vertex,) = set(Vertex) - set(self.value)
        return vertex

    @classmethod
    def between(cls, v1: Vertex, v2: Vertex) -> Face:
        """Get the face joining two distinct vertices."""
        for face in cls:
            if {v1, v2} == set(face.value):
                return face
        raise ValueError(f"no face between {v1.name} and {v2.name}")


@dataclass(frozen=True)
class ObservedMeasurement:
    """One measurement, as read from the measurement file.

    Attributes
    ----------
    top : Vertex
        Top vertex (opposite to the base the rule rests on)
    d : float
        Cylindrical pin diameter
    h : float
        Spacer block height
    m : float
        Measured value
    """

    top: Vertex
    d: float
    h: float
    m: float


class ParameterVector(NamedTuple):
    """Free parameters of the fit: (R, α1, α2).

    α3 is not stored; it is always derived from α1 and α2 so the angle sum
    constraint holds exactly.
    """

    r: float
    alpha1: float
    alpha2: float

    @property
    def alpha3(self) -> float:
        return math.pi - self.alpha1 - self.alpha2

    @classmethod
    def from_array(cls, array) -> ParameterVector:
        r, alpha1, alpha2 = (float(x) for x in np.asarray(array, dtype=float))
        return cls(r, alpha1, alpha2)

    def as_array(self) -> np.ndarray:
        return np.array([self.r, self.alpha1, self.alpha2], dtype=float)

    def in_domain(self) -> bool:
        """Check R > 0, α1 > 0, α2 > 0 and α1 + α2 < π."""
        values = (self.r, self.alpha1, self.alpha2)
        return (
            all(math.isfinite(v) for v in values)
            and self.r > 0
            and self.alpha1 > 0
            and self.alpha2 > 0
            and self.alpha1 + self.alpha2 < math.pi
        )

    def degrees(self) -> tuple[float, float, float]:
        """Get the three angles in degrees."""
        return (
            math.degrees(self.alpha1),
            math.degrees(self.alpha2),
            math.degrees(self.alpha3),
        )


@dataclass(frozen=True)
class Residual:
    """Residual located along a face.

    Attributes
    ----------
    location : float
        Distance of the pin contact point from the face first vertex
    value : float
        Observed minus theoretical measurement
    """

    location: float
    value: float


class Triangle:
    """Triangle model with derivatives with respect to (R, α1, α2).

    Parameters
    ----------
    point : ParameterVector
        Circumscribed circle radius and first two angles
    """

    def __init__(self, point: ParameterVector):
        self._point = ParameterVector(*point)
        self._r = Gradient.variable(N_PARAMETERS, R_INDEX, self._point.r)
        self._alpha1 = Gradient.variable(N_PARAMETERS, ALPHA_1_INDEX, self._point.alpha1)
        self._alpha2 = Gradient.variable(N_PARAMETERS, ALPHA_2_INDEX, self._point.alpha2)
        self._alpha3 = -(self._alpha1 + self._alpha2 - math.pi)

    @classmethod
    def from_values(cls, r: float, alpha1: float, alpha2: float) -> Triangle:
        return cls(ParameterVector(r, alpha1, alpha2))

    @property
    def point(self) -> ParameterVector:
        return self._point

    @property
    def r(self) -> float:
        return self._r.value

    @property
    def alpha1(self) -> float:
        return self._alpha1.value

    @property
    def alpha2(self) -> float:
        return self._alpha2.value

    @property
    def alpha3(self) -> float:
        return self._alpha3.value

    def _angle(self, vertex: Vertex) -> Gradient:
        if vertex is Vertex.A1:
            return self._alpha1
        if vertex is Vertex.A2:
            return self._alpha2
        return self._alpha3

    def angle(self, vertex: Vertex) -> float:
        """Get the angle at one vertex."""
        return self._angle(vertex).value

    def side_length(self, face: Face) -> float:
        """Get the length of one face (law of sines)."""
        return 2 * self.r * math.sin(self.angle(face.opposite))

    @staticmethod
    def bottom_vertices(top: Vertex) -> tuple[Vertex, Vertex]:
        """Get the two vertices on the base opposite to a top vertex."""
        if top is Vertex.A1:
            return Vertex.A2, Vertex.A3
        if top is Vertex.A2:
            return Vertex.A1, Vertex.A3
        return Vertex.A1, Vertex.A2

    def theoretical_measurement(self, observed: ObservedMeasurement) -> Gradient:
        """Evaluate theoretical measurement.

        Parameters
        ----------
        observed : ObservedMeasurement
            Observed measurement (only top vertex, d and h are used)

        Returns
        -------
        Gradient
            Theoretical measurement and its derivatives with respect to
            (R, α1, α2)
        """
        vertex_a, vertex_b = self.bottom_vertices(observed.top)
        alpha_a = self._angle(vertex_a)
        alpha_b = self._angle(vertex_b)
        return (
            self._bottom_length(alpha_a, alpha_b)
            + self._pin_offset(alpha_a, observed.d, observed.h)
            + self._pin_offset(alpha_b, observed.d, observed.h)
        )

    def _bottom_length(self, alpha_a: Gradient, alpha_b: Gradient) -> Gradient:
        return self._r * 2 * (alpha_a + alpha_b).sin()

    @staticmethod
    def _pin_offset(alpha: Gradient, d: float, h: float) -> Gradient:
        sin, cos = alpha.sin_cos()
        return ((sin + 1) * d - cos * (d + 2 * h)) / (sin * 2)

    @staticmethod
    def pin_location(alpha: float, d: float, h: float) -> float:
        """Distance from the bottom vertex to the pin contact point.

        Parameters
        ----------
        alpha : float
            Angle at the bottom vertex on pin side
        d : float
            Cylindrical pin diameter
        h : float
            Spacer block height
        """
        return (2 * h + d * (1 - math.cos(alpha))) / (2 * math.sin(alpha))

    def distribute_residuals(
        self, observed: list[ObservedMeasurement]
    ) -> dict[Face, list[Residual]]:
        """Distribute measurement residuals along the triangle faces.

        Each measurement residual (observed − theoretical) is attached to
        the contact points of its two pins. Locations are measured from
        the first vertex of each face (A1 for A1A2, A2 for A2A3, A3 for
        A3A1).

        Parameters
        ----------
        observed : list[ObservedMeasurement]
            Observed measurements

        Returns
        -------
        dict[Face, list[Residual]]
            Residuals for each face, sorted by location
        """
        faces: dict[Face, list[Residual]] = {face: [] for face in Face}
        for measurement in observed:
            value = measurement.m - self.theoretical_measurement(measurement).value
            for bottom in self.bottom_vertices(measurement.top):
                face = Face.between(bottom, measurement.top)
                location = self.pin_location(
                    self.angle(bottom), measurement.d, measurement.h
                )
                if face.first is not bottom:
                    location = self.side_length(face) - location
                faces[face].append(Residual(location, value))

        for residuals in faces.values():
            residuals.sort(key=lambda residual: residual.location)
        return faces

    def __repr__(self) -> str:
        return (
            f"Triangle(r={self.r!r}, alpha1={self.alpha1!r}, "
            f"alpha2={self.alpha2!r}, alpha3={self.alpha3!r})"
        )
