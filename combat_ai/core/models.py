"""Core data models: Vector3, TargetPose and steering helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Vector3:
    """Immutable 3D float vector. ``y`` is altitude."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, k: float) -> Vector3:
        return Vector3(self.x * k, self.y * k, self.z * k)

    __rmul__ = __mul__

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: Vector3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3) -> Vector3:
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def sqr_length(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> Vector3:
        """Unit vector in the same direction; the zero vector stays zero."""
        n = self.length()
        if n < 1e-9:
            return ZERO
        return Vector3(self.x / n, self.y / n, self.z / n)

    def distance(self, other: Vector3) -> float:
        return (self - other).length()

    def flattened(self) -> Vector3:
        """Projection onto the ground plane."""
        return Vector3(self.x, 0.0, self.z)

    def to_list(self) -> list[float]:
        return [round(self.x, 3), round(self.y, 3), round(self.z, 3)]

    def __repr__(self) -> str:
        return f"({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"


ZERO = Vector3(0.0, 0.0, 0.0)
UP = Vector3(0.0, 1.0, 0.0)
FORWARD = Vector3(0.0, 0.0, 1.0)


@dataclass(frozen=True, slots=True)
class TargetPose:
    """What the host reports about the player each tick."""

    position: Vector3
    velocity: Vector3 = ZERO
    attacking: bool = False


def rotate_towards(current: Vector3, desired: Vector3, max_degrees: float) -> Vector3:
    """Turn unit vector *current* toward *desired* by at most *max_degrees*.

    Returns a unit vector. Falls back to *desired* when *current* is zero.
    """
    cur = current.normalized()
    want = desired.normalized()
    if want == ZERO:
        return cur
    if cur == ZERO:
        return want

    cos_angle = max(-1.0, min(1.0, cur.dot(want)))
    angle = math.degrees(math.acos(cos_angle))
    if angle <= max_degrees or angle < 1e-6:
        return want

    # Slerp by the allowed fraction of the angle
    t = max_degrees / angle
    omega = math.radians(angle)
    sin_omega = math.sin(omega)
    if sin_omega < 1e-6:
        # Antiparallel: rotate around UP (or an arbitrary axis)
        axis = cur.cross(UP)
        if axis.length() < 1e-6:
            axis = cur.cross(FORWARD)
        axis = axis.normalized()
        rad = math.radians(max_degrees)
        return (cur * math.cos(rad) + axis.cross(cur) * math.sin(rad)).normalized()
    a = math.sin((1.0 - t) * omega) / sin_omega
    b = math.sin(t * omega) / sin_omega
    return (cur * a + want * b).normalized()
