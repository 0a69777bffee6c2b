"""Prediction engine — lead-aim points for finite-speed projectiles.

All methods are stateless.  Randomness (accuracy jitter) is injected by the
caller as a sample from the deterministic RNG so results stay reproducible.
"""

from __future__ import annotations

import math

from combat_ai.core.models import UP, ZERO, TargetPose, Vector3

# Lateral offset per unit of evasion score when a target is juking
EVASION_BIAS_SCALE = 5.0
# Radius of aim jitter at zero accuracy
JITTER_SCALE = 3.0

_EPS = 1e-9


class PredictionEngine:
    """Stateless lead/intercept math shared by towers, enemies and the boss."""

    __slots__ = ()

    # ------------------------------------------------------------------
    # Linear lead
    # ------------------------------------------------------------------

    @staticmethod
    def lead_time(distance: float, projectile_speed: float, max_time: float = math.inf) -> float:
        """Projectile flight time to *distance*, capped at *max_time*."""
        if projectile_speed <= 0:
            return 0.0
        return min(distance / projectile_speed, max_time)

    @staticmethod
    def linear_lead(
        origin: Vector3,
        target: TargetPose,
        projectile_speed: float,
        max_time: float = math.inf,
    ) -> Vector3:
        """``pos + vel * min(dist / speed, max_time)``."""
        dist = origin.distance(target.position)
        t = PredictionEngine.lead_time(dist, projectile_speed, max_time)
        return target.position + target.velocity * t

    # ------------------------------------------------------------------
    # Offsets
    # ------------------------------------------------------------------

    @staticmethod
    def evasion_bias(velocity: Vector3, evasion: float, scale: float = EVASION_BIAS_SCALE) -> Vector3:
        """Sideways offset anticipating a juke; zero unless *evasion* exceeds 0.5."""
        if evasion <= 0.5:
            return ZERO
        return velocity.normalized().cross(UP) * (evasion * scale)

    @staticmethod
    def jitter(unit_sample: Vector3, accuracy: float, scale: float = JITTER_SCALE) -> Vector3:
        """Scale an inside-unit-sphere sample by ``(1 - accuracy) * scale``."""
        spread = max(0.0, 1.0 - accuracy) * scale
        return unit_sample * spread

    # ------------------------------------------------------------------
    # Intercept course
    # ------------------------------------------------------------------

    @staticmethod
    def intercept_time(to_target: Vector3, target_velocity: Vector3, projectile_speed: float) -> float | None:
        """Smallest positive t solving ``|d + v t| = s t``, or None if no intercept.

        Quadratic: ``(|v|^2 - s^2) t^2 + 2 (v . d) t + |d|^2 = 0``.
        """
        a = target_velocity.dot(target_velocity) - projectile_speed * projectile_speed
        b = 2.0 * target_velocity.dot(to_target)
        c = to_target.dot(to_target)

        if abs(a) < _EPS:
            # Target as fast as the projectile: linear equation b t + c = 0
            if abs(b) < _EPS:
                return None
            t = -c / b
            return t if t > 0 else None

        discriminant = b * b - 4.0 * a * c
        if discriminant < 0:
            return None

        root = math.sqrt(discriminant)
        t1 = (-b + root) / (2.0 * a)
        t2 = (-b - root) / (2.0 * a)
        positive = [t for t in (t1, t2) if t > 0]
        if not positive:
            return None
        return min(positive)

    @staticmethod
    def intercept_point(origin: Vector3, target: TargetPose, projectile_speed: float) -> Vector3:
        """Where to aim so the projectile meets the target; current position if unreachable."""
        t = PredictionEngine.intercept_time(target.position - origin, target.velocity, projectile_speed)
        if t is None:
            return target.position
        return target.position + target.velocity * t

    # ------------------------------------------------------------------
    # Full prediction
    # ------------------------------------------------------------------

    @staticmethod
    def predict(
        origin: Vector3,
        target: TargetPose,
        projectile_speed: float,
        max_time: float,
        evasion: float = 0.0,
        accuracy: float = 1.0,
        jitter_sample: Vector3 | None = None,
    ) -> Vector3:
        """Linear lead plus evasion bias plus accuracy jitter."""
        point = PredictionEngine.linear_lead(origin, target, projectile_speed, max_time)
        point = point + PredictionEngine.evasion_bias(target.velocity, evasion)
        if jitter_sample is not None:
            point = point + PredictionEngine.jitter(jitter_sample, accuracy)
        return point
