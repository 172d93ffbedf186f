"""3-D vector helpers.

Points and directions are float64 arrays of shape (3,) ordered (x, y, z),
with y as height. Angles are in degrees.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

UP = np.array([0.0, 1.0, 0.0])
DOWN = np.array([0.0, -1.0, 0.0])
X_AXIS = np.array([1.0, 0.0, 0.0])


def vec3(x: float, y: float, z: float) -> np.ndarray:
    return np.array([x, y, z], dtype=np.float64)


def as_vec3(value: Sequence[float]) -> np.ndarray:
    """Copy any 3-sequence into a fresh float64 vector."""
    arr = np.array(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {arr.shape}")
    return arr


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit vector along v. A zero vector is returned unchanged."""
    norm = float(np.linalg.norm(v))
    if norm == 0.0:
        return v.copy()
    return v / norm


def rotate(v: np.ndarray, axis: np.ndarray, angle_deg: float) -> np.ndarray:
    """Rotate v about a unit axis by angle_deg (right-hand rule, Rodrigues).

    v_rot = v cosθ + (k × v) sinθ + k (k · v)(1 − cosθ)
    """
    theta = np.radians(angle_deg)
    c, s = np.cos(theta), np.sin(theta)
    return v * c + np.cross(axis, v) * s + axis * np.dot(axis, v) * (1.0 - c)
