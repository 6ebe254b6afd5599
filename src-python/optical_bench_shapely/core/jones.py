"""
Original work Copyright 2024 The Ray Optics Simulation authors and contributors
Python translation Copyright 2026 optical-bench-shapely authors and contributors

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

"""
Jones calculus helpers.

A Jones vector is a numpy complex array of shape (2,) holding the transverse
field amplitudes (Ex, Ey). A Jones matrix is a (2, 2) complex array. All
functions return new arrays and never modify their arguments.
"""

import math
from typing import Optional, Union

import numpy as np

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.constants import (
        POLARIZATION_CLASSIFY_TOLERANCE, ZERO_VECTOR_THRESHOLD
    )
else:
    from .constants import POLARIZATION_CLASSIFY_TOLERANCE, ZERO_VECTOR_THRESHOLD


# A classified polarization state: a linear angle in radians, 'circular',
# 'elliptical', or None when the field carries no energy.
PolarizationState = Optional[Union[float, str]]


def as_jones(j) -> np.ndarray:
    """Copy any (Ex, Ey) pair into a complex128 Jones vector."""
    arr = np.array(j, dtype=np.complex128).reshape(2)
    return arr


def linear(angle: float) -> np.ndarray:
    """
    Unit-energy linear polarization at ``angle`` radians from the x axis.

    Args:
        angle: Polarization angle in radians.

    Returns:
        Jones vector (cos a, sin a).
    """
    return np.array([math.cos(angle), math.sin(angle)], dtype=np.complex128)


def circular(right: bool = True) -> np.ndarray:
    """
    Unit-energy circular polarization, (1, +i)/sqrt(2) for right-handed
    and (1, -i)/sqrt(2) for left-handed.
    """
    s = 1.0 / math.sqrt(2.0)
    return np.array([s, (1j if right else -1j) * s], dtype=np.complex128)


def intensity(j: np.ndarray) -> float:
    """Field energy |Ex|^2 + |Ey|^2."""
    return float(np.sum(np.abs(j) ** 2))


def rotation(theta: float) -> np.ndarray:
    """Rotation matrix [[c, -s], [s, c]] as a Jones matrix."""
    c = math.cos(theta)
    s = math.sin(theta)
    return np.array([[c, -s], [s, c]], dtype=np.complex128)


def projector(theta: float) -> np.ndarray:
    """
    Projection onto the linear axis at ``theta``: [[c^2, cs], [cs, s^2]].
    This is also the Jones matrix of an ideal linear polarizer.
    """
    c = math.cos(theta)
    s = math.sin(theta)
    return np.array([[c * c, c * s], [c * s, s * s]], dtype=np.complex128)


def retarder(fast_axis: float, retardance: float) -> np.ndarray:
    """
    Linear retarder with its fast axis at ``fast_axis`` radians:
    R(theta) diag(1, exp(i delta)) R(-theta).

    Args:
        fast_axis: Fast-axis angle in radians.
        retardance: Phase delay of the slow axis in radians.

    Returns:
        2x2 complex Jones matrix.
    """
    m = np.array([[1.0, 0.0], [0.0, np.exp(1j * retardance)]], dtype=np.complex128)
    return rotation(fast_axis) @ m @ rotation(-fast_axis)


def half_wave_plate(theta: float) -> np.ndarray:
    """Half-wave plate with its fast axis at ``theta`` (diag(1, -1) at 0)."""
    return retarder(theta, math.pi)


def quarter_wave_plate(theta: float) -> np.ndarray:
    """Quarter-wave plate with its fast axis at ``theta`` (diag(1, i) at 0)."""
    return retarder(theta, math.pi / 2)


def apply(matrix: np.ndarray, j: np.ndarray) -> np.ndarray:
    """Apply a Jones matrix to a Jones vector."""
    return matrix @ as_jones(j)


def describe(j: Optional[np.ndarray]) -> PolarizationState:
    """
    Classify a Jones vector.

    Linear states (phase difference between Ey and Ex close to 0 or pi)
    report the angle atan2(Re Ey, Re Ex) of the real field. Equal-magnitude
    components in quadrature are 'circular'; any other state is
    'elliptical'.

    Args:
        j: Jones vector, or None.

    Returns:
        Angle in radians, 'circular', 'elliptical', or None when there is
        no vector or it carries (almost) no energy.
    """
    if j is None:
        return None
    ex, ey = complex(j[0]), complex(j[1])
    mag_x = abs(ex) ** 2
    mag_y = abs(ey) ** 2
    total = mag_x + mag_y
    if total < ZERO_VECTOR_THRESHOLD:
        return None

    tol = POLARIZATION_CLASSIFY_TOLERANCE
    if mag_x < tol * total or mag_y < tol * total:
        # One component carries everything, the relative phase is meaningless.
        # Removing the dominant component's phase keeps the sign of the small one.
        ref = ex / abs(ex) if mag_x >= mag_y else ey / abs(ey)
        return math.atan2((ey / ref).real, (ex / ref).real)

    phase_diff = math.atan2(ey.imag, ey.real) - math.atan2(ex.imag, ex.real)
    phase_diff = math.atan2(math.sin(phase_diff), math.cos(phase_diff))

    if abs(phase_diff) < tol or abs(abs(phase_diff) - math.pi) < tol:
        # Remove the common phase so the real parts carry the field.
        ref = ex / abs(ex)
        ex_r = (ex / ref).real
        ey_r = (ey / ref).real
        return math.atan2(ey_r, ex_r)

    if abs(mag_x - mag_y) < tol * total and abs(abs(phase_diff) - math.pi / 2) < tol:
        return 'circular'
    return 'elliptical'


if __name__ == "__main__":
    print("Testing jones module...\n")

    h = linear(0.0)
    print(f"Horizontal: {h}, intensity {intensity(h):.3f}")

    rotated = apply(rotation(math.pi / 4), h)
    print(f"Rotated 45 deg: {rotated}, describe -> {math.degrees(describe(rotated)):.1f} deg")

    qwp = apply(quarter_wave_plate(math.pi / 4), h)
    print(f"H through QWP at 45 deg: {qwp}, describe -> {describe(qwp)}")

    t = apply(projector(0.0), rotated)
    r = apply(projector(math.pi / 2), rotated)
    print(f"Projected energies: {intensity(t):.3f} + {intensity(r):.3f}")

    print("\nJones test completed successfully!")
