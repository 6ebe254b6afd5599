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

import cmath
import math
import uuid as _uuid_mod
from typing import Any, List, Optional, Union

import numpy as np

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.geometry import Vector2
    from optical_bench_shapely.core import jones
    from optical_bench_shapely.core.constants import (
        DEFAULT_WAVELENGTH_NM, N_AIR, MIN_RAY_INTENSITY, PIXELS_PER_NANOMETER, ZERO_VECTOR_THRESHOLD
    )
else:
    from .geometry import Vector2
    from . import jones
    from .constants import (
        DEFAULT_WAVELENGTH_NM, N_AIR, MIN_RAY_INTENSITY, PIXELS_PER_NANOMETER, ZERO_VECTOR_THRESHOLD
    )


PolarizationAngle = Optional[Union[float, str]]


class Ray:
    """
    A ray of light propagating through the bench.

    A ray starts at ``origin`` and travels along the unit vector
    ``direction`` until the propagation engine finds the next component it
    strikes. The component then terminates it and spawns the child rays.

    Attributes:
        origin (Vector2): Start point of this segment
        direction (Vector2): Unit propagation direction
        wavelength_nm (float): Wavelength in nanometres
        intensity (float): Relative intensity, never negative
        phase (float): Accumulated phase in radians
        bounces_so_far (int): Number of interactions in this ray's lineage
        medium_refractive_index (float): Index of the medium being crossed
        source_id (str or None): UUID of the emitter the lineage started from
        polarization_angle: Linear angle in radians, 'circular',
            'elliptical', or None for unpolarized light
        jones (np.ndarray or None): Jones vector, None while unpolarized
        ignore_decay (bool): If True, the intensity floor never prunes
        min_intensity_threshold (float): Intensity floor for spawn gating
        beam_diameter (float): Nominal beam diameter, narrowed by apertures
        history (list of Vector2): Visited points, for rendering only
        terminated (bool): True once the ray no longer propagates
        end_reason (str or None): Tag passed to ``terminate``
        end_point (Vector2 or None): Last point of the segment

    Lineage Tracking Attributes:
        uuid (str): Unique identifier for this ray segment
        parent_uuid (str or None): UUID of the ray this one was spawned from
        interaction_type (str): End reason of the parent, 'source' for
            emitted rays
    """

    def __init__(
        self,
        origin: Vector2,
        direction: Vector2,
        wavelength_nm: float = DEFAULT_WAVELENGTH_NM,
        intensity: float = 1.0,
        phase: float = 0.0,
        bounces_so_far: int = 0,
        medium_refractive_index: float = N_AIR,
        source_id: Optional[str] = None,
        polarization_angle: PolarizationAngle = None,
        ignore_decay: bool = False,
        history: Optional[List[Vector2]] = None,
        beam_diameter: float = 1.0
    ) -> None:
        self.origin: Vector2 = origin
        self.direction: Vector2 = direction.normalize()
        self.wavelength_nm: float = wavelength_nm
        self.intensity: float = max(0.0, intensity)
        self.phase: float = phase
        self.bounces_so_far: int = bounces_so_far
        self.medium_refractive_index: float = medium_refractive_index
        self.source_id: Optional[str] = source_id
        self.ignore_decay: bool = ignore_decay
        self.beam_diameter: float = beam_diameter
        self.min_intensity_threshold: float = MIN_RAY_INTENSITY
        self.history: List[Vector2] = list(history) if history is not None else [origin]

        self.jones: Optional[np.ndarray] = None
        self.polarization_angle: PolarizationAngle = polarization_angle
        if polarization_angle is not None:
            self.ensure_jones_vector()

        self.terminated: bool = False
        self.end_reason: Optional[str] = None
        self.end_point: Optional[Vector2] = None

        self.uuid: str = str(_uuid_mod.uuid4())
        self.parent_uuid: Optional[str] = None
        self.interaction_type: str = 'source'

    # =========================================================================
    # Polarization state
    # =========================================================================

    def has_jones(self) -> bool:
        return self.jones is not None

    def is_polarized(self) -> bool:
        """True when the ray carries a definite polarization state."""
        return self.jones is not None or self.polarization_angle is not None

    def jones_intensity(self) -> float:
        """Energy of the Jones vector, 0.0 while unpolarized."""
        if self.jones is None:
            return 0.0
        return jones.intensity(self.jones)

    def set_jones(self, j: Optional[Any]) -> None:
        """
        Replace the Jones vector and refresh ``polarization_angle`` from it.

        Args:
            j: An (Ex, Ey) pair, or None to make the ray unpolarized.
        """
        if j is None:
            self.set_unpolarized()
            return
        self.jones = jones.as_jones(j)
        self.polarization_angle = jones.describe(self.jones)

    def ensure_jones_vector(self) -> Optional[np.ndarray]:
        """
        Build a Jones vector matching ``polarization_angle`` if none exists.

        A numeric angle gives linear polarization and 'circular' gives
        right-handed circular polarization. Unpolarized rays stay without
        a Jones vector.

        Returns:
            The Jones vector, or None for unpolarized light.
        """
        if self.jones is not None:
            return self.jones
        state = self.polarization_angle
        if state is None:
            return None
        if state == 'circular':
            self.jones = jones.circular(right=True)
        elif isinstance(state, (int, float)):
            self.jones = jones.linear(float(state))
        return self.jones

    def set_linear_polarization(self, angle: float) -> None:
        angle = math.atan2(math.sin(angle), math.cos(angle))
        self.jones = jones.linear(angle)
        self.polarization_angle = angle

    def set_circular_polarization(self, right: bool = True) -> None:
        self.jones = jones.circular(right=right)
        self.polarization_angle = 'circular'

    def set_unpolarized(self) -> None:
        self.jones = None
        self.polarization_angle = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def add_history_point(self, point: Vector2) -> None:
        """
        Append a visited point and advance the optical phase.

        Steps shorter than 1e-9 and calls on a terminated ray are ignored.
        The phase advances by k * n * distance with k = 2 pi / lambda,
        and is wrapped to [-pi, pi].

        Args:
            point: The point the ray has reached.
        """
        if self.terminated:
            return
        last = self.history[-1] if self.history else self.origin
        distance = last.distance_to(point)
        if distance < ZERO_VECTOR_THRESHOLD:
            return
        self.history.append(point)
        self.end_point = point
        wavelength_px = self.wavelength_nm * PIXELS_PER_NANOMETER
        if wavelength_px > 0:
            k = 2 * math.pi / wavelength_px
            self.phase += k * distance * self.medium_refractive_index
            self.phase = math.atan2(math.sin(self.phase), math.cos(self.phase))

    def get_complex_amplitude(self) -> complex:
        """Scalar field amplitude sqrt(I) * exp(i * phase)."""
        return math.sqrt(self.intensity) * cmath.exp(1j * self.phase)

    def terminate(self, reason: str) -> None:
        """Stop propagation. Only the first call records its reason."""
        if self.terminated:
            return
        self.terminated = True
        self.end_reason = reason

    def should_terminate(self, max_bounces: int, min_intensity: Optional[float] = None) -> Optional[str]:
        """
        Check whether this ray must stop before the next intersection search.

        Args:
            max_bounces: Bounce cap of the propagation loop.
            min_intensity: Intensity floor, defaults to the ray's own threshold.

        Returns:
            'max_bounces', 'low_intensity', or None if the ray may continue.
        """
        if min_intensity is None:
            min_intensity = self.min_intensity_threshold
        if (not self.origin.is_finite() or not self.direction.is_finite()
                or math.isnan(self.intensity)
                or self.direction.magnitude_squared() < ZERO_VECTOR_THRESHOLD):
            return 'max_bounces'
        if self.bounces_so_far >= max_bounces:
            return 'max_bounces'
        if not self.ignore_decay and self.intensity < min_intensity:
            return 'low_intensity'
        return None

    def spawn(self, origin: Vector2, direction: Vector2, **overrides: Any) -> 'Ray':
        """
        Create a child ray, the constructor every component uses.

        The child inherits wavelength, phase, medium, source, polarization,
        decay flag, beam diameter and intensity threshold, gets
        ``bounces_so_far + 1``, and continues this ray's history from
        ``origin``. Keyword overrides replace inherited values; ``jones``
        goes through ``set_jones``.

        Args:
            origin: Start point of the child.
            direction: Direction of the child (normalized by the constructor).
            **overrides: Ray attributes to replace, e.g. ``intensity=0.5``.

        Returns:
            A new ray of the same class as this one.

        Raises:
            RuntimeError: If this ray has already been terminated.
            AttributeError: If an override names an unknown attribute.
        """
        if self.terminated:
            raise RuntimeError(
                f"Cannot spawn from terminated ray {self.uuid} (end_reason={self.end_reason!r})"
            )
        child = type(self)(
            origin=origin,
            direction=direction,
            wavelength_nm=self.wavelength_nm,
            intensity=self.intensity,
            phase=self.phase,
            bounces_so_far=self.bounces_so_far + 1,
            medium_refractive_index=self.medium_refractive_index,
            source_id=self.source_id,
            ignore_decay=self.ignore_decay,
            history=self.history + [origin],
            beam_diameter=self.beam_diameter,
        )
        child.min_intensity_threshold = self.min_intensity_threshold
        child.jones = None if self.jones is None else self.jones.copy()
        child.polarization_angle = self.polarization_angle
        child.parent_uuid = self.uuid

        for key, value in overrides.items():
            if key == 'jones':
                child.set_jones(value)
            elif key == 'intensity':
                child.intensity = max(0.0, value)
            elif key == 'polarization_angle':
                child.jones = None
                child.polarization_angle = value
                child.ensure_jones_vector()
            elif hasattr(child, key):
                setattr(child, key, value)
            else:
                raise AttributeError(f"Ray has no attribute '{key}'")
        return child

    def copy(self) -> 'Ray':
        """
        Create a copy of this ray.

        copy() generates a new uuid but preserves the lineage tags.

        Returns:
            Ray: A new ray of the same class with the same properties
        """
        new_ray = type(self)(
            origin=self.origin,
            direction=self.direction,
            wavelength_nm=self.wavelength_nm,
            intensity=self.intensity,
            phase=self.phase,
            bounces_so_far=self.bounces_so_far,
            medium_refractive_index=self.medium_refractive_index,
            source_id=self.source_id,
            ignore_decay=self.ignore_decay,
            history=self.history,
            beam_diameter=self.beam_diameter,
        )
        new_ray.min_intensity_threshold = self.min_intensity_threshold
        new_ray.jones = None if self.jones is None else self.jones.copy()
        new_ray.polarization_angle = self.polarization_angle
        new_ray.terminated = self.terminated
        new_ray.end_reason = self.end_reason
        new_ray.end_point = self.end_point
        new_ray.parent_uuid = self.parent_uuid
        new_ray.interaction_type = self.interaction_type
        return new_ray

    @property
    def segment_length(self) -> float:
        """Length from origin to end point, 0.0 before the ray has ended."""
        if self.end_point is None:
            return 0.0
        return self.origin.distance_to(self.end_point)

    def __repr__(self) -> str:
        """String representation for debugging."""
        pol = self.polarization_angle
        if isinstance(pol, float):
            pol_str = f"{math.degrees(pol):.1f}deg"
        else:
            pol_str = str(pol) if pol is not None else "unpolarized"
        status = f", ended={self.end_reason}" if self.terminated else ""
        lineage_str = f", uuid={self.uuid[:8]}..."
        if self.parent_uuid:
            lineage_str += f", parent={self.parent_uuid[:8]}..."
        return (f"Ray(origin=({self.origin.x:.3f}, {self.origin.y:.3f}), "
                f"dir=({self.direction.x:.3f}, {self.direction.y:.3f}), "
                f"I={self.intensity:.6f}, phase={self.phase:.4f}, "
                f"pol={pol_str}, bounces={self.bounces_so_far}{status}{lineage_str})")


# Example usage and testing
if __name__ == "__main__":
    print("Testing Ray class...\n")

    # Test 1: Basic ray
    print("Test 1: Basic ray creation")
    ray1 = Ray(Vector2(0, 0), Vector2(3, 4), intensity=1.0)
    print(f"  {ray1}")
    print(f"  Direction is unit length: {ray1.direction.magnitude():.6f}")

    # Test 2: Linear polarization
    print("\nTest 2: Linear polarization at 30 deg")
    ray2 = Ray(Vector2(0, 0), Vector2(1, 0), polarization_angle=math.radians(30))
    print(f"  Jones: {ray2.jones}")

    # Test 3: Phase advance
    print("\nTest 3: History and phase")
    ray1.add_history_point(Vector2(0.3, 0.4))
    print(f"  Phase after 0.5 px: {ray1.phase:.4f}")

    # Test 4: Spawn
    print("\nTest 4: Spawn a child")
    child = ray2.spawn(Vector2(10, 0), Vector2(0, 1), intensity=0.5)
    print(f"  {child}")
    print(f"  Child history length: {len(child.history)}")

    # Test 5: Termination is idempotent
    print("\nTest 5: Terminate twice")
    ray2.terminate('split_bs')
    ray2.terminate('other')
    print(f"  End reason: {ray2.end_reason}")

    print("\nRay test completed successfully!")
