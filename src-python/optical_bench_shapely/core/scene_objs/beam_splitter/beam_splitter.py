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

import math
from typing import Dict, Any, List, Optional, Tuple, TYPE_CHECKING

from shapely.geometry.base import BaseGeometry

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.scene_objs.base_scene_obj import (
        BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    )
    from optical_bench_shapely.core.geometry import Vector2, geometry
    from optical_bench_shapely.core import jones
    from optical_bench_shapely.core.constants import (
        RAY_ORIGIN_OFFSET, JONES_ENERGY_THRESHOLD, SQRT2
    )
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ...geometry import Vector2, geometry
    from ... import jones
    from ...constants import RAY_ORIGIN_OFFSET, JONES_ENERGY_THRESHOLD, SQRT2

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray


class BeamSplitter(BaseSceneObj):
    """
    Beam splitter, either a plate (BS) or a polarizing cube (PBS).

    BS: a flat plate of length ``length`` that reflects ``split_ratio`` of the
    intensity and transmits the rest. Polarization is not resolved; both
    children keep the incoming Jones vector.

    PBS: a square cube whose diagonal (``length``) is the splitting surface.
    Light polarized along the diagonal is transmitted and the orthogonal
    component is reflected. Unpolarized light is split by
    ``pbs_unpolarized_reflectivity`` and each branch becomes linearly
    polarized along its axis.

    Reflected children gain a phase of pi. Both types terminate the incoming
    ray whatever number of children survive spawn gating.

    Attributes:
        pos (dict): Center of the component
        angle_deg (float): Orientation of the splitting surface (degrees)
        length (float): Plate length (BS) or cube diagonal (PBS)
        splitter_type (str): 'BS' or 'PBS'
        split_ratio (float): Reflected fraction for BS, in [0, 1]
        pbs_unpolarized_reflectivity (float): Reflected fraction of
            unpolarized light for PBS, in [0, 1]
    """

    type = 'BeamSplitter'
    is_optical = True
    draw_color = '#A9A9F5'

    VALID_SPLITTER_TYPES = ('BS', 'PBS')

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'angle_deg': 45.0,
        'length': 80.0,
        'splitter_type': 'BS',
        'split_ratio': 0.5,
        'pbs_unpolarized_reflectivity': 0.5,
    }

    property_schema = {
        'length': {'attr': 'length', 'label': 'Length', 'type': 'number', 'min': 10},
        'splitterType': {'attr': 'splitter_type', 'label': 'Type', 'type': 'select',
                         'options': list(VALID_SPLITTER_TYPES)},
        'splitRatio': {'attr': 'split_ratio', 'label': 'Reflect ratio (BS)', 'type': 'number',
                       'min': 0.0, 'max': 1.0},
        'pbsUnpolarizedReflectivity': {'attr': 'pbs_unpolarized_reflectivity',
                                       'label': 'Unpolarized reflectivity (PBS)',
                                       'type': 'number', 'min': 0.0, 'max': 1.0},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize a beam splitter.

        Args:
            scene: The scene containing this component
            json_obj: Optional JSON serialization data
        """
        super().__init__(scene, json_obj)
        if self.splitter_type not in self.VALID_SPLITTER_TYPES:
            self.scene.error = (
                f"Invalid splitter_type '{self.splitter_type}'. "
                f"Valid options: {self.VALID_SPLITTER_TYPES}"
            )
            self.splitter_type = 'BS'
            self.ensure_geometry(force=True)

    @property
    def is_polarizing(self) -> bool:
        return self.splitter_type == 'PBS'

    @property
    def bbox_padding(self) -> float:
        return 2.0 if self.is_polarizing else 5.0

    # ==================== Geometry ====================

    def _geometry_key(self) -> Tuple:
        return super()._geometry_key() + (self.length, self.splitter_type)

    def _update_geometry(self) -> None:
        center = self.position
        angle = self.angle_rad
        if self.is_polarizing:
            # The user-facing length is the diagonal; the cube side is length / sqrt(2).
            side = self.length / SQRT2
            half = side / 2.0
            self._vertices = geometry.rotated_rectangle(center, side, side, angle)
            self._p1 = Vector2(-half, half).rotate(angle) + center
            self._p2 = Vector2(half, -half).rotate(angle) + center
        else:
            half_vec = Vector2.from_angle(angle) * (self.length / 2.0)
            self._vertices = []
            self._p1 = center - half_vec
            self._p2 = center + half_vec
        self._normal = geometry.segment_normal(self._p1, self._p2)

    @property
    def p1(self) -> Vector2:
        self.ensure_geometry()
        return self._p1

    @property
    def p2(self) -> Vector2:
        self.ensure_geometry()
        return self._p2

    @property
    def normal(self) -> Vector2:
        self.ensure_geometry()
        return self._normal

    @property
    def vertices(self) -> List[Vector2]:
        """Cube corners for PBS, empty for a BS plate."""
        self.ensure_geometry()
        return list(self._vertices)

    @property
    def transmission_axis_angle(self) -> float:
        """Angle of the splitting diagonal, the PBS transmission axis (radians)."""
        self.ensure_geometry()
        return (self._p2 - self._p1).angle()

    def intersect(self, origin: Vector2, direction: Vector2) -> List[Intersection]:
        """
        Intersect a ray with the splitting surface (plate or cube diagonal).
        """
        self.ensure_geometry()
        solved = geometry.ray_segment_intersection(origin, direction, self._p1, self._p2)
        if solved is None:
            return []
        t, _ = solved
        return [Intersection(
            distance=t,
            point=origin + direction * t,
            normal=geometry.oriented_normal(self._normal, direction),
            surface_id=0,
        )]

    def get_footprint(self) -> BaseGeometry:
        self.ensure_geometry()
        if self.is_polarizing:
            return geometry.polygon(self._vertices)
        return geometry.line(self._p1, self._p2).to_shapely()

    # ==================== Interaction ====================

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        """
        Split the ray into reflected and transmitted children.

        Args:
            ray: The incoming ray.
            hit: Intersection on the splitting surface.

        Returns:
            Up to two child rays. BS returns the reflected child first,
            PBS the transmitted child first.
        """
        if self.is_polarizing:
            return self._interact_pbs(ray, hit)
        return self._interact_bs(ray, hit)

    def _interact_bs(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        children = []
        reflected_direction = geometry.reflect(ray.direction, hit.normal)

        reflected_intensity = ray.intensity * self.split_ratio
        if self.spawn_allowed(ray, reflected_intensity):
            origin = hit.point + reflected_direction * RAY_ORIGIN_OFFSET
            children.append(ray.spawn(
                origin, reflected_direction,
                intensity=reflected_intensity,
                phase=ray.phase + math.pi,
            ))

        transmitted_intensity = ray.intensity * (1.0 - self.split_ratio)
        if self.spawn_allowed(ray, transmitted_intensity):
            origin = hit.point + ray.direction * RAY_ORIGIN_OFFSET
            children.append(ray.spawn(origin, ray.direction, intensity=transmitted_intensity))

        if self.verbose >= 2:
            print(f"    {self.get_display_name()}: BS split I={ray.intensity:.6f} -> "
                  f"R={reflected_intensity:.6f}, T={transmitted_intensity:.6f}, "
                  f"children={len(children)}")

        ray.terminate('split_bs')
        return children

    def _interact_pbs(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        axis = self.transmission_axis_angle
        ray.ensure_jones_vector()

        if not ray.has_jones():
            reflectivity = self.pbs_unpolarized_reflectivity
            transmitted_intensity = ray.intensity * (1.0 - reflectivity)
            reflected_intensity = ray.intensity * reflectivity
            transmitted_jones = jones.linear(axis)
            reflected_jones = jones.linear(axis + math.pi / 2)
        else:
            incoming = ray.jones
            transmitted_jones = jones.apply(jones.projector(axis), incoming)
            reflected_jones = jones.apply(jones.projector(axis + math.pi / 2), incoming)
            in_energy = jones.intensity(incoming)
            if in_energy > JONES_ENERGY_THRESHOLD:
                t_scale = jones.intensity(transmitted_jones) / in_energy
                r_scale = jones.intensity(reflected_jones) / in_energy
            else:
                t_scale = 0.0
                r_scale = 0.0
            transmitted_intensity = ray.intensity * t_scale
            reflected_intensity = ray.intensity * r_scale

        children = []
        if self.spawn_allowed(ray, transmitted_intensity):
            origin = hit.point + ray.direction * RAY_ORIGIN_OFFSET
            children.append(ray.spawn(
                origin, ray.direction,
                intensity=transmitted_intensity,
                jones=transmitted_jones,
            ))

        if self.spawn_allowed(ray, reflected_intensity):
            reflected_direction = geometry.reflect(ray.direction, hit.normal)
            origin = hit.point + reflected_direction * RAY_ORIGIN_OFFSET
            children.append(ray.spawn(
                origin, reflected_direction,
                intensity=reflected_intensity,
                phase=ray.phase + math.pi,
                jones=reflected_jones,
            ))

        if self.verbose >= 2:
            print(f"    {self.get_display_name()}: PBS axis={math.degrees(axis):.1f}deg "
                  f"I={ray.intensity:.6f} -> T={transmitted_intensity:.6f}, "
                  f"R={reflected_intensity:.6f}")

        ray.terminate('split_pbs')
        return children

    # ==================== Editor surface ====================

    def get_properties(self) -> Dict[str, Dict[str, Any]]:
        """Properties of the current splitter type only."""
        props = super().get_properties()
        if self.is_polarizing:
            props.pop('splitRatio', None)
            props['length']['label'] = 'Diagonal length'
        else:
            props.pop('pbsUnpolarizedReflectivity', None)
        return props

    def draw(self, renderer) -> None:
        super().draw(renderer)
        if self.is_polarizing:
            renderer.draw_line_segment(self._p1, self._p2, color=self.draw_color,
                                       stroke_width=1, scene_obj=self)


# Example usage and testing
if __name__ == "__main__":
    from optical_bench_shapely.core.scene import Scene
    from optical_bench_shapely.core.ray import Ray

    print("Testing BeamSplitter class...\n")
    scene = Scene()

    # Test 1: 50/50 plate splitter
    print("Test 1: 50/50 BS at 45 deg")
    bs = BeamSplitter(scene, {'pos': {'x': 100, 'y': 0}})
    ray = Ray(Vector2(0, 0), Vector2(1, 0))
    hits = bs.intersect(ray.origin, ray.direction)
    print(f"  Hit: {hits[0]}")
    for child in bs.interact(ray, hits[0]):
        print(f"  Child: {child}")

    # Test 2: PBS with light polarized along the splitting diagonal
    print("\nTest 2: PBS, input along the transmission axis")
    pbs = BeamSplitter(scene, {'pos': {'x': 100, 'y': 0}, 'splitter_type': 'PBS'})
    axis = pbs.transmission_axis_angle
    ray = Ray(Vector2(0, 0), Vector2(1, 0), polarization_angle=axis)
    hits = pbs.intersect(ray.origin, ray.direction)
    for child in pbs.interact(ray, hits[0]):
        print(f"  Child: {child}")

    print(f"\nSerialized PBS: {pbs.serialize()}")
    print("\nBeamSplitter test completed successfully!")
