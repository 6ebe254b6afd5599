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

from typing import List, Tuple

from shapely.geometry import LineString

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.geometry import Vector2, geometry
    from optical_bench_shapely.core.scene_objs.base_scene_obj import Intersection
else:
    from ..geometry import Vector2, geometry
    from .base_scene_obj import Intersection


class LineObjMixin:
    """
    Mixin class for components with a single flat surface.

    The surface is a segment centred on ``pos``, running along
    ``Vector2.from_angle(angle_rad)``, with its length taken from the
    attribute named by ``length_attr``. The mixin provides:
    - Derived endpoints and surface normal, cached by the base class
    - Ray intersection testing (at most one hit)
    - The Shapely footprint used for bounding boxes and picking

    Usage:
        class MyFlatComponent(LineObjMixin, BaseSceneObj):
            length_attr = 'length'
            serializable_defaults = {**PLACEMENT_DEFAULTS, 'length': 100}

    Note: This class should be used as a mixin with BaseSceneObj or its subclasses.
          In Python's MRO (Method Resolution Order), mixins should come before the base class.
    """

    length_attr: str = 'length'

    @property
    def surface_length(self) -> float:
        return float(getattr(self, self.length_attr))

    def _geometry_key(self) -> Tuple:
        return super()._geometry_key() + (self.surface_length,)

    def _update_geometry(self) -> None:
        axis = Vector2.from_angle(self.angle_rad)
        half = axis * (self.surface_length / 2.0)
        center = self.position
        self._axis = axis
        self._p1 = center - half
        self._p2 = center + half
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
        """Unit normal of the surface (edge direction rotated by +90 degrees)."""
        self.ensure_geometry()
        return self._normal

    def segment_fraction(self, point: Vector2) -> float:
        """Position of a point along the surface, 0 at p1 and 1 at p2."""
        self.ensure_geometry()
        length = self.surface_length
        if length <= 0:
            return 0.0
        return (point - self._p1).dot(self._axis) / length

    def intersect(self, origin: Vector2, direction: Vector2) -> List[Intersection]:
        """
        Intersect a ray with the surface segment.

        Args:
            origin: Ray origin.
            direction: Unit ray direction.

        Returns:
            A single-element list with the hit, or an empty list.
        """
        self.ensure_geometry()
        solved = geometry.ray_segment_intersection(origin, direction, self._p1, self._p2)
        if solved is None:
            return []
        t, _ = solved
        point = origin + direction * t
        normal = geometry.oriented_normal(self._normal, direction)
        return [Intersection(distance=t, point=point, normal=normal, surface_id=0)]

    def get_footprint(self) -> LineString:
        self.ensure_geometry()
        return geometry.line(self._p1, self._p2).to_shapely()
