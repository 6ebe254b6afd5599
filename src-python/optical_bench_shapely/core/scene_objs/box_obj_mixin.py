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

from typing import List, Optional, Tuple

from shapely.geometry import Polygon

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.geometry import Vector2, geometry
    from optical_bench_shapely.core.scene_objs.base_scene_obj import Intersection
    from optical_bench_shapely.core.constants import ZERO_VECTOR_THRESHOLD
else:
    from ..geometry import Vector2, geometry
    from .base_scene_obj import Intersection
    from ..constants import ZERO_VECTOR_THRESHOLD

# Slack on the edge parameter so that rays through a corner still hit.
EDGE_TOLERANCE = 1e-6


class BoxObjMixin:
    """
    Mixin class for components with a rotated rectangular body.

    The box is ``width`` x ``height`` (attributes named by ``width_attr`` and
    ``height_attr``), centred on ``pos`` and rotated by ``angle_rad``. Its
    four edges are each intersectable; edge i runs from vertex i to vertex
    i + 1 with vertices ordered counter-clockwise from the local (-, -) corner.

    Note: This class should be used as a mixin with BaseSceneObj or its subclasses.
    """

    width_attr: str = 'width'
    height_attr: str = 'height'

    @property
    def box_size(self) -> Tuple[float, float]:
        return float(getattr(self, self.width_attr)), float(getattr(self, self.height_attr))

    def _geometry_key(self) -> Tuple:
        return super()._geometry_key() + self.box_size

    def _update_geometry(self) -> None:
        width, height = self.box_size
        self._vertices = geometry.rotated_rectangle(self.position, width, height, self.angle_rad)
        self._outward_normals = []
        for i in range(4):
            edge = self._vertices[(i + 1) % 4] - self._vertices[i]
            self._outward_normals.append(Vector2(edge.y, -edge.x).normalize())

    @property
    def vertices(self) -> List[Vector2]:
        self.ensure_geometry()
        return list(self._vertices)

    @property
    def outward_normals(self) -> List[Vector2]:
        self.ensure_geometry()
        return list(self._outward_normals)

    def is_entering(self, direction: Vector2, surface_id: int) -> bool:
        """Whether a ray crossing edge ``surface_id`` is heading into the box."""
        self.ensure_geometry()
        return direction.dot(self._outward_normals[surface_id]) < -ZERO_VECTOR_THRESHOLD

    def intersect(self, origin: Vector2, direction: Vector2) -> List[Intersection]:
        """
        Intersect a ray with the four edges and keep the nearest hit.

        Args:
            origin: Ray origin.
            direction: Unit ray direction.

        Returns:
            A single-element list with the nearest hit, or an empty list.
        """
        self.ensure_geometry()
        nearest: Optional[Intersection] = None
        for i in range(4):
            solved = geometry.ray_segment_intersection(
                origin, direction, self._vertices[i], self._vertices[(i + 1) % 4],
                edge_tolerance=EDGE_TOLERANCE
            )
            if solved is None:
                continue
            t, _ = solved
            if nearest is None or t < nearest.distance:
                nearest = Intersection(
                    distance=t,
                    point=origin + direction * t,
                    normal=geometry.oriented_normal(self._outward_normals[i], direction),
                    surface_id=i,
                )
        return [nearest] if nearest is not None else []

    def get_footprint(self) -> Polygon:
        self.ensure_geometry()
        return geometry.polygon(self._vertices)
