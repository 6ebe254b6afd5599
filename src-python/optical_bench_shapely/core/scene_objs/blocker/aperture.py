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

from typing import Dict, Any, List, Optional, Tuple, TYPE_CHECKING

from shapely.geometry import MultiLineString

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.scene_objs.base_scene_obj import (
        BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    )
    from optical_bench_shapely.core.geometry import Vector2, geometry
    from optical_bench_shapely.core.constants import RAY_ORIGIN_OFFSET
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ...geometry import Vector2, geometry
    from ...constants import RAY_ORIGIN_OFFSET

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray

EDGE_TOLERANCE = 1e-6


class Aperture(BaseSceneObj):
    """
    Opaque screen with one or more slits.

    Slits of width ``slit_width`` are spaced ``slit_separation`` apart
    (center to center), symmetrically about the aperture center. A ray
    hitting a blocker segment is absorbed; a ray through an opening passes
    unchanged except that its beam diameter is narrowed to the slit width.

    Surface ids 0 .. number_of_slits - 1 are the openings; higher ids are
    blocker segments.

    Attributes:
        length (float): Total length of the aperture
        number_of_slits (int): Number of openings (at least 1)
        slit_width (float): Width of each opening
        slit_separation (float): Center-to-center slit spacing
    """

    type = 'Aperture'
    is_optical = True
    draw_color = '#888888'

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'angle_deg': 90.0,
        'length': 150.0,
        'number_of_slits': 1,
        'slit_width': 10.0,
        'slit_separation': 20.0,
    }

    property_schema = {
        'length': {'attr': 'length', 'label': 'Length', 'type': 'number', 'min': 10},
        'numberOfSlits': {'attr': 'number_of_slits', 'label': 'Number of slits', 'type': 'int',
                          'min': 1},
        'slitWidth': {'attr': 'slit_width', 'label': 'Slit width', 'type': 'number', 'min': 0.1},
        'slitSeparation': {'attr': 'slit_separation', 'label': 'Slit separation', 'type': 'number',
                           'min': 0.1},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)

    def _sanitize(self) -> None:
        super()._sanitize()
        if self.slit_separation < self.slit_width:
            self.slit_separation = self.slit_width

    def _set_property_value(self, name: str, entry: Dict[str, Any], value: Any) -> None:
        super()._set_property_value(name, entry, value)
        if self.slit_separation < self.slit_width:
            self.slit_separation = self.slit_width

    def _geometry_key(self) -> Tuple:
        return super()._geometry_key() + (
            self.length, self.number_of_slits, self.slit_width, self.slit_separation
        )

    def _update_geometry(self) -> None:
        direction = Vector2.from_angle(self.angle_rad)
        center = self.position
        first_offset = -(self.number_of_slits - 1) * self.slit_separation / 2.0

        self._openings: List[Tuple[Vector2, Vector2]] = []
        self._blockers: List[Tuple[Vector2, Vector2]] = []
        last = center - direction * (self.length / 2.0)
        for i in range(self.number_of_slits):
            slit_center = first_offset + i * self.slit_separation
            left = center + direction * (slit_center - self.slit_width / 2.0)
            right = center + direction * (slit_center + self.slit_width / 2.0)
            if (left - last).dot(direction) > EDGE_TOLERANCE:
                self._blockers.append((last, left))
            self._openings.append((left, right))
            last = right
        right_edge = center + direction * (self.length / 2.0)
        if (right_edge - last).dot(direction) > EDGE_TOLERANCE:
            self._blockers.append((last, right_edge))

    @property
    def openings(self) -> List[Tuple[Vector2, Vector2]]:
        self.ensure_geometry()
        return list(self._openings)

    @property
    def blockers(self) -> List[Tuple[Vector2, Vector2]]:
        self.ensure_geometry()
        return list(self._blockers)

    def is_opening(self, surface_id: int) -> bool:
        return 0 <= surface_id < len(self._openings)

    def intersect(self, origin: Vector2, direction: Vector2) -> List[Intersection]:
        """
        Intersect a ray with every blocker and opening, keeping the nearest.
        """
        self.ensure_geometry()
        nearest: Optional[Intersection] = None
        n_open = len(self._openings)
        # Blockers first, so that a ray through a shared endpoint is blocked.
        candidates = [(n_open + i, seg) for i, seg in enumerate(self._blockers)]
        candidates += list(enumerate(self._openings))
        for surface_id, (p1, p2) in candidates:
            solved = geometry.ray_segment_intersection(
                origin, direction, p1, p2, edge_tolerance=EDGE_TOLERANCE
            )
            if solved is None:
                continue
            t, _ = solved
            if nearest is None or t < nearest.distance:
                normal = geometry.oriented_normal(geometry.segment_normal(p1, p2), direction)
                nearest = Intersection(distance=t, point=origin + direction * t,
                                       normal=normal, surface_id=surface_id)
        return [nearest] if nearest is not None else []

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        if not self.is_opening(hit.surface_id):
            ray.terminate('hit_aperture_blocker')
            return []

        children = []
        if self.spawn_allowed(ray, ray.intensity):
            origin = hit.point + ray.direction * RAY_ORIGIN_OFFSET
            children.append(ray.spawn(
                origin, ray.direction,
                beam_diameter=min(ray.beam_diameter, self.slit_width),
            ))
        ray.terminate('pass_aperture_opening')
        return children

    def get_footprint(self) -> MultiLineString:
        """Blocker segments (the drawn part of the aperture)."""
        self.ensure_geometry()
        segments = self._blockers or self._openings
        return MultiLineString([[(p1.x, p1.y), (p2.x, p2.y)] for p1, p2 in segments])

    def get_bounding_box(self) -> Dict[str, float]:
        self.ensure_geometry()
        direction = Vector2.from_angle(self.angle_rad) * (self.length / 2.0)
        full = geometry.line(self.position - direction, self.position + direction).to_shapely()
        return geometry.bounds_to_box(full.bounds, self.bbox_padding)

    def draw(self, renderer) -> None:
        self.ensure_geometry()
        for p1, p2 in self._blockers:
            renderer.draw_line_segment(p1, p2, color=self.draw_color, stroke_width=4,
                                       scene_obj=self)
