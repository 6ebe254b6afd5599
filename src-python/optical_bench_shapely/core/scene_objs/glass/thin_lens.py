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
from typing import Dict, Any, List, Optional, TYPE_CHECKING

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.scene_objs.base_scene_obj import (
        BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    )
    from optical_bench_shapely.core.scene_objs.line_obj_mixin import LineObjMixin
    from optical_bench_shapely.core.geometry import Vector2
    from optical_bench_shapely.core.constants import LENS_QUALITY, RAY_ORIGIN_OFFSET
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ..line_obj_mixin import LineObjMixin
    from ...geometry import Vector2
    from ...constants import LENS_QUALITY, RAY_ORIGIN_OFFSET

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray


class ThinLens(LineObjMixin, BaseSceneObj):
    """
    Ideal thin lens.

    The lens plane runs along ``Vector2.from_angle(angle_rad)`` and the optical
    axis is perpendicular to it. A ray at height h from the lens center is
    deviated by -h/f, measured in the frame whose axis points along the
    direction of travel, so a positive focal length converges from either
    side. A focal length of zero or infinity makes the lens a flat window.

    Attributes:
        diameter (float): Lens aperture
        focal_length (float): Focal length, negative for a diverging lens
        quality (float): Transmitted fraction of the intensity
    """

    type = 'ThinLens'
    is_optical = True
    draw_color = '#1E90FF'
    length_attr = 'diameter'

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'angle_deg': 90.0,
        'diameter': 80.0,
        'focal_length': 150.0,
        'quality': LENS_QUALITY,
    }

    property_schema = {
        'diameter': {'attr': 'diameter', 'label': 'Diameter', 'type': 'number', 'min': 10},
        'focalLength': {'attr': 'focal_length', 'label': 'Focal length', 'type': 'number'},
        'quality': {'attr': 'quality', 'label': 'Transmission', 'type': 'number',
                    'min': 0.0, 'max': 1.0},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)

    @property
    def is_flat(self) -> bool:
        f = self.focal_length
        return f == 0 or math.isinf(f) or math.isnan(f)

    @property
    def optical_axis(self) -> Vector2:
        """Unit optical axis (perpendicular to the lens plane)."""
        lens_dir = Vector2.from_angle(self.angle_rad)
        return Vector2(-lens_dir.y, lens_dir.x)

    def deflect(self, direction: Vector2, point: Vector2) -> Vector2:
        """
        Direction of a ray after crossing the lens at ``point``.

        Args:
            direction: Unit direction of the incoming ray.
            point: Crossing point on the lens.

        Returns:
            The outgoing unit direction.
        """
        if self.is_flat:
            return direction
        axis = self.optical_axis
        if direction.dot(axis) < 0:
            axis = -axis
        lateral = Vector2(-axis.y, axis.x)
        height = (point - self.position).dot(lateral)
        theta = math.atan2(direction.dot(lateral), direction.dot(axis))
        theta_out = theta - height / self.focal_length
        return (axis * math.cos(theta_out) + lateral * math.sin(theta_out)).normalize()

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        new_direction = self.deflect(ray.direction, hit.point)
        intensity = ray.intensity * self.quality

        children = []
        if self.spawn_allowed(ray, intensity):
            origin = hit.point + new_direction * RAY_ORIGIN_OFFSET
            children.append(ray.spawn(origin, new_direction, intensity=intensity))

        if self.verbose >= 2:
            print(f"    {self.get_display_name()}: f={self.focal_length}, "
                  f"dir ({ray.direction.x:.4f}, {ray.direction.y:.4f}) -> "
                  f"({new_direction.x:.4f}, {new_direction.y:.4f})")

        ray.terminate('pass_flat_lens' if self.is_flat else 'refracted_lens')
        return children

    def draw(self, renderer) -> None:
        self.ensure_geometry()
        focal = 0.0 if self.is_flat else self.focal_length
        renderer.draw_lens(self._p1, self._p2, focal, color=self.draw_color,
                           label=self.label or None, scene_obj=self)
