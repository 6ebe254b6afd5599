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
    from optical_bench_shapely.core.constants import MIN_RAY_SEGMENT_LENGTH, ZERO_VECTOR_THRESHOLD
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ..line_obj_mixin import LineObjMixin
    from ...geometry import Vector2
    from ...constants import MIN_RAY_SEGMENT_LENGTH, ZERO_VECTOR_THRESHOLD

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray


class Photodiode(LineObjMixin, BaseSceneObj):
    """
    Photodiode: a one-sided circular detector seen edge-on.

    The active face has diameter ``diameter`` and faces
    ``Vector2.from_angle(angle_rad + pi / 2)``. Only rays arriving from the
    front are detected; they are absorbed and their intensity is added to
    ``incident_power``.

    Attributes:
        diameter (float): Diameter of the active area
        incident_power (float): Intensity collected since the trace started
        hit_count (int): Number of rays collected since the trace started
    """

    type = 'Photodiode'
    is_optical = True
    draw_color = '#228B22'
    length_attr = 'diameter'

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'diameter': 20.0,
    }

    property_schema = {
        'diameter': {'attr': 'diameter', 'label': 'Diameter', 'type': 'number', 'min': 1},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)
        self.incident_power: float = 0.0
        self.hit_count: int = 0

    @property
    def facing(self) -> Vector2:
        """Unit normal of the active face."""
        return Vector2.from_angle(self.angle_rad + math.pi / 2)

    def on_simulation_start(self) -> None:
        self.incident_power = 0.0
        self.hit_count = 0

    def intersect(self, origin: Vector2, direction: Vector2) -> List[Intersection]:
        """
        Intersect a ray with the front of the active disk.
        """
        facing = self.facing
        approach = direction.dot(facing)
        if approach >= -ZERO_VECTOR_THRESHOLD:
            return []
        center = self.position
        t = (center - origin).dot(facing) / approach
        if t < MIN_RAY_SEGMENT_LENGTH:
            return []
        point = origin + direction * t
        if point.distance_to(center) > self.diameter / 2.0:
            return []
        return [Intersection(distance=t, point=point, normal=facing, surface_id=0)]

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        self.incident_power += ray.intensity
        self.hit_count += 1
        if self.verbose >= 2:
            print(f"    {self.get_display_name()}: absorbed I={ray.intensity:.6f}, "
                  f"total={self.incident_power:.6f}")
        ray.terminate('absorbed_photodiode')
        return []
