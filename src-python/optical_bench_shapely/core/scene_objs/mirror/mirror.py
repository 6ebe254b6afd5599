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
    from optical_bench_shapely.core.geometry import geometry
    from optical_bench_shapely.core.constants import MIRROR_REFLECTIVITY, RAY_ORIGIN_OFFSET
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ..line_obj_mixin import LineObjMixin
    from ...geometry import geometry
    from ...constants import MIRROR_REFLECTIVITY, RAY_ORIGIN_OFFSET

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray


class Mirror(LineObjMixin, BaseSceneObj):
    """
    Flat mirror with shape of a line segment.

    Reflects according to the law of reflection, keeping ``reflectivity`` of
    the intensity (all of it for rays that ignore decay). The reflected ray
    gains a phase of pi and keeps its Jones vector.

    Attributes:
        length (float): Length of the mirror
        reflectivity (float): Reflected fraction of the intensity, in [0, 1]
    """

    type = 'Mirror'
    is_optical = True
    draw_color = '#708090'

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'length': 100.0,
        'reflectivity': MIRROR_REFLECTIVITY,
    }

    property_schema = {
        'length': {'attr': 'length', 'label': 'Length', 'type': 'number', 'min': 10},
        'reflectivity': {'attr': 'reflectivity', 'label': 'Reflectivity', 'type': 'number',
                         'min': 0.0, 'max': 1.0},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize a mirror.

        Args:
            scene: The scene containing this mirror
            json_obj: Optional JSON serialization data
        """
        super().__init__(scene, json_obj)

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        reflected_direction = geometry.reflect(ray.direction, hit.normal)
        intensity = ray.intensity if ray.ignore_decay else ray.intensity * self.reflectivity

        children = []
        if self.spawn_allowed(ray, intensity):
            origin = hit.point + reflected_direction * RAY_ORIGIN_OFFSET
            children.append(ray.spawn(
                origin, reflected_direction,
                intensity=intensity,
                phase=ray.phase + math.pi,
            ))

        if self.verbose >= 2:
            print(f"    {self.get_display_name()}: reflected to "
                  f"({reflected_direction.x:.4f}, {reflected_direction.y:.4f}), I={intensity:.6f}")

        ray.terminate('reflected')
        return children
