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
    from optical_bench_shapely.core.scene_objs.box_obj_mixin import BoxObjMixin
    from optical_bench_shapely.core import jones
    from optical_bench_shapely.core.constants import (
        N_AIR, ROTATOR_REFRACTIVE_INDEX, RAY_ORIGIN_OFFSET
    )
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ..box_obj_mixin import BoxObjMixin
    from ... import jones
    from ...constants import N_AIR, ROTATOR_REFRACTIVE_INDEX, RAY_ORIGIN_OFFSET

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray


class FaradayRotator(BoxObjMixin, BaseSceneObj):
    """
    Faraday rotator: a rectangular block that rotates linear polarization.

    Each of the four edges is a thin boundary. A ray crossing into the block
    continues unchanged in the block's refractive index; a ray crossing out
    continues in air and, if polarized, has its Jones vector rotated by
    ``rotation_angle_deg``.

    The rotation angle is applied on exit with the same sign in world
    coordinates whichever way the block is traversed, and does not depend
    on the direction of travel relative to a field axis. FaradayIsolator
    models the direction-dependent behaviour.

    Attributes:
        width (float): Block length along its local x axis
        height (float): Block height along its local y axis
        rotation_angle_deg (float): Polarization rotation applied on exit (degrees)
    """

    type = 'FaradayRotator'
    is_optical = True
    draw_color = '#DAA520'

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'width': 40.0,
        'height': 25.0,
        'rotation_angle_deg': 45.0,
    }

    property_schema = {
        'width': {'attr': 'width', 'label': 'Width', 'type': 'number', 'min': 20},
        'height': {'attr': 'height', 'label': 'Height', 'type': 'number', 'min': 10},
        'rotationAngleDeg': {'attr': 'rotation_angle_deg', 'label': 'Rotation angle (deg)',
                             'type': 'number'},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)

    @property
    def rotation_angle_rad(self) -> float:
        return math.radians(self.rotation_angle_deg)

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        """
        Carry the ray across one face of the block.

        Returns:
            Exactly one child ray.
        """
        entering = self.is_entering(ray.direction, hit.surface_id)
        origin = hit.point + ray.direction * RAY_ORIGIN_OFFSET

        if entering:
            child = ray.spawn(origin, ray.direction, medium_refractive_index=ROTATOR_REFRACTIVE_INDEX)
        else:
            ray.ensure_jones_vector()
            if ray.has_jones():
                rotated = jones.apply(jones.rotation(self.rotation_angle_rad), ray.jones)
                child = ray.spawn(origin, ray.direction, medium_refractive_index=N_AIR, jones=rotated)
            else:
                child = ray.spawn(origin, ray.direction, medium_refractive_index=N_AIR)

        if self.verbose >= 2:
            side = 'enter' if entering else 'exit'
            print(f"    {self.get_display_name()}: {side} face {hit.surface_id}, "
                  f"pol {ray.polarization_angle} -> {child.polarization_angle}")

        ray.terminate('pass_rotator_surface')
        return [child]
