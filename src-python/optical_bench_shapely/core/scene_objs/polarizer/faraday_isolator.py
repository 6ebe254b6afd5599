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
    from optical_bench_shapely.core.geometry import Vector2
    from optical_bench_shapely.core import jones
    from optical_bench_shapely.core.constants import (
        N_AIR, ROTATOR_REFRACTIVE_INDEX, RAY_ORIGIN_OFFSET, JONES_ENERGY_THRESHOLD
    )
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ..box_obj_mixin import BoxObjMixin
    from ...geometry import Vector2
    from ... import jones
    from ...constants import N_AIR, ROTATOR_REFRACTIVE_INDEX, RAY_ORIGIN_OFFSET, JONES_ENERGY_THRESHOLD

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray

ISOLATOR_ROTATION = math.pi / 4


class FaradayIsolator(BoxObjMixin, BaseSceneObj):
    """
    Optical isolator: input polarizer, 45 degree Faraday rotator and output
    polarizer at 45 degrees, lumped onto the faces of one block.

    The forward direction is ``Vector2.from_angle(angle_rad)``. Forward light
    is polarized at 0 degrees (relative to the block) on entry and rotated to
    45 degrees, which the exit polarizer passes. Backward light is polarized
    at 45 degrees on entry and rotated to 90 degrees on exit, where the input
    polarizer blocks it.

    Attributes:
        width (float): Block length along the forward direction
        height (float): Block height
    """

    type = 'FaradayIsolator'
    is_optical = True
    draw_color = '#8A2BE2'
    bbox_padding = 2.0

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'width': 60.0,
        'height': 30.0,
    }

    property_schema = {
        'width': {'attr': 'width', 'label': 'Width', 'type': 'number', 'min': 40},
        'height': {'attr': 'height', 'label': 'Height', 'type': 'number', 'min': 20},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)

    @property
    def forward_direction(self) -> Vector2:
        return Vector2.from_angle(self.angle_rad)

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        """
        Apply the polarizer/rotator stage of the face the ray crosses.

        Returns:
            One child ray, or nothing if the ray is blocked.
        """
        entering = self.is_entering(ray.direction, hit.surface_id)
        forward = ray.direction.dot(self.forward_direction) > 0
        input_axis = self.angle_rad
        output_axis = self.angle_rad + ISOLATOR_ROTATION
        rotation = jones.rotation(ISOLATOR_ROTATION)

        ray.ensure_jones_vector()
        polarized = ray.has_jones()
        intensity = ray.intensity
        out_jones = ray.jones

        if entering:
            axis = input_axis if forward else output_axis
            if polarized:
                out_jones = jones.apply(jones.projector(axis), ray.jones)
            else:
                intensity /= 2.0
                out_jones = jones.linear(axis)
            if forward:
                out_jones = jones.apply(rotation, out_jones)
        elif polarized:
            if forward:
                out_jones = jones.apply(jones.projector(output_axis), ray.jones)
            else:
                out_jones = jones.apply(rotation, ray.jones)
                out_jones = jones.apply(jones.projector(input_axis), out_jones)

        if polarized:
            in_energy = ray.jones_intensity()
            out_energy = jones.intensity(out_jones)
            scale = out_energy / in_energy if in_energy > JONES_ENERGY_THRESHOLD else 0.0
        else:
            scale = 1.0
        final_intensity = intensity * scale

        if self.verbose >= 2:
            print(f"    {self.get_display_name()}: {'enter' if entering else 'exit'} "
                  f"{'forward' if forward else 'backward'}, I={ray.intensity:.6f} -> {final_intensity:.6f}")

        if not self.spawn_allowed(ray, final_intensity):
            ray.terminate('blocked_isolator')
            return []

        origin = hit.point + ray.direction * RAY_ORIGIN_OFFSET
        medium = ROTATOR_REFRACTIVE_INDEX if entering else N_AIR
        if out_jones is not None:
            child = ray.spawn(origin, ray.direction, intensity=final_intensity,
                              medium_refractive_index=medium, jones=out_jones)
        else:
            child = ray.spawn(origin, ray.direction, intensity=final_intensity,
                              medium_refractive_index=medium)
        ray.terminate('pass_isolator_surface')
        return [child]

    def draw(self, renderer) -> None:
        super().draw(renderer)
        half = self.forward_direction * (self.width * 0.3)
        renderer.draw_arrow(self.position - half, self.position + half,
                            color=self.draw_color, scene_obj=self)
