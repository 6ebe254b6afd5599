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
    from optical_bench_shapely.core import jones
    from optical_bench_shapely.core.constants import RAY_ORIGIN_OFFSET, JONES_ENERGY_THRESHOLD
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ..line_obj_mixin import LineObjMixin
    from ... import jones
    from ...constants import RAY_ORIGIN_OFFSET, JONES_ENERGY_THRESHOLD

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray


class Polarizer(LineObjMixin, BaseSceneObj):
    """
    Ideal linear polarizer.

    Transmits the field component along ``transmission_axis_deg`` (a world
    angle, independent of the plate orientation). Unpolarized light loses
    half its intensity and leaves linearly polarized along the axis.

    Attributes:
        length (float): Length of the polarizer plate
        transmission_axis_deg (float): Transmission axis angle (degrees)
    """

    type = 'Polarizer'
    is_optical = True
    draw_color = '#9370DB'

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'angle_deg': 90.0,
        'length': 100.0,
        'transmission_axis_deg': 0.0,
    }

    property_schema = {
        'length': {'attr': 'length', 'label': 'Length', 'type': 'number', 'min': 10},
        'transmissionAxisDeg': {'attr': 'transmission_axis_deg', 'label': 'Transmission axis (deg)',
                                'type': 'number'},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)

    @property
    def transmission_axis_rad(self) -> float:
        return math.radians(self.transmission_axis_deg)

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        """
        Project the ray onto the transmission axis.

        Returns:
            The transmitted ray, or nothing if it falls below the intensity floor.
        """
        axis = self.transmission_axis_rad
        ray.ensure_jones_vector()

        if not ray.has_jones():
            transmitted_intensity = ray.intensity * 0.5
            transmitted_jones = jones.linear(axis)
        else:
            transmitted_jones = jones.apply(jones.projector(axis), ray.jones)
            in_energy = ray.jones_intensity()
            scale = jones.intensity(transmitted_jones) / in_energy if in_energy > JONES_ENERGY_THRESHOLD else 0.0
            transmitted_intensity = ray.intensity * scale

        children = []
        if self.spawn_allowed(ray, transmitted_intensity):
            origin = hit.point + ray.direction * RAY_ORIGIN_OFFSET
            children.append(ray.spawn(
                origin, ray.direction,
                intensity=transmitted_intensity,
                jones=transmitted_jones,
            ))

        if self.verbose >= 2:
            print(f"    {self.get_display_name()}: axis={self.transmission_axis_deg:.1f}deg "
                  f"I={ray.intensity:.6f} -> {transmitted_intensity:.6f}")

        ray.terminate('polarized')
        return children
