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

import numpy as np

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.scene_objs.base_scene_obj import (
        BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    )
    from optical_bench_shapely.core.scene_objs.line_obj_mixin import LineObjMixin
    from optical_bench_shapely.core import jones
    from optical_bench_shapely.core.constants import RAY_ORIGIN_OFFSET
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ..line_obj_mixin import LineObjMixin
    from ... import jones
    from ...constants import RAY_ORIGIN_OFFSET

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray


class BaseWavePlate(LineObjMixin, BaseSceneObj):
    """
    Lossless linear retarder with its fast axis at ``fast_axis_deg``.

    Polarized light gets R(theta) M R(-theta) applied to its Jones vector,
    where M is the retarder matrix of the subclass. Unpolarized light passes
    unchanged, since a retarder does not polarize.

    Attributes:
        length (float): Length of the plate
        fast_axis_deg (float): Fast axis angle in world coordinates (degrees)
    """

    is_optical = True
    draw_color = '#20B2AA'

    retardance: float = 0.0
    """Phase delay of the slow axis in radians."""

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'angle_deg': 90.0,
        'length': 80.0,
        'fast_axis_deg': 0.0,
    }

    property_schema = {
        'length': {'attr': 'length', 'label': 'Length', 'type': 'number', 'min': 10},
        'fastAxisDeg': {'attr': 'fast_axis_deg', 'label': 'Fast axis (deg)', 'type': 'number'},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)

    @property
    def fast_axis_rad(self) -> float:
        return math.radians(self.fast_axis_deg)

    def jones_matrix(self) -> np.ndarray:
        """The plate's Jones matrix in world coordinates."""
        return jones.retarder(self.fast_axis_rad, self.retardance)

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        origin = hit.point + ray.direction * RAY_ORIGIN_OFFSET
        ray.ensure_jones_vector()

        if not ray.has_jones():
            children = []
            if self.spawn_allowed(ray, ray.intensity):
                children.append(ray.spawn(origin, ray.direction))
            ray.terminate('pass_unpolarized_waveplate')
            return children

        out_jones = jones.apply(self.jones_matrix(), ray.jones)
        children = []
        if self.spawn_allowed(ray, ray.intensity):
            children.append(ray.spawn(origin, ray.direction, jones=out_jones))

        if self.verbose >= 2:
            print(f"    {self.get_display_name()}: fast axis={self.fast_axis_deg:.1f}deg "
                  f"pol {ray.polarization_angle} -> {jones.describe(out_jones)}")

        ray.terminate('pass_waveplate')
        return children


class HalfWavePlate(BaseWavePlate):
    """
    Half-wave plate: mirrors linear polarization about the fast axis and
    flips the handedness of circular polarization.
    """

    type = 'HalfWavePlate'
    retardance = math.pi


class QuarterWavePlate(BaseWavePlate):
    """
    Quarter-wave plate: turns linear polarization at 45 degrees to the fast
    axis into circular polarization, and back.
    """

    type = 'QuarterWavePlate'
    retardance = math.pi / 2
