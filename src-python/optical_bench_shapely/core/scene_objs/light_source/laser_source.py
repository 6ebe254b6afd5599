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
    from optical_bench_shapely.core.scene_objs.base_scene_obj import BaseSceneObj, PLACEMENT_DEFAULTS
    from optical_bench_shapely.core.geometry import Vector2
    from optical_bench_shapely.core.ray import Ray
    from optical_bench_shapely.core.constants import DEFAULT_WAVELENGTH_NM, N_AIR, ZERO_VECTOR_THRESHOLD
else:
    from ..base_scene_obj import BaseSceneObj, PLACEMENT_DEFAULTS
    from ...geometry import Vector2
    from ...ray import Ray
    from ...constants import DEFAULT_WAVELENGTH_NM, N_AIR, ZERO_VECTOR_THRESHOLD

if TYPE_CHECKING:
    from ...scene import Scene


class LaserSource(BaseSceneObj):
    """
    Laser: emits a fan of ``num_rays`` rays from ``pos``.

    The rays are spread evenly over ``spread_deg`` centred on ``angle_deg``
    and share ``intensity`` equally. Every ray carries the source uuid as
    its ``source_id``, which the simulator uses to skip the laser itself on
    the first leg.

    Attributes:
        wavelength (float): Wavelength in nm
        intensity (float): Total emitted intensity
        num_rays (int): Number of rays in the fan
        spread_deg (float): Full angular spread of the fan (degrees)
        polarization_type (str): 'unpolarized', 'linear', 'circular-right'
            or 'circular-left'
        polarization_angle_deg (float): Angle of linear polarization (degrees)
        ignore_decay (bool): Trace every branch regardless of intensity
        beam_diameter (float): Nominal beam diameter
        enabled (bool): Whether the laser emits
    """

    type = 'LaserSource'
    is_optical = True
    draw_color = '#FF4500'

    VALID_POLARIZATION_TYPES = ('unpolarized', 'linear', 'circular-right', 'circular-left')

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'wavelength': DEFAULT_WAVELENGTH_NM,
        'intensity': 1.0,
        'num_rays': 1,
        'spread_deg': 0.0,
        'polarization_type': 'unpolarized',
        'polarization_angle_deg': 0.0,
        'ignore_decay': False,
        'beam_diameter': 10.0,
        'enabled': True,
    }

    property_schema = {
        'wavelength': {'attr': 'wavelength', 'label': 'Wavelength (nm)', 'type': 'number',
                       'min': 1},
        'intensity': {'attr': 'intensity', 'label': 'Intensity', 'type': 'number', 'min': 0.0},
        'numRays': {'attr': 'num_rays', 'label': 'Number of rays', 'type': 'int', 'min': 1},
        'spreadDeg': {'attr': 'spread_deg', 'label': 'Spread (deg)', 'type': 'number',
                      'min': 0.0, 'max': 360.0},
        'polarizationType': {'attr': 'polarization_type', 'label': 'Polarization',
                             'type': 'select', 'options': list(VALID_POLARIZATION_TYPES)},
        'polarizationAngleDeg': {'attr': 'polarization_angle_deg',
                                 'label': 'Polarization angle (deg)', 'type': 'number'},
        'ignoreDecay': {'attr': 'ignore_decay', 'label': 'Ignore decay', 'type': 'bool'},
        'beamDiameter': {'attr': 'beam_diameter', 'label': 'Beam diameter', 'type': 'number',
                         'min': 0.0},
        'enabled': {'attr': 'enabled', 'label': 'Enabled', 'type': 'bool'},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)
        if self.polarization_type not in self.VALID_POLARIZATION_TYPES:
            self.scene.error = (
                f"Invalid polarization_type '{self.polarization_type}'. "
                f"Valid options: {self.VALID_POLARIZATION_TYPES}"
            )
            self.polarization_type = 'unpolarized'

    def _apply_polarization(self, ray: Ray) -> None:
        if self.polarization_type == 'linear':
            ray.set_linear_polarization(math.radians(self.polarization_angle_deg))
        elif self.polarization_type == 'circular-right':
            ray.set_circular_polarization(right=True)
        elif self.polarization_type == 'circular-left':
            ray.set_circular_polarization(right=False)
        else:
            ray.set_unpolarized()

    def generate_rays(self) -> List[Ray]:
        """
        Emit the fan of rays for one trace pass.

        Returns:
            The new rays, or an empty list if the laser is disabled.
        """
        if not self.enabled or self.num_rays <= 0:
            return []

        n = int(self.num_rays)
        spread = math.radians(self.spread_deg)
        start = self.angle_rad - spread / 2.0
        if n > 1 and spread >= 2 * math.pi - ZERO_VECTOR_THRESHOLD:
            # A full circle would put the last ray on top of the first.
            step = spread / n
        elif n > 1 and spread > ZERO_VECTOR_THRESHOLD:
            step = spread / (n - 1)
        else:
            step = 0.0
        intensity_per_ray = self.intensity / n
        min_intensity = getattr(self.scene, 'min_intensity', None)

        rays = []
        for i in range(n):
            angle = self.angle_rad if n == 1 else start + i * step
            ray = Ray(
                origin=self.position,
                direction=Vector2.from_angle(angle),
                wavelength_nm=self.wavelength,
                intensity=intensity_per_ray,
                medium_refractive_index=N_AIR,
                source_id=self.uuid,
                ignore_decay=self.ignore_decay,
                beam_diameter=self.beam_diameter,
            )
            if min_intensity is not None:
                ray.min_intensity_threshold = min_intensity
            self._apply_polarization(ray)
            rays.append(ray)
        return rays

    def draw(self, renderer) -> None:
        renderer.draw_point(self.position, color=self.draw_color, radius=4,
                            label=self.label or None, scene_obj=self)
        tip = self.position + Vector2.from_angle(self.angle_rad) * 15.0
        renderer.draw_arrow(self.position, tip, color=self.draw_color, scene_obj=self)
