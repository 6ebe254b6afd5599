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
from typing import Dict, Any, List, Optional, Tuple, TYPE_CHECKING

import numpy as np

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.scene_objs.base_scene_obj import (
        BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    )
    from optical_bench_shapely.core.scene_objs.line_obj_mixin import LineObjMixin
else:
    from ..base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
    from ..line_obj_mixin import LineObjMixin

if TYPE_CHECKING:
    from ...scene import Scene
    from ...ray import Ray


class Screen(LineObjMixin, BaseSceneObj):
    """
    Observation screen that absorbs every ray and records a 1D pattern.

    The screen is divided into ``num_bins`` equal bins along its length.
    Each bin sums the complex amplitudes of the rays landing in it (for the
    coherent pattern), their intensities (for the incoherent pattern) and
    the number of hits.

    Attributes:
        length (float): Length of the screen
        num_bins (int): Number of bins along the screen
    """

    type = 'Screen'
    is_optical = True
    draw_color = '#2F4F4F'

    serializable_defaults = {
        **PLACEMENT_DEFAULTS,
        'length': 150.0,
        'num_bins': 200,
    }

    property_schema = {
        'length': {'attr': 'length', 'label': 'Length', 'type': 'number', 'min': 10},
        'numBins': {'attr': 'num_bins', 'label': 'Bins', 'type': 'int', 'min': 1},
    }

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(scene, json_obj)
        self.reset_pattern()

    def _geometry_key(self) -> Tuple:
        return super()._geometry_key() + (self.num_bins,)

    def _update_geometry(self) -> None:
        super()._update_geometry()
        if getattr(self, 'intensity_sum', None) is None or len(self.intensity_sum) != self.num_bins:
            self.reset_pattern()

    def reset_pattern(self) -> None:
        """Clear all bins."""
        n = int(self.num_bins)
        self.amplitude_real = np.zeros(n)
        self.amplitude_imag = np.zeros(n)
        self.intensity_sum = np.zeros(n)
        self.hit_count = np.zeros(n, dtype=int)

    def on_simulation_start(self) -> None:
        self.reset_pattern()

    def bin_index(self, point) -> int:
        """Bin containing a point on the screen, clamped to the valid range."""
        fraction = self.segment_fraction(point)
        index = int(math.floor(fraction * self.num_bins))
        return max(0, min(self.num_bins - 1, index))

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        index = self.bin_index(hit.point)
        amplitude = ray.get_complex_amplitude()
        self.amplitude_real[index] += amplitude.real
        self.amplitude_imag[index] += amplitude.imag
        self.intensity_sum[index] += ray.intensity
        self.hit_count[index] += 1
        ray.terminate('absorbed_screen')
        return []

    def get_intensity_pattern(self) -> Dict[str, np.ndarray]:
        """
        The recorded pattern.

        Returns:
            Dict with numpy arrays of length num_bins:
            - position: bin center, as distance from the screen's p1 end
            - coherent: |sum of complex amplitudes|^2 per bin
            - incoherent: sum of intensities per bin
            - hit_count: number of rays per bin
        """
        bin_width = self.length / self.num_bins
        return {
            'position': (np.arange(self.num_bins) + 0.5) * bin_width,
            'coherent': self.amplitude_real ** 2 + self.amplitude_imag ** 2,
            'incoherent': self.intensity_sum.copy(),
            'hit_count': self.hit_count.copy(),
        }

    @property
    def total_intensity(self) -> float:
        return float(self.intensity_sum.sum())
