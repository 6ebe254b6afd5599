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

===============================================================================
Analysis Utilities
===============================================================================
Post-processing of completed traces:

- Ray tree analysis (energy ranking, branching, conservation checks)
- Export of traced rays to CSV
- JSON scene persistence
===============================================================================
"""


from .saving import (
    save_rays_csv,
    get_ray_statistics,
    save_scene_json,
    load_scene_json,
)
from .lineage_analysis import (
    rank_paths_by_energy,
    get_branching_statistics,
    check_energy_conservation,
)

__all__ = [
    'save_rays_csv',
    'get_ray_statistics',
    'save_scene_json',
    'load_scene_json',
    'rank_paths_by_energy',
    'get_branching_statistics',
    'check_energy_conservation',
]
