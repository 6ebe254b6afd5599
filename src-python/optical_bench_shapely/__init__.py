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

Optical Bench Shapely
=====================

Two-dimensional ray propagation with Jones-vector polarization tracking,
using Shapely for component footprints.

Main modules:
- core: Propagation engine (Scene, Simulator, Ray, optical components)
- analysis: Lineage, energy and export utilities

Quick start:
    from optical_bench_shapely.core.scene import Scene
    from optical_bench_shapely.core.scene_objs import LaserSource, BeamSplitter
    from optical_bench_shapely.core.simulator import Simulator
"""

__version__ = "0.1.0"

# Convenience imports for common usage
from .core.scene import Scene
from .core.simulator import Simulator
from .core.ray import Ray
from .core.geometry import Vector2
from .core.svg_renderer import SVGRenderer

__all__ = [
    'Scene',
    'Simulator',
    'Ray',
    'Vector2',
    'SVGRenderer',
    '__version__',
]
