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

"""
Constants used throughout the optical bench engine.

Kept in their own module so that the geometry helpers, the ray model, the
scene objects and the simulator can share them without circular imports.
"""

import math

# Refractive index of air, used as the default propagation medium
N_AIR = 1.000293

# Fixed internal index of the magneto-optic crystal in Faraday components
ROTATOR_REFRACTIVE_INDEX = 1.5

# Wavelengths (in nanometers)
DEFAULT_WAVELENGTH_NM = 550  # Green
UV_WAVELENGTH = 380          # Lower edge of the visible range
INFRARED_WAVELENGTH = 750    # Upper edge of the visible range

# Propagation bounds
MAX_RAY_BOUNCES = 500
MAX_TOTAL_RAYS = 100000
MIN_RAY_INTENSITY = 1e-4

# Scene units are pixels; one pixel represents one micrometer
PIXELS_PER_MICROMETER = 1.0
PIXELS_PER_NANOMETER = PIXELS_PER_MICROMETER / 1000.0

# Forward distance a hit must exceed to count, and the offset applied to
# the origin of every spawned ray along its outgoing direction
MIN_RAY_SEGMENT_LENGTH = 1e-6
RAY_ORIGIN_OFFSET = 1e-6

# Below this |determinant| a ray and a segment are treated as parallel
PARALLEL_DETERMINANT_THRESHOLD = 1e-9

# Below this squared magnitude a vector is treated as zero
ZERO_VECTOR_THRESHOLD = 1e-9

# Below this Jones energy a projection scale factor falls back to zero
JONES_ENERGY_THRESHOLD = 1e-12

# Tolerance used when classifying a Jones state (phase difference, magnitudes)
POLARIZATION_CLASSIFY_TOLERANCE = 1e-4

# Default loss of a plain mirror
MIRROR_REFLECTIVITY = 0.99

# Default transmission of a thin lens
LENS_QUALITY = 0.98

# Distance (in scene units) within which a click selects a component outline
PICK_TOLERANCE = 5.0

# Default half-size of the traced world; rays with no hit are extended by
# twice this distance before termination
DEFAULT_WORLD_EXTENT = 1000.0

SQRT2 = math.sqrt(2.0)
