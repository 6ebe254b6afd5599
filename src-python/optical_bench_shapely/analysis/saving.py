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
Export utilities
===============================================================================
Writes trace results and scenes to disk:

- CSV: one row per traced ray with geometry, intensity, polarization and
  lineage tags
- JSON: scene persistence through Scene.serialize() / Scene.from_json()
===============================================================================
"""

import csv
import json
import math
from pathlib import Path
from typing import Any, Dict, List, Union

from ..core.ray import Ray
from ..core.scene import Scene


CSV_COLUMNS = [
    'ray_index',
    'uuid',
    'parent_uuid',
    'source_id',
    'origin_x',
    'origin_y',
    'end_x',
    'end_y',
    'length',
    'wavelength_nm',
    'intensity',
    'phase',
    'bounces',
    'polarization',
    'interaction_type',
    'end_reason',
]


def _format_polarization(ray: Ray, precision: int) -> str:
    if ray.polarization_angle is None:
        return 'unpolarized'
    if isinstance(ray.polarization_angle, str):
        return ray.polarization_angle
    return f"{math.degrees(ray.polarization_angle):.{precision}f}"


def save_rays_csv(
    ray_segments: List[Ray],
    output_path: Union[str, Path],
    filename: str = "rays.csv",
    precision_coords: int = 4,
    precision_intensity: int = 6,
) -> Path:
    """
    Export traced rays to a CSV file.

    Each row describes one terminated ray: where it started and ended, its
    intensity and polarization at emission, and its lineage tags. Rays that
    never ended get empty end columns.

    Args:
        ray_segments: List of Ray objects to export.
        output_path: Directory path where the CSV file will be saved.
        filename: Name of the output CSV file (default: "rays.csv").
        precision_coords: Decimal places for coordinates (default: 4).
        precision_intensity: Decimal places for intensity (default: 6).

    Returns:
        Path: Full path to the created CSV file.

    Raises:
        OSError: If the output directory cannot be created or file cannot be written.

    Example:
        >>> rays = Simulator(scene).run()
        >>> output_file = save_rays_csv(rays, "./output")
    """
    output_dir = Path(output_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_file = output_dir / filename

    coord_fmt = f"{{:.{precision_coords}f}}"
    intensity_fmt = f"{{:.{precision_intensity}f}}"

    with open(csv_file, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)

        for i, ray in enumerate(ray_segments):
            end = ray.end_point
            writer.writerow([
                i,
                ray.uuid,
                ray.parent_uuid or '',
                ray.source_id or '',
                coord_fmt.format(ray.origin.x),
                coord_fmt.format(ray.origin.y),
                coord_fmt.format(end.x) if end is not None else '',
                coord_fmt.format(end.y) if end is not None else '',
                coord_fmt.format(ray.segment_length),
                ray.wavelength_nm,
                intensity_fmt.format(ray.intensity),
                coord_fmt.format(ray.phase),
                ray.bounces_so_far,
                _format_polarization(ray, precision_coords),
                ray.interaction_type or '',
                ray.end_reason or '',
            ])

    return csv_file


def get_ray_statistics(ray_segments: List[Ray]) -> Dict[str, Any]:
    """
    Compute statistics about a collection of traced rays.

    Returns:
        dict: Dictionary containing:
            - total_rays: Number of rays
            - total_intensity: Sum of ray intensities
            - avg_intensity: Average intensity per ray
            - polarized_rays: Rays carrying a Jones vector
            - max_bounces: Largest bounce count
            - wavelengths: Set of wavelengths
            - total_length: Sum of segment lengths
            - end_reasons: end_reason -> count
    """
    if not ray_segments:
        return {
            'total_rays': 0,
            'total_intensity': 0.0,
            'avg_intensity': 0.0,
            'polarized_rays': 0,
            'max_bounces': 0,
            'wavelengths': set(),
            'total_length': 0.0,
            'end_reasons': {},
        }

    end_reasons: Dict[str, int] = {}
    for ray in ray_segments:
        key = ray.end_reason or 'active'
        end_reasons[key] = end_reasons.get(key, 0) + 1

    total_intensity = sum(ray.intensity for ray in ray_segments)
    return {
        'total_rays': len(ray_segments),
        'total_intensity': total_intensity,
        'avg_intensity': total_intensity / len(ray_segments),
        'polarized_rays': sum(1 for ray in ray_segments if ray.is_polarized()),
        'max_bounces': max(ray.bounces_so_far for ray in ray_segments),
        'wavelengths': {ray.wavelength_nm for ray in ray_segments},
        'total_length': sum(ray.segment_length for ray in ray_segments),
        'end_reasons': end_reasons,
    }


def save_scene_json(
    scene: Scene,
    output_path: Union[str, Path],
    filename: str = "scene.json",
    indent: int = 2,
) -> Path:
    """
    Write ``scene.serialize()`` to a JSON file.

    Args:
        scene: Scene to save.
        output_path: Directory path where the file will be saved.
        filename: Name of the output file (default: "scene.json").
        indent: JSON indentation.

    Returns:
        Path: Full path to the created file.
    """
    output_dir = Path(output_path)
    output_dir.mkdir(parents=True, exist_ok=True)
    json_file = output_dir / filename
    with open(json_file, 'w', encoding='utf-8') as f:
        json.dump(scene.serialize(), f, indent=indent)
    return json_file


def load_scene_json(path: Union[str, Path]) -> Scene:
    """
    Rebuild a scene from a file written by ``save_scene_json``.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If an object has an unknown type.
    """
    with open(Path(path), 'r', encoding='utf-8') as f:
        data = json.load(f)
    return Scene.from_json(data)
