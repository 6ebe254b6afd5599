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
Isolator Demo - Back-reflection with and without a Faraday isolator

A linearly polarized laser goes through a 50/50 beam splitter and is
reflected straight back by a mirror. Light coming back is folded by the
beam splitter onto a photodiode, which measures the feedback power.

Setup:
- Laser at (0, 0) pointing +x, linear polarization at 0 deg
- 50/50 beam splitter at x=100, tilted 45 deg
- Faraday isolator at x=200 (second run only)
- Mirror at x=300, normal to the beam
- Photodiode at (100, -100) facing the beam splitter

Expected behavior:
- Without the isolator the photodiode reads 0.5 * 0.99 * 0.5 = 0.2475
- With the isolator the returning light is blocked and the reading is 0
"""

import sys
import os

# Add the src-python directory to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from optical_bench_shapely.core.scene import Scene
from optical_bench_shapely.core.scene_objs import (
    LaserSource, BeamSplitter, FaradayIsolator, Mirror, Photodiode,
)
from optical_bench_shapely.core.simulator import Simulator
from optical_bench_shapely.core.svg_renderer import SVGRenderer
from optical_bench_shapely.analysis import (
    save_rays_csv, save_scene_json, rank_paths_by_energy, check_energy_conservation,
)


def build_scene(with_isolator):
    scene = Scene(name='isolator_demo' if with_isolator else 'feedback_demo')
    scene.add_object(LaserSource(scene, {
        'label': 'Laser',
        'polarization_type': 'linear',
        'polarization_angle_deg': 0.0,
    }))
    scene.add_object(BeamSplitter(scene, {'pos': {'x': 100.0, 'y': 0.0}, 'label': 'BS'}))
    if with_isolator:
        scene.add_object(FaradayIsolator(scene, {'pos': {'x': 200.0, 'y': 0.0},
                                                 'label': 'Isolator'}))
    scene.add_object(Mirror(scene, {'pos': {'x': 300.0, 'y': 0.0}, 'angle_deg': 90.0,
                                    'label': 'Mirror'}))
    scene.add_object(Photodiode(scene, {'pos': {'x': 100.0, 'y': -100.0},
                                        'label': 'Feedback PD'}))
    return scene


def run(with_isolator, output_dir):
    title = "with isolator" if with_isolator else "without isolator"
    print(f"\n--- Run {title} ---")

    scene = build_scene(with_isolator)
    # Escaping rays end at the world extent; keep the drawing compact
    scene.world_extent = 400.0

    simulator = Simulator(scene)
    ray_segments = simulator.run()
    photodiode = scene.get_objects_by_type('Photodiode')[0]

    print(f"  Processed {simulator.processed_ray_count} rays")
    print(f"  Feedback power: {photodiode.incident_power:.4f} ({photodiode.hit_count} hits)")
    if scene.warning:
        print(f"  Warning: {scene.warning}")
    if scene.error:
        print(f"  Error: {scene.error}")

    print("  Paths by energy:")
    for path in rank_paths_by_energy(simulator.lineage):
        reasons = ' -> '.join(path['path_reasons'])
        print(f"    {path['energy']:.4f}  {reasons}")

    conservation = check_energy_conservation(simulator.lineage)
    print(f"  Energy conserved at {conservation['total_checks']} branch points: "
          f"{conservation['is_valid']}")

    suffix = 'isolated' if with_isolator else 'open'
    renderer = SVGRenderer.for_scene(scene, ray_segments, padding=30.0, scale=1.5)
    renderer.draw_scene(scene, ray_segments)
    svg_file = os.path.join(output_dir, f'output_{suffix}.svg')
    renderer.save(svg_file)
    print(f"  SVG saved to: {svg_file}")

    csv_file = save_rays_csv(ray_segments, output_dir, filename=f'rays_{suffix}.csv')
    print(f"  CSV data exported to: {csv_file}")
    json_file = save_scene_json(scene, output_dir, filename=f'scene_{suffix}.json')
    print(f"  Scene saved to: {json_file}")

    return photodiode.incident_power


def main():
    """Compare the feedback power with and without the isolator."""
    print("Isolator Demo - Back-reflection with and without a Faraday isolator")
    print("=" * 60)

    output_dir = os.path.dirname(os.path.abspath(__file__))
    open_power = run(False, output_dir)
    isolated_power = run(True, output_dir)

    print("\n" + "=" * 60)
    print(f"Feedback without isolator: {open_power:.4f}")
    print(f"Feedback with isolator:    {isolated_power:.4f}")
    print("=" * 60)


if __name__ == "__main__":
    main()
