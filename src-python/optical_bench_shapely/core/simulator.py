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

from collections import deque
from typing import Any, Deque, List, Optional, Tuple, TYPE_CHECKING

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.ray import Ray
    from optical_bench_shapely.core.ray_lineage import RayLineage
    from optical_bench_shapely.core.scene_objs.base_scene_obj import Intersection
    from optical_bench_shapely.core.constants import MIN_RAY_SEGMENT_LENGTH
else:
    from .ray import Ray
    from .ray_lineage import RayLineage
    from .scene_objs.base_scene_obj import Intersection
    from .constants import MIN_RAY_SEGMENT_LENGTH

if TYPE_CHECKING:
    from .scene import Scene
    from .scene_objs.base_scene_obj import BaseSceneObj


class Simulator:
    """
    Breadth-first ray propagation engine.

    The simulator owns every ray for the duration of a trace pass. Rays are
    processed in FIFO order: each ray is intersected with all optical
    components, the nearest hit is handed to that component's ``interact``,
    and the returned children are queued. Completed rays (terminated with an
    end reason) are collected in ``ray_segments`` and indexed in ``lineage``.

    Attributes:
        scene (Scene): The scene to simulate
        max_bounces (int): Bounce cap, from the scene unless given
        max_total_rays (int): Total ray cap, from the scene unless given
        verbose (int): Diagnostic level (0 silent, 1 per ray, 2 per hit)
        pending_rays (deque): Queue of rays waiting to be processed
        ray_segments (list): Terminated rays of the last trace
        processed_ray_count (int): Number of rays dequeued so far
        lineage (RayLineage): Parent/child index of ray_segments
    """

    def __init__(
        self,
        scene: 'Scene',
        max_bounces: Optional[int] = None,
        max_total_rays: Optional[int] = None,
        verbose: int = 0
    ) -> None:
        """
        Initialize the simulator.

        Args:
            scene (Scene): The scene containing optical objects and sources
            max_bounces (int, optional): Override of scene.max_bounces
            max_total_rays (int, optional): Override of scene.max_total_rays
            verbose (int): Verbosity level for debugging (default: 0)
                0 = silent
                1 = show ray processing info
                2 = show detailed per-hit info
        """
        self.scene = scene
        self.max_bounces: int = scene.max_bounces if max_bounces is None else int(max_bounces)
        self.max_total_rays: int = (scene.max_total_rays if max_total_rays is None
                                    else int(max_total_rays))
        self.verbose: int = verbose
        self.pending_rays: Deque[Ray] = deque()
        self.ray_segments: List[Ray] = []
        self.processed_ray_count: int = 0
        self.lineage: RayLineage = RayLineage()

    def run(self, initial_rays: Optional[List[Ray]] = None) -> List[Ray]:
        """
        Run one trace pass.

        Sources are asked for their rays, then ``initial_rays`` and any
        rays queued with ``add_ray`` are appended, in that order.
        Every queued root ray takes ``scene.min_intensity`` as its spawn
        threshold. Rays that are already terminated are recorded as results
        without being traced.

        Args:
            initial_rays (list, optional): Extra rays to trace

        Returns:
            list: Every terminated ray of this pass, in completion order
        """
        self.scene.warning = None
        self.ray_segments = []
        self.processed_ray_count = 0
        self.lineage = RayLineage()

        for obj in self.scene.optical_objs:
            obj.on_simulation_start()

        queue: Deque[Ray] = deque()
        for source in self.scene.get_sources():
            queue.extend(source.generate_rays())
        if initial_rays:
            queue.extend(initial_rays)
        queue.extend(self.pending_rays)
        for ray in queue:
            ray.min_intensity_threshold = self.scene.min_intensity
        self.pending_rays = queue

        if self.verbose >= 1:
            print(f"SIMULATOR: starting with {len(self.pending_rays)} rays, "
                  f"max_bounces={self.max_bounces}, max_total_rays={self.max_total_rays}")

        self._process_rays()

        if self.pending_rays:
            for ray in self.pending_rays:
                ray.terminate('stuck_in_queue')
                self._record(ray)
            self.pending_rays.clear()
            self.scene.warning = (
                f"Simulation stopped: maximum ray count ({self.max_total_rays}) reached"
            )

        for ray in self.ray_segments:
            self.lineage.register(ray)
        self.scene.mark_traced()

        if self.verbose >= 1:
            print(f"SIMULATOR: done, {self.processed_ray_count} rays processed, "
                  f"{len(self.ray_segments)} segments")
        return self.ray_segments

    def _process_rays(self) -> None:
        """
        Drain the FIFO queue.

        For each ray:
        1. Stop it if it exceeds the bounce cap or fell below its threshold
        2. Find the nearest intersection with any optical object
        3. Extend to the world boundary if nothing is hit
        4. Otherwise advance the ray to the hit and call interact() on the object
        5. Queue the children that may still propagate
        """
        while self.pending_rays and self.processed_ray_count < self.max_total_rays:
            ray = self.pending_rays.popleft()
            if ray.terminated:
                # Already ended before it was queued, kept as a result only.
                self._record(ray)
                continue
            self.processed_ray_count += 1

            if self.verbose >= 1:
                print(f"\n### SIMULATOR processing ray {self.processed_ray_count - 1}")
                print(f"  origin=({ray.origin.x:.4f}, {ray.origin.y:.4f}) "
                      f"dir=({ray.direction.x:.4f}, {ray.direction.y:.4f}) "
                      f"I={ray.intensity:.6f} bounces={ray.bounces_so_far}")

            reason = ray.should_terminate(self.max_bounces)
            if reason is not None:
                ray.terminate(reason)
                self._record(ray)
                continue

            found = self.find_nearest_intersection(ray)
            if found is None:
                ray.add_history_point(ray.origin + ray.direction * (2.0 * self.scene.world_extent))
                ray.terminate('out_of_bounds')
                self._record(ray)
                if self.verbose >= 1:
                    print("  No intersection, ray leaves the scene")
                continue

            obj, hit = found
            if self.verbose >= 1:
                print(f"  Hit {obj.get_display_name()} at ({hit.point.x:.4f}, {hit.point.y:.4f}) "
                      f"distance={hit.distance:.4f} surface={hit.surface_id}")

            ray.add_history_point(hit.point)
            if ray.end_point is None:
                ray.end_point = hit.point

            children = obj.interact(ray, hit) or []
            if not ray.terminated:
                ray.terminate('segment_end_after_interaction')
            self._record(ray)

            for child in children:
                child.interaction_type = ray.end_reason
                child.parent_uuid = ray.uuid
                reason = child.should_terminate(self.max_bounces)
                if reason is not None:
                    child.terminate(reason)
                    self._record(child)
                else:
                    self.pending_rays.append(child)

            if self.verbose >= 2:
                print(f"  end_reason={ray.end_reason}, children={len(children)}")

    def find_nearest_intersection(self, ray: Ray) -> Optional[Tuple['BaseSceneObj', Intersection]]:
        """
        Find the nearest intersection between a ray and all optical objects.

        On the first leg of a ray (no bounces yet) the emitting source is
        skipped.

        Args:
            ray (Ray): The ray to test

        Returns:
            tuple or None: (object, Intersection) of the nearest hit with
                distance above the minimum segment length, or None
        """
        nearest: Optional[Tuple[Any, Intersection]] = None
        for obj in self.scene.optical_objs:
            if ray.bounces_so_far == 0 and ray.source_id is not None and obj.uuid == ray.source_id:
                continue
            for hit in obj.intersect(ray.origin, ray.direction):
                if hit.distance <= MIN_RAY_SEGMENT_LENGTH:
                    continue
                if nearest is None or hit.distance < nearest[1].distance:
                    nearest = (obj, hit)
                    if self.verbose >= 2:
                        print(f"    candidate {obj.get_display_name()} at distance {hit.distance:.6f}")
        return nearest

    def _record(self, ray: Ray) -> None:
        self.ray_segments.append(ray)

    def add_ray(self, ray: Ray) -> bool:
        """
        Add a ray to the pending queue for the next run().

        Args:
            ray (Ray): The ray to add

        Returns:
            bool: False if the ray cap has already been reached
        """
        if len(self.pending_rays) >= self.max_total_rays:
            return False
        self.pending_rays.append(ray)
        return True

    def get_terminated_by(self, end_reason: str) -> List[Ray]:
        """Rays of the last trace that ended with the given reason."""
        return [ray for ray in self.ray_segments if ray.end_reason == end_reason]


# Example usage and testing
if __name__ == "__main__":
    from optical_bench_shapely.core.scene import Scene
    from optical_bench_shapely.core.scene_objs import LaserSource, BeamSplitter, Mirror, Screen

    print("Testing Simulator class...\n")

    scene = Scene(name="demo")
    scene.add_object(LaserSource(scene, {'pos': {'x': 0, 'y': 0}, 'angle_deg': 0}))
    scene.add_object(BeamSplitter(scene, {'pos': {'x': 100, 'y': 0}}))
    scene.add_object(Mirror(scene, {'pos': {'x': 100, 'y': 100}, 'angle_deg': 0}))
    scene.add_object(Screen(scene, {'pos': {'x': 250, 'y': 0}, 'angle_deg': 90}))

    sim = Simulator(scene, verbose=1)
    rays = sim.run()

    print(f"\nTraced {len(rays)} rays")
    for r in rays:
        print(f"  {r.interaction_type:>12} -> {r.end_reason:<28} I={r.intensity:.4f}")
    print(f"Lineage: {sim.lineage.get_lineage_statistics()}")
    print(f"Warning: {scene.warning}")
