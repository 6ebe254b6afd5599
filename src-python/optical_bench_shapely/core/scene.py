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
import uuid as uuid_module
from typing import Any, Dict, List, Optional

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.constants import (
        MIN_RAY_INTENSITY, MAX_RAY_BOUNCES, MAX_TOTAL_RAYS, DEFAULT_WORLD_EXTENT
    )
else:
    from .constants import MIN_RAY_INTENSITY, MAX_RAY_BOUNCES, MAX_TOTAL_RAYS, DEFAULT_WORLD_EXTENT


class Scene:
    """
    Container for the components on the bench and the trace settings.

    The scene owns every component. Components never hold rays; the
    simulator owns rays for the whole of a trace pass.

    Edits are tracked with a version counter instead of a global flag:
    every property setter calls ``mark_dirty()``, the simulator records the
    version it traced, and ``needs_retrace`` compares the two.

    Attributes:
        objs (list): All objects in the scene
        optical_objs (list): Only optical objects (those with is_optical=True)
        error (str or None): Error message, e.g. from loading a scene
        warning (str or None): Warning message, e.g. ray limit reached
        name (str or None): Optional name for the scene (used in exports)
        verbose (int): Diagnostic level for component interactions (0-2)
        version (int): Edit counter, incremented by every change
        traced_version (int or None): Version of the last completed trace

    Properties:
        min_intensity (float): Intensity floor for spawn gating
        max_bounces (int): Bounce cap of the propagation loop
        max_total_rays (int): Total ray cap of the propagation loop
        world_extent (float): Distance a ray that escapes is drawn for
    """

    def __init__(self, name: Optional[str] = None):
        """Initialize an empty scene with default settings."""
        self.objs: List[Any] = []
        self.optical_objs: List[Any] = []
        self.error: Optional[str] = None
        self.warning: Optional[str] = None
        self.name: Optional[str] = name
        self.verbose: int = 0
        self.version: int = 0
        self.traced_version: Optional[int] = None
        self._min_intensity: float = MIN_RAY_INTENSITY
        self._max_bounces: int = MAX_RAY_BOUNCES
        self._max_total_rays: int = MAX_TOTAL_RAYS
        self._world_extent: float = DEFAULT_WORLD_EXTENT
        self._uuid: str = str(uuid_module.uuid4())

    # =========================================================================
    # Trace settings
    # =========================================================================

    @property
    def min_intensity(self) -> float:
        """Intensity below which spawned rays are pruned."""
        return self._min_intensity

    @min_intensity.setter
    def min_intensity(self, value: float) -> None:
        if not isinstance(value, (int, float)) or value != value or value < 0:
            raise ValueError(
                f"min_intensity must be a non-negative number, got {value}"
            )
        self._min_intensity = float(value)
        self.mark_dirty()

    @property
    def max_bounces(self) -> int:
        """Maximum number of interactions along one ray lineage."""
        return self._max_bounces

    @max_bounces.setter
    def max_bounces(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(
                f"max_bounces must be a positive integer, got {value}"
            )
        self._max_bounces = value
        self.mark_dirty()

    @property
    def max_total_rays(self) -> int:
        """Maximum number of rays processed in one trace pass."""
        return self._max_total_rays

    @max_total_rays.setter
    def max_total_rays(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(
                f"max_total_rays must be a positive integer, got {value}"
            )
        self._max_total_rays = value
        self.mark_dirty()

    @property
    def world_extent(self) -> float:
        """Size of the bench; escaping rays are drawn for twice this length."""
        return self._world_extent

    @world_extent.setter
    def world_extent(self, value: float) -> None:
        if not isinstance(value, (int, float)) or value != value or value <= 0:
            raise ValueError(
                f"world_extent must be a positive number, got {value}"
            )
        self._world_extent = float(value)
        self.mark_dirty()

    # =========================================================================
    # Edit tracking
    # =========================================================================

    def mark_dirty(self) -> None:
        """Record an edit. Any previous trace result is now stale."""
        self.version += 1

    def mark_traced(self) -> None:
        """Record that the current version has been traced."""
        self.traced_version = self.version

    @property
    def needs_retrace(self) -> bool:
        return self.traced_version != self.version

    # =========================================================================
    # Identification
    # =========================================================================

    @property
    def uuid(self) -> str:
        """Unique identifier, constant for the lifetime of the scene."""
        return self._uuid

    def get_display_name(self) -> str:
        """
        Get a display name for the scene.

        Returns:
            The user-defined name if set, otherwise e.g. "Scene_a1b2c3d4".
        """
        if self.name:
            return self.name
        return f"Scene_{self._uuid[:8]}"

    # =========================================================================
    # Object management
    # =========================================================================

    def add_object(self, obj: Any) -> Any:
        """
        Add an object to the scene.

        Optical objects (those with is_optical=True) are also added to
        optical_objs, the list the simulator searches.

        Args:
            obj: The scene object to add

        Returns:
            The object, for chaining.
        """
        self.objs.append(obj)
        if getattr(obj, 'is_optical', False):
            self.optical_objs.append(obj)
        self.mark_dirty()
        return obj

    def remove_object(self, obj: Any) -> None:
        """
        Remove an object from the scene. Unknown objects are ignored.

        Args:
            obj: The scene object to remove
        """
        removed = False
        if obj in self.objs:
            self.objs.remove(obj)
            removed = True
        if obj in self.optical_objs:
            self.optical_objs.remove(obj)
        if removed:
            self.mark_dirty()

    def clear(self) -> None:
        """Remove all objects from the scene."""
        self.objs.clear()
        self.optical_objs.clear()
        self.error = None
        self.warning = None
        self.mark_dirty()

    def get_object_by_uuid(self, uuid: str) -> Optional[Any]:
        for obj in self.objs:
            if getattr(obj, 'uuid', None) == uuid:
                return obj
        return None

    def get_objects_by_type(self, type_name: str) -> List[Any]:
        return [obj for obj in self.objs if getattr(obj, 'type', None) == type_name]

    def get_sources(self) -> List[Any]:
        """Objects that emit rays (those with a generate_rays method)."""
        return [obj for obj in self.objs if callable(getattr(obj, 'generate_rays', None))]

    # =========================================================================
    # Persistence
    # =========================================================================

    def serialize(self) -> Dict[str, Any]:
        """
        Serialize the scene settings and every object to a JSON-compatible dict.
        """
        return {
            'name': self.name,
            'min_intensity': self._min_intensity,
            'max_bounces': self._max_bounces,
            'max_total_rays': self._max_total_rays,
            'world_extent': self._world_extent,
            'objs': [obj.serialize() for obj in self.objs],
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Scene':
        """
        Rebuild a scene from ``serialize()`` output.

        Unknown object keys are reported on ``scene.error``.

        Raises:
            ValueError: If an object has an unknown type or a setting is invalid.
        """
        if __name__ == "__main__":
            from optical_bench_shapely.core.scene_objs import component_from_json
        else:
            from .scene_objs import component_from_json

        scene = cls(name=data.get('name'))
        if 'min_intensity' in data:
            scene.min_intensity = data['min_intensity']
        if 'max_bounces' in data:
            scene.max_bounces = data['max_bounces']
        if 'max_total_rays' in data:
            scene.max_total_rays = data['max_total_rays']
        if 'world_extent' in data:
            scene.world_extent = data['world_extent']
        for obj_json in data.get('objs', []):
            scene.add_object(component_from_json(scene, obj_json))
        return scene

    def __repr__(self) -> str:
        return (f"Scene('{self.get_display_name()}', objs={len(self.objs)}, "
                f"version={self.version})")


# Example usage and testing
if __name__ == "__main__":
    print("Testing Scene class...\n")

    class MockComponent:
        def __init__(self, name):
            self.name = name
            self.is_optical = True

        def __repr__(self):
            return f"MockComponent({self.name})"

    # Test 1: Empty scene
    print("Test 1: Create empty scene")
    scene = Scene()
    print(f"  {scene}")
    print(f"  min_intensity={scene.min_intensity}, max_bounces={scene.max_bounces}")
    print(f"  needs_retrace={scene.needs_retrace}")

    # Test 2: Edits bump the version
    print("\nTest 2: Version counter")
    scene.add_object(MockComponent("bs"))
    print(f"  After add_object: version={scene.version}")
    scene.mark_traced()
    print(f"  After mark_traced: needs_retrace={scene.needs_retrace}")
    scene.min_intensity = 1e-3
    print(f"  After min_intensity edit: needs_retrace={scene.needs_retrace}")

    # Test 3: Validation
    print("\nTest 3: Setting validation")
    try:
        scene.max_bounces = 0
        print("  max_bounces=0: FAILED (should have raised error)")
    except ValueError:
        print("  max_bounces=0: Correctly raised ValueError")

    print("\nScene test completed successfully!")
