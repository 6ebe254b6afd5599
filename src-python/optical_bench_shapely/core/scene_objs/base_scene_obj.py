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

import json
import copy
import math
import uuid as uuid_module
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Tuple, TYPE_CHECKING

from shapely.geometry import Point as ShapelyPoint
from shapely.geometry.base import BaseGeometry

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.geometry import Vector2, geometry
    from optical_bench_shapely.core.constants import PICK_TOLERANCE
else:
    from ..geometry import Vector2, geometry
    from ..constants import PICK_TOLERANCE

if TYPE_CHECKING:
    from ..ray import Ray
    from ..scene import Scene


@dataclass
class Intersection:
    """
    A forward hit of a ray on one surface of a component.

    Attributes:
        distance: Ray parameter t of the hit (the ray direction is a unit vector).
        point: World-space hit point.
        normal: Unit surface normal, oriented against the incoming ray.
        surface_id: Local index of the surface that was hit (e.g. box edge 0-3).
    """
    distance: float
    point: Vector2
    normal: Vector2
    surface_id: int = 0


PLACEMENT_DEFAULTS: Dict[str, Any] = {
    'pos': {'x': 0.0, 'y': 0.0},
    'angle_deg': 0.0,
    'label': '',
    'notes': '',
}
"""Serializable placement properties shared by every component."""


class BaseSceneObj:
    """
    Base class for the components placed on the bench.

    This class provides the interface shared by every component:
    - Serialization/deserialization of the physical parameters
    - Placement (position, orientation) and the cached derived geometry
    - The ray tracing contract: ``intersect`` and ``interact``
    - The editor surface: properties, bounding box, hit-testing, drawing

    Subclasses list every serialized property in ``serializable_defaults``
    (usually ``{**PLACEMENT_DEFAULTS, ...}``) and describe the editable ones
    in ``property_schema``.
    """

    type: str = ''
    """The type of the object."""

    serializable_defaults: Dict[str, Any] = dict(PLACEMENT_DEFAULTS)
    """
    The default values of the properties of the object which are to be serialized.
    If some property is default, it will not be serialized and will be
    deserialized to the default value.

    Points are stored as dictionaries {'x': ..., 'y': ...}, not as Vector2
    instances, so that the serialized form is plain JSON.
    """

    is_optical: bool = False
    """Whether the object is optical (i.e. is a light source, interacts with rays, or detects rays)."""

    property_schema: Dict[str, Dict[str, Any]] = {}
    """
    Editable properties beyond the placement ones. Each entry maps the
    property name to its attribute and constraints, e.g.
    ``{'attr': 'length', 'label': 'Length', 'type': 'number', 'min': 10}``.
    Types are 'number', 'int', 'bool', 'select' (with 'options') and 'text'.
    """

    bbox_padding: float = 5.0
    """Padding added around the footprint bounds by get_bounding_box()."""

    draw_color: str = '#4682B4'
    """Stroke color used by draw()."""

    def __init__(self, scene: 'Scene', json_obj: Optional[Dict[str, Any]] = None):
        """
        Initialize the base scene object.

        Args:
            scene: The scene the object belongs to.
            json_obj: The JSON object to be deserialized, if any.
        """
        self.scene = scene
        self.error: Optional[str] = None
        self.warning: Optional[str] = None
        self._uuid: str = str(uuid_module.uuid4())
        self._name: Optional[str] = None
        self._geometry_cache_key: Optional[Tuple] = None

        serializable_defaults = self.__class__.serializable_defaults
        if json_obj:
            known_keys = ['type'] + list(serializable_defaults.keys())
            for key in json_obj:
                if key not in known_keys:
                    # Stored on the scene so that later errors do not replace it.
                    if hasattr(self.scene, 'error'):
                        self.scene.error = (
                            f"Unknown object key '{key}' for type '{self.__class__.type}'"
                        )

        for prop_name, default_value in serializable_defaults.items():
            if json_obj and prop_name in json_obj:
                setattr(self, prop_name, copy.deepcopy(json_obj[prop_name]))
            else:
                setattr(self, prop_name, copy.deepcopy(default_value))

        self._sanitize()
        self.ensure_geometry()

    def _sanitize(self) -> None:
        """Clamp loaded values to the schema constraints."""
        for entry in self.property_schema.values():
            attr = entry.get('attr')
            if attr is None or not hasattr(self, attr):
                continue
            value = getattr(self, attr)
            if entry['type'] in ('number', 'int') and isinstance(value, (int, float)) \
                    and not isinstance(value, bool):
                setattr(self, attr, self._clamp(entry, value))

    @staticmethod
    def _clamp(entry: Dict[str, Any], value: float) -> float:
        if 'min' in entry and value < entry['min']:
            value = entry['min']
        if 'max' in entry and value > entry['max']:
            value = entry['max']
        if entry['type'] == 'int':
            value = int(round(value))
        return value

    def serialize(self) -> Dict[str, Any]:
        """
        Serializes the object to a JSON-compatible dictionary.

        Returns:
            The serialized dictionary object.
        """
        json_obj = {'type': self.__class__.type}
        for prop_name, default_value in self.__class__.serializable_defaults.items():
            current_value = getattr(self, prop_name)
            # Only serialize if different from default
            if json.dumps(current_value, sort_keys=True) != json.dumps(default_value, sort_keys=True):
                json_obj[prop_name] = copy.deepcopy(current_value)
        return json_obj

    # ==================== Placement ====================

    @property
    def position(self) -> Vector2:
        return Vector2(self.pos['x'], self.pos['y'])

    @position.setter
    def position(self, value) -> None:
        p = geometry.as_vector(value)
        self.pos = {'x': p.x, 'y': p.y}
        self.on_position_changed()

    @property
    def angle_rad(self) -> float:
        return math.radians(self.angle_deg)

    @angle_rad.setter
    def angle_rad(self, value: float) -> None:
        self.angle_deg = math.degrees(value)
        self.on_angle_changed()

    def on_position_changed(self) -> None:
        self.ensure_geometry(force=True)
        self._mark_scene_dirty()

    def on_angle_changed(self) -> None:
        self.ensure_geometry(force=True)
        self._mark_scene_dirty()

    def move(self, diff_x: float, diff_y: float) -> bool:
        """
        Move the object by the given displacement.

        Args:
            diff_x: The x-coordinate displacement.
            diff_y: The y-coordinate displacement.

        Returns:
            True, indicating the movement was successful.
        """
        self.pos = {'x': self.pos['x'] + diff_x, 'y': self.pos['y'] + diff_y}
        self.on_position_changed()
        return True

    def rotate(self, angle: float, center: Optional[Vector2] = None) -> bool:
        """
        Rotate the object by the given angle.

        Args:
            angle: The angle in radians. Positive for counter-clockwise.
            center: The center of rotation. If None, the object rotates
                   about its own position.

        Returns:
            True, indicating the rotation was successful.
        """
        if center is not None:
            c = geometry.as_vector(center)
            p = (self.position - c).rotate(angle) + c
            self.pos = {'x': p.x, 'y': p.y}
        self.angle_deg = self.angle_deg + math.degrees(angle)
        self.on_angle_changed()
        return True

    # ==================== Derived geometry ====================

    def _geometry_key(self) -> Tuple:
        """
        Every parameter the derived geometry depends on.

        Subclasses with size parameters extend this tuple.
        """
        return (self.pos['x'], self.pos['y'], self.angle_deg)

    def _update_geometry(self) -> None:
        """Recompute the world-space geometry. Override in subclasses."""
        pass

    def ensure_geometry(self, force: bool = False) -> None:
        """Recompute the cached geometry if any geometric parameter changed."""
        key = self._geometry_key()
        if force or key != self._geometry_cache_key:
            self._update_geometry()
            self._geometry_cache_key = key

    def _mark_scene_dirty(self) -> None:
        if hasattr(self.scene, 'mark_dirty'):
            self.scene.mark_dirty()

    # ==================== Simulation Methods ====================

    @property
    def verbose(self) -> int:
        """Diagnostic level, taken from the scene."""
        return getattr(self.scene, 'verbose', 0)

    def on_simulation_start(self) -> None:
        """
        Called when a trace pass starts. Detectors reset their readings here.
        """
        pass

    def intersect(self, origin: Vector2, direction: Vector2) -> List[Intersection]:
        """
        Find the forward hits of the ray ``origin + t * direction``.

        Only hits with t > 1e-6 count. Each returned normal opposes
        ``direction``.

        Args:
            origin: Ray origin.
            direction: Unit ray direction.

        Returns:
            The hits, nearest first. Empty if the ray misses.
        """
        return []

    def interact(self, ray: 'Ray', hit: Intersection) -> List['Ray']:
        """
        Apply the component's physics to a ray that struck it.

        Implementations terminate ``ray`` exactly once with a reason tag
        and return the spawned child rays, whose origins are offset by a
        small epsilon along their own direction.

        Args:
            ray: The incoming ray.
            hit: The intersection returned by ``intersect``.

        Returns:
            The child rays (possibly none).
        """
        ray.terminate('no_interaction_logic')
        return []

    @staticmethod
    def spawn_allowed(ray: 'Ray', intensity: float) -> bool:
        """
        Spawn gating: a branch is created if its intensity reaches the
        ray's threshold, or always when the ray ignores decay.
        """
        return ray.ignore_decay or intensity >= ray.min_intensity_threshold

    # ==================== Editor surface ====================

    def get_properties(self) -> Dict[str, Dict[str, Any]]:
        """
        Describe the editable properties for a property inspector.

        Returns:
            Mapping name -> {'value', 'label', 'type', ...constraints}.
        """
        props = {
            'posX': {'value': self.pos['x'], 'label': 'Position X', 'type': 'number'},
            'posY': {'value': self.pos['y'], 'label': 'Position Y', 'type': 'number'},
            'angleDeg': {'value': self.angle_deg, 'label': 'Angle (deg)', 'type': 'number'},
        }
        for name, entry in self.property_schema.items():
            prop = {k: v for k, v in entry.items() if k != 'attr'}
            prop['value'] = self._get_property_value(name, entry)
            props[name] = prop
        return props

    def _get_property_value(self, name: str, entry: Dict[str, Any]) -> Any:
        return getattr(self, entry['attr'])

    @staticmethod
    def _parse_number(value: Any) -> Optional[float]:
        if isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number) or math.isinf(number):
            return None
        return number

    def set_property(self, name: str, value: Any) -> bool:
        """
        Set one editable property from inspector input.

        Numbers are parsed and clamped to the schema bounds. Unparseable
        or NaN input is rejected and leaves the object unchanged.

        Args:
            name: Property name as listed by get_properties().
            value: New value, possibly a string.

        Returns:
            True if the property was set, False if the name is unknown or
            the value was rejected.
        """
        if name in ('posX', 'posY', 'angleDeg'):
            number = self._parse_number(value)
            if number is None:
                return False
            if name == 'posX':
                self.pos = {'x': number, 'y': self.pos['y']}
                self.on_position_changed()
            elif name == 'posY':
                self.pos = {'x': self.pos['x'], 'y': number}
                self.on_position_changed()
            else:
                self.angle_deg = number
                self.on_angle_changed()
            return True

        entry = self.property_schema.get(name)
        if entry is None:
            return False

        kind = entry['type']
        if kind in ('number', 'int'):
            number = self._parse_number(value)
            if number is None:
                return False
            parsed = self._clamp(entry, number)
        elif kind == 'bool':
            if isinstance(value, str):
                parsed = value.strip().lower() in ('true', '1', 'yes', 'on')
            else:
                parsed = bool(value)
        elif kind == 'select':
            options = [str(o) for o in entry.get('options', [])]
            if str(value) not in options:
                return False
            parsed = entry['options'][options.index(str(value))]
        else:
            parsed = str(value)

        self._set_property_value(name, entry, parsed)
        self.ensure_geometry(force=True)
        self._mark_scene_dirty()
        return True

    def _set_property_value(self, name: str, entry: Dict[str, Any], value: Any) -> None:
        setattr(self, entry['attr'], value)

    def get_footprint(self) -> BaseGeometry:
        """
        The component's outline as a Shapely geometry (world coordinates).
        """
        return ShapelyPoint(self.pos['x'], self.pos['y'])

    def get_bounding_box(self) -> Dict[str, float]:
        """
        Axis-aligned box around the component.

        Returns:
            {'x', 'y', 'width', 'height'} with x, y the minimum corner.
        """
        self.ensure_geometry()
        return geometry.bounds_to_box(self.get_footprint().bounds, self.bbox_padding)

    def contains_point(self, point) -> bool:
        """Whether a point is within the pick tolerance of the footprint."""
        p = geometry.as_vector(point)
        self.ensure_geometry()
        return self.get_footprint().distance(p.to_shapely()) <= PICK_TOLERANCE

    def draw(self, renderer) -> None:
        """
        Draw the component's footprint.

        Args:
            renderer: An SVGRenderer.
        """
        self.ensure_geometry()
        renderer.draw_shape(self.get_footprint(), stroke=self.draw_color,
                            label=self.label or None, scene_obj=self)

    # ==================== Object Identification ====================

    @property
    def uuid(self) -> str:
        """Unique identifier, constant for the lifetime of the object."""
        return self._uuid

    @property
    def name(self) -> Optional[str]:
        return self._name

    @name.setter
    def name(self, value: Optional[str]) -> None:
        self._name = value

    def get_display_name(self) -> str:
        """
        Get a display name for the object.

        Returns:
            The name if set, then the label, otherwise the type with a
            short uuid suffix (e.g. "BeamSplitter_a1b2c3d4").
        """
        if self._name:
            return self._name
        if self.label:
            return self.label
        type_name = self.__class__.type or self.__class__.__name__
        return f"{type_name}_{self._uuid[:8]}"

    def __repr__(self) -> str:
        type_name = self.__class__.type or self.__class__.__name__
        return f"<{type_name} '{self.get_display_name()}'>"
