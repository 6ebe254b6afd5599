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

from typing import Any, Dict

from .base_scene_obj import BaseSceneObj, Intersection, PLACEMENT_DEFAULTS
from .line_obj_mixin import LineObjMixin
from .box_obj_mixin import BoxObjMixin
from .beam_splitter import BeamSplitter
from .polarizer import Polarizer, BaseWavePlate, HalfWavePlate, QuarterWavePlate, FaradayRotator, FaradayIsolator
from .mirror import Mirror
from .glass import ThinLens
from .blocker import Aperture
from .other import Screen, Photodiode
from .light_source import LaserSource

COMPONENT_TYPES: Dict[str, type] = {
    cls.type: cls for cls in (
        BeamSplitter, Polarizer, HalfWavePlate, QuarterWavePlate, FaradayRotator,
        FaradayIsolator, Mirror, ThinLens, Aperture, Screen, Photodiode, LaserSource,
    )
}
"""Component classes by their serialized ``type``."""


def component_from_json(scene, json_obj: Dict[str, Any]) -> BaseSceneObj:
    """
    Construct a component from its serialized form.

    Args:
        scene: The scene the component will belong to.
        json_obj: Output of ``serialize()``; must contain 'type'.

    Returns:
        The new component (not yet added to the scene).

    Raises:
        ValueError: If the type is missing or unknown.
    """
    type_name = json_obj.get('type')
    cls = COMPONENT_TYPES.get(type_name)
    if cls is None:
        raise ValueError(
            f"Unknown component type '{type_name}'. "
            f"Valid options: {tuple(COMPONENT_TYPES)}"
        )
    return cls(scene, json_obj)


__all__ = ['BaseSceneObj', 'Intersection', 'PLACEMENT_DEFAULTS', 'LineObjMixin', 'BoxObjMixin',
           'BeamSplitter', 'Polarizer', 'BaseWavePlate', 'HalfWavePlate', 'QuarterWavePlate',
           'FaradayRotator', 'FaradayIsolator', 'Mirror', 'ThinLens', 'Aperture', 'Screen',
           'Photodiode', 'LaserSource', 'COMPONENT_TYPES', 'component_from_json']
