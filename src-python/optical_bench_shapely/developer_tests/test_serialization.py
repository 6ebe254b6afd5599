"""
===============================================================================
SERIALIZATION AND EDITOR TESTS
===============================================================================

1. COMPONENT SERIALIZATION
   - Only non-default properties are written
   - Every component type survives a JSON round trip
   - Unknown keys are reported on scene.error, unknown types raise

2. EDITOR SURFACE
   - set_property parsing, clamping and rejection
   - Version tracking on every edit
   - Bounding boxes, picking, move and rotate

3. SCENE AND FILES
   - Scene settings validation and round trip
   - save_scene_json / load_scene_json
   - save_rays_csv and get_ray_statistics

Run with:
    python developer_tests/test_serialization.py

Or with pytest:
    pytest developer_tests/test_serialization.py -v
===============================================================================
"""

import sys
import csv
import json
import math
import tempfile
from pathlib import Path

# Add the src-python directory to the path
src_path = Path(__file__).resolve().parents[2]
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from optical_bench_shapely.core.scene import Scene
from optical_bench_shapely.core.simulator import Simulator
from optical_bench_shapely.core.geometry import Vector2
from optical_bench_shapely.core.scene_objs import (
    COMPONENT_TYPES, component_from_json,
    BeamSplitter, Mirror, FaradayRotator, LaserSource, Photodiode
)
from optical_bench_shapely.analysis import (
    save_rays_csv, get_ray_statistics, save_scene_json, load_scene_json
)
from optical_bench_shapely.analysis.saving import CSV_COLUMNS


# =============================================================================
# TEST CONFIGURATION
# =============================================================================

TOLERANCE = 1e-9


def assert_close(actual, expected, tol=TOLERANCE, msg=""):
    """Assert that two values are close within tolerance."""
    if abs(actual - expected) > tol:
        raise AssertionError(
            f"{msg}: expected {expected}, got {actual} (diff: {abs(actual - expected)})"
        )


# Non-default settings for each component type
SAMPLE_PROPS = {
    'BeamSplitter': {'splitter_type': 'PBS', 'pbs_unpolarized_reflectivity': 0.3},
    'Polarizer': {'transmission_axis_deg': 33.0},
    'HalfWavePlate': {'fast_axis_deg': 22.5},
    'QuarterWavePlate': {'fast_axis_deg': 45.0, 'length': 60.0},
    'FaradayRotator': {'width': 50.0, 'rotation_angle_deg': -30.0},
    'FaradayIsolator': {'height': 40.0},
    'Mirror': {'reflectivity': 0.8, 'length': 40.0},
    'ThinLens': {'focal_length': -75.0},
    'Aperture': {'number_of_slits': 2, 'slit_width': 3.0},
    'Screen': {'num_bins': 64},
    'Photodiode': {'diameter': 12.0},
    'LaserSource': {'polarization_type': 'linear', 'polarization_angle_deg': 15.0,
                    'num_rays': 3, 'spread_deg': 6.0},
}


def sample_scene():
    scene = Scene(name='bench')
    for type_name, props in SAMPLE_PROPS.items():
        obj = component_from_json(scene, {'type': type_name,
                                          'pos': {'x': 10.0, 'y': -5.0},
                                          'label': f'my {type_name}', **props})
        scene.add_object(obj)
    return scene


# =============================================================================
# COMPONENT SERIALIZATION
# =============================================================================

def test_defaults_are_not_serialized():
    print("\nTest: default properties are omitted")
    scene = Scene()
    assert BeamSplitter(scene).serialize() == {'type': 'BeamSplitter'}
    data = Mirror(scene, {'length': 40.0}).serialize()
    assert data == {'type': 'Mirror', 'length': 40.0}, data
    print("  PASS")


def test_round_trip_every_type():
    print("\nTest: every component type round-trips through JSON")
    assert set(SAMPLE_PROPS) == set(COMPONENT_TYPES), "sample props cover every type"
    scene = Scene()
    for type_name, props in SAMPLE_PROPS.items():
        original = component_from_json(scene, {'type': type_name, **props})
        data = json.loads(json.dumps(original.serialize()))
        restored = component_from_json(scene, data)
        assert type(restored) is type(original)
        assert restored.serialize() == original.serialize(), type_name
        for key, value in props.items():
            assert getattr(restored, key) == value, f"{type_name}.{key}"
    assert scene.error is None, scene.error
    print("  PASS")


def test_serialized_values_are_copies():
    print("\nTest: serialized dicts do not alias the object")
    rotator = FaradayRotator(Scene(), {'pos': {'x': 1.0, 'y': 2.0}})
    data = rotator.serialize()
    data['pos']['x'] = 99.0
    assert rotator.pos['x'] == 1.0
    print("  PASS")


def test_unknown_key_reported():
    print("\nTest: unknown keys set scene.error")
    scene = Scene()
    mirror = Mirror(scene, {'length': 50.0, 'colour': 'red'})
    assert mirror.length == 50.0
    assert scene.error is not None and 'colour' in scene.error
    print("  PASS")


def test_unknown_type_raises():
    print("\nTest: unknown component type")
    try:
        component_from_json(Scene(), {'type': 'Prism'})
    except ValueError as e:
        assert 'Prism' in str(e)
    else:
        raise AssertionError("expected ValueError")
    print("  PASS")


def test_loaded_values_are_clamped():
    print("\nTest: loaded values are clamped to their bounds")
    mirror = Mirror(Scene(), {'reflectivity': 1.5, 'length': 2.0})
    assert mirror.reflectivity == 1.0
    assert mirror.length == 10
    print("  PASS")


# =============================================================================
# EDITOR SURFACE
# =============================================================================

def test_set_property_parsing():
    print("\nTest: set_property parsing and rejection")
    scene = Scene()
    mirror = scene.add_object(Mirror(scene))
    assert mirror.set_property('reflectivity', '0.5') is True
    assert mirror.reflectivity == 0.5
    assert mirror.set_property('reflectivity', 7) is True
    assert mirror.reflectivity == 1.0, "clamped to max"
    assert mirror.set_property('reflectivity', 'nan') is False
    assert mirror.set_property('reflectivity', 'abc') is False
    assert mirror.set_property('reflectivity', True) is False
    assert mirror.reflectivity == 1.0, "rejected input leaves the value unchanged"
    assert mirror.set_property('no_such_property', 1) is False

    laser = scene.add_object(LaserSource(scene))
    assert laser.set_property('ignoreDecay', 'true') is True and laser.ignore_decay is True
    assert laser.set_property('polarizationType', 'circular-left') is True
    assert laser.set_property('polarizationType', 'elliptical') is False
    assert laser.polarization_type == 'circular-left'
    print("  PASS")


def test_set_property_updates_geometry():
    print("\nTest: geometry follows property edits")
    mirror = Mirror(Scene(), {'angle_deg': 90})
    assert mirror.set_property('length', 40) is True
    assert_close(mirror.p1.distance_to(mirror.p2), 40.0, msg="new length")
    assert mirror.set_property('posX', '25') is True
    assert_close(mirror.p1.x, 25.0, 1e-9, msg="moved")
    print("  PASS")


def test_version_tracking():
    print("\nTest: every edit bumps the scene version")
    scene = Scene()
    mirror = scene.add_object(Mirror(scene))
    v = scene.version
    mirror.set_property('length', 30)
    assert scene.version > v
    v = scene.version
    mirror.move(5, 5)
    assert scene.version > v
    v = scene.version
    mirror.rotate(math.pi / 4)
    assert scene.version > v
    v = scene.version
    mirror.set_property('reflectivity', 'bad')
    assert scene.version == v, "rejected edits do not dirty the scene"
    scene.remove_object(mirror)
    assert scene.version > v
    print("  PASS")


def test_properties_listing():
    print("\nTest: get_properties lists placement and schema entries")
    props = Photodiode(Scene(), {'diameter': 15.0}).get_properties()
    for name in ('posX', 'posY', 'angleDeg', 'diameter'):
        assert name in props, name
    assert props['diameter']['value'] == 15.0
    assert 'attr' not in props['diameter']
    print("  PASS")


def test_bounding_box_and_picking():
    print("\nTest: bounding box and picking")
    mirror = Mirror(Scene(), {'angle_deg': 90, 'length': 100})
    box = mirror.get_bounding_box()
    assert_close(box['x'], -5.0, 1e-9, msg="x")
    assert_close(box['y'], -55.0, 1e-9, msg="y")
    assert_close(box['width'], 10.0, 1e-9, msg="width")
    assert_close(box['height'], 110.0, 1e-9, msg="height")
    assert mirror.contains_point({'x': 3, 'y': 20})
    assert not mirror.contains_point(Vector2(0, 60))
    print("  PASS")


def test_rotate_about_center():
    print("\nTest: rotation about an external center")
    mirror = Mirror(Scene(), {'pos': {'x': 10.0, 'y': 0.0}})
    mirror.rotate(math.pi / 2, center=Vector2(0, 0))
    assert mirror.position.equals(Vector2(0, 10), 1e-9), mirror.position
    assert_close(mirror.angle_deg, 90.0, 1e-9, msg="angle")
    print("  PASS")


def test_display_names():
    print("\nTest: display names")
    scene = Scene()
    mirror = Mirror(scene)
    assert mirror.get_display_name().startswith('Mirror_')
    mirror.label = 'M1'
    assert mirror.get_display_name() == 'M1'
    mirror.name = 'fold mirror'
    assert mirror.get_display_name() == 'fold mirror'
    assert Scene(name='lab').get_display_name() == 'lab'
    print("  PASS")


# =============================================================================
# SCENE AND FILES
# =============================================================================

def test_scene_settings_validation():
    print("\nTest: scene settings reject invalid values")
    scene = Scene()
    for attr, bad in (('max_bounces', 0), ('max_bounces', 2.5), ('max_total_rays', -1),
                      ('min_intensity', -1e-3), ('world_extent', 0)):
        try:
            setattr(scene, attr, bad)
        except ValueError:
            continue
        raise AssertionError(f"{attr}={bad} should be rejected")
    scene.min_intensity = 0
    assert scene.min_intensity == 0.0
    print("  PASS")


def test_scene_round_trip():
    print("\nTest: scene serialize / from_json")
    scene = sample_scene()
    scene.max_bounces = 50
    scene.world_extent = 500.0
    restored = Scene.from_json(json.loads(json.dumps(scene.serialize())))
    assert restored.name == 'bench'
    assert restored.max_bounces == 50 and restored.world_extent == 500.0
    assert len(restored.objs) == len(scene.objs)
    assert len(restored.optical_objs) == len(scene.optical_objs)
    assert restored.serialize() == scene.serialize()
    print("  PASS")


def test_scene_from_json_rejects_bad_settings():
    print("\nTest: invalid settings in a file raise")
    try:
        Scene.from_json({'max_bounces': 0, 'objs': []})
    except ValueError:
        pass
    else:
        raise AssertionError("expected ValueError")
    print("  PASS")


def test_scene_json_files():
    print("\nTest: save_scene_json / load_scene_json")
    scene = sample_scene()
    with tempfile.TemporaryDirectory() as tmp:
        path = save_scene_json(scene, Path(tmp) / 'out', filename='bench.json')
        assert path.exists() and path.name == 'bench.json'
        loaded = load_scene_json(path)
    assert loaded.serialize() == scene.serialize()
    print("  PASS")


def test_rays_csv():
    print("\nTest: save_rays_csv")
    scene = Scene()
    scene.add_object(LaserSource(scene, {'polarization_type': 'linear',
                                         'polarization_angle_deg': 30}))
    scene.add_object(BeamSplitter(scene, {'pos': {'x': 100, 'y': 0}}))
    rays = Simulator(scene).run()
    with tempfile.TemporaryDirectory() as tmp:
        path = save_rays_csv(rays, tmp)
        with open(path, newline='', encoding='utf-8') as f:
            rows = list(csv.reader(f))
    assert rows[0] == CSV_COLUMNS
    assert len(rows) == 1 + len(rays)
    first = dict(zip(CSV_COLUMNS, rows[1]))
    assert first['end_reason'] == 'split_bs'
    assert first['interaction_type'] == 'source'
    assert first['parent_uuid'] == ''
    assert first['polarization'] == '30.0000'
    assert_close(float(first['length']), 100.0, 1e-4, msg="length column")
    child = dict(zip(CSV_COLUMNS, rows[2]))
    assert child['parent_uuid'] == first['uuid']
    print("  PASS")


def test_ray_statistics():
    print("\nTest: get_ray_statistics")
    assert get_ray_statistics([])['total_rays'] == 0
    scene = Scene()
    scene.add_object(LaserSource(scene))
    scene.add_object(BeamSplitter(scene, {'pos': {'x': 100, 'y': 0}}))
    rays = Simulator(scene).run()
    stats = get_ray_statistics(rays)
    assert stats['total_rays'] == 3
    assert_close(stats['total_intensity'], 2.0, 1e-12, msg="1 + 0.5 + 0.5")
    assert stats['polarized_rays'] == 0
    assert stats['max_bounces'] == 1
    assert stats['wavelengths'] == {550}
    assert stats['end_reasons'] == {'split_bs': 1, 'out_of_bounds': 2}
    print("  PASS")


# =============================================================================
# MAIN
# =============================================================================

def main():
    print("=" * 70)
    print("Serialization and editor surface - Verification")
    print("=" * 70)

    tests = [
        ("defaults omitted", test_defaults_are_not_serialized),
        ("round trip", test_round_trip_every_type),
        ("serialized copies", test_serialized_values_are_copies),
        ("unknown key", test_unknown_key_reported),
        ("unknown type", test_unknown_type_raises),
        ("clamped on load", test_loaded_values_are_clamped),
        ("set_property parsing", test_set_property_parsing),
        ("set_property geometry", test_set_property_updates_geometry),
        ("version tracking", test_version_tracking),
        ("properties listing", test_properties_listing),
        ("bounding box/picking", test_bounding_box_and_picking),
        ("rotate about center", test_rotate_about_center),
        ("display names", test_display_names),
        ("settings validation", test_scene_settings_validation),
        ("scene round trip", test_scene_round_trip),
        ("bad settings", test_scene_from_json_rejects_bad_settings),
        ("scene json files", test_scene_json_files),
        ("rays csv", test_rays_csv),
        ("ray statistics", test_ray_statistics),
    ]

    results = []
    for name, fn in tests:
        try:
            fn()
            results.append((name, True))
        except AssertionError as e:
            print(f"  FAIL: {e}")
            results.append((name, False))

    print("\n" + "=" * 70)
    passed = sum(1 for _, ok in results if ok)
    print(f"Results: {passed}/{len(results)} tests passed")
    for name, ok in results:
        print(f"  [{'PASS' if ok else 'FAIL'}] {name}")
    print("=" * 70)

    if passed != len(results):
        sys.exit(1)


if __name__ == '__main__':
    main()
