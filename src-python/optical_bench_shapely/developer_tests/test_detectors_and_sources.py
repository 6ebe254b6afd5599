"""
===============================================================================
DETECTOR AND SOURCE TESTS - Screen, Photodiode, LaserSource
===============================================================================

1. SCREEN
   - Binning along the screen, clamping at the ends
   - Coherent vs incoherent accumulation
   - Reset on simulation start and when the bin count changes

2. PHOTODIODE
   - Detects rays arriving at the front face only
   - Misses outside the active diameter
   - Power accumulation and reset

3. LASER SOURCE
   - Fan geometry and intensity sharing, full-circle fans without overlap
   - Polarization types
   - Disabled lasers emit nothing, invalid types fall back

Run with:
    python developer_tests/test_detectors_and_sources.py

Or with pytest:
    pytest developer_tests/test_detectors_and_sources.py -v
===============================================================================
"""

import sys
import math
from pathlib import Path

import numpy as np

# Add the src-python directory to the path
src_path = Path(__file__).resolve().parents[2]
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from optical_bench_shapely.core.scene import Scene
from optical_bench_shapely.core.ray import Ray
from optical_bench_shapely.core.geometry import Vector2
from optical_bench_shapely.core import jones
from optical_bench_shapely.core.scene_objs import Screen, Photodiode, LaserSource


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


def strike(component, ray):
    """Advance a ray to its hit on the component and let it interact."""
    hits = component.intersect(ray.origin, ray.direction)
    assert hits, f"ray {ray} should hit {component}"
    hit = hits[0]
    ray.add_history_point(hit.point)
    return hit, component.interact(ray, hit)


def vertical_screen(**props):
    # Vertical screen at the origin, p1 at the bottom.
    return Screen(Scene(), {'angle_deg': 90, 'length': 150, 'num_bins': 200, **props})


# =============================================================================
# SCREEN
# =============================================================================

def test_screen_binning():
    print("\nTest: screen bins hits along its length")
    screen = vertical_screen()
    ray = Ray(Vector2(-50, 0.2), Vector2(1, 0), intensity=0.3)
    _, children = strike(screen, ray)
    assert children == []
    assert ray.end_reason == 'absorbed_screen'
    assert screen.hit_count[100] == 1, np.nonzero(screen.hit_count)
    assert_close(screen.intensity_sum[100], 0.3, msg="intensity in bin")
    assert_close(screen.total_intensity, 0.3, msg="total")
    assert screen.bin_index(Vector2(0, -75)) == 0
    assert screen.bin_index(Vector2(0, 75)) == 199, "the far end is clamped to the last bin"
    print("  PASS")


def test_screen_coherent_sum():
    print("\nTest: coherent and incoherent patterns")
    screen = vertical_screen()
    for phase in (0.0, 0.0):
        strike(screen, Ray(Vector2(-50, 0.2), Vector2(1, 0), intensity=0.25, phase=phase))
    pattern = screen.get_intensity_pattern()
    assert_close(pattern['coherent'][100], 1.0, 1e-12, msg="in phase")
    assert_close(pattern['incoherent'][100], 0.5, 1e-12, msg="incoherent")
    assert pattern['hit_count'][100] == 2

    screen = vertical_screen()
    for phase in (0.0, math.pi):
        strike(screen, Ray(Vector2(-50, 0.2), Vector2(1, 0), intensity=0.25, phase=phase))
    pattern = screen.get_intensity_pattern()
    assert pattern['coherent'][100] < 1e-12, pattern['coherent'][100]
    assert_close(pattern['incoherent'][100], 0.5, 1e-12, msg="incoherent")
    print("  PASS")


def test_screen_pattern_positions():
    print("\nTest: bin centers")
    screen = vertical_screen(num_bins=10, length=100)
    positions = screen.get_intensity_pattern()['position']
    assert len(positions) == 10
    assert_close(positions[0], 5.0, msg="first center")
    assert_close(positions[-1], 95.0, msg="last center")
    print("  PASS")


def test_screen_reset():
    print("\nTest: screen resets")
    screen = vertical_screen()
    strike(screen, Ray(Vector2(-50, 0), Vector2(1, 0)))
    screen.on_simulation_start()
    assert screen.hit_count.sum() == 0 and screen.total_intensity == 0.0
    assert screen.set_property('numBins', 10) is True
    assert len(screen.get_intensity_pattern()['coherent']) == 10
    print("  PASS")


# =============================================================================
# PHOTODIODE
# =============================================================================

def test_photodiode_front_face():
    print("\nTest: photodiode detects from the front only")
    # angle 90 -> facing (-1, 0): accepts rays travelling +x
    diode = Photodiode(Scene(), {'pos': {'x': 100, 'y': 0}, 'angle_deg': 90})
    assert diode.facing.equals(Vector2(-1, 0), 1e-12), diode.facing

    ray = Ray(Vector2(0, 0), Vector2(1, 0), intensity=0.4)
    hit, children = strike(diode, ray)
    assert hit.point.equals(Vector2(100, 0), 1e-9)
    assert children == []
    assert_close(diode.incident_power, 0.4, msg="power")
    assert diode.hit_count == 1
    assert ray.end_reason == 'absorbed_photodiode'

    assert diode.intersect(Vector2(200, 0), Vector2(-1, 0)) == [], "back side is blind"
    print("  PASS")


def test_photodiode_diameter():
    print("\nTest: photodiode active area")
    diode = Photodiode(Scene(), {'pos': {'x': 100, 'y': 0}, 'angle_deg': 90, 'diameter': 20})
    assert diode.intersect(Vector2(0, 9), Vector2(1, 0)), "inside the radius"
    assert diode.intersect(Vector2(0, 11), Vector2(1, 0)) == [], "outside the radius"
    assert diode.intersect(Vector2(150, 0), Vector2(1, 0)) == [], "behind the origin"
    print("  PASS")


def test_photodiode_accumulates_and_resets():
    print("\nTest: photodiode accumulates power")
    diode = Photodiode(Scene(), {'pos': {'x': 100, 'y': 0}, 'angle_deg': 90})
    for intensity in (0.1, 0.2, 0.3):
        strike(diode, Ray(Vector2(0, 0), Vector2(1, 0), intensity=intensity))
    assert_close(diode.incident_power, 0.6, 1e-12, msg="sum")
    assert diode.hit_count == 3
    diode.on_simulation_start()
    assert diode.incident_power == 0.0 and diode.hit_count == 0
    print("  PASS")


# =============================================================================
# LASER SOURCE
# =============================================================================

def test_laser_fan():
    print("\nTest: laser fan geometry")
    laser = LaserSource(Scene(), {'pos': {'x': 10, 'y': 5}, 'num_rays': 5,
                                  'spread_deg': 40, 'intensity': 2.0})
    rays = laser.generate_rays()
    assert len(rays) == 5
    angles = [math.degrees(r.direction.angle()) for r in rays]
    for got, expected in zip(angles, (-20, -10, 0, 10, 20)):
        assert_close(got, expected, 1e-9, msg="fan angle")
    for ray in rays:
        assert_close(ray.intensity, 0.4, msg="shared intensity")
        assert ray.origin.equals(Vector2(10, 5))
        assert ray.source_id == laser.uuid
        assert ray.interaction_type == 'source' and ray.parent_uuid is None
    print("  PASS")


def test_laser_full_circle():
    print("\nTest: a 360 degree fan does not repeat its first direction")
    laser = LaserSource(Scene(), {'num_rays': 4, 'spread_deg': 360, 'intensity': 1.0})
    rays = laser.generate_rays()
    assert len(rays) == 4
    expected = [Vector2(-1, 0), Vector2(0, -1), Vector2(1, 0), Vector2(0, 1)]
    for ray, direction in zip(rays, expected):
        assert ray.direction.equals(direction, 1e-9), f"{ray.direction} != {direction}"
    for i, a in enumerate(rays):
        for b in rays[i + 1:]:
            assert a.direction.dot(b.direction) < 0.5, "two rays share a direction"
    assert_close(sum(r.intensity for r in rays), 1.0, msg="total intensity")
    print("  PASS")


def test_laser_single_ray():
    print("\nTest: single ray follows the laser angle")
    laser = LaserSource(Scene(), {'angle_deg': 30, 'spread_deg': 10})
    rays = laser.generate_rays()
    assert len(rays) == 1
    assert_close(rays[0].direction.angle(), math.radians(30), 1e-12, msg="angle")
    assert_close(rays[0].wavelength_nm, 550, msg="default wavelength")
    print("  PASS")


def test_laser_polarization_types():
    print("\nTest: laser polarization types")
    scene = Scene()
    linear = LaserSource(scene, {'polarization_type': 'linear', 'polarization_angle_deg': 30})
    ray = linear.generate_rays()[0]
    assert_close(ray.polarization_angle, math.radians(30), 1e-12, msg="linear")

    right = LaserSource(scene, {'polarization_type': 'circular-right'}).generate_rays()[0]
    assert right.polarization_angle == 'circular'
    assert np.allclose(right.jones, jones.circular(right=True))

    left = LaserSource(scene, {'polarization_type': 'circular-left'}).generate_rays()[0]
    assert np.allclose(left.jones, jones.circular(right=False))

    unpolarized = LaserSource(scene).generate_rays()[0]
    assert unpolarized.jones is None and unpolarized.polarization_angle is None
    print("  PASS")


def test_laser_disabled_and_invalid():
    print("\nTest: disabled laser and invalid polarization type")
    scene = Scene()
    assert LaserSource(scene, {'enabled': False}).generate_rays() == []

    laser = LaserSource(scene, {'polarization_type': 'sideways'})
    assert laser.polarization_type == 'unpolarized'
    assert scene.error is not None and 'sideways' in scene.error
    print("  PASS")


def test_laser_uses_scene_threshold():
    print("\nTest: emitted rays take the scene intensity floor")
    scene = Scene()
    scene.min_intensity = 1e-3
    laser = LaserSource(scene, {'ignore_decay': True, 'beam_diameter': 4})
    ray = laser.generate_rays()[0]
    assert_close(ray.min_intensity_threshold, 1e-3, msg="threshold")
    assert ray.ignore_decay is True
    assert_close(ray.beam_diameter, 4.0, msg="beam diameter")
    print("  PASS")


# =============================================================================
# MAIN
# =============================================================================

def main():
    print("=" * 70)
    print("Detectors and sources - Verification")
    print("=" * 70)

    tests = [
        ("screen binning", test_screen_binning),
        ("screen coherent sum", test_screen_coherent_sum),
        ("screen positions", test_screen_pattern_positions),
        ("screen reset", test_screen_reset),
        ("photodiode front face", test_photodiode_front_face),
        ("photodiode diameter", test_photodiode_diameter),
        ("photodiode accumulation", test_photodiode_accumulates_and_resets),
        ("laser fan", test_laser_fan),
        ("laser full circle", test_laser_full_circle),
        ("laser single ray", test_laser_single_ray),
        ("laser polarization", test_laser_polarization_types),
        ("laser disabled/invalid", test_laser_disabled_and_invalid),
        ("laser threshold", test_laser_uses_scene_threshold),
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
