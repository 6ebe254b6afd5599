"""
===============================================================================
POLARIZATION ELEMENT TESTS - Polarizer, half- and quarter-wave plates
===============================================================================

1. POLARIZER
   - Unpolarized input: half the intensity, linear along the axis
   - Malus's law for linear input
   - Crossed input is extinguished and pruned
   - Circular input: half the intensity

2. WAVE PLATES
   - HWP rotates linear polarization by twice the axis offset
   - HWP flips circular handedness
   - QWP at 45 deg turns linear into circular, two QWPs act as a HWP
   - Unpolarized light passes unchanged, intensity always conserved

Run with:
    python developer_tests/test_polarization_elements.py

Or with pytest:
    pytest developer_tests/test_polarization_elements.py -v
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
from optical_bench_shapely.core.scene_objs import Polarizer, HalfWavePlate, QuarterWavePlate


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


def incoming(**kwargs):
    # Every element below is a vertical plate at the origin.
    return Ray(Vector2(-50, 0), Vector2(1, 0), **kwargs)


# =============================================================================
# POLARIZER
# =============================================================================

def test_polarizer_unpolarized():
    print("\nTest: polarizer with unpolarized input")
    polarizer = Polarizer(Scene(), {'transmission_axis_deg': 30})
    ray = incoming(intensity=0.8)
    _, children = strike(polarizer, ray)
    assert len(children) == 1
    child = children[0]
    assert_close(child.intensity, 0.4, msg="half the intensity")
    assert_close(child.polarization_angle, math.radians(30), 1e-9, msg="axis")
    assert child.direction.equals(ray.direction, 1e-12)
    assert ray.end_reason == 'polarized'
    print("  PASS")


def test_polarizer_malus_law():
    print("\nTest: Malus's law")
    for axis_deg in (0, 15, 30, 45, 60, 75):
        polarizer = Polarizer(Scene(), {'transmission_axis_deg': axis_deg})
        _, children = strike(polarizer, incoming(intensity=1.0, polarization_angle=0.0))
        expected = math.cos(math.radians(axis_deg)) ** 2
        assert_close(children[0].intensity, expected, 1e-12, msg=f"axis {axis_deg}")
        if axis_deg != 0:
            assert_close(children[0].polarization_angle, math.radians(axis_deg), 1e-9,
                         msg=f"output angle at {axis_deg}")
    print("  PASS")


def test_polarizer_crossed_is_pruned():
    print("\nTest: crossed polarizer blocks")
    polarizer = Polarizer(Scene(), {'transmission_axis_deg': 90})
    ray = incoming(polarization_angle=0.0)
    _, children = strike(polarizer, ray)
    assert children == [], f"expected no children, got {children}"
    assert ray.terminated and ray.end_reason == 'polarized'
    print("  PASS")


def test_polarizer_circular_input():
    print("\nTest: circular input loses half its intensity")
    polarizer = Polarizer(Scene(), {'transmission_axis_deg': 70})
    ray = incoming(intensity=1.0, polarization_angle='circular')
    _, children = strike(polarizer, ray)
    assert_close(children[0].intensity, 0.5, 1e-12, msg="circular through polarizer")
    print("  PASS")


def test_polarizer_plate_orientation_is_independent():
    print("\nTest: transmission axis does not follow the plate angle")
    polarizer = Polarizer(Scene(), {'angle_deg': 60, 'transmission_axis_deg': 0})
    _, children = strike(polarizer, incoming(polarization_angle=0.0))
    assert_close(children[0].intensity, 1.0, 1e-12, msg="aligned input")
    print("  PASS")


# =============================================================================
# WAVE PLATES
# =============================================================================

def test_hwp_rotates_linear():
    print("\nTest: HWP at 22.5 deg turns horizontal into 45 deg")
    hwp = HalfWavePlate(Scene(), {'fast_axis_deg': 22.5})
    ray = incoming(intensity=0.9, polarization_angle=0.0)
    _, children = strike(hwp, ray)
    child = children[0]
    assert_close(child.polarization_angle, math.pi / 4, 1e-9, msg="output angle")
    assert_close(child.intensity, 0.9, msg="lossless")
    assert ray.end_reason == 'pass_waveplate'
    print("  PASS")


def test_hwp_flips_handedness():
    print("\nTest: HWP flips circular handedness")
    hwp = HalfWavePlate(Scene(), {'fast_axis_deg': 0})
    ray = incoming()
    ray.set_circular_polarization(right=True)
    _, children = strike(hwp, ray)
    out = children[0].jones
    assert np.allclose(out, jones.circular(right=False), atol=1e-12), out
    assert children[0].polarization_angle == 'circular'
    print("  PASS")


def test_qwp_makes_circular():
    print("\nTest: QWP at 45 deg turns horizontal into circular")
    qwp = QuarterWavePlate(Scene(), {'fast_axis_deg': 45})
    _, children = strike(qwp, incoming(polarization_angle=0.0))
    assert children[0].polarization_angle == 'circular', children[0].polarization_angle
    assert_close(jones.intensity(children[0].jones), 1.0, 1e-12, msg="Jones energy")
    print("  PASS")


def test_two_qwps_make_hwp():
    print("\nTest: two QWPs at 45 deg rotate horizontal to vertical")
    scene = Scene()
    first = QuarterWavePlate(scene, {'fast_axis_deg': 45})
    second = QuarterWavePlate(scene, {'pos': {'x': 30, 'y': 0}, 'fast_axis_deg': 45})
    _, children = strike(first, incoming(polarization_angle=0.0))
    _, children = strike(second, children[0])
    assert_close(children[0].polarization_angle, math.pi / 2, 1e-9, msg="vertical")
    print("  PASS")


def test_waveplate_unpolarized_passes():
    print("\nTest: unpolarized light passes a wave plate unchanged")
    for cls in (HalfWavePlate, QuarterWavePlate):
        plate = cls(Scene(), {'fast_axis_deg': 10})
        ray = incoming(intensity=0.6)
        _, children = strike(plate, ray)
        assert len(children) == 1
        assert children[0].jones is None and children[0].polarization_angle is None
        assert_close(children[0].intensity, 0.6, msg=cls.type)
        assert ray.end_reason == 'pass_unpolarized_waveplate'
    print("  PASS")


def test_waveplate_conserves_intensity():
    print("\nTest: retarders conserve intensity for random states")
    rng = np.random.default_rng(3)
    for cls in (HalfWavePlate, QuarterWavePlate):
        for _ in range(10):
            plate = cls(Scene(), {'fast_axis_deg': float(rng.uniform(0, 180))})
            ray = incoming(intensity=0.5)
            ray.set_jones(rng.normal(size=2) + 1j * rng.normal(size=2))
            in_energy = ray.jones_intensity()
            _, children = strike(plate, ray)
            assert_close(children[0].intensity, 0.5, msg="intensity")
            assert_close(children[0].jones_intensity(), in_energy, 1e-9, msg="Jones energy")
    print("  PASS")


# =============================================================================
# MAIN
# =============================================================================

def main():
    print("=" * 70)
    print("Polarizer and wave plates - Verification")
    print("=" * 70)

    tests = [
        ("polarizer unpolarized", test_polarizer_unpolarized),
        ("Malus's law", test_polarizer_malus_law),
        ("crossed polarizer", test_polarizer_crossed_is_pruned),
        ("circular through polarizer", test_polarizer_circular_input),
        ("plate orientation", test_polarizer_plate_orientation_is_independent),
        ("HWP rotation", test_hwp_rotates_linear),
        ("HWP handedness", test_hwp_flips_handedness),
        ("QWP circular", test_qwp_makes_circular),
        ("two QWPs", test_two_qwps_make_hwp),
        ("unpolarized wave plate", test_waveplate_unpolarized_passes),
        ("wave plate energy", test_waveplate_conserves_intensity),
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
