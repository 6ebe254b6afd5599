"""
===============================================================================
RAY TESTS
===============================================================================

Covers the Ray lifecycle shared by every component:

1. Construction (direction normalization, intensity clamp, polarization seed)
2. Phase advance along the history
3. Termination (first reason wins, should_terminate policy)
4. spawn(): inheritance, lineage tags, overrides and subclass preservation
5. Polarization helpers (set_jones / describe, circular, unpolarized)

Run with:
    python developer_tests/test_ray.py

Or with pytest:
    pytest developer_tests/test_ray.py -v
===============================================================================
"""

import sys
import math
from pathlib import Path

# Add the src-python directory to the path
src_path = Path(__file__).resolve().parents[2]
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from optical_bench_shapely.core.geometry import Vector2
from optical_bench_shapely.core.ray import Ray
from optical_bench_shapely.core.constants import MIN_RAY_INTENSITY


TOLERANCE = 1e-9


def assert_close(actual, expected, tol=TOLERANCE, msg=""):
    """Assert that two values are close within tolerance."""
    if abs(actual - expected) > tol:
        raise AssertionError(
            f"{msg}: expected {expected}, got {actual} (diff: {abs(actual - expected)})"
        )


def test_construction():
    print("\nTest: construction")
    ray = Ray(Vector2(1, 2), Vector2(3, 4), intensity=-0.5)
    assert_close(ray.direction.magnitude(), 1.0, msg="direction normalized")
    assert ray.intensity == 0.0, "negative intensity clamps to 0"
    assert ray.history == [Vector2(1, 2)], "history starts at origin"
    assert ray.min_intensity_threshold == MIN_RAY_INTENSITY
    assert ray.interaction_type == 'source'
    assert ray.parent_uuid is None
    assert not ray.has_jones() and not ray.is_polarized()
    assert ray.end_point is None and ray.segment_length == 0.0
    print(f"  {ray}")
    print("  PASS")


def test_polarization_seed():
    print("\nTest: polarization_angle seeds the Jones vector")
    ray = Ray(Vector2(0, 0), Vector2(1, 0), polarization_angle=math.radians(30))
    assert ray.has_jones()
    assert_close(ray.jones_intensity(), 1.0, msg="unit energy")
    assert_close(ray.jones[0].real, math.cos(math.radians(30)), msg="Ex")

    circ = Ray(Vector2(0, 0), Vector2(1, 0), polarization_angle='circular')
    assert circ.has_jones() and circ.polarization_angle == 'circular'
    print("  PASS")


def test_phase_advance():
    print("\nTest: phase advance k * n * d")
    # 550 nm is 0.55 px; a quarter wavelength in n = 1 adds pi / 2
    ray = Ray(Vector2(0, 0), Vector2(1, 0), medium_refractive_index=1.0)
    ray.add_history_point(Vector2(0.1375, 0))
    assert_close(ray.phase, math.pi / 2, 1e-9, msg="quarter wave")
    assert ray.end_point == Vector2(0.1375, 0)

    # Phase stays wrapped to [-pi, pi]
    ray.add_history_point(Vector2(0.1375 + 0.55 * 3.125, 0))
    assert -math.pi <= ray.phase <= math.pi
    assert_close(ray.phase, 0.75 * math.pi, 1e-6, msg="wrapped")

    # Tiny steps are ignored
    before = len(ray.history)
    ray.add_history_point(Vector2(ray.end_point.x + 1e-12, 0))
    assert len(ray.history) == before
    print("  PASS")


def test_terminate_first_reason_wins():
    print("\nTest: terminate() keeps the first reason")
    ray = Ray(Vector2(0, 0), Vector2(1, 0))
    ray.terminate('split_bs')
    ray.terminate('reflected')
    assert ray.terminated and ray.end_reason == 'split_bs'
    # Terminated rays no longer grow
    ray.add_history_point(Vector2(5, 0))
    assert ray.end_point is None
    print("  PASS")


def test_should_terminate():
    print("\nTest: should_terminate policy")
    ray = Ray(Vector2(0, 0), Vector2(1, 0), intensity=1e-5)
    assert ray.should_terminate(max_bounces=10) == 'low_intensity'
    ray.ignore_decay = True
    assert ray.should_terminate(max_bounces=10) is None, "ignore_decay skips the floor"

    ray = Ray(Vector2(0, 0), Vector2(1, 0), bounces_so_far=10)
    assert ray.should_terminate(max_bounces=10) == 'max_bounces'
    assert ray.should_terminate(max_bounces=11) is None

    broken = Ray(Vector2(float('nan'), 0), Vector2(1, 0))
    assert broken.should_terminate(max_bounces=10) is not None, "NaN origin stops the ray"
    print("  PASS")


def test_spawn_inheritance():
    print("\nTest: spawn() inherits and tags lineage")
    parent = Ray(Vector2(0, 0), Vector2(1, 0), wavelength_nm=633, intensity=0.8,
                 phase=0.3, source_id='laser-1', polarization_angle=0.0,
                 beam_diameter=4.0)
    parent.min_intensity_threshold = 1e-3
    parent.add_history_point(Vector2(10, 0))

    child = parent.spawn(Vector2(10, 0), Vector2(0, 1), intensity=0.4)
    assert child.parent_uuid == parent.uuid
    assert child.uuid != parent.uuid
    assert child.bounces_so_far == 1
    assert child.wavelength_nm == 633
    assert child.source_id == 'laser-1'
    assert child.beam_diameter == 4.0
    assert child.min_intensity_threshold == 1e-3
    assert_close(child.intensity, 0.4, msg="override")
    assert child.history == [Vector2(0, 0), Vector2(10, 0), Vector2(10, 0)]
    assert child.has_jones() and child.jones is not parent.jones, "Jones copied"
    print("  PASS")


def test_spawn_overrides():
    print("\nTest: spawn() overrides")
    parent = Ray(Vector2(0, 0), Vector2(1, 0))
    child = parent.spawn(Vector2(0, 0), Vector2(1, 0), jones=(0, 1))
    assert_close(child.polarization_angle, math.pi / 2, msg="jones override describes")

    child = parent.spawn(Vector2(0, 0), Vector2(1, 0), polarization_angle=0.0)
    assert child.has_jones()

    child = child.spawn(Vector2(0, 0), Vector2(1, 0), jones=None)
    assert not child.is_polarized(), "jones=None makes the child unpolarized"

    try:
        parent.spawn(Vector2(0, 0), Vector2(1, 0), no_such_field=1)
    except AttributeError:
        pass
    else:
        raise AssertionError("unknown override should raise AttributeError")
    print("  PASS")


def test_polarization_helpers():
    print("\nTest: polarization helpers")
    ray = Ray(Vector2(0, 0), Vector2(1, 0))
    ray.set_linear_polarization(3 * math.pi / 2)
    assert_close(ray.polarization_angle, -math.pi / 2, msg="wrapped angle")
    ray.set_circular_polarization(right=False)
    assert ray.polarization_angle == 'circular'
    ray.set_unpolarized()
    assert not ray.is_polarized()
    assert ray.ensure_jones_vector() is None
    print("  PASS")


def test_copy_and_amplitude():
    print("\nTest: copy() and complex amplitude")
    ray = Ray(Vector2(0, 0), Vector2(1, 0), intensity=0.25, phase=math.pi / 2)
    a = ray.get_complex_amplitude()
    assert_close(a.real, 0.0, msg="Re")
    assert_close(a.imag, 0.5, msg="Im")
    ray.terminate('reflected')
    clone = ray.copy()
    assert clone.uuid != ray.uuid
    assert clone.end_reason == 'reflected' and clone.intensity == 0.25
    print("  PASS")


def test_spawn_refused_after_termination():
    print("\nTest: a terminated ray cannot spawn children")
    ray = Ray(Vector2(0, 0), Vector2(1, 0))
    ray.terminate('absorbed_screen')
    try:
        ray.spawn(Vector2(1, 0), Vector2(1, 0))
    except RuntimeError:
        pass
    else:
        raise AssertionError("spawn() on a terminated ray should raise RuntimeError")
    print("  PASS")


class TaggedRay(Ray):
    """Ray subclass carrying an extra class-level tag."""
    tag = 'reference-arm'


def test_subclass_preserved():
    print("\nTest: spawn() and copy() keep the ray subclass")
    ray = TaggedRay(Vector2(0, 0), Vector2(1, 0), intensity=0.5)
    child = ray.spawn(Vector2(5, 0), Vector2(0, 1))
    assert type(child) is TaggedRay, type(child)
    assert child.tag == 'reference-arm'
    clone = ray.copy()
    assert type(clone) is TaggedRay, type(clone)
    assert type(Ray(Vector2(0, 0), Vector2(1, 0)).copy()) is Ray
    print("  PASS")


def main():
    print("=" * 70)
    print("Ray - Verification")
    print("=" * 70)

    tests = [
        ("construction", test_construction),
        ("polarization seed", test_polarization_seed),
        ("phase advance", test_phase_advance),
        ("terminate", test_terminate_first_reason_wins),
        ("should_terminate", test_should_terminate),
        ("spawn inheritance", test_spawn_inheritance),
        ("spawn overrides", test_spawn_overrides),
        ("polarization helpers", test_polarization_helpers),
        ("copy/amplitude", test_copy_and_amplitude),
        ("spawn after termination", test_spawn_refused_after_termination),
        ("subclass preserved", test_subclass_preserved),
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
