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

import math
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union
from shapely.geometry import Point as ShapelyPoint, LineString, Polygon

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.constants import (
        MIN_RAY_SEGMENT_LENGTH, PARALLEL_DETERMINANT_THRESHOLD, ZERO_VECTOR_THRESHOLD
    )
else:
    from .constants import (
        MIN_RAY_SEGMENT_LENGTH, PARALLEL_DETERMINANT_THRESHOLD, ZERO_VECTOR_THRESHOLD
    )


class Vector2:
    """
    A 2D vector, also used for points.

    Immutable by convention: every operation returns a new instance.
    Can be converted to/from Shapely Point objects and to/from the
    ``{'x': ..., 'y': ...}`` dictionaries used for serialization.
    """

    __slots__ = ('x', 'y')

    def __init__(self, x: float = 0.0, y: float = 0.0):
        self.x = float(x)
        self.y = float(y)

    # ==================== Arithmetic ====================

    def add(self, other: 'Vector2') -> 'Vector2':
        return Vector2(self.x + other.x, self.y + other.y)

    def subtract(self, other: 'Vector2') -> 'Vector2':
        return Vector2(self.x - other.x, self.y - other.y)

    def multiply(self, scalar: float) -> 'Vector2':
        return Vector2(self.x * scalar, self.y * scalar)

    def divide(self, scalar: float) -> 'Vector2':
        """Divide by a scalar; dividing by (nearly) zero yields the zero vector."""
        if abs(scalar) < 1e-12:
            return Vector2(0.0, 0.0)
        return Vector2(self.x / scalar, self.y / scalar)

    def __add__(self, other: 'Vector2') -> 'Vector2':
        return self.add(other)

    def __sub__(self, other: 'Vector2') -> 'Vector2':
        return self.subtract(other)

    def __mul__(self, scalar: float) -> 'Vector2':
        return self.multiply(scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> 'Vector2':
        return self.divide(scalar)

    def __neg__(self) -> 'Vector2':
        return Vector2(-self.x, -self.y)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector2):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    # ==================== Metrics ====================

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def magnitude(self) -> float:
        return math.sqrt(self.magnitude_squared())

    def normalize(self) -> 'Vector2':
        """
        Return the unit vector in the same direction.

        A (near) zero vector normalizes to (0, 0) instead of NaN components.
        """
        mag_sq = self.magnitude_squared()
        if mag_sq < ZERO_VECTOR_THRESHOLD * ZERO_VECTOR_THRESHOLD:
            return Vector2(0.0, 0.0)
        mag = math.sqrt(mag_sq)
        return Vector2(self.x / mag, self.y / mag)

    def dot(self, other: 'Vector2') -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: 'Vector2') -> float:
        """Z component of the 3D cross product."""
        return self.x * other.y - self.y * other.x

    def distance_to(self, other: 'Vector2') -> float:
        return math.sqrt(self.distance_squared_to(other))

    def distance_squared_to(self, other: 'Vector2') -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy

    def angle(self) -> float:
        """Angle from the +x axis in radians, in (-pi, pi]."""
        return math.atan2(self.y, self.x)

    # ==================== Transformations ====================

    def rotate(self, angle_rad: float) -> 'Vector2':
        """Rotate counter-clockwise by the given angle."""
        c = math.cos(angle_rad)
        s = math.sin(angle_rad)
        return Vector2(self.x * c - self.y * s, self.x * s + self.y * c)

    def perpendicular(self) -> 'Vector2':
        """The vector rotated by +90 degrees."""
        return Vector2(-self.y, self.x)

    def lerp(self, other: 'Vector2', t: float) -> 'Vector2':
        return Vector2(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)

    def equals(self, other: 'Vector2', tol: float = 1e-6) -> bool:
        return abs(self.x - other.x) < tol and abs(self.y - other.y) < tol

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def clone(self) -> 'Vector2':
        return Vector2(self.x, self.y)

    @classmethod
    def from_angle(cls, angle_rad: float) -> 'Vector2':
        return cls(math.cos(angle_rad), math.sin(angle_rad))

    # ==================== Conversions ====================

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary representation."""
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, d: Dict[str, float]) -> 'Vector2':
        return cls(d['x'], d['y'])

    def to_shapely(self) -> ShapelyPoint:
        """Convert to Shapely Point."""
        return ShapelyPoint(self.x, self.y)

    @classmethod
    def from_shapely(cls, sp: ShapelyPoint) -> 'Vector2':
        """Create Vector2 from Shapely Point."""
        return cls(sp.x, sp.y)

    def __repr__(self) -> str:
        return f"Vector2(x={self.x:.6g}, y={self.y:.6g})"


class Line:
    """
    A segment in 2D space between two points.
    Used for the flat surfaces and box edges of components.
    """
    def __init__(self, p1: Vector2, p2: Vector2):
        self.p1 = p1
        self.p2 = p2

    @property
    def vector(self) -> Vector2:
        return self.p2 - self.p1

    @property
    def length(self) -> float:
        return self.p1.distance_to(self.p2)

    def to_shapely(self) -> LineString:
        """Convert to Shapely LineString."""
        return LineString([(self.p1.x, self.p1.y), (self.p2.x, self.p2.y)])

    @classmethod
    def from_shapely(cls, sl: LineString) -> 'Line':
        """Create Line from Shapely LineString."""
        coords = list(sl.coords)
        return cls(Vector2(coords[0][0], coords[0][1]), Vector2(coords[1][0], coords[1][1]))

    def __repr__(self) -> str:
        return f"Line(p1={self.p1}, p2={self.p2})"


PointLike = Union[Vector2, Dict[str, float], Tuple[float, float]]


class Geometry:
    """
    The geometry module: vector constructors and the ray/segment solve
    shared by every component, with Shapely used for footprints.
    """

    @staticmethod
    def point(x: float, y: float) -> Vector2:
        """
        Create a point.

        Args:
            x: The x-coordinate of the point.
            y: The y-coordinate of the point.

        Returns:
            Vector2 object
        """
        return Vector2(x, y)

    @staticmethod
    def as_vector(p: PointLike) -> Vector2:
        """
        Coerce a Vector2, an {'x','y'} dict or an (x, y) pair to a Vector2.

        Args:
            p: The point-like value.

        Returns:
            Vector2 object
        """
        if isinstance(p, Vector2):
            return p
        if isinstance(p, dict):
            return Vector2(p['x'], p['y'])
        return Vector2(p[0], p[1])

    @staticmethod
    def line(p1: Vector2, p2: Vector2) -> Line:
        """
        Create a segment between two points.

        Args:
            p1: First endpoint
            p2: Second endpoint

        Returns:
            Line object
        """
        return Line(p1, p2)

    @staticmethod
    def dot(p1: Vector2, p2: Vector2) -> float:
        return p1.dot(p2)

    @staticmethod
    def cross(p1: Vector2, p2: Vector2) -> float:
        return p1.cross(p2)

    @staticmethod
    def distance(p1: Vector2, p2: Vector2) -> float:
        return p1.distance_to(p2)

    @staticmethod
    def midpoint(p1: Vector2, p2: Vector2) -> Vector2:
        return Vector2((p1.x + p2.x) / 2, (p1.y + p2.y) / 2)

    @staticmethod
    def ray_segment_intersection(
        origin: Vector2,
        direction: Vector2,
        p1: Vector2,
        p2: Vector2,
        t_min: float = MIN_RAY_SEGMENT_LENGTH,
        edge_tolerance: float = 0.0
    ) -> Optional[Tuple[float, float]]:
        """
        Intersect the ray ``origin + t * direction`` with the segment p1-p2.

        The solve uses the determinant of the edge against the ray normal.
        A degenerate edge or a ray (nearly) parallel to the edge has a
        determinant below the threshold and yields no intersection.

        Args:
            origin: Ray origin.
            direction: Ray direction (unit length, so t is a distance).
            p1: First endpoint of the segment.
            p2: Second endpoint of the segment.
            t_min: Hits at or behind this ray parameter are ignored.
            edge_tolerance: Slack on the segment parameter, so that
                u in [-edge_tolerance, 1 + edge_tolerance] counts as a hit.

        Returns:
            (t, u) with t the distance along the ray and u the fraction
            along the segment, or None.
        """
        v1 = origin - p1
        v2 = p2 - p1
        if v2.magnitude_squared() < ZERO_VECTOR_THRESHOLD:
            return None
        v3 = Vector2(-direction.y, direction.x)
        det = v2.dot(v3)
        if abs(det) < PARALLEL_DETERMINANT_THRESHOLD:
            return None
        t = v2.cross(v1) / det
        u = v1.dot(v3) / det
        if t > t_min and -edge_tolerance <= u <= 1.0 + edge_tolerance:
            return t, u
        return None

    @staticmethod
    def reflect(direction: Vector2, normal: Vector2) -> Vector2:
        """
        Mirror-reflect a direction about a unit normal: d' = d - 2(d.n)n.

        Args:
            direction: Incoming direction.
            normal: Unit surface normal (either orientation).

        Returns:
            The normalized reflected direction.
        """
        return (direction - normal * (2 * direction.dot(normal))).normalize()

    @staticmethod
    def oriented_normal(normal: Vector2, direction: Vector2) -> Vector2:
        """Flip a normal if needed so that it opposes the incoming direction."""
        if direction.dot(normal) > 0:
            return -normal
        return normal

    @staticmethod
    def segment_normal(p1: Vector2, p2: Vector2) -> Vector2:
        """Unit normal of the segment p1-p2 (edge vector rotated by +90 degrees)."""
        return (p2 - p1).perpendicular().normalize()

    @staticmethod
    def polygon(vertices: Sequence[Vector2]) -> Polygon:
        """Build a Shapely polygon from a vertex loop."""
        return Polygon([(v.x, v.y) for v in vertices])

    @staticmethod
    def polyline(points: Sequence[Vector2]) -> LineString:
        """Build a Shapely line string through the given points."""
        return LineString([(p.x, p.y) for p in points])

    @staticmethod
    def bounds_to_box(bounds: Tuple[float, float, float, float], padding: float = 0.0) -> Dict[str, float]:
        """
        Convert Shapely bounds (minx, miny, maxx, maxy) to an
        {'x', 'y', 'width', 'height'} box grown by ``padding`` on each side.
        """
        min_x, min_y, max_x, max_y = bounds
        return {
            'x': min_x - padding,
            'y': min_y - padding,
            'width': max_x - min_x + 2 * padding,
            'height': max_y - min_y + 2 * padding,
        }

    @staticmethod
    def rotated_rectangle(center: Vector2, width: float, height: float, angle_rad: float) -> List[Vector2]:
        """
        Corners of a width x height rectangle centred on ``center`` and
        rotated by ``angle_rad``, ordered (-,-), (+,-), (+,+), (-,+) in the
        local frame (counter-clockwise).
        """
        hw = width / 2.0
        hh = height / 2.0
        local = [Vector2(-hw, -hh), Vector2(hw, -hh), Vector2(hw, hh), Vector2(-hw, hh)]
        return [v.rotate(angle_rad) + center for v in local]


geometry = Geometry()


# Example usage and testing
if __name__ == "__main__":
    print("Testing geometry module...\n")

    a = Vector2(3, 4)
    print(f"a = {a}, |a| = {a.magnitude()}")
    print(f"a normalized = {a.normalize()}")
    print(f"zero normalized = {Vector2(0, 0).normalize()}")
    print(f"a rotated 90 deg = {a.rotate(math.pi / 2)}")

    hit = geometry.ray_segment_intersection(
        Vector2(0, 0), Vector2(1, 0), Vector2(10, -5), Vector2(10, 5)
    )
    print(f"ray along +x against x=10 segment: {hit}")

    parallel = geometry.ray_segment_intersection(
        Vector2(0, 0), Vector2(1, 0), Vector2(0, 5), Vector2(10, 5)
    )
    print(f"parallel ray: {parallel}")

    n = Vector2(-1, 1).normalize()
    r = geometry.reflect(Vector2(1, 0), n)
    print(f"reflect +x off a 45 degree surface: {r}")

    square = geometry.rotated_rectangle(Vector2(0, 0), 10, 10, math.pi / 4)
    print(f"rotated square bounds: {geometry.polygon(square).bounds}")

    print("\nGeometry test completed successfully!")
