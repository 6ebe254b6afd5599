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

import svgwrite
from shapely.geometry import LineString, MultiLineString, Point, Polygon
from shapely.ops import unary_union

# Handle both relative imports (when used as a module) and absolute imports (when run as script)
if __name__ == "__main__":
    from optical_bench_shapely.core.constants import DEFAULT_WAVELENGTH_NM
else:
    from .constants import DEFAULT_WAVELENGTH_NM


def wavelength_to_rgb(wavelength):
    """
    Convert a wavelength (in nm) to an RGB color tuple.

    Based on approximation of CIE color matching functions.
    Returns values in range 0-255.

    Args:
        wavelength (float): Wavelength in nanometers (380-780 nm)

    Returns:
        tuple: (r, g, b) values from 0-255
    """
    if wavelength is None:
        wavelength = DEFAULT_WAVELENGTH_NM

    # Clamp to visible range
    wavelength = max(380, min(780, wavelength))

    if wavelength < 440:
        r, g, b = -(wavelength - 440) / (440 - 380), 0.0, 1.0
    elif wavelength < 490:
        r, g, b = 0.0, (wavelength - 440) / (490 - 440), 1.0
    elif wavelength < 510:
        r, g, b = 0.0, 1.0, -(wavelength - 510) / (510 - 490)
    elif wavelength < 580:
        r, g, b = (wavelength - 510) / (580 - 510), 1.0, 0.0
    elif wavelength < 645:
        r, g, b = 1.0, -(wavelength - 645) / (645 - 580), 0.0
    else:
        r, g, b = 1.0, 0.0, 0.0

    # Intensity correction at spectrum edges
    if wavelength < 420:
        factor = 0.3 + 0.7 * (wavelength - 380) / (420 - 380)
    elif wavelength > 700:
        factor = 0.3 + 0.7 * (780 - wavelength) / (780 - 700)
    else:
        factor = 1.0

    return (
        int(255 * r * factor),
        int(255 * g * factor),
        int(255 * b * factor)
    )


def intensity_to_opacity(intensity, floor=0.15):
    """
    Map a ray intensity to a stroke opacity.

    Weak branches stay visible: any positive intensity renders at least at
    ``floor``.

    Args:
        intensity (float): Ray intensity
        floor (float): Minimum opacity of a ray with positive intensity

    Returns:
        float: Opacity value from 0.0 to 1.0
    """
    if intensity is None or not math.isfinite(intensity) or intensity <= 0:
        return 0.0
    return max(floor, min(1.0, intensity))


class SVGRenderer:
    """
    SVG renderer for the optical bench.

    The SVG is organized into four Inkscape layers (bottom to top):
    - objects: component footprints
    - graphic annotations: arrows and lens marks
    - rays: traced ray segments
    - labels: text annotations

    Coordinate System:
        The renderer uses a Y-up coordinate system (positive Y points upward),
        which matches the bench coordinates. This is achieved by applying
        a vertical flip transformation to every layer.

    Attributes:
        width (int): Canvas width in pixels
        height (int): Canvas height in pixels
        viewbox (tuple): SVG viewBox (min_x, min_y, width, height), Y-down
        metadata_level (str): 'none', 'standard' or 'full'
        dwg (svgwrite.Drawing): The SVG drawing object
    """

    def __init__(self, width=800, height=600, viewbox=None, metadata_level='full'):
        """
        Initialize the SVG renderer.

        Args:
            width (int): Canvas width in pixels (default: 800)
            height (int): Canvas height in pixels (default: 600)
            viewbox (tuple or None): SVG viewBox as (min_x, min_y, width, height)
                in Y-up coordinates. If None, uses (0, 0, width, height)
            metadata_level (str): Controls how much metadata to embed.
                - 'none': No metadata (smallest files)
                - 'standard': id + inkscape:label + class
                - 'full': All of 'standard' plus data-* attributes
        """
        self.width = width
        self.height = height
        self.metadata_level = metadata_level
        self.user_viewbox = viewbox if viewbox is not None else (0, 0, width, height)

        # SVG needs the viewbox flipped: min_y becomes -(min_y + height)
        min_x, min_y, vb_width, vb_height = self.user_viewbox
        self.viewbox = (min_x, -(min_y + vb_height), vb_width, vb_height)

        # profile='full' enables data-* attributes; debug=False lets the
        # Inkscape namespace through svgwrite's attribute validation.
        self.dwg = svgwrite.Drawing(size=(f'{width}px', f'{height}px'),
                                    profile='full', debug=False)
        self.dwg.viewbox(*self.viewbox)
        self.dwg['xmlns:inkscape'] = 'http://www.inkscape.org/namespaces/inkscape'

        self.dwg.add(self.dwg.rect(
            insert=(self.viewbox[0], self.viewbox[1]),
            size=(self.viewbox[2], self.viewbox[3]),
            fill='white'
        ))

        self.layer_objects = self._add_layer('layer-objects', 'Objects')
        self.layer_graphic_symb = self._add_layer('layer-graphic-symb', 'Graphic Annotations')
        self.layer_rays = self._add_layer('layer-rays', 'Rays')
        self.layer_labels = self._add_layer('layer-labels', 'Labels')
        self._element_count = 0

    @classmethod
    def for_scene(cls, scene, rays=None, padding=20.0, scale=1.0, metadata_level='full'):
        """
        Create a renderer whose viewbox covers every component and ray end.

        The bounds are the shapely union of the component footprints and
        the traced segments.

        Args:
            scene (Scene): Scene to frame
            rays (list or None): Traced rays to include in the bounds
            padding (float): Margin around the bounds in scene units
            scale (float): Pixels per scene unit
            metadata_level (str): See __init__

        Returns:
            SVGRenderer: A renderer framed on the scene
        """
        shapes = [obj.get_footprint() for obj in scene.objs]
        for ray in rays or []:
            if ray.end_point is not None and ray.origin.is_finite() and ray.end_point.is_finite():
                shapes.append(LineString([(ray.origin.x, ray.origin.y),
                                          (ray.end_point.x, ray.end_point.y)]))
        shapes = [s for s in shapes if not s.is_empty]
        if shapes:
            min_x, min_y, max_x, max_y = unary_union(shapes).bounds
        else:
            min_x, min_y, max_x, max_y = 0.0, 0.0, 100.0, 100.0
        vb_width = max(max_x - min_x, 1.0) + 2 * padding
        vb_height = max(max_y - min_y, 1.0) + 2 * padding
        return cls(width=int(math.ceil(vb_width * scale)),
                   height=int(math.ceil(vb_height * scale)),
                   viewbox=(min_x - padding, min_y - padding, vb_width, vb_height),
                   metadata_level=metadata_level)

    def _add_layer(self, layer_id, label):
        return self.dwg.add(self.dwg.g(
            id=layer_id,
            transform='scale(1, -1)',
            **{'inkscape:groupmode': 'layer', 'inkscape:label': label}
        ))

    def _normalize_coord(self, value):
        """Map -0.0 and values within 1e-10 of zero to 0.0."""
        if value == 0.0 or abs(value) < 1e-10:
            return 0.0
        return value

    def _normalize_point(self, point):
        """
        Normalize a point to an (x, y) tuple.

        Args:
            point: Vector2, dict with 'x'/'y' keys, or (x, y) sequence

        Returns:
            tuple: Normalized (x, y)
        """
        if isinstance(point, dict):
            x, y = point['x'], point['y']
        elif hasattr(point, 'x') and hasattr(point, 'y'):
            x, y = point.x, point.y
        else:
            x, y = point[0], point[1]
        return (self._normalize_coord(float(x)), self._normalize_coord(float(y)))

    def _attach_scene_obj_metadata(self, element, scene_obj, css_class='scene-obj'):
        """Attach id, inkscape:label, class, and data-uuid from a scene object."""
        if self.metadata_level == 'none' or scene_obj is None:
            return
        obj_uuid = getattr(scene_obj, 'uuid', None)
        get_name = getattr(scene_obj, 'get_display_name', None)
        obj_name = get_name() if get_name else None
        if obj_uuid:
            self._element_count += 1
            element['id'] = f'{css_class}-{obj_uuid}-{self._element_count}'
        if obj_name:
            element['inkscape:label'] = obj_name
        element['class'] = css_class
        if self.metadata_level == 'full':
            if obj_uuid:
                element['data-uuid'] = obj_uuid
            obj_type = getattr(scene_obj, 'type', None)
            if obj_type:
                element['data-type'] = obj_type

    def _add_label(self, text, x, y, color, anchor='middle', id_prefix='label', scene_obj=None):
        vertical_offset = 8 * 0.35
        label = self.dwg.text(
            text,
            insert=(x, -y + vertical_offset),
            fill=color,
            font_size='8px',
            font_family='sans-serif',
            text_anchor=anchor,
            transform='scale(1, -1)'  # Flip text back to be readable
        )
        obj_uuid = getattr(scene_obj, 'uuid', None)
        if obj_uuid and self.metadata_level != 'none':
            label['id'] = f'{id_prefix}-{obj_uuid}'
        self.layer_labels.add(label)

    # =========================================================================
    # Rays
    # =========================================================================

    def draw_ray_segment(self, ray, color=None, opacity=None, stroke_width=1.5):
        """
        Draw one traced ray from its origin to its end point.

        Rays that have not ended, or whose coordinates are NaN or infinite,
        are skipped.

        Args:
            ray (Ray): The terminated ray to draw
            color (str or None): CSS color, default from the wavelength
            opacity (float or None): Stroke opacity, default from the intensity
            stroke_width (float): Line width (default: 1.5)

        Returns:
            bool: True if a line was drawn
        """
        if ray.end_point is None:
            return False
        if not (ray.origin.is_finite() and ray.end_point.is_finite()):
            return False

        p1 = self._normalize_point(ray.origin)
        p2 = self._normalize_point(ray.end_point)

        if color is None:
            rgb = wavelength_to_rgb(ray.wavelength_nm)
            color = f'rgb({rgb[0]}, {rgb[1]}, {rgb[2]})'
        if opacity is None:
            opacity = intensity_to_opacity(ray.intensity)

        line = self.dwg.line(start=p1, end=p2, stroke=color,
                             stroke_width=stroke_width, stroke_opacity=opacity)

        if self.metadata_level != 'none':
            line['id'] = f'ray-{ray.uuid}'
            line['class'] = 'ray'
            line['inkscape:label'] = (f'{ray.wavelength_nm:.0f}nm I={ray.intensity:.3f} '
                                      f'{ray.end_reason or ""}').strip()
        if self.metadata_level == 'full':
            line['data-uuid'] = ray.uuid
            line['data-wavelength'] = str(ray.wavelength_nm)
            line['data-intensity'] = f'{ray.intensity:.6f}'
            if ray.parent_uuid:
                line['data-parent-uuid'] = ray.parent_uuid
            if ray.end_reason:
                line['data-end-reason'] = ray.end_reason
            if ray.interaction_type:
                line['data-interaction'] = ray.interaction_type

        self.layer_rays.add(line)
        return True

    def draw_rays(self, rays, **kwargs):
        """Draw every ray of a trace. Returns the number of lines drawn."""
        return sum(1 for ray in rays if self.draw_ray_segment(ray, **kwargs))

    # =========================================================================
    # Components
    # =========================================================================

    def draw_shape(self, geom, stroke='black', fill='none', stroke_width=2, label=None,
                   scene_obj=None):
        """
        Draw a shapely footprint.

        Points become circles, line strings become polylines and polygons
        are drawn from their exterior ring.

        Args:
            geom (BaseGeometry): Point, LineString, MultiLineString or Polygon
            stroke (str): Stroke color
            fill (str): Fill color for polygons (default: 'none')
            stroke_width (float): Line width (default: 2)
            label (str or None): Optional text placed at the centroid
            scene_obj: Optional scene object for metadata
        """
        if geom is None or geom.is_empty:
            return

        if isinstance(geom, Point):
            self.draw_point(geom, color=stroke, radius=3, label=label, scene_obj=scene_obj)
            return

        if isinstance(geom, LineString):
            parts = [geom]
        elif isinstance(geom, MultiLineString):
            parts = list(geom.geoms)
        elif isinstance(geom, Polygon):
            parts = [geom]
        elif hasattr(geom, 'geoms'):
            for sub in geom.geoms:
                self.draw_shape(sub, stroke=stroke, fill=fill, stroke_width=stroke_width,
                                scene_obj=scene_obj)
            parts = []
        else:
            raise TypeError(f"Unsupported geometry type: {geom.geom_type}")

        for part in parts:
            if isinstance(part, Polygon):
                points = [self._normalize_point(c) for c in list(part.exterior.coords)[:-1]]
                element = self.dwg.polygon(points=points, stroke=stroke, fill=fill,
                                           stroke_width=stroke_width)
            else:
                points = [self._normalize_point(c) for c in part.coords]
                element = self.dwg.polyline(points=points, stroke=stroke, fill='none',
                                            stroke_width=stroke_width)
            self._attach_scene_obj_metadata(element, scene_obj, css_class='shape')
            self.layer_objects.add(element)

        if label:
            centroid = geom.centroid
            self._add_label(label, self._normalize_coord(centroid.x),
                            self._normalize_coord(centroid.y), stroke,
                            id_prefix='label-shape', scene_obj=scene_obj)

    def draw_point(self, point, color='black', radius=3, label=None, scene_obj=None):
        """
        Draw a point (circle).

        Args:
            point: Vector2, dict or shapely Point
            color (str): Fill color (default: 'black')
            radius (float): Circle radius (default: 3)
            label (str or None): Optional text label shown near the point
            scene_obj: Optional scene object for metadata
        """
        x, y = self._normalize_point(point)
        circle = self.dwg.circle(center=(x, y), r=radius, fill=color)
        self._attach_scene_obj_metadata(circle, scene_obj, css_class='point')
        self.layer_objects.add(circle)
        if label:
            self._add_label(label, x + radius + 2, y - radius - 2, color, anchor='start',
                            id_prefix='label-point', scene_obj=scene_obj)

    def draw_line_segment(self, p1, p2, color='gray', stroke_width=2, label=None,
                          scene_obj=None):
        """
        Draw a line segment.

        Args:
            p1: Start point (Vector2 or dict)
            p2: End point (Vector2 or dict)
            color (str): Stroke color (default: 'gray')
            stroke_width (float): Line width (default: 2)
            label (str or None): Optional text label at the midpoint
            scene_obj: Optional scene object for metadata
        """
        p1 = self._normalize_point(p1)
        p2 = self._normalize_point(p2)
        line = self.dwg.line(start=p1, end=p2, stroke=color, stroke_width=stroke_width)
        self._attach_scene_obj_metadata(line, scene_obj, css_class='line-segment')
        self.layer_objects.add(line)

        if label:
            mid_x = self._normalize_coord((p1[0] + p2[0]) / 2)
            mid_y = self._normalize_coord((p1[1] + p2[1]) / 2)
            self._add_label(label, mid_x, mid_y, color, id_prefix='label-line',
                            scene_obj=scene_obj)

    def draw_arrow(self, p1, p2, color='black', stroke_width=1.5, head_size=5.0,
                   scene_obj=None):
        """
        Draw an arrow from p1 to p2 on the annotation layer.

        Args:
            p1: Tail point
            p2: Tip point
            color (str): Stroke and head color
            stroke_width (float): Shaft width
            head_size (float): Length of the arrow head
            scene_obj: Optional scene object for metadata
        """
        x1, y1 = self._normalize_point(p1)
        x2, y2 = self._normalize_point(p2)
        dx, dy = x2 - x1, y2 - y1
        length = math.hypot(dx, dy)
        if length < 1e-6:
            return
        ux, uy = dx / length, dy / length
        px, py = -uy, ux
        size = min(head_size, length * 0.5)

        group = self.dwg.g()
        group.add(self.dwg.line(start=(x1, y1), end=(x2, y2), stroke=color,
                                stroke_width=stroke_width))
        group.add(self.dwg.polygon(points=[
            (x2, y2),
            (x2 - ux * size + px * size * 0.5, y2 - uy * size + py * size * 0.5),
            (x2 - ux * size - px * size * 0.5, y2 - uy * size - py * size * 0.5),
        ], fill=color))
        self._attach_scene_obj_metadata(group, scene_obj, css_class='arrow')
        self.layer_graphic_symb.add(group)

    def draw_lens(self, p1, p2, focal_length, color='blue', label=None, scene_obj=None):
        """
        Draw an ideal lens with arrows indicating converging/diverging.

        A focal length of 0 draws a flat window without arrows.

        Args:
            p1: First endpoint of lens
            p2: Second endpoint of lens
            focal_length (float): Positive converging, negative diverging
            color (str): Color for lens (default: 'blue')
            label (str or None): Optional label
            scene_obj: Optional scene object for metadata
        """
        p1 = self._normalize_point(p1)
        p2 = self._normalize_point(p2)
        self.draw_line_segment(p1, p2, color=color, stroke_width=3, label=label,
                               scene_obj=scene_obj)

        dx = p2[0] - p1[0]
        dy = p2[1] - p1[1]
        length = math.hypot(dx, dy)
        if length < 1e-6 or focal_length == 0:
            return

        par_x, par_y = dx / length, dy / length
        per_x, per_y = par_y, -par_x
        size = 10
        if focal_length > 0:
            # Converging lens: arrows point inward
            self._draw_arrow_head(p1, par_x, par_y, per_x, per_y, size, color)
            self._draw_arrow_head(p2, -par_x, -par_y, per_x, per_y, size, color)
        else:
            self._draw_arrow_head(p1, -par_x, -par_y, per_x, per_y, size, color)
            self._draw_arrow_head(p2, par_x, par_y, per_x, per_y, size, color)

    def _draw_arrow_head(self, pos, par_x, par_y, per_x, per_y, size, color):
        """Draw a head at pos pointing along (par_x, par_y)."""
        points = [
            (pos[0] - par_x * size, pos[1] - par_y * size),
            (pos[0] + par_x * size + per_x * size, pos[1] + par_y * size + per_y * size),
            (pos[0] + par_x * size - per_x * size, pos[1] + par_y * size - per_y * size)
        ]
        self.layer_graphic_symb.add(self.dwg.polygon(points=points, fill=color))

    # =========================================================================
    # Scene
    # =========================================================================

    def draw_scene(self, scene, rays=None, draw_objects=True, draw_rays=True, **ray_kwargs):
        """
        Draw all objects and rays of a scene.

        Every object draws itself through its ``draw(renderer)`` method.

        Args:
            scene: The Scene object
            rays (list or None): Traced rays to draw
            draw_objects (bool): Whether to draw scene objects (default: True)
            draw_rays (bool): Whether to draw rays (default: True)
            **ray_kwargs: Passed to draw_ray_segment (e.g. stroke_width)

        Returns:
            bool: True on success
        """
        if draw_objects:
            for obj in scene.objs:
                obj.draw(self)
        if draw_rays and rays:
            self.draw_rays(rays, **ray_kwargs)
        return True

    def save(self, filename=None):
        """
        Save the SVG to a file.

        Args:
            filename (str or Path): Output filename (default: 'output.svg')
        """
        if filename is None:
            filename = "output.svg"
        self.dwg.saveas(str(filename))

    def to_string(self):
        """Get the SVG as an XML string."""
        return self.dwg.tostring()


# Example usage and testing
if __name__ == "__main__":
    from optical_bench_shapely.core.geometry import Vector2

    print("Testing SVGRenderer class...\n")

    print("Test 1: Create basic renderer")
    renderer = SVGRenderer(width=400, height=300)
    print(f"  Canvas size: {renderer.width}x{renderer.height}")
    print(f"  Viewbox: {renderer.viewbox}")

    print("\nTest 2: Wavelength colors")
    for wl in (400, 470, 532, 633, 700):
        print(f"  {wl} nm -> {wavelength_to_rgb(wl)}")

    print("\nTest 3: Draw shapes")
    renderer.draw_shape(Polygon([(10, 10), (60, 10), (60, 40), (10, 40)]), stroke='navy', label='box')
    renderer.draw_line_segment(Vector2(100, 0), Vector2(100, 100), label='mirror')
    renderer.draw_arrow(Vector2(150, 50), Vector2(200, 50), color='red')
    renderer.draw_lens({'x': 250, 'y': 0}, {'x': 250, 'y': 100}, 100, label='lens')
    svg = renderer.to_string()
    print(f"  SVG length: {len(svg)} characters")
