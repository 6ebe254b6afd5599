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

===============================================================================
Lineage analysis
===============================================================================
Queries over the ray tree of a finished trace: which optical paths carry
the most energy, how the tree branches at each component type, and whether
any branching point created intensity.

All functions take a RayLineage as input and return plain dicts/lists,
with no side effects.
===============================================================================
"""

from __future__ import annotations
from typing import List, Dict, Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.ray_lineage import RayLineage


ENERGY_TOLERANCE = 1e-6


# =============================================================================
# Energy path ranking
# =============================================================================

def rank_paths_by_energy(
    lineage: 'RayLineage',
    leaf_uuids: Optional[List[str]] = None
) -> List[Dict[str, Any]]:
    """
    Rank optical paths by terminal ray intensity.

    For each leaf (a ray with no children), computes the full path from its
    source and reports the terminal intensity. Results are sorted
    highest-energy first.

    Args:
        lineage: A populated RayLineage from a completed simulation.
        leaf_uuids: Optional list of specific leaf uuids to analyze.
            If None, all leaves in the lineage are used.

    Returns:
        List of dicts, each containing:
        - 'uuid': terminal ray uuid
        - 'energy': terminal intensity
        - 'end_reason': why the terminal ray stopped
        - 'polarization_angle': terminal polarization (None if unpolarized)
        - 'path_length': number of rays in the path
        - 'path_reasons': end reasons along the path, emitter first
        - 'path': list of Ray objects from source to leaf
    """
    if leaf_uuids is None:
        leaves = lineage.get_leaves()
    else:
        leaves = [lineage.get_ray(u) for u in leaf_uuids]
        leaves = [r for r in leaves if r is not None]

    results = []
    for leaf in leaves:
        path = lineage.get_full_path(leaf.uuid)
        results.append({
            'uuid': leaf.uuid,
            'energy': leaf.intensity,
            'end_reason': leaf.end_reason,
            'polarization_angle': leaf.polarization_angle,
            'path_length': len(path),
            'path_reasons': [r.end_reason for r in path],
            'path': path,
        })

    results.sort(key=lambda x: x['energy'], reverse=True)
    return results


# =============================================================================
# Branching statistics
# =============================================================================

def get_branching_statistics(lineage: 'RayLineage') -> Dict[str, Any]:
    """
    Analyze ray tree branching patterns.

    A parent with 2 children is a split (beam splitter or PBS). A parent
    with 1 child is a single-path interaction (mirror, lens, polarizer,
    rotator surface, or a split whose other arm was pruned).

    Args:
        lineage: A populated RayLineage from a completed simulation.

    Returns:
        Dict with:
        - 'total_rays': total rays in the simulation
        - 'roots': number of source rays
        - 'leaves': number of terminal rays
        - 'internal_nodes': rays that have at least one child
        - 'splits': rays with 2+ children
        - 'single_path': rays with exactly 1 child
        - 'max_children': maximum children of any single ray
        - 'energy_budget': end_reason -> {'total_energy', 'ray_count'}
        - 'split_details': list of dicts for each split point
    """
    splits = []
    single_path = 0
    max_children = 0

    energy_by_reason: Dict[str, float] = {}
    count_by_reason: Dict[str, int] = {}
    for ray in lineage._rays.values():
        reason = ray.end_reason or 'active'
        energy_by_reason[reason] = energy_by_reason.get(reason, 0.0) + ray.intensity
        count_by_reason[reason] = count_by_reason.get(reason, 0) + 1

    for uuid, children_uuids in lineage._children_of.items():
        n = len(children_uuids)
        if n == 0:
            continue
        max_children = max(max_children, n)
        if n == 1:
            single_path += 1
            continue
        parent = lineage.get_ray(uuid)
        splits.append({
            'parent_uuid': uuid,
            'parent_energy': parent.intensity if parent else 0.0,
            'end_reason': parent.end_reason if parent else None,
            'child_count': n,
            'children': [
                {'uuid': c.uuid, 'energy': c.intensity, 'end_reason': c.end_reason}
                for c in lineage.get_children(uuid)
            ],
        })

    return {
        'total_rays': lineage.ray_count,
        'roots': len(lineage.get_roots()),
        'leaves': len(lineage.get_leaves()),
        'internal_nodes': len(splits) + single_path,
        'splits': len(splits),
        'single_path': single_path,
        'max_children': max_children,
        'energy_budget': {
            reason: {
                'total_energy': energy_by_reason[reason],
                'ray_count': count_by_reason[reason],
            }
            for reason in sorted(energy_by_reason)
        },
        'split_details': splits,
    }


# =============================================================================
# Energy conservation
# =============================================================================

def check_energy_conservation(
    lineage: 'RayLineage',
    tolerance: float = ENERGY_TOLERANCE
) -> Dict[str, Any]:
    """
    Verify energy conservation at each branching point.

    At each parent, the children's intensities must not sum to more than
    the parent's intensity (energy is conserved or lost, never gained).

    Args:
        lineage: A populated RayLineage from a completed simulation.
        tolerance: Allowed relative excess.

    Returns:
        Dict with:
        - 'total_checks': number of branching points checked
        - 'violations': list of dicts for any violations found
        - 'max_excess_ratio': worst violation as ratio (child_sum / parent)
        - 'is_valid': True if no violations found
    """
    violations = []
    max_excess = 0.0
    total_checks = 0

    for uuid, children_uuids in lineage._children_of.items():
        if not children_uuids:
            continue
        parent = lineage.get_ray(uuid)
        if parent is None or parent.intensity < 1e-12:
            continue

        children = lineage.get_children(uuid)
        child_energy = sum(c.intensity for c in children)
        total_checks += 1
        ratio = child_energy / parent.intensity

        if ratio > 1.0 + tolerance:
            violations.append({
                'parent_uuid': uuid,
                'parent_energy': parent.intensity,
                'child_energy_sum': child_energy,
                'excess_ratio': ratio,
                'end_reason': parent.end_reason,
            })
            max_excess = max(max_excess, ratio)

    return {
        'total_checks': total_checks,
        'violations': violations,
        'max_excess_ratio': max_excess if violations else 1.0,
        'is_valid': len(violations) == 0,
    }
