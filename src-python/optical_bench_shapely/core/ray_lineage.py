"""
Ray lineage tree

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

===============================================================================
Ray Lineage Tracker
===============================================================================
Every ray spawned by a component records the uuid of the ray it came from
and the end reason of that parent ('split_bs', 'reflected', ...). This
module indexes the terminated rays of a run by those tags so that a beam
can be followed from its emitter through every splitter and rotator.
===============================================================================
"""

from __future__ import annotations
from collections import deque
from typing import Optional, List, Set, Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .ray import Ray


class RayLineage:
    """
    Parent/child index over the rays of one simulation run.

    Queries return Ray objects. Use get_subtree_uuids() for uuid-level access.

    Usage:
        lineage = RayLineage()
        for ray in simulator.run():
            lineage.register(ray)

        path = lineage.get_full_path(detector_ray.uuid)
        other_arm = lineage.get_siblings(reflected_ray.uuid)
    """

    def __init__(self) -> None:
        self._rays: Dict[str, 'Ray'] = {}
        self._parent_of: Dict[str, Optional[str]] = {}
        self._children_of: Dict[str, List[str]] = {}

    def register(self, ray: 'Ray') -> None:
        """
        Add a ray to the index.

        Children may be registered before or after their parent.

        Args:
            ray: A Ray with uuid, parent_uuid and interaction_type set.
        """
        self._rays[ray.uuid] = ray
        self._parent_of[ray.uuid] = ray.parent_uuid
        self._children_of.setdefault(ray.uuid, [])
        if ray.parent_uuid:
            self._children_of.setdefault(ray.parent_uuid, []).append(ray.uuid)

    def clear(self) -> None:
        self._rays.clear()
        self._parent_of.clear()
        self._children_of.clear()

    @property
    def ray_count(self) -> int:
        """Number of registered rays."""
        return len(self._rays)

    def get_ray(self, uuid: str) -> Optional['Ray']:
        return self._rays.get(uuid)

    # =========================================================================
    # Path queries
    # =========================================================================

    def get_ancestors(self, uuid: str) -> List['Ray']:
        """Rays leading to this one, emitter first, excluding the ray itself."""
        chain = []
        current = self._parent_of.get(uuid)
        while current is not None and current in self._rays:
            chain.append(self._rays[current])
            current = self._parent_of.get(current)
        chain.reverse()
        return chain

    def get_full_path(self, uuid: str) -> List['Ray']:
        """Rays from the emitter to this one, inclusive."""
        ray = self._rays.get(uuid)
        if ray is None:
            return []
        return self.get_ancestors(uuid) + [ray]

    def get_interaction_sequence(self, uuid: str) -> List[str]:
        """
        End reasons met along the path to this ray, e.g.
        ['split_pbs', 'pass_rotator_surface', 'pass_rotator_surface'].
        """
        return [r.end_reason for r in self.get_ancestors(uuid) if r.end_reason]

    def get_children(self, uuid: str) -> List['Ray']:
        return [self._rays[c] for c in self._children_of.get(uuid, []) if c in self._rays]

    def get_descendants(self, uuid: str) -> List['Ray']:
        """Every ray spawned downstream of this one, breadth first."""
        found = []
        pending = deque(self._children_of.get(uuid, []))
        while pending:
            current = pending.popleft()
            if current in self._rays:
                found.append(self._rays[current])
                pending.extend(self._children_of.get(current, []))
        return found

    def get_siblings(self, uuid: str) -> List['Ray']:
        """
        Other rays spawned by the same parent: the reflected arm of a
        splitter for its transmitted arm, and vice versa.
        """
        parent = self._parent_of.get(uuid)
        if parent is None:
            return []
        return [self._rays[c] for c in self._children_of.get(parent, [])
                if c != uuid and c in self._rays]

    # =========================================================================
    # Tree queries
    # =========================================================================

    def get_roots(self) -> List['Ray']:
        """Rays emitted directly by a source."""
        return [self._rays[u] for u, p in self._parent_of.items() if p is None]

    def get_leaves(self) -> List['Ray']:
        """Rays that spawned nothing (absorbed, blocked, escaped or pruned)."""
        return [self._rays[u] for u, kids in self._children_of.items()
                if not kids and u in self._rays]

    def get_subtree_uuids(self, uuid: str) -> Set[str]:
        """uuids of this ray and everything downstream of it."""
        found = {uuid}
        pending = deque(self._children_of.get(uuid, []))
        while pending:
            current = pending.popleft()
            found.add(current)
            pending.extend(self._children_of.get(current, []))
        return found

    def get_tree_depth(self, uuid: str) -> int:
        depth = 0
        current = self._parent_of.get(uuid)
        while current is not None:
            depth += 1
            current = self._parent_of.get(current)
        return depth

    # =========================================================================
    # Filters
    # =========================================================================

    def get_rays_by_interaction(self, interaction_type: str) -> List['Ray']:
        """Rays created by a given parent end reason ('split_bs', 'reflected', ...)."""
        return [r for r in self._rays.values() if r.interaction_type == interaction_type]

    def get_rays_by_end_reason(self, end_reason: str) -> List['Ray']:
        return [r for r in self._rays.values() if r.end_reason == end_reason]

    def get_rays_from_source(self, source_id: str) -> List['Ray']:
        return [r for r in self._rays.values() if r.source_id == source_id]

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_lineage_statistics(self) -> Dict[str, Any]:
        """
        Summary of the ray tree.

        Returns:
            Dict with keys:
            - ray_count: registered rays
            - root_count: rays emitted by sources
            - leaf_count: rays without children
            - max_depth: deepest ray in any tree
            - end_reason_counts: end_reason -> count
            - branching_factor_avg: mean children per ray that has any
        """
        roots = [u for u, p in self._parent_of.items() if p is None]
        leaves = [u for u, kids in self._children_of.items() if not kids]
        max_depth = max((self.get_tree_depth(u) for u in leaves), default=0)

        end_reason_counts: Dict[str, int] = {}
        for ray in self._rays.values():
            key = ray.end_reason or 'active'
            end_reason_counts[key] = end_reason_counts.get(key, 0) + 1

        parents = [kids for kids in self._children_of.values() if kids]
        branching_avg = sum(len(k) for k in parents) / len(parents) if parents else 0.0

        return {
            'ray_count': len(self._rays),
            'root_count': len(roots),
            'leaf_count': len(leaves),
            'max_depth': max_depth,
            'end_reason_counts': end_reason_counts,
            'branching_factor_avg': branching_avg,
        }

    # =========================================================================
    # Export
    # =========================================================================

    def to_networkx(self):
        """
        Export the ray tree to a NetworkX DiGraph.

        Nodes are ray uuids carrying 'interaction', 'end_reason' and
        'intensity' attributes. Edges go from parent to child.

        Returns:
            nx.DiGraph

        Raises:
            ImportError: if networkx is not installed
        """
        import networkx as nx
        graph = nx.DiGraph()
        for uuid, ray in self._rays.items():
            graph.add_node(uuid, interaction=ray.interaction_type,
                           end_reason=ray.end_reason, intensity=ray.intensity)
        for uuid, parent in self._parent_of.items():
            if parent is not None and parent in self._rays:
                graph.add_edge(parent, uuid)
        return graph

    def __repr__(self) -> str:
        stats = self.get_lineage_statistics()
        return (f"RayLineage(rays={stats['ray_count']}, "
                f"roots={stats['root_count']}, "
                f"leaves={stats['leaf_count']}, "
                f"max_depth={stats['max_depth']})")
