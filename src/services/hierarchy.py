"""
Chain walking over the reports_to and recruited_by graphs.

Neither graph is trusted to be acyclic, so every walk carries a visited
set and a depth cap:
- walk(): upward, yields (level, person_id) with level 1 = direct parent
- walk_down(): downward breadth-first, for team visibility
- would_create_cycle(): write-time guard used by change_manager / change_recruiter,
  bounded by the visited set only
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from src.config import settings
from src.models import OverrideSource
from src.services.person_graph import PersonGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainLink:
    level: int
    person_id: int


@dataclass
class WalkResult:
    """
    Ordered ancestors of the start person.

    truncated is True when the walk stopped on a revisited id (a cycle in
    the data) rather than on a null parent or the level cap.
    """
    chain: list[ChainLink] = field(default_factory=list)
    truncated: bool = False

    def at_level(self, level: int) -> Optional[int]:
        """Person exactly ``level`` steps up, or None if the chain is shorter."""
        if level < 1 or level > len(self.chain):
            return None
        return self.chain[level - 1].person_id

    @property
    def person_ids(self) -> list[int]:
        return [link.person_id for link in self.chain]


class HierarchyWalker:
    """Pure reads; performs no writes and takes no locks."""

    def __init__(
        self,
        graph: PersonGraph,
        max_depth: Optional[int] = None,
        max_team_depth: Optional[int] = None,
    ):
        self.graph = graph
        self.max_depth = max_depth or settings.max_hierarchy_depth
        self.max_team_depth = max_team_depth or settings.max_team_depth

    async def walk(
        self,
        start_person_id: int,
        source: OverrideSource,
        max_levels: int,
    ) -> WalkResult:
        """
        Walk up to max_levels parents (never past max_depth).

        The start person is never part of the chain.
        """
        result = WalkResult()
        limit = min(max_levels, self.max_depth)
        visited = {start_person_id}
        current = start_person_id

        for level in range(1, limit + 1):
            parent_id = await self.graph.get_parent_id(current, source)
            if parent_id is None:
                break
            if parent_id in visited:
                logger.warning(
                    f"Cycle in {source.value} chain of person {start_person_id} "
                    f"at person {parent_id}; chain truncated at level {level - 1}"
                )
                result.truncated = True
                break
            visited.add(parent_id)
            result.chain.append(ChainLink(level=level, person_id=parent_id))
            current = parent_id

        return result

    async def walk_down(
        self,
        root_person_id: int,
        source: OverrideSource = OverrideSource.REPORTS_TO,
        max_depth: Optional[int] = None,
    ) -> list[int]:
        """
        Everyone below root in the chosen chain, breadth-first.

        The root itself is excluded. Stops at max_depth levels or when no
        new ids are found.
        """
        depth_cap = max_depth or self.max_team_depth
        visited = {root_person_id}
        found: list[int] = []
        frontier = [root_person_id]

        for _ in range(depth_cap):
            children = await self.graph.get_child_ids(frontier, source)
            frontier = []
            for child_id in children:
                if child_id in visited:
                    continue
                visited.add(child_id)
                found.append(child_id)
                frontier.append(child_id)
            if not frontier:
                break
        else:
            if frontier:
                logger.warning(
                    f"Downward {source.value} walk from person {root_person_id} "
                    f"hit depth cap {depth_cap}"
                )

        return found

    async def would_create_cycle(
        self,
        person_id: int,
        new_parent_id: Optional[int],
        source: OverrideSource,
    ) -> bool:
        """
        True if making new_parent_id the parent puts person_id in its own ancestry.

        Walks the full ancestry of new_parent_id; only the visited set stops it.
        """
        if new_parent_id is None:
            return False
        visited = set()
        current: Optional[int] = new_parent_id
        while current is not None and current not in visited:
            if current == person_id:
                return True
            visited.add(current)
            current = await self.graph.get_parent_id(current, source)
        return False
