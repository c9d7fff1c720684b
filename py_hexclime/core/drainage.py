"""
Drainage graph: steepest-descent flow over the toroidal grid.

Every cell drains into its lowest toroidal neighbour when that neighbour is
strictly lower; otherwise the cell is a root (a pit, a flat or a sink).
Because each edge strictly lowers the value and every cell has at most one
outgoing edge, the graph is a forest whose roots are its local minima.

The graph is stored as flat arrays over linear indices:
- receivers[j]: the cell j drains into, or -1 for roots
- drops[j]: the height difference along that edge, 0 for roots
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np
import structlog

from .exceptions import FieldError, PropagationError
from .field import Field
from .honeycomb import neighbour_table

logger = structlog.get_logger()


@dataclass
class DrainageGraph:
    """Forest of steepest-descent edges derived from a scalar field."""

    receivers: np.ndarray
    drops: np.ndarray
    roots: List[int]
    resolution: int
    _donors: Optional[List[List[int]]] = field(default=None, repr=False)

    @classmethod
    def from_field(cls, values: Field) -> "DrainageGraph":
        """
        Build the drainage forest of a field of ordered values.

        Ties between equally low neighbours go to the first one in direction
        order.
        """
        if values.grid.dtype == object:
            raise FieldError("drainage needs a numeric field")

        resolution = values.resolution
        logger.info("Building drainage graph", resolution=resolution)

        grid = values.grid
        table = neighbour_table(resolution)
        rows = np.arange(grid.size)
        lowest = np.argmin(grid[table], axis=1)
        targets = table[rows, lowest]
        minimum = grid[targets]

        flows = grid > minimum
        receivers = np.where(flows, targets, -1).astype(np.int64)
        drops = np.where(flows, grid - minimum, 0)
        roots = np.flatnonzero(~flows).tolist()

        logger.info("Drainage graph built", roots=len(roots), edges=int(flows.sum()))
        return cls(receivers=receivers, drops=drops, roots=roots, resolution=resolution)

    def __len__(self) -> int:
        return self.receivers.size

    def is_root(self, index: int) -> bool:
        return self.receivers[index] < 0

    def edges(self) -> Iterator[Tuple[int, int, float]]:
        """All (source, target, drop) edges in source index order."""
        for source in np.flatnonzero(self.receivers >= 0).tolist():
            yield source, int(self.receivers[source]), self.drops[source]

    def donors(self, index: int) -> List[int]:
        """Cells draining directly into index, in index order."""
        if self._donors is None:
            donors = [[] for _ in range(len(self))]
            for source, target in enumerate(self.receivers.tolist()):
                if target >= 0:
                    donors[target].append(source)
            self._donors = donors
        return self._donors[index]

    def path_to_root(self, index: int) -> List[int]:
        """Cells visited following the steepest descent from index to its root."""
        path = [index]
        receivers = self.receivers
        while receivers[path[-1]] >= 0:
            path.append(int(receivers[path[-1]]))
            if len(path) > len(self):
                raise PropagationError(f"drainage path from {index} does not reach a root")
        return path

    def catchment(self, index: int) -> List[int]:
        """All cells whose water passes through index, including itself."""
        stack = [index]
        basin = []
        while stack:
            cell = stack.pop()
            basin.append(cell)
            stack.extend(self.donors(cell))
        return sorted(basin)

    def post_order(self) -> List[int]:
        """
        Topological order of the forest in which donors precede receivers.

        Cells without donors are released first; a receiver is released once
        all of its donors have been.
        """
        receivers = self.receivers.tolist()
        pending = np.bincount(
            self.receivers[self.receivers >= 0], minlength=len(self)
        ).tolist()

        queue = deque(j for j, count in enumerate(pending) if count == 0)
        order = []
        while queue:
            cell = queue.popleft()
            order.append(cell)
            target = receivers[cell]
            if target >= 0:
                pending[target] -= 1
                if pending[target] == 0:
                    queue.append(target)
        return order

    def height(self) -> int:
        """Number of edges on the longest drainage path."""
        depth = [0] * len(self)
        receivers = self.receivers.tolist()
        for cell in self.post_order():
            target = receivers[cell]
            if target >= 0:
                depth[target] = max(depth[target], depth[cell] + 1)
        return max(depth) if depth else 0

    def accumulate(self, values: np.ndarray) -> np.ndarray:
        """
        Sum values downstream along the forest.

        Each cell ends up with its own value plus the accumulated values of
        every cell that drains into it, directly or transitively.
        """
        accumulated = np.array(values, dtype=np.float64)
        receivers = self.receivers.tolist()
        for cell in self.post_order():
            target = receivers[cell]
            if target >= 0:
                accumulated[target] += accumulated[cell]
        return accumulated
