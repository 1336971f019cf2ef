"""Search nodes: a cell together with the cell it was reached from."""

from __future__ import annotations

import math
from dataclasses import dataclass

from aerialnav.cell import Cell, angle_to_range


@dataclass(frozen=True, order=True)
class Node:
    """An edge of the search graph, ending in ``cell`` and coming from ``parent``."""

    cell: Cell
    parent: Cell

    def __str__(self):
        return f"({self.cell} , {self.parent})"

    def next_node(self, next_cell):
        """Return the node that continues from this one into ``next_cell``."""
        return type(self)(next_cell, self.cell)

    def neighbors(self):
        return [self.next_node(c) for c in self.cell.neighbors()]

    def cells(self):
        """Cells touched by the segment from the parent centre to the cell centre."""
        dx = self.cell.x - self.parent.x
        dy = self.cell.y - self.parent.y
        dz = self.cell.z - self.parent.z
        steps = 2 * max(abs(dx), abs(dy), abs(dz))
        if steps == 0:
            return set()

        x_step = (self.cell.x_pos - self.parent.x_pos) / steps
        y_step = (self.cell.y_pos - self.parent.y_pos) / steps
        z_step = (self.cell.z_pos - self.parent.z_pos) / steps

        touched = set()
        for i in range(1, steps + 1):
            x = self.parent.x_pos + x_step * i
            y = self.parent.y_pos + y_step * i
            z = self.parent.z_pos + z_step * i
            for ox, oy in ((0.1, 0.1), (0.1, -0.1), (-0.1, 0.1), (-0.1, -0.1)):
                touched.add(Cell.from_position(x + ox, y + oy, z))
        return touched

    def length(self):
        return self.parent.distance_3d(self.cell)

    def rotation(self, other):
        """Number of 45-degree turns to go on to ``other``, plus 0.5 for a
        change between horizontal and vertical motion."""
        this_z_diff = self.cell.z - self.parent.z
        other_z_diff = other.cell.z - other.parent.z
        alt_diff = 0.5 if (this_z_diff == 0) != (other_z_diff == 0) else 0.0
        return alt_diff + self.xy_rotation(other)

    def xy_rotation(self, other):
        """Number of 45-degree turns in the XY-plane to go on to ``other``."""
        this_diff = self.cell - self.parent
        other_diff = other.cell - other.parent
        if (this_diff.x == 0 and this_diff.y == 0) or (
            other_diff.x == 0 and this_diff.y == 0
        ):
            return 0.0
        ang_diff = other_diff.angle() - this_diff.angle()
        return abs(angle_to_range(ang_diff)) / (math.pi / 4)