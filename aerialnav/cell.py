"""Cells of the planner's three-dimensional occupancy lattice."""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import total_ordering

CELL_SCALE = 1.0
"""Edge length of one cell in metres."""

DIAGONAL_COST = 1.41421356237


def angle_to_range(angle):
    """Wrap an angle in radians into the interval [-pi, pi)."""
    angle += math.pi
    angle -= 2 * math.pi * math.floor(angle / (2 * math.pi))
    return angle - math.pi


@total_ordering
@dataclass(frozen=True, eq=False)
class Cell:
    """A lattice cell addressed by integer indices."""

    x: int
    y: int
    z: int = 0

    @classmethod
    def from_position(cls, x, y, z=0.0):
        """Return the cell that contains the metric position (x, y, z)."""
        return cls(
            math.floor(x / CELL_SCALE),
            math.floor(y / CELL_SCALE),
            math.floor(z / CELL_SCALE),
        )

    @property
    def index(self):
        return (self.x, self.y, self.z)

    def __eq__(self, other):
        if not isinstance(other, Cell):
            return NotImplemented
        return self.index == other.index

    def __lt__(self, other):
        if not isinstance(other, Cell):
            return NotImplemented
        return self.index < other.index

    def __hash__(self):
        return hash(self.index)

    def __sub__(self, other):
        return Cell(self.x - other.x, self.y - other.y, self.z - other.z)

    def __str__(self):
        return f"({self.x},{self.y},{self.z})"

    @property
    def x_pos(self):
        return CELL_SCALE * (self.x + 0.5)

    @property
    def y_pos(self):
        return CELL_SCALE * (self.y + 0.5)

    @property
    def z_pos(self):
        return CELL_SCALE * (self.z + 0.5)

    def to_point(self):
        """Return the metric centre of the cell."""
        return (self.x_pos, self.y_pos, self.z_pos)

    def manhattan_dist(self, x, y, z):
        """Manhattan distance from the cell centre to a point."""
        return abs(self.x_pos - x) + abs(self.y_pos - y) + abs(self.z_pos - z)

    def distance_2d(self, other):
        """Straight-line distance between centres, ignoring altitude."""
        return math.hypot(self.x_pos - other.x_pos, self.y_pos - other.y_pos)

    def distance_3d(self, other):
        return math.sqrt(
            (self.x_pos - other.x_pos) ** 2
            + (self.y_pos - other.y_pos) ** 2
            + (self.z_pos - other.z_pos) ** 2
        )

    def diag_distance_2d(self, other):
        """Shortest XY distance when diagonal moves are allowed."""
        dx = abs(self.x_pos - other.x_pos)
        dy = abs(self.y_pos - other.y_pos)
        return (dx + dy) + (DIAGONAL_COST - 2) * min(dx, dy)

    def diag_distance_3d(self, other):
        return self.diag_distance_2d(other) + abs(self.z_pos - other.z_pos)

    def angle(self):
        """Angle in the XY-plane between the index vector and the X-axis."""
        return math.atan2(self.y, self.x)

    def neighbor_from_yaw(self, yaw):
        """Return the nearby cell lying in the direction of ``yaw``."""
        dx = int(2 * CELL_SCALE * math.cos(yaw))
        dy = int(2 * CELL_SCALE * math.sin(yaw))
        return Cell.from_position(self.x_pos + dx, self.y_pos + dy, self.z_pos)

    def flow_neighbors(self, radius):
        """Return the cells within ``radius`` whose risk flows into this cell."""

        def ceil_distance(a, b):
            remaining = radius * radius - a * a - b * b
            return math.ceil(math.sqrt(max(remaining, 0)))

        cells = []
        for dx in range(-radius, radius + 1):
            y_radius = ceil_distance(dx, 0)
            for dy in range(-y_radius, y_radius + 1):
                z_radius = ceil_distance(dx, dy)
                cells.extend(
                    Cell(self.x + dx, self.y + dy, self.z + dz)
                    for dz in range(-z_radius, z_radius + 1)
                )
        return cells

    def diagonal_neighbors(self):
        """The four XY-diagonal neighbours at the same altitude."""
        return [
            Cell(self.x + 1, self.y + 1, self.z),
            Cell(self.x - 1, self.y + 1, self.z),
            Cell(self.x + 1, self.y - 1, self.z),
            Cell(self.x - 1, self.y - 1, self.z),
        ]

    def neighbors(self):
        """The six face neighbours followed by the four XY-diagonal ones."""
        return [
            Cell(self.x + 1, self.y, self.z),
            Cell(self.x - 1, self.y, self.z),
            Cell(self.x, self.y + 1, self.z),
            Cell(self.x, self.y - 1, self.z),
            Cell(self.x, self.y, self.z + 1),
            Cell(self.x, self.y, self.z - 1),
            *self.diagonal_neighbors(),
        ]


@dataclass(frozen=True, eq=False)
class GoalCell(Cell):
    """A goal cell with an acceptance radius."""

    radius: float = 1.0
    is_temporary: bool = False

    def within_position_radius(self, x, y, z):
        """True if the point lies closer than ``radius`` to the cell centre."""
        squared = (
            (self.x_pos - x) ** 2 + (self.y_pos - y) ** 2 + (self.z_pos - z) ** 2
        )
        return squared < self.radius * self.radius