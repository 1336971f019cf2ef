"""Axis-aligned bounding box used to crop point clouds around the vehicle."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Box:
    """A box of half-width ``radius`` centred on the vehicle."""

    radius: float = 0.0
    box_dist_to_ground: float = 1.0
    xmin: float = field(default=0.0, init=False)
    xmax: float = field(default=0.0, init=False)
    ymin: float = field(default=0.0, init=False)
    ymax: float = field(default=0.0, init=False)
    zmin: float = field(default=0.0, init=False)
    zmax: float = field(default=0.0, init=False)

    def set_limits(self, pos, ground_distance):
        """Centre the box on ``pos``, keeping its floor clear of the ground."""
        x, y, z = pos
        zmin_close_to_ground = min(z + 0.8, z - ground_distance + self.box_dist_to_ground)
        self.zmin = max(zmin_close_to_ground, z - 1.0)
        self.xmin = x - self.radius
        self.ymin = y - self.radius
        self.xmax = x + self.radius
        self.ymax = y + self.radius
        self.zmax = z + self.radius

    def contains(self, x, y, z):
        """True if the point lies strictly inside the box."""
        return (
            self.xmin < x < self.xmax
            and self.ymin < y < self.ymax
            and self.zmin < z < self.zmax
        )