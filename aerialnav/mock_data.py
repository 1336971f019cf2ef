"""Synthetic sensor data for exercising the planner without a vehicle."""

from __future__ import annotations

FRAME_ID = "/world"
CLOUD_SIZE = 100
WALL_COLOR = (40, 200, 120)


def create_wall(dist, width, height):
    """Return cell-centre points of a wall ``dist`` ahead along X."""
    return [
        (dist + 0.5, i + 0.5, j + 0.5)
        for i in range(-width, width + 1)
        for j in range(height + 1)
    ]


def format_path(positions):
    """Render a path as a chain of positions."""
    chain = "".join(f"({x:2.2f}, {y:2.2f}, {z:2.2f}) -> " for x, y, z in positions)
    return chain + "\n\n"


class MockData:
    """Source of a fixed obstacle cloud, vehicle position and clicked goal."""

    def __init__(self, points=None):
        self.points = list(points) if points is not None else create_wall(5, 5, 6)

    def create_wall(self, dist, width, height):
        """Replace the obstacle points with a wall."""
        self.points = create_wall(dist, width, height)

    def clicked_point(self):
        """The goal clicked by the simulated operator."""
        return (8.5, 4.5, 1.5)

    def position(self):
        """The simulated vehicle position."""
        return (0.5, 2.5, 1.5)

    def cloud_points(self):
        """Return a fixed-size cloud of ``(x, y, z, (r, g, b))`` entries.

        Obstacle points come first, coloured; the rest are zero padding.
        """
        if len(self.points) > CLOUD_SIZE:
            raise ValueError(
                f"{len(self.points)} points do not fit a cloud of {CLOUD_SIZE}"
            )
        cloud = [(x, y, z, WALL_COLOR) for x, y, z in self.points]
        cloud.extend((0.0, 0.0, 0.0, (0, 0, 0)) for _ in range(CLOUD_SIZE - len(cloud)))
        return cloud