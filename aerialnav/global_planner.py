"""Risk-aware global path planning over a lattice of cells."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field

from aerialnav.cell import Cell, GoalCell, angle_to_range
from aerialnav.node import Node

FRAME_ID = "/world"

DEFAULT_ALT_PRIOR = (
    1.0, 0.2, 0.1, 0.05, 0.03, 0.02, 0.015, 0.01, 0.008, 0.006,
    0.005, 0.004, 0.003, 0.0025, 0.002, 0.0018, 0.0016, 0.0014, 0.0012, 0.001,
    0.001, 0.001, 0.001, 0.001, 0.001, 0.001, 0.001, 0.001, 0.001, 0.001,
)
"""Prior probability of an obstacle, indexed by altitude in metres."""


def next_yaw(u, v, last_yaw):
    """XY-angle from ``u`` to ``v``, or ``last_yaw`` for purely vertical moves."""
    dx = v.x - u.x
    dy = v.y - u.y
    if dx == 0 and dy == 0:
        return last_yaw
    return math.atan2(dy, dx)


def _round_half_away(value):
    return math.floor(value + 0.5) if value >= 0 else math.ceil(value - 0.5)


def _probability(log_odds):
    return 1.0 - 1.0 / (1.0 + math.exp(log_odds))


def _posterior(prior, likelihood):
    """Bayesian combination of a prior and an occupancy measurement."""
    occupied = likelihood * prior
    free = (1.0 - likelihood) * (1.0 - prior)
    return occupied / (occupied + free)


@dataclass
class PathInfo:
    """Cost breakdown of a path."""

    cost: float = 0.0
    dist: float = 0.0
    risk: float = 0.0
    smoothness: float = 0.0
    is_blocked: bool = False


@dataclass(frozen=True)
class Pose:
    """A position with a heading in the world frame."""

    position: tuple
    yaw: float
    frame_id: str = FRAME_ID


@dataclass
class GlobalPlanner:
    """Plans paths that trade off distance, risk of collision and smoothness."""

    min_altitude: int = 1
    max_altitude: int = 10
    max_cell_risk: float = 20.0
    smooth_factor: float = 10.0
    vert_to_hor_cost: float = 1.0
    risk_factor: float = 500.0
    neighbor_risk_flow: float = 1.0
    explore_penalty: float = 0.005
    up_cost: float = 3.0
    down_cost: float = 1.0
    search_time: float = 0.5
    min_overestimate_factor: float = 1.03
    max_overestimate_factor: float = 2.0
    max_iterations: int = 2000
    goal_must_be_free: bool = True
    use_current_yaw: bool = True
    use_risk_heuristics: bool = True
    use_speedup_heuristics: bool = True
    robot_radius: float = 0.5
    octree_resolution: float = 1.0
    bubble_radius: float = 0.0
    bubble_cost: float = 0.0
    alt_prior_table: tuple = DEFAULT_ALT_PRIOR

    curr_pos: tuple = field(default=(0.0, 0.0, 0.0), init=False)
    curr_yaw: float = field(default=0.0, init=False)
    curr_vel: tuple = field(default=(0.0, 0.0, 0.0), init=False)
    goal_pos: GoalCell = field(default_factory=lambda: GoalCell(0, 0, 0), init=False)
    going_back: bool = field(default=False, init=False)
    goal_is_blocked: bool = field(default=False, init=False)
    overestimate_factor: float = field(default=1.0, init=False)
    curr_path: list = field(default_factory=list, init=False)
    curr_path_info: PathInfo = field(default_factory=PathInfo, init=False)
    path_cells: set = field(default_factory=set, init=False)
    path_back: list = field(default_factory=list, init=False)
    occupied: set = field(default_factory=set, init=False)
    occupancy: dict | None = field(default=None, init=False)
    seen_count: Counter = field(default_factory=Counter, init=False)
    risk_cache: dict = field(default_factory=dict, init=False)
    heuristic_cache: dict = field(default_factory=dict, init=False)
    bubble_risk_cache: dict = field(default_factory=dict, init=False)
    accumulated_alt_prior: list = field(default_factory=list, init=False)

    def __post_init__(self):
        total = 0.0
        for p in self.alt_prior_table:
            total += p
            self.accumulated_alt_prior.append(total)

    def _accumulated(self, z_index):
        z_index = min(max(z_index, 0), len(self.accumulated_alt_prior) - 1)
        return self.accumulated_alt_prior[z_index]

    def set_pose(self, position, yaw):
        """Update the vehicle pose and extend the path travelled so far."""
        self.curr_pos = tuple(position)
        self.curr_yaw = yaw
        curr_cell = Cell.from_position(*self.curr_pos)
        if not self.going_back and (not self.path_back or curr_cell != self.path_back[-1]):
            self.path_back.append(curr_cell)

    def set_goal(self, goal):
        """Start a new mission towards ``goal``."""
        self.goal_pos = goal
        self.going_back = False
        self.goal_is_blocked = False
        self.heuristic_cache.clear()
        self.bubble_risk_cache.clear()

    def set_path(self, path):
        """Make ``path`` the current path."""
        path = list(path)
        self.curr_path_info = self.path_info(path)
        self.curr_path = path
        self.path_cells = set()
        for prev, cell in zip(path[1:], path[2:]):
            self.path_cells.update(Node(cell, prev).cells())

    def update_occupancy(self, log_odds):
        """Replace the occupancy map (cell to log-odds).

        Returns False if the current path became blocked or much riskier.
        """
        self.risk_cache.clear()
        self.occupancy = dict(log_odds)
        if self.curr_path:
            new_info = self.path_info(self.curr_path)
            if new_info.is_blocked or new_info.risk > self.curr_path_info.risk + 10:
                return False
        return True

    def open_neighbors(self, cell, is_3d):
        """The eight horizontal and, in 3D, the allowed vertical neighbours with step costs."""
        x, y, z = cell.x, cell.y, cell.z
        neighbors = [
            (Cell(x + 1, y, z), 1.0),
            (Cell(x + 1, y - 1, z), 1.41),
            (Cell(x + 1, y + 1, z), 1.41),
            (Cell(x - 1, y, z), 1.0),
            (Cell(x - 1, y - 1, z), 1.41),
            (Cell(x - 1, y + 1, z), 1.41),
            (Cell(x, y - 1, z), 1.0),
            (Cell(x, y + 1, z), 1.0),
        ]
        if is_3d and z < self.max_altitude:
            neighbors.append((Cell(x, y, z + 1), self.up_cost))
        if is_3d and z > self.min_altitude:
            neighbors.append((Cell(x, y, z - 1), self.down_cost))
        return neighbors

    def is_near_wall(self, cell):
        return any(self.is_occupied(n) for n in cell.diagonal_neighbors())

    def edge_dist(self, u, v):
        """Distance between adjacent cells, weighting climbs and descents."""
        z_diff = v.z_pos - u.z_pos
        return (
            u.distance_2d(v)
            + self.up_cost * max(z_diff, 0.0)
            + self.down_cost * max(-z_diff, 0.0)
        )

    def single_cell_risk(self, cell):
        """Risk of a cell without looking at its neighbours."""
        if cell.z < 1 or self.occupancy is None:
            return 1.0
        log_odds = self.occupancy.get(cell)
        if log_odds is not None:
            post_prob = _posterior(self.alt_prior(cell), _probability(log_odds))
            if cell in self.occupied or log_odds > 0:
                return post_prob
            return self.explore_penalty * post_prob
        return self.explore_penalty * self.alt_prior(cell)

    def alt_prior(self, cell):
        index = _round_half_away(cell.z_pos)
        index = min(max(index, 0), len(self.alt_prior_table) - 1)
        return self.alt_prior_table[index]

    def is_occupied(self, cell):
        return self.single_cell_risk(cell) > 0.5

    def is_legal(self, node):
        return node.cell.z_pos < self.max_altitude and self.node_risk(node) < self.max_cell_risk

    def cell_risk(self, cell):
        """Risk of a cell including risk flowing in from nearby cells."""
        cached = self.risk_cache.get(cell)
        if cached is not None:
            return cached
        risk = self.single_cell_risk(cell)
        radius = math.ceil(self.robot_radius / self.octree_resolution)
        for neighbor in cell.flow_neighbors(radius):
            risk += self.neighbor_risk_flow * self.single_cell_risk(neighbor)
        self.risk_cache[cell] = risk
        return risk

    def node_risk(self, node):
        """Average risk of the cells a node passes through, times its length."""
        cells = node.cells()
        if not cells:
            raise ValueError(f"node {node} has no length")
        total = sum(self.cell_risk(c) for c in cells)
        return total / len(cells) * node.length()

    def turn_smoothness(self, u, v):
        turn = u.rotation(v)
        return turn * turn

    def edge_cost(self, u, v):
        """Total cost of going from node ``u`` to node ``v``."""
        dist_cost = self.edge_dist(u.cell, v.cell)
        risk_cost = self.risk_factor * self.node_risk(v)
        smooth_cost = self.smooth_factor * self.turn_smoothness(u, v)
        here = Cell.from_position(*self.curr_pos)
        if u.cell.distance_3d(here) < 3 and math.hypot(*self.curr_vel) > 1:
            smooth_cost *= 2
        return dist_cost + risk_cost + smooth_cost

    def _unexplored_risk(self):
        return (1.0 + 6.0 * self.neighbor_risk_flow) * self.explore_penalty * self.risk_factor

    def risk_heuristic(self, u, goal):
        """Risk of a straight path from ``u`` to ``goal`` through unknown space."""
        if u == goal:
            return 0.0
        unexplored_risk = self._unexplored_risk()
        xy_dist = u.diag_distance_2d(goal) - 1.0
        xy_risk = xy_dist * unexplored_risk * self.alt_prior(u)
        z_risk = unexplored_risk * abs(self._accumulated(u.z) - self._accumulated(goal.z))
        goal_risk = self.cell_risk(goal) * self.risk_factor
        return xy_risk + z_risk + goal_risk

    def risk_heuristic_reverse(self, u, goal):
        """Risk heuristic to a bubble around the goal, using cached values if any."""
        cached = self.bubble_risk_cache.get(u)
        if cached is not None:
            return cached
        if u == goal:
            return 0.0
        dist_to_bubble = max(0.0, u.diag_distance_3d(goal) - self.bubble_radius)
        return self.bubble_cost + dist_to_bubble * self._unexplored_risk() * self.alt_prior(u)

    def smoothness_heuristic(self, u, goal):
        """Lower bound on the turning cost from node ``u`` to ``goal``."""
        if u.cell.x == goal.x and u.cell.y == goal.y:
            return 0.0
        if u.cell.x == u.parent.x and u.cell.y == u.parent.y:
            return self.smooth_factor * self.vert_to_hor_cost
        u_ang = (u.cell - u.parent).angle()
        goal_ang = (goal - u.cell).angle()
        ang_diff = abs(angle_to_range(goal_ang - u_ang))
        num_45_deg_turns = ang_diff / (math.pi / 4)
        altitude_change = 0 if u.cell.z == goal.z else 1
        return self.smooth_factor * (num_45_deg_turns + altitude_change)

    def altitude_heuristic(self, u, goal):
        diff = goal.z - u.z
        return self.up_cost * abs(diff) if diff > 0 else self.down_cost * abs(diff)

    def heuristic(self, u, goal):
        """Estimated cost from node ``u`` to ``goal``."""
        value = self.overestimate_factor * u.cell.diag_distance_2d(goal)
        value += self.altitude_heuristic(u.cell, goal)
        value += self.smoothness_heuristic(u, goal)
        if self.use_risk_heuristics:
            value += self.risk_heuristic(u.cell, goal)
        if self.use_speedup_heuristics:
            value += self.seen_count[u.cell]
        self.heuristic_cache[u] = value
        return value

    def path_poses(self, path=None):
        """Poses along ``path`` (the current path by default), each facing the next cell."""
        path = self.curr_path if path is None else list(path)
        if not path:
            return []
        poses = []
        last_yaw = self.curr_yaw
        for cell, following in zip(path, path[1:]):
            new_yaw = next_yaw(cell, following, last_yaw)
            poses.append(Pose(cell.to_point(), new_yaw))
            last_yaw = new_yaw
        poses.append(Pose(path[-1].to_point(), last_yaw))
        return poses

    def path_with_risk(self):
        """Poses of the current path paired with the risk at each."""
        return [
            (pose, self.cell_risk(Cell.from_position(*pose.position)))
            for pose in self.path_poses()
        ]

    def path_info(self, path):
        """Cost details of ``path``."""
        info = PathInfo()
        path = list(path)
        for a, b, c in zip(path, path[1:], path[2:]):
            curr_node = Node(c, b)
            last_node = Node(b, a)
            cell_risk = self.node_risk(curr_node)
            info.dist += self.edge_dist(last_node.cell, curr_node.cell)
            info.risk += self.risk_factor * cell_risk
            info.cost += self.edge_cost(last_node, curr_node)
            info.is_blocked |= cell_risk > self.max_cell_risk
            info.smoothness += self.smooth_factor * self.turn_smoothness(last_node, curr_node)
        return info

    def go_back(self):
        """Follow the travelled path backwards until a safe cell is reached."""
        if not self.path_back:
            raise ValueError("no travelled path to go back along")
        self.going_back = True
        new_path = list(reversed(self.path_back))
        for i in range(1, len(new_path) - 1):
            if i > 5 and self.cell_risk(new_path[i]) < 0.5:
                new_path = new_path[: i + 1]
                del self.path_back[len(self.path_back) - i - 2:]
                break
        self.curr_path = new_path
        last = new_path[-1]
        self.goal_pos = GoalCell(last.x, last.y, last.z, 1.0)

    def stop(self):
        """Hold the current position."""
        self.set_goal(GoalCell.from_position(*self.curr_pos))
        self.set_path([Cell.from_position(*self.curr_pos)])

    def set_robot_radius(self, radius):
        self.robot_radius = radius