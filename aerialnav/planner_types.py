"""Plain data types shared by the local planner."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

_NAN3 = (math.nan, math.nan, math.nan)


class WaypointChoice(Enum):
    """How the next waypoint is produced."""

    HOVER = 0
    TRY_PATH = 1
    DIRECT = 2
    REACH_HEIGHT = 3


@dataclass
class AvoidanceOutput:
    """Result of one local planner iteration."""

    waypoint_type: WaypointChoice = WaypointChoice.HOVER
    obstacle_ahead: bool = False
    cruise_velocity: float = 0.0
    last_path_time: float = 0.0
    take_off_pose: tuple = (0.0, 0.0, 0.0)
    path_node_positions: list = field(default_factory=list)


@dataclass(order=True)
class CandidateDirection:
    """A polar direction ranked by its cost."""

    cost: float
    elevation_angle: float = field(compare=False)
    azimuth_angle: float = field(compare=False)


@dataclass
class CostParameters:
    """Weights of the histogram cost function."""

    heading_cost_param: float = 0.5
    goal_cost_param: float = 3.0
    smooth_cost_param: float = 1.5
    height_change_cost_param: float = 4.0
    height_change_cost_param_adapted: float = 4.0


@dataclass
class TreeNode:
    """A node of the look-ahead search tree."""

    origin: int = 0
    depth: int = 0
    position: tuple = (0.0, 0.0, 0.0)
    total_cost: float = 0.0
    heuristic: float = 0.0
    last_e: float = 0.0
    last_z: float = 0.0
    yaw: float = 0.0
    closed: bool = False

    def set_costs(self, heuristic, cost):
        self.heuristic = heuristic
        self.total_cost = cost


@dataclass
class SimulationState:
    """Kinematic state of a simulated trajectory point."""

    time: float = math.nan
    position: tuple = _NAN3
    velocity: tuple = _NAN3
    acceleration: tuple = _NAN3


@dataclass
class SimulationLimits:
    """Kinematic limits of the simulated vehicle."""

    max_z_velocity: float = math.nan
    min_z_velocity: float = math.nan
    max_xy_velocity_norm: float = math.nan
    max_acceleration_norm: float = math.nan
    max_jerk_norm: float = math.nan


def norm_clamp(vector, max_norm):
    """Scale ``vector`` down so that its Euclidean norm is at most ``max_norm``."""
    values = tuple(vector)
    norm_sq = sum(v * v for v in values)
    if norm_sq > max_norm * max_norm:
        scale = max_norm / math.sqrt(norm_sq)
        return tuple(v * scale for v in values)
    return values