"""Mission control around the global planner: goals, waypoints and setpoints."""

from __future__ import annotations

import math
from pathlib import Path

from aerialnav.cell import GoalCell
from aerialnav.global_planner import GlobalPlanner, Pose

CRASH_DISTANCE = 0.5
"""A laser range below this (and above the sensor minimum) counts as a crash."""

GOAL_REACHED_DISTANCE = 1.5
"""Distance at which the current path point counts as reached."""

POSITION_LOG_INTERVAL = 10
"""Every this many position updates, the position is added to the travelled path."""

INTERMEDIATE_GOAL_MIN_PATH = 10
"""A path must be longer than this to receive an intermediate goal."""


def read_waypoints(path):
    """Read goal cells from a file of whitespace-separated ``x y z`` triples.

    Reading stops at the first token that is not a number or at an incomplete
    triple. A missing file raises ``OSError``.
    """
    text = Path(path).read_text()
    values = []
    for token in text.split():
        try:
            values.append(float(token))
        except ValueError:
            break
    usable = len(values) - len(values) % 3
    triples = zip(values[0:usable:3], values[1:usable:3], values[2:usable:3])
    return [GoalCell.from_position(x, y, z) for x, y, z in triples]


class MissionController:
    """Feeds goals to a :class:`GlobalPlanner` and follows the planned path."""

    def __init__(
        self,
        planner=None,
        start_pos=(0.5, 0.5, 3.5),
        start_yaw=0.0,
        speed=2.0,
        robot_radius=0.5,
    ):
        self.planner = planner if planner is not None else GlobalPlanner()
        self.planner.goal_pos = GoalCell.from_position(*start_pos)
        self.planner.set_robot_radius(robot_radius)
        self.speed = speed
        self.waypoints = []
        self.path = []
        self.actual_path = []
        self.published_goals = []
        self.position_received = False
        self.current_goal = Pose(tuple(start_pos), start_yaw)
        self.last_goal = self.current_goal
        self.last_pos = Pose((0.0, 0.0, 0.0), 0.0)
        self._num_pos_msg = 0

    def set_new_goal(self, goal):
        """Make ``goal`` the planner's goal and record it as published."""
        self.planner.set_goal(goal)
        self.published_goals.append(goal)

    def pop_next_goal(self):
        """Move on to the next waypoint, or stop if the goal is blocked and none is left."""
        if self.waypoints:
            self.set_new_goal(self.waypoints.pop(0))
        elif self.planner.goal_is_blocked:
            self.planner.stop()

    def set_intermediate_goal(self):
        """Put a temporary goal half-way along a long current path.

        The present goal is kept as the next waypoint. Returns True if an
        intermediate goal was set.
        """
        length = len(self.planner.curr_path)
        if length <= INTERMEDIATE_GOAL_MIN_PATH:
            return False
        self.waypoints.insert(0, self.planner.goal_pos)
        middle = self.planner.curr_path[length // 2]
        self.set_new_goal(
            GoalCell(middle.x, middle.y, middle.z, radius=length // 4, is_temporary=True)
        )
        return True

    def set_current_path(self, poses):
        """Follow ``poses``: the first is behind, the second is the current goal."""
        poses = list(poses)
        self.path = []
        if len(poses) < 2:
            return
        self.last_goal = poses[0]
        self.current_goal = poses[1]
        self.path = poses[2:]

    def update_position(self, position, yaw):
        """Take a new vehicle pose and advance along the path when close enough."""
        self.last_pos = Pose(tuple(position), yaw)
        self.planner.set_pose(position, yaw)

        if self._num_pos_msg % POSITION_LOG_INTERVAL == 0:
            self.actual_path.append(self.last_pos)
        self._num_pos_msg += 1
        self.position_received = True

        if self.path and self.is_close_to_goal():
            yaw_diff = abs(self.last_pos.yaw - self.current_goal.yaw)
            yaw_diff -= math.floor(yaw_diff / (2 * math.pi)) * (2 * math.pi)
            max_yaw_diff = math.pi
            if yaw_diff < max_yaw_diff or yaw_diff > 2 * math.pi - max_yaw_diff:
                self.last_goal = self.current_goal
                self.current_goal = self.path.pop(0)

    def is_close_to_goal(self):
        return (
            math.dist(self.current_goal.position, self.last_pos.position)
            < GOAL_REACHED_DISTANCE
        )

    def handle_laser_scan(self, ranges, range_min):
        """Treat a very short laser range as a crash and turn back.

        Returns True if a crash was detected and the planner turned back.
        """
        if self.planner.going_back:
            return False
        crashed = False
        for distance in ranges:
            if range_min < distance < CRASH_DISTANCE and len(self.planner.path_back) > 3:
                self.planner.go_back()
                crashed = True
        return crashed

    def handle_goal_input(self, x, y, z, valid):
        """Accept a goal from the flight controller if valid and horizontally new.

        Returns True if the goal was set.
        """
        new_goal = GoalCell.from_position(x, y, z)
        current = self.planner.goal_pos
        moved = (
            abs(current.x_pos - new_goal.x_pos) > 0.001
            or abs(current.y_pos - new_goal.y_pos) > 0.001
        )
        if valid and moved:
            self.set_new_goal(new_goal)
            return True
        return False

    def setpoint(self):
        """Intermediate pose towards the current goal, at most ``speed`` ahead."""
        start = self.last_pos.position
        vec = tuple(g - p for g, p in zip(self.current_goal.position, start))
        length = math.hypot(*vec)
        if length == 0:
            return Pose(start, self.current_goal.yaw, self.current_goal.frame_id)
        new_len = length if length < 1.0 else self.speed
        scale = new_len / length
        position = tuple(p + v * scale for p, v in zip(start, vec))
        return Pose(position, self.current_goal.yaw, self.current_goal.frame_id)