"""Reactive local planner state: altitude strategy, progress and sensor summaries."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass

from aerialnav.box import Box
from aerialnav.planner_types import AvoidanceOutput, CostParameters, WaypointChoice

ALPHA_RES = 6
"""Angular resolution of the polar histogram in degrees."""
GRID_LENGTH_Z = 360 // ALPHA_RES
GRID_LENGTH_E = 180 // ALPHA_RES

FRAME_ID = "local_origin"


@dataclass
class ModelParameters:
    """Flight controller parameters used for model based trajectory planning."""

    param_mpc_auto_mode: int = -1
    param_mpc_jerk_min: float = math.nan
    param_mpc_jerk_max: float = math.nan
    param_acc_up_max: float = math.nan
    param_mpc_z_vel_max_up: float = math.nan
    param_mpc_acc_down_max: float = math.nan
    param_mpc_vel_max_dn: float = math.nan
    param_mpc_acc_hor: float = math.nan
    param_mpc_xy_cruise: float = math.nan
    param_mpc_tko_speed: float = math.nan
    param_mpc_land_speed: float = math.nan
    param_mpc_col_prev_d: float = math.nan


def _distance(a, b):
    return math.dist(tuple(a), tuple(b))


class LocalPlanner:
    """Decides how to approach the goal and summarises obstacle data."""

    def __init__(self, box_radius=0.0, no_progress_slope=0.0, adapt_cost_params=True):
        self.histogram_box = Box(radius=box_radius)
        self.cost_params = CostParameters()
        self.px4 = ModelParameters()
        self.no_progress_slope = no_progress_slope
        self.adapt_cost_params = adapt_cost_params
        self.dist_incline_window_size = 50
        self.min_realsense_dist = 0.2
        self.currently_armed = False
        self.disable_rise_to_goal_altitude = False
        self.reach_altitude = False
        self.starting_height = 0.0
        self.ground_distance = 2.0
        self.h_fov_deg = 0.0
        self.v_fov_deg = 0.0
        self.goal = (0.0, 0.0, 0.0)
        self.velocity = (0.0, 0.0, 0.0)
        self.take_off_pose = (0.0, 0.0, 0.0)
        self.last_sent_waypoint = (0.0, 0.0, 0.0)
        self.position_old = (0.0, 0.0, 0.0)
        self.waypoint_type = WaypointChoice.HOVER
        self.last_path_time = 0.0
        self.path_node_positions = []
        self.polar_histogram = None
        self.histogram_image_data = []
        self.cost_image_data = []
        self.distance_ranges = []
        self._goal_dist_incline = deque()
        self._integral_time_old = 0.0
        self._position = (0.0, 0.0, 0.0)

    @property
    def position(self):
        return self._position

    @position.setter
    def position(self, value):
        """Update the vehicle position; while disarmed it is the take-off pose."""
        self._position = tuple(value)
        if not self.currently_armed and not self.disable_rise_to_goal_altitude:
            self.take_off_pose = self._position
            self.reach_altitude = False

    def set_goal(self, goal):
        """Set a new goal and forget the progress history."""
        self.goal = tuple(goal)
        self._goal_dist_incline.clear()

    def set_fov(self, h_fov_deg, v_fov_deg):
        self.h_fov_deg = h_fov_deg
        self.v_fov_deg = v_fov_deg

    def set_current_velocity(self, velocity):
        self.velocity = tuple(velocity)

    def set_default_px4_parameters(self):
        """Fill the flight controller parameters with typical defaults."""
        self.px4 = ModelParameters(
            param_mpc_auto_mode=1,
            param_mpc_jerk_min=8.0,
            param_mpc_jerk_max=20.0,
            param_acc_up_max=10.0,
            param_mpc_z_vel_max_up=3.0,
            param_mpc_acc_down_max=10.0,
            param_mpc_vel_max_dn=1.0,
            param_mpc_acc_hor=5.0,
            param_mpc_xy_cruise=3.0,
            param_mpc_tko_speed=1.0,
            param_mpc_land_speed=0.7,
            param_mpc_col_prev_d=4.0,
        )

    def evaluate_progress_rate(self, now):
        """Adapt the height-change cost to the progress towards the goal.

        ``now`` is the current time in seconds.
        """
        params = self.cost_params
        if not (self.reach_altitude and self.adapt_cost_params):
            params.height_change_cost_param_adapted = params.height_change_cost_param
            return

        time_diff = now - self._integral_time_old
        if time_diff <= 0:
            raise ValueError("time must increase between progress evaluations")
        goal_dist = _distance(self.position, self.goal)
        goal_dist_old = _distance(self.position_old, self.goal)
        incline = (goal_dist - goal_dist_old) / time_diff
        self._integral_time_old = now

        self._goal_dist_incline.append(incline)
        if len(self._goal_dist_incline) > self.dist_incline_window_size:
            self._goal_dist_incline.popleft()
        avg_incline = sum(self._goal_dist_incline) / len(self._goal_dist_incline)

        if (
            avg_incline > self.no_progress_slope
            and len(self._goal_dist_incline) == self.dist_incline_window_size
            and params.height_change_cost_param_adapted > 0.75
        ):
            params.height_change_cost_param_adapted -= 0.02
        if (
            avg_incline < self.no_progress_slope
            and params.height_change_cost_param_adapted
            < params.height_change_cost_param - 0.03
        ):
            params.height_change_cost_param_adapted += 0.03

    def update_altitude_state(self):
        """Choose between climbing to the starting height and planning a path."""
        self.cost_image_data = [0] * (3 * GRID_LENGTH_E * GRID_LENGTH_Z)
        if self.disable_rise_to_goal_altitude:
            self.reach_altitude = True

        if not self.reach_altitude:
            self.starting_height = max(self.goal[2] - 0.5, self.take_off_pose[2] + 1.0)
            self.waypoint_type = WaypointChoice.REACH_HEIGHT
            if self.position[2] > self.starting_height:
                self.reach_altitude = True
                self.waypoint_type = WaypointChoice.DIRECT
        else:
            self.waypoint_type = WaypointChoice.TRY_PATH
        self.position_old = self.position
        return self.waypoint_type

    def cruise_velocity(self):
        """Highest speed at which the vehicle can still stop within sensor range."""
        acc = self.px4.param_mpc_acc_hor
        accel_ramp_time = acc / self.px4.param_mpc_jerk_max
        b = 2 * -acc * accel_ramp_time
        c = 2 * -acc * self.histogram_box.radius
        limited_speed = (-b + math.sqrt(b * b - 4 * c)) / 2
        cruise = self.px4.param_mpc_xy_cruise
        return limited_speed if limited_speed < cruise else cruise

    def obstacle_distance_ranges(self, distances):
        """Laser-scan ranges from one azimuth row of the histogram.

        Indices are turned by 180 degrees; a distance at or below the minimum
        sensor range means no obstacle and reports a range beyond the box.
        """
        distances = list(distances)
        if len(distances) != GRID_LENGTH_Z:
            raise ValueError(f"expected {GRID_LENGTH_Z} distances, got {len(distances)}")
        no_obstacle = self.histogram_box.radius + 1.0
        half = GRID_LENGTH_Z // 2
        ranges = [
            d if d > self.min_realsense_dist else no_obstacle
            for d in (distances[(i + half) % GRID_LENGTH_Z] for i in range(GRID_LENGTH_Z))
        ]
        self.distance_ranges = ranges
        return ranges

    def histogram_image(self, distances):
        """Greyscale image of a polar histogram given as rows of distances by elevation."""
        rows = [list(row) for row in distances]
        if len(rows) != GRID_LENGTH_E or any(len(r) != GRID_LENGTH_Z for r in rows):
            raise ValueError(
                f"histogram must be {GRID_LENGTH_E} rows of {GRID_LENGTH_Z} distances"
            )
        radius = self.histogram_box.radius
        image = []
        for row in reversed(rows):
            for dist in row:
                depth = 255.0 - 255.0 * dist / radius if dist > 0.01 else 0.0
                image.append(int(max(0.0, min(255.0, depth))))
        self.polar_histogram = rows
        self.histogram_image_data = image
        return image

    def avoidance_output(self):
        """Summary of the latest planning iteration."""
        obstacle_ahead = self.polar_histogram is not None and any(
            d > 0 for row in self.polar_histogram for d in row
        )
        return AvoidanceOutput(
            waypoint_type=self.waypoint_type,
            obstacle_ahead=obstacle_ahead,
            cruise_velocity=self.cruise_velocity(),
            last_path_time=self.last_path_time,
            take_off_pose=self.take_off_pose,
            path_node_positions=list(self.path_node_positions),
        )