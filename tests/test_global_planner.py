import math

import pytest

from aerialnav.cell import Cell, GoalCell
from aerialnav.global_planner import GlobalPlanner, PathInfo, Pose, next_yaw
from aerialnav.node import Node


def _quiet_planner(**kwargs):
    planner = GlobalPlanner(robot_radius=0.0, **kwargs)
    planner.update_occupancy({})
    return planner


def test_next_yaw_vertical_keeps_last_yaw():
    assert next_yaw(Cell(1, 1, 1), Cell(1, 1, 2), 0.7) == 0.7


def test_next_yaw_horizontal_points_at_next_cell():
    assert next_yaw(Cell(0, 0, 1), Cell(0, 1, 1), 0.0) == pytest.approx(math.pi / 2)
    assert next_yaw(Cell(0, 0, 1), Cell(1, 0, 1), 2.0) == 0.0


def test_set_pose_records_only_new_cells():
    planner = GlobalPlanner()
    planner.set_pose((0.5, 0.5, 3.5), 0.0)
    planner.set_pose((0.6, 0.4, 3.2), 0.1)
    planner.set_pose((1.5, 0.5, 3.5), 0.2)
    assert planner.path_back == [Cell(0, 0, 3), Cell(1, 0, 3)]
    assert planner.curr_yaw == 0.2


def test_set_goal_resets_flags_and_caches():
    planner = GlobalPlanner()
    planner.goal_is_blocked = True
    planner.going_back = True
    planner.heuristic_cache[Node(Cell(0, 0, 1), Cell(0, 0, 0))] = 4.0
    goal = GoalCell(3, 4, 2)
    planner.set_goal(goal)
    assert planner.goal_pos == goal
    assert not planner.goal_is_blocked
    assert not planner.going_back
    assert planner.heuristic_cache == {}


def test_ground_and_missing_map_are_fully_risky():
    planner = GlobalPlanner()
    assert planner.single_cell_risk(Cell(0, 0, 5)) == 1.0
    planner.update_occupancy({})
    assert planner.single_cell_risk(Cell(0, 0, 0)) == 1.0


def test_unexplored_cell_risk_is_penalised_prior():
    planner = _quiet_planner()
    cell = Cell(2, 2, 4)
    assert planner.single_cell_risk(cell) == pytest.approx(
        planner.explore_penalty * planner.alt_prior(cell)
    )


def test_observed_obstacle_is_occupied_and_free_space_is_not():
    planner = _quiet_planner()
    wall = Cell(3, 0, 2)
    free = Cell(4, 0, 2)
    planner.update_occupancy({wall: 6.0, free: -2.0})
    assert planner.is_occupied(wall)
    assert not planner.is_occupied(free)
    assert planner.single_cell_risk(free) < planner.single_cell_risk(wall)
    assert planner.is_near_wall(Cell(2, 1, 2))


def test_free_measurement_counts_fully_if_cell_was_seen_occupied():
    planner = _quiet_planner()
    cell = Cell(1, 1, 3)
    planner.update_occupancy({cell: -1.0})
    unseen = planner.single_cell_risk(cell)
    planner.occupied.add(cell)
    planner.risk_cache.clear()
    assert planner.single_cell_risk(cell) == pytest.approx(unseen / planner.explore_penalty)


def test_cell_risk_includes_neighbours_and_is_cached():
    planner = GlobalPlanner(robot_radius=0.5)
    planner.update_occupancy({})
    cell = Cell(0, 0, 3)
    risk = planner.cell_risk(cell)
    assert risk > planner.single_cell_risk(cell)
    assert planner.risk_cache[cell] == risk


def test_zero_radius_risk_counts_cell_twice():
    planner = _quiet_planner(neighbor_risk_flow=1.0)
    cell = Cell(0, 0, 3)
    assert planner.cell_risk(cell) == pytest.approx(2 * planner.single_cell_risk(cell))


def test_node_risk_of_zero_length_node_is_an_error():
    planner = _quiet_planner()
    with pytest.raises(ValueError):
        planner.node_risk(Node(Cell(0, 0, 2), Cell(0, 0, 2)))


def test_edge_dist_weights_climbs_and_descents():
    planner = GlobalPlanner(up_cost=3.0, down_cost=1.0)
    u = Cell(0, 0, 2)
    assert planner.edge_dist(u, Cell(1, 0, 2)) == pytest.approx(u.distance_2d(Cell(1, 0, 2)))
    assert planner.edge_dist(u, Cell(0, 0, 3)) == pytest.approx(planner.up_cost)
    assert planner.edge_dist(u, Cell(0, 0, 1)) == pytest.approx(planner.down_cost)


def test_open_neighbors_respect_altitude_limits():
    planner = GlobalPlanner(min_altitude=1, max_altitude=10)
    assert len(planner.open_neighbors(Cell(0, 0, 5), False)) == 8
    mid = planner.open_neighbors(Cell(0, 0, 5), True)
    assert (Cell(0, 0, 6), planner.up_cost) in mid
    assert (Cell(0, 0, 4), planner.down_cost) in mid
    bottom = [c for c, _ in planner.open_neighbors(Cell(0, 0, 1), True)]
    assert Cell(0, 0, 0) not in bottom
    assert Cell(0, 0, 2) in bottom


def test_altitude_heuristic_uses_direction_cost():
    planner = GlobalPlanner(up_cost=3.0, down_cost=1.0)
    assert planner.altitude_heuristic(Cell(0, 0, 1), Cell(0, 0, 3)) == pytest.approx(
        2 * planner.up_cost
    )
    assert planner.altitude_heuristic(Cell(0, 0, 3), Cell(0, 0, 1)) == pytest.approx(
        2 * planner.down_cost
    )


def test_risk_heuristic_is_zero_at_goal_and_grows_with_distance():
    planner = _quiet_planner()
    goal = Cell(5, 0, 3)
    assert planner.risk_heuristic(goal, goal) == 0.0
    near = planner.risk_heuristic(Cell(3, 0, 3), goal)
    far = planner.risk_heuristic(Cell(0, 0, 3), goal)
    assert far > near


def test_risk_heuristic_reverse_within_bubble_is_bubble_cost():
    planner = _quiet_planner(bubble_radius=100.0, bubble_cost=2.5)
    assert planner.risk_heuristic_reverse(Cell(1, 1, 3), Cell(5, 5, 3)) == 2.5
    planner.bubble_risk_cache[Cell(1, 1, 3)] = 9.0
    assert planner.risk_heuristic_reverse(Cell(1, 1, 3), Cell(5, 5, 3)) == 9.0


def test_smoothness_heuristic_cases():
    planner = GlobalPlanner(smooth_factor=10.0, vert_to_hor_cost=1.0)
    goal = Cell(0, 0, 5)
    assert planner.smoothness_heuristic(Node(Cell(0, 0, 2), Cell(1, 0, 2)), goal) == 0.0
    vertical = Node(Cell(3, 0, 2), Cell(3, 0, 1))
    assert planner.smoothness_heuristic(vertical, goal) == pytest.approx(
        planner.smooth_factor * planner.vert_to_hor_cost
    )
    facing = Node(Cell(4, 0, 5), Cell(5, 0, 5))
    assert planner.smoothness_heuristic(facing, goal) == pytest.approx(0.0)


def test_heuristic_is_cached_and_includes_seen_count():
    planner = _quiet_planner()
    node = Node(Cell(2, 0, 3), Cell(1, 0, 3))
    goal = GoalCell(6, 0, 3)
    base = planner.heuristic(node, goal)
    assert planner.heuristic_cache[node] == base
    planner.seen_count[node.cell] += 4
    assert planner.heuristic(node, goal) == pytest.approx(base + 4)


def test_path_poses_face_the_next_cell():
    planner = GlobalPlanner()
    assert planner.path_poses([]) == []
    path = [Cell(0, 0, 3), Cell(1, 0, 3), Cell(1, 1, 3), Cell(1, 1, 4)]
    poses = planner.path_poses(path)
    assert [p.position for p in poses] == [c.to_point() for c in path]
    assert all(p.frame_id == "/world" for p in poses)
    assert poses[1].yaw == pytest.approx(math.pi / 2)
    assert poses[2].yaw == poses[1].yaw
    assert poses[3].yaw == poses[2].yaw


def test_path_info_straight_path_has_no_smoothness_cost():
    planner = _quiet_planner()
    path = [Cell(i, 0, 3) for i in range(5)]
    info = planner.path_info(path)
    assert info.smoothness == 0.0
    assert info.dist == pytest.approx(3.0)
    assert info.cost == pytest.approx(info.dist + info.risk)
    assert not info.is_blocked


def test_set_path_and_path_with_risk():
    planner = _quiet_planner()
    path = [Cell(i, 0, 3) for i in range(4)]
    planner.set_path(path)
    assert planner.curr_path == path
    assert Cell(3, 0, 3) in planner.path_cells
    pairs = planner.path_with_risk()
    assert [pose.position for pose, _ in pairs] == [c.to_point() for c in path]
    assert all(risk == planner.cell_risk(Cell.from_position(*pose.position)) for pose, risk in pairs)


def test_update_occupancy_detects_blocked_path():
    planner = _quiet_planner(max_cell_risk=0.5)
    path = [Cell(i, 0, 5) for i in range(4)]
    planner.set_path(path)
    assert planner.update_occupancy({}) is True
    assert planner.update_occupancy({c: 6.0 for c in path}) is False


def test_go_back_without_history_is_an_error():
    with pytest.raises(ValueError):
        GlobalPlanner().go_back()


def test_go_back_follows_risky_history_completely():
    planner = GlobalPlanner()
    for i in range(10):
        planner.set_pose((i + 0.5, 0.5, 3.5), 0.0)
    history = list(planner.path_back)
    planner.go_back()
    assert planner.going_back
    assert planner.curr_path == history[::-1]
    assert planner.goal_pos == history[0]


def test_go_back_stops_at_safe_cell():
    planner = _quiet_planner()
    for i in range(10):
        planner.set_pose((i + 0.5, 0.5, 5.5), 0.0)
    history = list(planner.path_back)
    planner.go_back()
    assert planner.curr_path == history[::-1][:7]
    assert planner.path_back == history[:2]
    assert planner.goal_pos == planner.curr_path[-1]


def test_stop_holds_current_position():
    planner = _quiet_planner()
    planner.set_pose((2.5, 3.5, 4.5), 0.0)
    planner.goal_is_blocked = True
    planner.stop()
    here = Cell.from_position(2.5, 3.5, 4.5)
    assert planner.goal_pos == here
    assert planner.curr_path == [here]
    assert not planner.goal_is_blocked


def test_set_robot_radius_widens_risk_neighbourhood():
    planner = _quiet_planner()
    cell = Cell(0, 0, 4)
    narrow = planner.cell_risk(cell)
    planner.set_robot_radius(2.0)
    planner.risk_cache.clear()
    assert planner.robot_radius == 2.0
    assert planner.cell_risk(cell) > narrow


def test_is_legal_checks_altitude_and_risk():
    planner = _quiet_planner(max_altitude=10, max_cell_risk=1.0)
    assert planner.is_legal(Node(Cell(1, 0, 3), Cell(0, 0, 3)))
    assert not planner.is_legal(Node(Cell(1, 0, 12), Cell(0, 0, 12)))


def test_edge_cost_doubles_smoothing_when_fast_near_start():
    planner = _quiet_planner()
    u = Node(Cell(1, 0, 3), Cell(0, 0, 3))
    v = Node(Cell(1, 1, 3), Cell(1, 0, 3))
    planner.set_pose((0.5, 0.5, 3.5), 0.0)
    slow = planner.edge_cost(u, v)
    planner.curr_vel = (2.0, 0.0, 0.0)
    fast = planner.edge_cost(u, v)
    assert fast - slow == pytest.approx(planner.smooth_factor * planner.turn_smoothness(u, v))


def test_pose_defaults_to_world_frame():
    pose = Pose((1.0, 2.0, 3.0), 0.5)
    assert pose.frame_id == "/world"