# aerialnav

Building blocks for planning the flight of an aerial vehicle through a
partially known 3D world:

- a global planner that works on a grid of cubic cells and weighs distance,
  turning and collision risk against each other;
- the pieces of a local obstacle-avoidance planner: a bounding box around the
  vehicle, candidate directions, cost parameters, search-tree nodes, the
  altitude strategy and the speed limit that follows from sensor range and
  vehicle dynamics;
- a mission controller that feeds waypoints to the planner, watches for
  crashes and produces position setpoints;
- a small generator of mock obstacle data for experiments.

The package has no dependencies outside the standard library.

## The grid

Space is divided into cells of one metre (`aerialnav.cell.CELL_SCALE`). A
`Cell` is identified by integer indices; `Cell.from_position` finds the cell
that contains a point, and the properties `x_pos`, `y_pos` and `z_pos` give
the centre of a cell.

```python
from aerialnav.cell import Cell

cell = Cell.from_position(3.2, -1.7, 2.0)
centre = cell.to_point()

cell.neighbors()            # 6 face neighbours, then the 4 XY-diagonal ones
cell.diagonal_neighbors()   # the 4 diagonal neighbours in the XY-plane
cell.flow_neighbors(2)      # cells whose risk flows into this one

other = Cell.from_position(10.0, 4.0, 2.0)
cell.distance_2d(other)
cell.diag_distance_3d(other)
```

A `GoalCell` is a cell with an acceptance `radius` and an `is_temporary`
flag; `within_position_radius(x, y, z)` tells whether a position lies closer
than the radius to its centre. `angle_to_range` wraps an angle into
[-pi, pi).

## Search nodes

A `Node` is a move from a `parent` cell into a `cell`. It knows the cells
the move passes through (`cells`), its `length`, the nodes that continue from
it (`next_node`, `neighbors`) and how many 45-degree turns separate it from
another move (`rotation`, `xy_rotation`).

## Global planner

`GlobalPlanner` keeps the vehicle pose, the goal, an occupancy map given as
log-odds per cell, and the current path. Its tuning values (altitude limits,
risk and smoothness factors, climb and descent costs and so on) are
dataclass fields.

```python
from aerialnav.cell import Cell
from aerialnav.global_planner import GlobalPlanner

planner = GlobalPlanner()
planner.set_robot_radius(0.5)
planner.update_occupancy({Cell.from_position(5.5, 0.5, 1.5): 2.0})

start = Cell.from_position(0.5, 0.5, 1.5)
planner.cell_risk(start)
planner.is_occupied(start)
```

`update_occupancy` returns `False` when the current path has become blocked
or markedly riskier under the new map.

The costs and heuristics a search over the grid needs are available one by
one: `open_neighbors`, `edge_dist`, `edge_cost`, `node_risk`,
`turn_smoothness`, `risk_heuristic`, `risk_heuristic_reverse`,
`smoothness_heuristic`, `altitude_heuristic` and `heuristic`, along with
`is_legal` and `is_near_wall`.

`set_path` makes a list of cells the current path; `path_info` summarises the
distance, risk, cost and smoothness of a path as a `PathInfo`; `path_poses`
turns a path into `Pose` objects facing the next cell, and `path_with_risk`
pairs each pose of the current path with its risk. `go_back` retraces the
flown path until a safe cell is reached, and `stop` holds the current
position.

## Local planner

`LocalPlanner` holds the goal, field of view, vehicle position and velocity,
and the flight controller parameters (`ModelParameters`, filled with typical
values by `set_default_px4_parameters`).

- `update_altitude_state` decides between climbing to the starting height
  and trying a path, returning a `WaypointChoice`;
- `evaluate_progress_rate(now)` adapts the height-change cost to the progress
  made towards the goal;
- `cruise_velocity` gives the highest speed at which the vehicle can still
  stop inside the sensor range;
- `obstacle_distance_ranges` turns one row of histogram distances into the
  distance scan sent to the flight controller;
- `histogram_image` renders a polar histogram as greyscale pixel values;
- `avoidance_output` collects the result into an `AvoidanceOutput`.

`Box` crops sensor data around the vehicle:

```python
from aerialnav.box import Box

box = Box(5.0)
box.set_limits((0.0, 0.0, 3.0), 2.0)
box.contains(1.0, 1.0, 3.0)   # True
```

`aerialnav.planner_types` also has `CandidateDirection` (ordered by cost),
`CostParameters`, `TreeNode`, `SimulationState`, `SimulationLimits` and
`norm_clamp`, which scales a vector down to a maximum norm.

## Missions

`MissionController` wraps a `GlobalPlanner`. `read_waypoints` reads goal
cells from a text file of whitespace-separated `x y z` triples into a list
you can place in `waypoints`. The controller sets goals (`set_new_goal`,
`pop_next_goal`), splits long paths with a temporary half-way goal
(`set_intermediate_goal`), follows a list of poses (`set_current_path`,
`update_position`), treats very short laser ranges as a crash and turns back
(`handle_laser_scan`), accepts goals from the flight controller
(`handle_goal_input`) and computes the next position setpoint (`setpoint`).

## Mock data

`MockData` produces a wall of obstacle points (`create_wall`), a fixed
vehicle position, a clicked goal point and a fixed-size coloured point cloud
(`cloud_points`). `format_path` renders a list of positions as a readable
chain.

## What the package does not do

- It does not run the graph search itself: it supplies the costs,
  heuristics and path bookkeeping, and the caller searches and hands the
  resulting path to `set_path`.
- It does not build polar histograms from point clouds, compute cost
  matrices or grow the look-ahead tree; the local planner takes histogram
  distances that are already computed.
- It does not talk to a flight controller, sensors or a message bus, and it
  has no command-line program; results are returned as Python values.