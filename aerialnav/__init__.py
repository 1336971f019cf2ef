"""Grid cells, planning costs, local-avoidance state and mission control for aerial vehicles."""

__version__ = "0.1.0"