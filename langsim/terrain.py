"""Procedural landmass: biased random land draw followed by cellular-automaton smoothing.

Grids are lists of rows (``grid[y][x]``) of booleans, True meaning land.
"""
from __future__ import annotations
import math
import random
from typing import List

Grid = List[List[bool]]

# A land cell survives a pass with at least this many land neighbors (of 8)
LAND_SURVIVE_NEIGHBORS = 4
# A water cell turns to land with at least this many
LAND_BIRTH_NEIGHBORS = 5


def generate_terrain(width: int, height: int, land_probability: float, island_bias: float,
                     smoothing_passes: int, rng: random.Random, edge_is_land: bool = False) -> Grid:
    cx, cy = (width - 1) / 2.0, (height - 1) / 2.0
    max_dist = math.hypot(cx, cy) or 1.0
    grid = []
    for y in range(height):
        row = []
        for x in range(width):
            dist = math.hypot(x - cx, y - cy) / max_dist
            p = land_probability + (1.0 - dist) * island_bias
            row.append(rng.random() < p)
        grid.append(row)
    for _ in range(smoothing_passes):
        grid = smooth(grid, edge_is_land)
    return grid


def land_neighbors(grid: Grid, x: int, y: int, edge_is_land: bool = False) -> int:
    height, width = len(grid), len(grid[0])
    count = 0
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            nx, ny = x + dx, y + dy
            if 0 <= nx < width and 0 <= ny < height:
                count += grid[ny][nx]
            elif edge_is_land:
                count += 1
    return count


def smooth(grid: Grid, edge_is_land: bool = False) -> Grid:
    """One smoothing pass. Reads only the input grid and returns a new one."""
    out = []
    for y, row in enumerate(grid):
        new_row = []
        for x, land in enumerate(row):
            n = land_neighbors(grid, x, y, edge_is_land)
            new_row.append(n >= LAND_SURVIVE_NEIGHBORS if land else n >= LAND_BIRTH_NEIGHBORS)
        out.append(new_row)
    return out


def land_count(grid: Grid) -> int:
    return sum(sum(row) for row in grid)
