from __future__ import annotations
from typing import Iterator, List, Optional, Tuple

from .terrain import Grid


class Community:
    """Represents a fixed-position population unit that speaks at most one language."""
    def __init__(self, community_id: int, x: int, y: int, population: int, prestige: float,
                 language_id: Optional[int] = None):
        self.id = community_id
        self.x = x
        self.y = y
        self.population = population  # static for the run
        self.prestige = prestige      # local prestige in [0, 1]
        self.language_id = language_id

    def has_language(self) -> bool:
        return self.language_id is not None

    def __repr__(self):
        return f"Community(#{self.id} at {self.x},{self.y} lang={self.language_id})"


class World:
    """The grid: each cell is None (water) or the id of the community on it."""
    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.cells: List[List[Optional[int]]] = [[None] * width for _ in range(height)]

    @classmethod
    def from_terrain(cls, terrain: Grid) -> "World":
        """Number land cells row by row starting at 1."""
        world = cls(len(terrain[0]), len(terrain))
        next_id = 1
        for y, row in enumerate(terrain):
            for x, land in enumerate(row):
                if land:
                    world.cells[y][x] = next_id
                    next_id += 1
        return world

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def community_at(self, x: int, y: int) -> Optional[int]:
        if not self.in_bounds(x, y):
            return None
        return self.cells[y][x]

    def land_cells(self) -> Iterator[Tuple[int, int, int]]:
        """(x, y, community id) for every land cell in row-major order."""
        for y, row in enumerate(self.cells):
            for x, cid in enumerate(row):
                if cid is not None:
                    yield x, y, cid

    def neighbors(self, x: int, y: int) -> List[int]:
        """Community ids on the N, E, S, W land cells."""
        found = []
        for dx, dy in ((0, -1), (1, 0), (0, 1), (-1, 0)):
            cid = self.community_at(x + dx, y + dy)
            if cid is not None:
                found.append(cid)
        return found

    def land_mask(self) -> Grid:
        return [[cid is not None for cid in row] for row in self.cells]
