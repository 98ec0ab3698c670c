"""
Seamless traversal between chunks
"""
import logging
from typing import Callable, Iterator, Optional, Tuple

from chunkcrawl.constants import FLOOR, LANDING_SEARCH_RADIUS
from chunkcrawl.events import ChunkDidChange, ChunkWillChange
from chunkcrawl.quests import rehydrate_items
from chunkcrawl.session import WorldSession
from chunkcrawl.world import Chunk

logger = logging.getLogger(__name__)

Metric = Callable[[int, int], int]


def chebyshev(dx: int, dy: int) -> int:
    return max(abs(dx), abs(dy))


def ring_cells(x: int, y: int, radius: int, width: int, height: int,
               metric: Metric = chebyshev) -> Iterator[Tuple[int, int]]:
    """
    Yield in-bounds cells around (x, y) in expanding rings

    Rings run from distance 1 up to ``radius``; within a ring cells come
    in row order (dy ascending, then dx ascending).

    Args:
        x: Origin x-coordinate
        y: Origin y-coordinate
        radius: Largest ring distance to visit
        width: Grid width
        height: Grid height
        metric: Distance of an offset (dx, dy) from the origin

    Yields:
        (x, y) cells
    """
    for r in range(1, radius + 1):
        for dy in range(-r, r + 1):
            for dx in range(-r, r + 1):
                if metric(dx, dy) != r:
                    continue
                nx, ny = x + dx, y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    yield (nx, ny)


def border_cells(x: int, y: int, side: str, width: int, height: int) -> Iterator[Tuple[int, int]]:
    """
    Yield the cells of one border line, nearest to (x, y) first

    Args:
        x: Snapped x-coordinate
        y: Snapped y-coordinate
        side: Border line to walk: "west", "east", "north" or "south"
        width: Grid width
        height: Grid height

    Yields:
        (x, y) cells on the border line; at equal distance the higher
        coordinate comes first
    """
    vertical = side in ("west", "east")
    line_x = 0 if side == "west" else width - 1
    line_y = 0 if side == "north" else height - 1
    start, length = (y, height) if vertical else (x, width)
    for offset in range(length):
        for delta in ((offset, -offset) if offset else (0,)):
            pos = start + delta
            if 0 <= pos < length:
                yield (line_x, pos) if vertical else (pos, line_y)


def arrival_side(nx: int, ny: int, width: int, height: int) -> Optional[str]:
    """Border line of the next chunk an out-of-bounds step arrives on; x wins on diagonals"""
    if nx < 0:
        return "east"
    if nx >= width:
        return "west"
    if ny < 0:
        return "south"
    if ny >= height:
        return "north"
    return None


def find_landing(chunk: Chunk, x: int, y: int, radius: int = LANDING_SEARCH_RADIUS,
                 side: Optional[str] = None) -> Tuple[int, int]:
    """
    Get a safe cell to place an actor arriving at (x, y)

    Args:
        chunk: Arriving chunk
        x: Snapped x-coordinate
        y: Snapped y-coordinate
        radius: Ring search bound
        side: Border line the actor arrives on, scanned when the rings come up empty

    Returns:
        (x, y) itself if not a wall, else the first floor cell of the ring
        search, else the nearest opening on the arriving border line, else
        the center or the nearest non-wall cell around it
    """
    if not chunk.is_wall(x, y):
        return (x, y)
    for cell in ring_cells(x, y, radius, chunk.width, chunk.height):
        if chunk.get_tile(*cell) == FLOOR:
            return cell
    if side is not None:
        for cell in border_cells(x, y, side, chunk.width, chunk.height):
            if not chunk.is_wall(*cell):
                return cell

    center = chunk.get_center()
    logger.debug("No opening near (%d, %d); landing near the center", x, y)
    if chunk.is_wall(*center):
        for cell in ring_cells(*center, max(chunk.width, chunk.height), chunk.width, chunk.height):
            if not chunk.is_wall(*cell):
                return cell
    return center


def snap_to_opposite_edge(nx: int, ny: int, width: int, height: int) -> Tuple[int, int]:
    """Map an out-of-bounds step to the matching cell on the far side of the next chunk"""
    x = max(0, min(nx, width - 1))
    y = max(0, min(ny, height - 1))
    if nx < 0:
        x = width - 1
    elif nx >= width:
        x = 0
    if ny < 0:
        y = height - 1
    elif ny >= height:
        y = 0
    return (x, y)


class WorldNavigator:
    """Tracks the active chunk and moves the actor across chunk borders"""

    def __init__(self, session: WorldSession):
        self.session = session
        self.cx = 0
        self.cy = 0
        self.chunk: Optional[Chunk] = None

    @property
    def coords(self) -> Tuple[int, int]:
        return (self.cx, self.cy)

    def enter(self, cx: int, cy: int) -> Chunk:
        """
        Make chunk (cx, cy) active without saving the current one

        Used at spawn and when resuming a saved game.
        """
        chunk, loaded = self.session.load_or_generate(cx, cy)
        self._activate(chunk, cx, cy, loaded)
        return chunk

    def _activate(self, chunk: Chunk, cx: int, cy: int, loaded: bool) -> None:
        self.cx, self.cy = cx, cy
        self.chunk = chunk
        if chunk.items is None:
            chunk.items = []
        if loaded:
            restored = rehydrate_items(chunk.items, self.session.registry)
            if restored:
                logger.debug("Rehydrated %d fetch targets in chunk (%d, %d)", restored, cx, cy)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.session.settings.width and 0 <= y < self.session.settings.height

    def edge_travel(self, nx: int, ny: int) -> Optional[Tuple[int, int]]:
        """
        Handle an actor stepping to local cell (nx, ny)

        Args:
            nx: Target local x, possibly outside the chunk
            ny: Target local y, possibly outside the chunk

        Returns:
            None when (nx, ny) is inside the current chunk. Otherwise the
            actor's landing cell in the neighbouring chunk, which is now active.
        """
        width, height = self.session.settings.width, self.session.settings.height
        if self.in_bounds(nx, ny):
            return None

        tcx = self.cx + (-1 if nx < 0 else 1 if nx >= width else 0)
        tcy = self.cy + (-1 if ny < 0 else 1 if ny >= height else 0)
        self.session.bus.publish(ChunkWillChange(self.coords, (tcx, tcy)))

        if self.chunk is not None:
            self.session.save_chunk(self.cx, self.cy, self.chunk)

        chunk, loaded = self.session.load_or_generate(tcx, tcy)
        self._activate(chunk, tcx, tcy, loaded)

        x, y = snap_to_opposite_edge(nx, ny, width, height)
        landing = find_landing(chunk, x, y, self.session.settings.landing_search_radius,
                               side=arrival_side(nx, ny, width, height))

        logger.info("Entered chunk (%d, %d) [%s] at %s", tcx, tcy, chunk.biome, landing)
        self.session.bus.publish(ChunkDidChange((tcx, tcy), chunk.biome))
        return landing
