"""
Tests for chunk traversal
"""
import sqlite3
import types

import pytest

from chunkcrawl.constants import CHUNK_HEIGHT, CHUNK_WIDTH, FLOOR, WALL, WATER, WorldSettings
from chunkcrawl.events import ChunkDidChange, ChunkWillChange, EventBus
from chunkcrawl.items import WorldItem
from chunkcrawl.navigator import (
    WorldNavigator, arrival_side, border_cells, chebyshev, find_landing, ring_cells,
    snap_to_opposite_edge
)
from chunkcrawl.quests import FetchQuestOffer, FetchTarget
from chunkcrawl.session import WorldSession
from chunkcrawl.world import Chunk

SEED = 12345
HEAL_POTION = {"type": "potion", "item": {"name": "Red Potion", "effect": "heal"}, "count": 1}


@pytest.fixture
def session():
    session = WorldSession(WorldSettings(SEED))
    yield session
    session.close()


@pytest.fixture
def navigator(session):
    navigator = WorldNavigator(session)
    navigator.enter(0, 0)
    return navigator


def record_events(bus):
    events = []
    bus.subscribe(ChunkWillChange, events.append)
    bus.subscribe(ChunkDidChange, events.append)
    return events


def solid_chunk_record(cx, cy):
    """A stored-looking chunk with no open cells at all"""
    return Chunk(cx, cy).to_dict()


def test_ring_cells_order():
    """Test that rings are scanned row by row"""
    cells = list(ring_cells(5, 5, 1, 20, 20))
    assert cells == [(4, 4), (5, 4), (6, 4), (4, 5), (6, 5), (4, 6), (5, 6), (6, 6)]


def test_ring_cells_expand_and_clip():
    """Test ring growth and clipping at the grid edge"""
    cells = list(ring_cells(0, 0, 2, 10, 10))
    assert cells[:3] == [(1, 0), (0, 1), (1, 1)]
    assert len(cells) == 8
    assert all(chebyshev(x, y) in (1, 2) for x, y in cells)


def test_ring_cells_custom_metric():
    """Test that the distance metric is pluggable"""
    def manhattan(dx, dy):
        return abs(dx) + abs(dy)

    cells = list(ring_cells(5, 5, 1, 20, 20, metric=manhattan))
    assert cells == [(5, 4), (4, 5), (6, 5), (5, 6)]


def test_ring_cells_is_lazy():
    """Test that cells are produced on demand"""
    cells = ring_cells(5, 5, 1000, 20, 20)
    assert isinstance(cells, types.GeneratorType)
    assert next(cells) == (4, 4)


def test_snap_to_opposite_edge():
    """Test snapping for each exit direction, including diagonals"""
    w, h = CHUNK_WIDTH, CHUNK_HEIGHT
    assert snap_to_opposite_edge(-1, 5, w, h) == (w - 1, 5)
    assert snap_to_opposite_edge(w, 7, w, h) == (0, 7)
    assert snap_to_opposite_edge(10, -1, w, h) == (10, h - 1)
    assert snap_to_opposite_edge(10, h, w, h) == (10, 0)
    assert snap_to_opposite_edge(-1, -1, w, h) == (w - 1, h - 1)
    assert snap_to_opposite_edge(w, h, w, h) == (0, 0)


def test_find_landing():
    """Test landing on the snapped cell, the nearest floor, or the center"""
    chunk = Chunk(0, 0)
    assert find_landing(chunk, 47, 5) == chunk.get_center()

    chunk.set_tile(45, 6, FLOOR)
    assert find_landing(chunk, 47, 5) == (45, 6)

    chunk.set_tile(47, 5, FLOOR)
    assert find_landing(chunk, 47, 5) == (47, 5)


def test_find_landing_scans_arriving_border():
    """Test that an opening far along the arriving border is found before the center"""
    chunk = Chunk(0, 0)
    chunk.set_tile(47, 18, FLOOR)
    assert find_landing(chunk, 47, 5, side="east") == (47, 18)

    # Any non-wall cell on the border will do, nearest first
    chunk.set_tile(47, 2, WATER)
    assert find_landing(chunk, 47, 5, side="east") == (47, 2)

    chunk.set_tile(CHUNK_WIDTH // 2, CHUNK_HEIGHT // 2, FLOOR)
    assert find_landing(chunk, 47, 5, side="east") == (47, 2)


def test_find_landing_searches_around_walled_center():
    """Test that a walled center gives way to the nearest open cell around it"""
    far = Chunk(0, 0)
    far.set_tile(40, 5, FLOOR)
    assert find_landing(far, 47, 18, radius=4) == (40, 5)
    assert find_landing(far, 47, 18, radius=4, side="east") == (40, 5)


def test_border_cells_order():
    """Test that border lines are walked outward from the snapped cell"""
    assert list(border_cells(0, 3, "west", 10, 6)) == [(0, 3), (0, 4), (0, 2), (0, 5), (0, 1), (0, 0)]
    assert list(border_cells(2, 2, "north", 5, 3)) == [(2, 0), (3, 0), (1, 0), (4, 0), (0, 0)]
    assert list(border_cells(4, 2, "south", 5, 3))[:2] == [(4, 2), (3, 2)]


def test_arrival_side():
    """Test which border line of the next chunk an exit arrives on"""
    w, h = CHUNK_WIDTH, CHUNK_HEIGHT
    assert arrival_side(-1, 5, w, h) == "east"
    assert arrival_side(w, 5, w, h) == "west"
    assert arrival_side(3, -1, w, h) == "south"
    assert arrival_side(3, h, w, h) == "north"
    assert arrival_side(-1, h, w, h) == "east"
    assert arrival_side(3, 3, w, h) is None


@pytest.mark.parametrize("seed", [0, 1, 7, 42, 999, 31337, 2 ** 31, 0xFFFFFFFF])
def test_landing_on_generated_chunks_across_seeds(seed):
    """Test landing safety over a loop of crossings in many worlds"""
    session = WorldSession(WorldSettings(seed))
    navigator = WorldNavigator(session)
    navigator.enter(0, 0)
    x, y = navigator.chunk.get_center()
    moves = [(1, 0), (1, 0), (0, 1), (0, 1), (-1, 0), (-1, 0), (-1, 0),
             (0, -1), (0, -1), (0, -1), (1, 1), (-1, -1), (1, -1), (-1, 1)]
    for dx, dy in moves:
        nx = CHUNK_WIDTH if dx > 0 else -1 if dx < 0 else x
        ny = CHUNK_HEIGHT if dy > 0 else -1 if dy < 0 else y
        x, y = navigator.edge_travel(nx, ny)
        assert navigator.chunk.get_tile(x, y) != WALL, f"landed in a wall at {navigator.coords} ({x}, {y})"
    session.close()


def test_in_bounds_move_is_ignored(navigator, session):
    """Test that moves inside the chunk do not travel"""
    events = record_events(session.bus)
    chunk = navigator.chunk
    assert navigator.edge_travel(0, 5) is None
    assert navigator.edge_travel(CHUNK_WIDTH - 1, CHUNK_HEIGHT - 1) is None
    assert navigator.chunk is chunk
    assert events == []


def test_travel_west(navigator, session):
    """Test leaving (0, 0) from (0, 5) to the west"""
    landing = navigator.edge_travel(-1, 5)
    assert navigator.coords == (-1, 0)
    assert navigator.chunk.cx == -1
    x, y = landing
    assert not navigator.chunk.is_wall(x, y)
    if not navigator.chunk.is_wall(CHUNK_WIDTH - 1, 5):
        assert landing == (CHUNK_WIDTH - 1, 5)
    elif landing != navigator.chunk.get_center():
        assert max(abs(x - (CHUNK_WIDTH - 1)), abs(y - 5)) <= 4
    assert session.store.has(SEED, 0, 0)


@pytest.mark.parametrize("step", [(-1, 3), (CHUNK_WIDTH, 10), (20, -1), (7, CHUNK_HEIGHT), (-1, -1)])
def test_landing_is_never_a_wall(navigator, step):
    """Test landing safety in every direction"""
    for _ in range(3):
        x, y = navigator.edge_travel(*step)
        assert navigator.chunk.get_tile(x, y) != WALL


def test_travel_events(navigator, session):
    """Test the transition notifications and their order"""
    events = record_events(session.bus)
    navigator.edge_travel(CHUNK_WIDTH, 4)
    assert events == [
        ChunkWillChange((0, 0), (1, 0)),
        ChunkDidChange((1, 0), navigator.chunk.biome),
    ]


def test_failing_handler_does_not_block_travel(navigator, session, caplog):
    """Test that a broken subscriber cannot stop a transition"""
    def broken(event):
        raise RuntimeError("boom")

    events = []
    session.bus.subscribe(ChunkWillChange, broken, priority=0)
    session.bus.subscribe(ChunkWillChange, events.append)
    assert navigator.edge_travel(-1, 5) is not None
    assert navigator.coords == (-1, 0)
    assert len(events) == 1
    assert "broken" in caplog.text


def test_revisit_keeps_changes(navigator):
    """Test that a chunk is loaded, not regenerated, when walking back"""
    home = navigator.chunk
    home.monsters[0].alive = False
    home.set_tile(1, 1, FLOOR)

    navigator.edge_travel(CHUNK_WIDTH, 5)
    navigator.edge_travel(-1, 5)

    assert navigator.coords == (0, 0)
    assert navigator.chunk is not home
    assert navigator.chunk.monsters[0].alive is False
    assert navigator.chunk.get_tile(1, 1) == FLOOR


def test_solid_legacy_chunk_lands_in_center(navigator, session):
    """Test the center fallback for a stored chunk with no openings"""
    session.store.save_raw(SEED, -1, 0, solid_chunk_record(-1, 0))
    assert navigator.edge_travel(-1, 5) == navigator.chunk.get_center()


def test_legacy_chunk_without_items(navigator, session):
    """Test that a stored chunk with no item list gets an empty one"""
    record = session.generator.generate(SEED, 0, 1).to_dict()
    del record["items"]
    session.store.save_raw(SEED, 0, 1, record)
    navigator.edge_travel(5, CHUNK_HEIGHT)
    assert navigator.chunk.items == []


def test_vendor_quest_rehydrated_on_arrival(navigator, session):
    """Test that a stored vendor quest without its predicate is repaired on load"""
    chunk = session.generator.generate(SEED, 1, 0)
    offer = FetchQuestOffer(
        id="fetch_vendor_x", name="Vendor's Request", description="", objective="",
        target=FetchTarget("a healing potion"), vendor_id="vendor_x", vendor_chunk=(1, 0),
    )
    chunk.items.append(WorldItem("vendor", 3, 3, vendor_id="vendor_x", fetch_quest=offer))
    record = chunk.to_dict()
    assert "predicate" not in record["items"][-1]["fetch_quest"]["target"]
    session.store.save_raw(SEED, 1, 0, record)

    navigator.edge_travel(CHUNK_WIDTH, 5)
    vendor = [item for item in navigator.chunk.items if item.vendor_id == "vendor_x"][0]
    assert vendor.fetch_quest.target is session.registry.get("a healing potion")
    assert vendor.fetch_quest.is_satisfied_by([HEAL_POTION])


def test_save_failure_does_not_block_travel(navigator, session, caplog):
    """Test that travel continues when the store refuses writes"""
    class Refusing:
        def execute(self, *args):
            raise sqlite3.OperationalError("disk I/O error")

        def commit(self):
            pass

        def close(self):
            pass

    session.store._conn = Refusing()
    landing = navigator.edge_travel(-1, 5)
    assert landing is not None
    assert navigator.coords == (-1, 0)
    assert "not saved" in caplog.text


def test_session_clear_world(session):
    """Test that a new game forgets the visited chunks"""
    navigator = WorldNavigator(session)
    navigator.enter(0, 0)
    navigator.edge_travel(CHUNK_WIDTH, 5)
    navigator.edge_travel(-1, 5)
    assert session.store.coordinates(SEED) == [(0, 0), (1, 0)]

    assert session.clear_world() == 2
    assert session.store.load(SEED, 0, 0) is None
    assert session.store.load(SEED, 1, 0) is None
    chunk, loaded = session.load_or_generate(0, 0)
    assert loaded is False


def test_session_restores_player_quests(session):
    """Test that the player's copy of a quest is repaired independently of the vendor's"""
    offer = FetchQuestOffer(
        id="fetch_vendor_y", name="Vendor's Request", description="", objective="",
        target=FetchTarget("a healing potion"), vendor_id="vendor_y",
    )
    session.restore_quests({offer.id: offer.to_dict()})
    restored = session.fetch_quests[offer.id]
    assert restored.target is session.registry.get("a healing potion")
    assert restored.is_satisfied_by([HEAL_POTION])
    assert session.dump_quests()[offer.id]["target"]["predicate"]["kind"] == "item_type_and_field_equals"


def test_custom_bus_and_settings():
    """Test building an isolated session from explicit parts"""
    bus = EventBus()
    settings = WorldSettings(2 ** 32 + 7)
    session = WorldSession(settings, bus=bus)
    assert session.seed == 7
    assert session.bus is bus
    session.close()


def test_function_predicate_does_not_escape_travel(navigator, session):
    """Test that a quest check which is not plain data is dropped on save and restored on load"""
    offer = FetchQuestOffer(
        id="fetch_vendor_z", name="Vendor's Request", description="", objective="",
        target=FetchTarget("a healing potion", lambda stack: stack.get("type") == "potion"),
        vendor_id="vendor_z", vendor_chunk=(0, 0),
    )
    navigator.chunk.items.append(WorldItem("vendor", 2, 2, vendor_id="vendor_z", fetch_quest=offer))
    assert offer.is_satisfied_by([HEAL_POTION])

    assert navigator.edge_travel(-1, 5) is not None
    assert session.store.has(SEED, 0, 0)
    navigator.edge_travel(CHUNK_WIDTH, 5)

    vendor = [item for item in navigator.chunk.items if item.vendor_id == "vendor_z"][0]
    assert vendor.fetch_quest.target is session.registry.get("a healing potion")
    assert vendor.fetch_quest.is_satisfied_by([HEAL_POTION])


def test_chunk_saved_under_entered_coordinates(navigator, session):
    """Test that a record is written back under its key, not its embedded coordinates"""
    record = session.generator.generate(SEED, 1, 0).to_dict()
    record["cx"], record["cy"] = 5, 5
    session.store.save_raw(SEED, 1, 0, record)

    navigator.edge_travel(CHUNK_WIDTH, 5)
    navigator.chunk.biome = "lich_domain"
    navigator.edge_travel(-1, 5)

    assert not session.store.has(SEED, 5, 5)
    assert session.store.load(SEED, 1, 0).biome == "lich_domain"
