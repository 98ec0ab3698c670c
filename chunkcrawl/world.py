"""
World generation module for chunkcrawl
"""
import logging
import math
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import noise
import numpy as np

from chunkcrawl.constants import (
    CHUNK_WIDTH, CHUNK_HEIGHT, WALL, FLOOR, WATER, CHEST, SHRINE, VENDOR,
    ARTIFACT, ODDITY, POTION, EQUIPMENT_GLYPHS, EQUIPMENT_TABLES, POTIONS,
    POTION_BASE_PRICES, POTION_DEFAULT_PRICE, POTION_PRICE_JITTER,
    EQUIPMENT_PRICE_BANDS, BIOME_TIERS, DEFAULT_BIOME, COMMON_MONSTERS,
    MONSTER_TIER_ROLLS, BOSS_CHANCE, TIER_DISTANCE_BUCKET, MAX_BIOME_TIER,
    PLACEMENT_ATTEMPTS
)
from chunkcrawl.entities import MonsterInstance, make_monster, apply_danger
from chunkcrawl.errors import GenerationDegenerate
from chunkcrawl.items import VendorListing, WorldItem
from chunkcrawl.quests import FetchItemRegistry, FetchQuestOffer, default_registry
from chunkcrawl.rng import SeededRandom, chunk_seed, make_rng

logger = logging.getLogger(__name__)

DIRECTIONS = [(1, 0), (-1, 0), (0, 1), (0, -1)]


class Chunk:
    """A chunk of the world grid"""

    def __init__(self, cx: int, cy: int, width: int = CHUNK_WIDTH, height: int = CHUNK_HEIGHT):
        """
        Initialize a new chunk at the given position, filled with walls

        Args:
            cx: Chunk x-coordinate
            cy: Chunk y-coordinate
            width: Tiles per row
            height: Tiles per column
        """
        self.cx = cx
        self.cy = cy
        self.width = width
        self.height = height
        self.tiles = np.full((height, width), WALL, dtype="<U1")
        self.biome = DEFAULT_BIOME
        self.danger = 0
        self.monsters: List[MonsterInstance] = []
        self.items: List[WorldItem] = []

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def set_tile(self, x: int, y: int, glyph: str) -> None:
        """
        Set a tile in this chunk to the specified glyph

        Args:
            x: Local x-coordinate within chunk (0 to width-1)
            y: Local y-coordinate within chunk (0 to height-1)
            glyph: Tile glyph to set
        """
        if self.in_bounds(x, y):
            self.tiles[y, x] = glyph

    def get_tile(self, x: int, y: int) -> str:
        """
        Get the glyph at the specified position

        Args:
            x: Local x-coordinate within chunk (0 to width-1)
            y: Local y-coordinate within chunk (0 to height-1)

        Returns:
            The tile glyph, WALL outside the chunk
        """
        if self.in_bounds(x, y):
            return str(self.tiles[y, x])
        return WALL

    def is_wall(self, x: int, y: int) -> bool:
        return self.get_tile(x, y) == WALL

    def get_center(self) -> Tuple[int, int]:
        """Get the geometric center cell"""
        return (self.width // 2, self.height // 2)

    def border_lines(self) -> Dict[str, np.ndarray]:
        """Get the four border lines of the tile grid keyed by side"""
        return {
            "west": self.tiles[:, 0],
            "east": self.tiles[:, -1],
            "north": self.tiles[0, :],
            "south": self.tiles[-1, :],
        }

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data projection of the chunk for persistence"""
        return {
            "cx": self.cx,
            "cy": self.cy,
            "width": self.width,
            "height": self.height,
            "biome": self.biome,
            "danger": self.danger,
            "tiles": ["".join(row) for row in self.tiles.tolist()],
            "monsters": [monster.to_dict() for monster in self.monsters],
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chunk":
        """
        Rebuild a chunk from its plain-data projection

        Args:
            data: Output of to_dict()

        Returns:
            The chunk

        Raises:
            KeyError, TypeError, ValueError: if the record is malformed
        """
        rows = data["tiles"]
        height = len(rows)
        width = len(rows[0]) if rows else 0
        if any(len(row) != width for row in rows):
            raise ValueError("Ragged tile rows")

        chunk = cls(data["cx"], data["cy"], data.get("width", width), data.get("height", height))
        if (chunk.height, chunk.width) != (height, width):
            raise ValueError("Tile grid does not match the recorded size")
        chunk.tiles = np.array([list(row) for row in rows], dtype="<U1").reshape(height, width)
        chunk.biome = data.get("biome", DEFAULT_BIOME)
        chunk.danger = data.get("danger", 0)
        chunk.monsters = [MonsterInstance.from_dict(m) for m in data.get("monsters") or []]
        chunk.items = [WorldItem.from_dict(i) for i in data.get("items") or []]
        return chunk


class Room(NamedTuple):
    x: int
    y: int
    w: int
    h: int

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x + self.w // 2, self.y + self.h // 2)


def biome_tier(cx: int, cy: int) -> int:
    """
    Get the maximum biome tier for a chunk coordinate

    Tier grows by one every TIER_DISTANCE_BUCKET chunks of Manhattan
    distance from the origin, clamped to 1..MAX_BIOME_TIER.
    """
    distance = abs(cx) + abs(cy)
    return max(1, min(1 + distance // TIER_DISTANCE_BUCKET, MAX_BIOME_TIER))


def biomes_for_tier(tier: int) -> List[str]:
    """Biome ids eligible at the given tier: the tier itself or the one below"""
    return [biome_id for biome_id, biome in BIOME_TIERS.items() if tier - 1 <= biome["tier"] <= tier]


def find_floor_tile(tiles: np.ndarray, rng: SeededRandom) -> Tuple[int, int]:
    """
    Pick a random floor cell with a bounded number of attempts

    Args:
        tiles: Tile grid
        rng: Chunk random stream

    Returns:
        (x, y) of a floor cell

    Raises:
        GenerationDegenerate: if no floor cell was hit within PLACEMENT_ATTEMPTS
    """
    height, width = tiles.shape
    for _ in range(PLACEMENT_ATTEMPTS):
        x, y = rng.int(width), rng.int(height)
        if tiles[y, x] == FLOOR:
            return (x, y)
    raise GenerationDegenerate(f"no floor cell after {PLACEMENT_ATTEMPTS} attempts")


class ChunkGenerator:
    """Turns (world seed, chunk coordinates) into a populated chunk"""

    def __init__(self, registry: Optional[FetchItemRegistry] = None,
                 width: int = CHUNK_WIDTH, height: int = CHUNK_HEIGHT):
        """
        Args:
            registry: Fetch items vendors may ask for
            width: Chunk width in tiles
            height: Chunk height in tiles
        """
        self.registry = registry if registry is not None else default_registry()
        self.width = width
        self.height = height

    def generate(self, seed: int, cx: int, cy: int) -> Chunk:
        """
        Generate the chunk at (cx, cy). Same inputs always give the same chunk.

        Args:
            seed: World seed
            cx: Chunk x-coordinate
            cy: Chunk y-coordinate

        Returns:
            A freshly generated chunk
        """
        local_seed = chunk_seed(seed, cx, cy)
        rng = make_rng(local_seed)
        chunk = Chunk(cx, cy, self.width, self.height)
        tiles = chunk.tiles
        distance = abs(cx) + abs(cy)
        chunk.danger = distance // TIER_DISTANCE_BUCKET

        rooms = self.generate_rooms(rng, rng.between(3, 7))
        for room in rooms:
            tiles[room.y:room.y + room.h, room.x:room.x + room.w] = FLOOR
        for first, second in zip(rooms, rooms[1:]):
            self.carve_corridor(tiles, first.center, second.center)

        self.carve_random_walks(tiles, rng)

        if rng.next() < 0.4:
            self.add_pond(tiles, rng, local_seed)

        self.smooth_walls(tiles)
        self.ensure_edge_exits(tiles, rng)

        chunk.biome = self.select_biome(rng, cx, cy)
        chunk.items = self.place_items(tiles, rng, local_seed, (cx, cy))
        chunk.monsters = self.spawn_monsters(tiles, rng, chunk.biome, chunk.danger)
        return chunk

    def generate_rooms(self, rng: SeededRandom, count: int) -> List[Room]:
        """Random rectangles clamped to the grid"""
        rooms = []
        for _ in range(count):
            w = rng.between(4, 10)
            h = rng.between(4, 8)
            x = rng.between(0, max(1, self.width - w))
            y = rng.between(0, max(1, self.height - h))
            rooms.append(Room(x, y, min(w, self.width - x), min(h, self.height - y)))
        return rooms

    @staticmethod
    def carve_corridor(tiles: np.ndarray, start: Tuple[int, int], end: Tuple[int, int]) -> None:
        """L-shaped corridor: along x at the start row, then along y at the end column"""
        (x1, y1), (x2, y2) = start, end
        tiles[y1, min(x1, x2):max(x1, x2) + 1] = FLOOR
        tiles[min(y1, y2):max(y1, y2) + 1, x2] = FLOOR

    def carve_random_walks(self, tiles: np.ndarray, rng: SeededRandom) -> None:
        """Short drunkard's walks for organic variety"""
        for _ in range(rng.between(5, 10)):
            x, y = rng.int(self.width), rng.int(self.height)
            for _ in range(rng.between(10, 30)):
                tiles[y, x] = FLOOR
                dx, dy = rng.pick(DIRECTIONS)
                x = max(0, min(x + dx, self.width - 1))
                y = max(0, min(y + dy, self.height - 1))
            tiles[y, x] = FLOOR

    def add_pond(self, tiles: np.ndarray, rng: SeededRandom, local_seed: int) -> None:
        """
        Flood an elliptical pond whose rim is roughened with Perlin noise.
        Ponds never reach the border lines.
        """
        center_x = rng.between(5, self.width - 6)
        center_y = rng.between(4, self.height - 5)
        radius_x = rng.between(2, 5)
        radius_y = rng.between(2, 4)
        # Per-chunk window into the shared noise field
        offset_x = (local_seed & 0xFFFF) / 97.0
        offset_y = (local_seed >> 16) / 89.0

        for y in range(max(1, center_y - radius_y), min(self.height - 1, center_y + radius_y)):
            for x in range(max(1, center_x - radius_x), min(self.width - 1, center_x + radius_x)):
                dist = math.sqrt(((x - center_x) / radius_x) ** 2 + ((y - center_y) / radius_y) ** 2)
                if dist >= 1.0:
                    continue
                rim = noise.pnoise2(offset_x + x * 0.35, offset_y + y * 0.35, octaves=2, persistence=0.5, lacunarity=2.0)
                if dist < 0.7 or rim > -0.1:
                    tiles[y, x] = WATER

    @staticmethod
    def smooth_walls(tiles: np.ndarray) -> None:
        """Open up interior walls with at least 5 floor neighbours"""
        height, width = tiles.shape
        if height < 3 or width < 3:
            return
        floor = (tiles == FLOOR).astype(np.int8)
        counts = np.zeros((height - 2, width - 2), dtype=np.int8)
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                counts += floor[1 + dy:height - 1 + dy, 1 + dx:width - 1 + dx]
        interior = tiles[1:-1, 1:-1]
        interior[(interior == WALL) & (counts >= 5)] = FLOOR

    def ensure_edge_exits(self, tiles: np.ndarray, rng: SeededRandom) -> None:
        """Carve 1-2 stubs, 4-5 cells deep, from each border line inward"""
        width, height = self.width, self.height
        for side in ("west", "east", "north", "south"):
            for _ in range(1 + rng.int(2)):
                depth = rng.between(4, 5)
                if side in ("west", "east"):
                    y = 1 + rng.int(height - 2)
                    if side == "west":
                        tiles[y, 0:depth] = FLOOR
                    else:
                        tiles[y, width - depth:width] = FLOOR
                else:
                    x = 1 + rng.int(width - 2)
                    if side == "north":
                        tiles[0:depth, x] = FLOOR
                    else:
                        tiles[height - depth:height, x] = FLOOR

    @staticmethod
    def select_biome(rng: SeededRandom, cx: int, cy: int) -> str:
        candidates = biomes_for_tier(biome_tier(cx, cy))
        if not candidates:
            return DEFAULT_BIOME
        return rng.pick(candidates)

    def _claim_floor(self, tiles: np.ndarray, rng: SeededRandom, glyph: str,
                     feature: str) -> Optional[Tuple[int, int]]:
        try:
            x, y = find_floor_tile(tiles, rng)
        except GenerationDegenerate:
            logger.debug("Skipped %s: no free floor cell", feature)
            return None
        tiles[y, x] = glyph
        return (x, y)

    def place_items(self, tiles: np.ndarray, rng: SeededRandom, local_seed: int,
                    coords: Tuple[int, int] = (0, 0)) -> List[WorldItem]:
        """
        Place chests, shrine, vendor, cosmetic oddities, potions and equipment

        Args:
            tiles: Tile grid, updated with structure glyphs
            rng: Chunk random stream
            local_seed: Derived chunk seed, used in vendor ids
            coords: Chunk coordinates, recorded on vendor quests

        Returns:
            The placed world items
        """
        items = []

        for _ in range(rng.between(1, 3)):
            pos = self._claim_floor(tiles, rng, CHEST, "chest")
            if pos:
                items.append(WorldItem("chest", *pos))

        if rng.next() < 0.3:
            pos = self._claim_floor(tiles, rng, SHRINE, "shrine")
            if pos:
                items.append(WorldItem("shrine", *pos))

        if rng.next() < 0.7:
            pos = self._claim_floor(tiles, rng, VENDOR, "vendor")
            if pos:
                items.append(self.make_vendor(rng, local_seed, *pos, coords=coords))

        # Artifacts and oddities are glyph-only
        for _ in range(rng.between(2, 5)):
            self._claim_floor(tiles, rng, rng.pick([ARTIFACT, ODDITY]), "oddity")

        for _ in range(rng.between(1, 3)):
            pos = self._claim_floor(tiles, rng, POTION, "potion")
            if pos:
                items.append(WorldItem("potion", *pos, item=dict(rng.pick(POTIONS))))

        if rng.next() < 0.4:
            roll = rng.next()
            slot = "weapon" if roll < 0.33 else "armor" if roll < 0.66 else "headgear"
            pos = self._claim_floor(tiles, rng, EQUIPMENT_GLYPHS[slot], slot)
            if pos:
                items.append(WorldItem("equipment", *pos, slot=slot,
                                       item=dict(rng.pick(EQUIPMENT_TABLES[slot]))))

        return items

    def make_vendor(self, rng: SeededRandom, local_seed: int, x: int, y: int,
                    coords: Optional[Tuple[int, int]] = None) -> WorldItem:
        """Vendor with stock and a fetch-quest offer"""
        vendor_id = f"vendor_{local_seed}_{x}_{y}"
        target = rng.pick(self.registry.templates())
        stock = generate_vendor_inventory(rng)
        reward_gold = 40 + rng.int(60)
        reward_xp = 20 + rng.int(30)
        reward_item = {"type": "potion", "item": dict(rng.pick(POTIONS))} if rng.next() < 0.5 else None

        offer = FetchQuestOffer(
            id=f"fetch_{vendor_id}",
            name="Vendor's Request",
            description=f"I need {target.name}. Can you help me?",
            objective=f"Bring {target.name} to this vendor",
            target=target,
            vendor_id=vendor_id,
            vendor_chunk=coords,
            reward_gold=reward_gold,
            reward_xp=reward_xp,
            reward_item=reward_item,
            completion_text="Perfect! This is exactly what I needed. Thank you!",
        )
        return WorldItem("vendor", x, y, vendor_id=vendor_id, stock=stock, fetch_quest=offer)

    def spawn_monsters(self, tiles: np.ndarray, rng: SeededRandom, biome: str, danger: int) -> List[MonsterInstance]:
        """
        Spawn 8-15 monsters from the biome pool plus an occasional boss

        Args:
            tiles: Tile grid
            rng: Chunk random stream
            biome: Biome id
            danger: Danger level of the chunk

        Returns:
            The spawned monsters
        """
        pool = list(dict.fromkeys(BIOME_TIERS[biome]["monsters"] + COMMON_MONSTERS))
        monsters = []
        for _ in range(rng.between(8, 15)):
            try:
                x, y = find_floor_tile(tiles, rng)
            except GenerationDegenerate:
                logger.debug("Skipped monster: no free floor cell")
                continue
            kind = rng.pick(pool)
            monster = make_monster(kind, x, y, roll_monster_tier(rng))
            apply_danger(monster, danger)
            monsters.append(monster)

        if rng.next() < BOSS_CHANCE:
            try:
                x, y = find_floor_tile(tiles, rng)
            except GenerationDegenerate:
                logger.debug("Skipped boss: no free floor cell")
            else:
                boss = make_monster("boss", x, y, 3)
                apply_danger(boss, danger)
                monsters.append(boss)

        return monsters


def roll_monster_tier(rng: SeededRandom) -> int:
    """Tier independent of kind: 70% tier 1, 25% tier 2, 5% tier 3"""
    roll = rng.next()
    for tier, threshold in MONSTER_TIER_ROLLS:
        if roll < threshold:
            return tier
    return 1


def potion_prices(rng: SeededRandom) -> Dict[str, int]:
    """Price per potion name: base price by effect with +/-20% jitter"""
    prices = {}
    for potion in POTIONS:
        base = POTION_BASE_PRICES.get(potion["effect"], POTION_DEFAULT_PRICE)
        spread = math.floor(base * POTION_PRICE_JITTER)
        prices[potion["name"]] = base - spread + rng.int(2 * spread + 1)
    return prices


def generate_vendor_inventory(rng: SeededRandom) -> List[VendorListing]:
    """
    Roll a vendor's stock

    Always 1-3 potions; 60% chance of a weapon, 60% of armor, 40% of headgear.

    Args:
        rng: Chunk random stream

    Returns:
        The vendor's listings
    """
    prices = potion_prices(rng)
    stock = []
    for _ in range(rng.between(1, 3)):
        potion = rng.pick(POTIONS)
        stock.append(VendorListing("potion", dict(potion), prices[potion["name"]]))

    for slot, chance in (("weapon", 0.6), ("armor", 0.6), ("headgear", 0.4)):
        if rng.next() < chance:
            low, band = EQUIPMENT_PRICE_BANDS[slot]
            item = dict(rng.pick(EQUIPMENT_TABLES[slot]))
            stock.append(VendorListing(slot, item, low + rng.int(band)))

    return stock


def generate_chunk(seed: int, cx: int, cy: int, registry: Optional[FetchItemRegistry] = None,
                   width: int = CHUNK_WIDTH, height: int = CHUNK_HEIGHT) -> Chunk:
    """Generate chunk (cx, cy) of world ``seed``"""
    return ChunkGenerator(registry, width, height).generate(seed, cx, cy)
