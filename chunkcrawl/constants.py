"""Game constants"""
import random

# Chunk grid settings
CHUNK_WIDTH = 48
CHUNK_HEIGHT = 22

# Tile glyphs
WALL = "#"
FLOOR = "."
WATER = "~"
CHEST = "$"
SHRINE = "▲"
VENDOR = "V"
ARTIFACT = "★"
ODDITY = "♪"
POTION = "!"
WEAPON = "/"
ARMOR = "]"
HEADGEAR = "^"

EQUIPMENT_GLYPHS = {
    "weapon": WEAPON,
    "armor": ARMOR,
    "headgear": HEADGEAR,
}

# Persistence
STORE_PREFIX = "ooo_enhanced_v1"

# World generation
TIER_DISTANCE_BUCKET = 4  # Every 4 chunks of Manhattan distance = next biome tier
MAX_BIOME_TIER = 6
PLACEMENT_ATTEMPTS = 1000
LANDING_SEARCH_RADIUS = 4

# Biomes by tier; every biome also spawns the common monsters below
BIOME_TIERS = {
    "candy_forest": {"tier": 1, "monsters": ["goober", "sootling"]},
    "slime_swamp": {"tier": 1, "monsters": ["goober", "icething"]},
    "ice_kingdom": {"tier": 2, "monsters": ["icething", "frostbite"]},
    "fire_kingdom": {"tier": 2, "monsters": ["sootling", "flamepup"]},
    "toxic_wastes": {"tier": 3, "monsters": ["toxicslime", "sparkler"]},
    "crystal_caves": {"tier": 3, "monsters": ["sparkler", "frostbite"]},
    "corrupted_dungeon": {"tier": 4, "monsters": ["wraith", "shadow_beast"]},
    "nightosphere": {"tier": 5, "monsters": ["shadow_beast", "demon"]},
    "lich_domain": {"tier": 6, "monsters": ["bone_knight", "demon"]},
}
DEFAULT_BIOME = "candy_forest"
COMMON_MONSTERS = ["goober", "firefly"]

# Monster spawn tiers: (tier, cumulative probability)
MONSTER_TIER_ROLLS = [(3, 0.05), (2, 0.30), (1, 1.0)]
BOSS_CHANCE = 0.1

# Multipliers applied to base stats per tier
TIER_STAT_MULTIPLIERS = {
    1: {"hp": 1.0, "str": 1.0, "def": 1.0, "xp": 1.0},
    2: {"hp": 1.5, "str": 1.3, "def": 1.5, "xp": 1.5},
    3: {"hp": 2.5, "str": 1.6, "def": 2.0, "xp": 3.0},
}
TIER_ABILITY_MULTIPLIERS = {
    1: {"chance": 1.0, "damage": 1.0},
    2: {"chance": 1.3, "damage": 1.2},
    3: {"chance": 1.5, "damage": 1.5},
}
TIER_NAME_PREFIXES = {1: "", 2: "veteran ", 3: "elite "}

MONSTER_TEMPLATES = {
    "goober": {"glyph": "g", "name": "candy goober", "hp": 60, "str": 3, "def": 0, "spd": 2, "xp": 10, "ai": "chase"},
    "icething": {"glyph": "i", "name": "ice-thing", "hp": 40, "str": 4, "def": 2, "spd": 1, "xp": 15, "ai": "chase"},
    "sootling": {"glyph": "s", "name": "sootling", "hp": 25, "str": 3, "def": 0, "spd": 4, "xp": 8, "ai": "wander"},
    "firefly": {"glyph": "f", "name": "firefly", "hp": 30, "str": 2, "def": 0, "spd": 6, "xp": 5, "ai": "skittish"},
    "boss": {"glyph": "B", "name": "Lich King", "hp": 150, "str": 10, "def": 5, "spd": 3, "xp": 100, "ai": "smart"},
    "flamepup": {
        "glyph": "☼", "name": "flame pup", "hp": 35, "str": 5, "def": 1, "spd": 3, "xp": 15, "ai": "chase",
        "ability": {"type": "fireBlast", "chance": 0.05, "range": 3, "damage": 6,
                    "effect": "burn", "effect_turns": 2, "effect_value": 3},
    },
    "frostbite": {
        "glyph": "F", "name": "frostbite", "hp": 45, "str": 4, "def": 3, "spd": 2, "xp": 20, "ai": "chase",
        "ability": {"type": "iceBreath", "chance": 0.04, "range": 2, "damage": 5,
                    "effect": "freeze", "effect_turns": 1, "effect_value": 0},
    },
    "toxicslime": {
        "glyph": "T", "name": "toxic slime", "hp": 120, "str": 3, "def": 2, "spd": 1, "xp": 40, "ai": "wander",
        "ability": {"type": "poisonSpit", "chance": 0.06, "range": 4, "damage": 4,
                    "effect": "poison", "effect_turns": 3, "effect_value": 3},
    },
    "sparkler": {
        "glyph": "S", "name": "sparkler", "hp": 80, "str": 4, "def": 1, "spd": 5, "xp": 35, "ai": "wander",
        "ability": {"type": "electricPulse", "chance": 0.08, "range": 2, "damage": 7,
                    "effect": "shock", "effect_turns": 2, "effect_value": 2},
    },
    "wraith": {
        "glyph": "W", "name": "wraith", "hp": 60, "str": 8, "def": 3, "spd": 4, "xp": 45, "ai": "smart",
        "undead": True,
        "ability": {"type": "lifeDrain", "chance": 0.08, "range": 2, "damage": 6, "heal": 3,
                    "effect": "weakness", "effect_turns": 2, "effect_value": -2},
    },
    "shadow_beast": {
        "glyph": "◆", "name": "shadow beast", "hp": 75, "str": 9, "def": 4, "spd": 3, "xp": 50, "ai": "chase",
        "undead": True,
        "ability": {"type": "shadowStrike", "chance": 0.06, "range": 3, "damage": 8,
                    "effect": "blind", "effect_turns": 1, "effect_value": 0},
    },
    "bone_knight": {
        "glyph": "K", "name": "bone knight", "hp": 90, "str": 10, "def": 6, "spd": 2, "xp": 60, "ai": "smart",
        "undead": True,
        "ability": {"type": "boneShield", "chance": 0.1, "range": 0, "damage": 0, "self_buff": True,
                    "effect": "armor", "effect_turns": 3, "effect_value": 4},
    },
    "demon": {
        "glyph": "D", "name": "demon", "hp": 100, "str": 12, "def": 5, "spd": 4, "xp": 75, "ai": "smart",
        "undead": True,
        "ability": {"type": "hellfire", "chance": 0.07, "range": 4, "damage": 10,
                    "effect": "burn", "effect_turns": 3, "effect_value": 4},
    },
}

# Equipment and consumables
WEAPONS = [
    {"name": "Grass Sword", "dmg": 3, "desc": "A blade of living grass"},
    {"name": "Bacon Sword", "dmg": 4, "desc": "Sizzles with greasy power"},
    {"name": "Root Sword", "dmg": 5, "desc": "Ancient and gnarled"},
    {"name": "Crystal Sword", "dmg": 6, "desc": "Refracts light and enemies"},
    {"name": "Demon Sword", "dmg": 8, "desc": "Whispers dark algebraic truths"},
    {"name": "Flame Sword", "dmg": 4, "effect": "burn", "effect_chance": 0.4, "desc": "Burns with eternal fire"},
    {"name": "Venom Dagger", "dmg": 3, "effect": "poison", "effect_chance": 0.5, "desc": "Drips with toxic essence"},
]

ARMORS = [
    {"name": "Sweater", "def": 1, "desc": "Cozy and protective"},
    {"name": "Tin Armor", "def": 2, "desc": "Rattles reassuringly"},
    {"name": "Ice Armor", "def": 3, "desc": "Cool to the touch"},
    {"name": "Jake Suit", "def": 4, "desc": "Stretchy and durable"},
    {"name": "Cosmic Armor", "def": 5, "desc": "Woven from starlight"},
]

HEADGEAR_ITEMS = [
    {"name": "Finn's Hat", "def": 1, "desc": "White and iconic"},
    {"name": "Ice Crown", "def": 2, "desc": "Cold authority radiates"},
    {"name": "Candy Helmet", "def": 1, "str": 1, "desc": "Sweet and sturdy"},
    {"name": "Wizard Hat", "def": 0, "magic": 3, "desc": "Pointed with mysterious power"},
    {"name": "Mushroom Cap", "def": 2, "desc": "Spongy and protective"},
    {"name": "Golden Tiara", "def": 4, "desc": "Royal protection"},
]

EQUIPMENT_TABLES = {
    "weapon": WEAPONS,
    "armor": ARMORS,
    "headgear": HEADGEAR_ITEMS,
}

POTIONS = [
    {"name": "Red Potion", "effect": "heal", "value": 12, "turns": 0, "desc": "Tastes like strawberries (+12 HP)"},
    {"name": "Blue Potion", "effect": "max_heal", "value": 999, "turns": 0, "desc": "Fizzy and electric (Full heal)"},
    {"name": "Green Potion", "effect": "buff_str", "value": 4, "turns": 25, "desc": "Smells like fresh grass (+4 STR)"},
    {"name": "Purple Potion", "effect": "buff_def", "value": 4, "turns": 25, "desc": "Thick and syrupy (+4 DEF)"},
    {"name": "Yellow Potion", "effect": "buff_both", "value": 2, "turns": 30, "desc": "Bubbles with energy (+2 STR/DEF)"},
    {"name": "Black Potion", "effect": "berserk", "value": 6, "turns": 15, "desc": "Bitter medicine (+6 STR, -2 DEF)"},
]

# Vendor pricing
POTION_BASE_PRICES = {
    "max_heal": 80,
    "buff_both": 60,
    "berserk": 50,
    "heal": 25,
}
POTION_DEFAULT_PRICE = 40  # Single-stat buffs
POTION_PRICE_JITTER = 0.2

# (minimum price, band width) per equipment slot
EQUIPMENT_PRICE_BANDS = {
    "weapon": (50, 100),
    "armor": (40, 80),
    "headgear": (30, 60),
}


class WorldSettings:
    """Settings for one playthrough of the world"""

    def __init__(self, seed=None):
        if seed is None:
            seed = random.randint(0, 0xFFFFFFFF)
        self.seed = seed & 0xFFFFFFFF
        self.width = CHUNK_WIDTH
        self.height = CHUNK_HEIGHT
        self.store_prefix = STORE_PREFIX
        self.db_path = ":memory:"  # SQLite path, ":memory:" keeps the world in-process
        self.landing_search_radius = LANDING_SEARCH_RADIUS

    def get_center(self):
        """Get the geometric center of a chunk (the last-resort landing cell)"""
        return (self.width // 2, self.height // 2)
