"""
Monster definitions for generated chunks
"""
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from chunkcrawl.constants import (
    MONSTER_TEMPLATES, TIER_STAT_MULTIPLIERS, TIER_ABILITY_MULTIPLIERS,
    TIER_NAME_PREFIXES
)


@dataclass
class Ability:
    """Special attack or self-buff a monster may trigger on its turn"""
    type: str
    chance: float
    damage: int = 0
    range: int = 0
    effect: Optional[str] = None
    effect_turns: int = 0
    effect_value: float = 0
    heal: int = 0
    self_buff: bool = False

    def scaled(self, tier: int) -> "Ability":
        """
        Return a copy of this ability scaled for a monster tier

        Args:
            tier: Monster tier (1-3)

        Returns:
            New ability with trigger chance and damage multiplied
        """
        factors = TIER_ABILITY_MULTIPLIERS[tier]
        data = asdict(self)
        data["chance"] = min(1.0, self.chance * factors["chance"])
        data["damage"] = math.floor(self.damage * factors["damage"])
        return Ability(**data)


@dataclass
class MonsterInstance:
    """A monster living in one chunk"""
    kind: str
    name: str
    glyph: str
    tier: int
    x: int
    y: int
    hp: int
    hp_max: int
    strength: int
    defense: int
    spd: int
    xp: int
    ai: str
    alive: bool = True
    undead: bool = False
    ability: Optional[Ability] = None

    def get_position(self):
        """Get the monster's local (x, y) position"""
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonsterInstance":
        data = dict(data)
        ability = data.pop("ability", None)
        monster = cls(**data)
        if ability:
            monster.ability = Ability(**ability)
        return monster


def make_monster(kind: str, x: int, y: int, tier: int = 1) -> MonsterInstance:
    """
    Create a monster from its template, scaled for its tier

    Bosses keep their template stats and are always tier 3.

    Args:
        kind: Key into MONSTER_TEMPLATES
        x: Local x-coordinate
        y: Local y-coordinate
        tier: Spawn tier (1 normal, 2 veteran, 3 elite)

    Returns:
        The new monster
    """
    base = MONSTER_TEMPLATES[kind]
    ability = Ability(**base["ability"]) if "ability" in base else None
    name = base["name"]
    hp, strength, defense, xp = base["hp"], base["str"], base["def"], base["xp"]
    ai = base["ai"]

    if kind == "boss":
        tier = 3
    else:
        factors = TIER_STAT_MULTIPLIERS[tier]
        name = TIER_NAME_PREFIXES[tier] + name
        hp = math.floor(hp * factors["hp"])
        strength = math.floor(strength * factors["str"])
        defense = math.floor(defense * factors["def"])
        xp = math.floor(xp * factors["xp"])
        if ability is not None:
            ability = ability.scaled(tier)
        if tier == 3:
            # Elites are smarter
            ai = {"wander": "chase", "skittish": "wander"}.get(ai, ai)

    return MonsterInstance(
        kind=kind,
        name=name,
        glyph=base["glyph"],
        tier=tier,
        x=x,
        y=y,
        hp=hp,
        hp_max=hp,
        strength=strength,
        defense=defense,
        spd=base["spd"],
        xp=xp,
        ai=ai,
        undead=base.get("undead", False),
        ability=ability,
    )


def apply_danger(monster: MonsterInstance, danger: int) -> None:
    """
    Toughen a monster for its chunk's danger zone (distance // 4)

    Args:
        monster: Monster to modify in place
        danger: Danger level of the chunk
    """
    if danger <= 0:
        return
    if monster.kind == "boss":
        monster.hp += danger * 5
        monster.strength += danger
        monster.xp = math.floor(monster.xp * (1 + danger * 0.2))
    else:
        monster.hp += danger * 2
        monster.strength += danger // 2
        monster.xp = math.floor(monster.xp * (1 + danger * 0.1))
    monster.hp_max = monster.hp
