"""
Fetch-quest targets and their rehydration after persistence.

A fetch quest is complete when the player holds an inventory stack that
satisfies the target's predicate. Predicates are small tagged records
evaluated by ``matches`` so they serialize with the rest of a chunk.
Records written without a predicate (older saves stored only the target's
display name) are repaired by looking the name up in a FetchItemRegistry.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from chunkcrawl.errors import RehydrationMiss

logger = logging.getLogger(__name__)

Stack = Mapping[str, Any]


def _stack_item(stack: Stack) -> Mapping[str, Any]:
    return stack.get("item") or {}


@dataclass(frozen=True)
class ItemTypeEquals:
    """Any stack of the given item type"""
    item_type: str

    tag = "item_type_equals"

    def matches(self, stack: Stack) -> bool:
        return stack.get("type") == self.item_type

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.tag, "item_type": self.item_type}


@dataclass(frozen=True)
class ItemTypeAndStatAtLeast:
    """A stack of the given type whose item stat is at least ``value``"""
    item_type: str
    stat: str
    value: float

    tag = "item_type_and_stat_at_least"

    def matches(self, stack: Stack) -> bool:
        if stack.get("type") != self.item_type:
            return False
        stat = _stack_item(stack).get(self.stat)
        return isinstance(stat, (int, float)) and stat >= self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.tag, "item_type": self.item_type, "stat": self.stat, "value": self.value}


@dataclass(frozen=True)
class ItemTypeAndFieldEquals:
    """A stack of the given type whose item field equals ``value``"""
    item_type: str
    field: str
    value: Any

    tag = "item_type_and_field_equals"

    def matches(self, stack: Stack) -> bool:
        return stack.get("type") == self.item_type and _stack_item(stack).get(self.field) == self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.tag, "item_type": self.item_type, "field": self.field, "value": self.value}


PREDICATE_KINDS = {
    cls.tag: cls for cls in (ItemTypeEquals, ItemTypeAndStatAtLeast, ItemTypeAndFieldEquals)
}


def predicate_from_dict(data: Optional[Mapping[str, Any]]):
    """
    Rebuild a predicate from its plain-data form

    Args:
        data: Output of a predicate's to_dict(), or None

    Returns:
        The predicate, or None when data is missing or of an unknown kind
    """
    if not isinstance(data, Mapping):
        return None
    cls = PREDICATE_KINDS.get(data.get("kind"))
    if cls is None:
        return None
    fields = {k: v for k, v in data.items() if k != "kind"}
    try:
        return cls(**fields)
    except TypeError:
        logger.warning("Malformed %s predicate: %r", data.get("kind"), data)
        return None


def is_tagged_predicate(predicate: Any) -> bool:
    """Whether a predicate is one of the serializable tagged kinds"""
    return isinstance(predicate, tuple(PREDICATE_KINDS.values()))


@dataclass(frozen=True)
class FetchTarget:
    """The item a fetch quest asks for: a display name plus its predicate"""
    name: str
    predicate: Any = None

    def matches(self, stack: Stack) -> bool:
        """
        Evaluate the predicate against one inventory stack

        A plain callable predicate is called with the stack. An absent
        predicate never matches: the quest is unsatisfiable.
        """
        if self.predicate is None:
            return False
        matcher = getattr(self.predicate, "matches", None)
        if matcher is not None:
            return bool(matcher(stack))
        if callable(self.predicate):
            return bool(self.predicate(stack))
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form; predicates that are not tagged kinds are left out"""
        data: Dict[str, Any] = {"name": self.name}
        if is_tagged_predicate(self.predicate):
            data["predicate"] = self.predicate.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FetchTarget":
        return cls(name=data.get("name", ""), predicate=predicate_from_dict(data.get("predicate")))


DEFAULT_FETCH_ITEMS = [
    FetchTarget("a healing potion", ItemTypeAndFieldEquals("potion", "effect", "heal")),
    FetchTarget("a strength potion", ItemTypeAndFieldEquals("potion", "effect", "buff_str")),
    FetchTarget("any potion", ItemTypeEquals("potion")),
    FetchTarget("a sword", ItemTypeEquals("weapon")),
    FetchTarget("a sharp weapon", ItemTypeAndStatAtLeast("weapon", "dmg", 5)),
    FetchTarget("sturdy armor", ItemTypeAndStatAtLeast("armor", "def", 3)),
    FetchTarget("a hat", ItemTypeEquals("headgear")),
]


class FetchItemRegistry:
    """Live fetch-item templates keyed by their stable display name"""

    def __init__(self, templates: Iterable[FetchTarget] = ()):
        self._templates: Dict[str, FetchTarget] = {}
        for template in templates:
            self.register(template)

    def register(self, template: FetchTarget) -> None:
        if not callable(getattr(template.predicate, "matches", None)):
            raise ValueError(f"Fetch item {template.name!r} needs a predicate with matches()")
        self._templates[template.name] = template

    def get(self, name: str) -> Optional[FetchTarget]:
        return self._templates.get(name)

    def require(self, name: str) -> FetchTarget:
        """
        Look up a template by exact display name

        Raises:
            RehydrationMiss: if no template has that name
        """
        template = self._templates.get(name)
        if template is None:
            raise RehydrationMiss(name)
        return template

    def templates(self) -> List[FetchTarget]:
        """All templates in registration order"""
        return list(self._templates.values())

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __iter__(self) -> Iterator[FetchTarget]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)


def default_registry() -> FetchItemRegistry:
    """A fresh registry holding the built-in fetch items"""
    return FetchItemRegistry(DEFAULT_FETCH_ITEMS)


@dataclass
class FetchQuestOffer:
    """A vendor's request for an item, with its rewards"""
    id: str
    name: str
    description: str
    objective: str
    target: FetchTarget
    vendor_id: str
    vendor_chunk: Optional[Tuple[int, int]] = None
    reward_gold: int = 0
    reward_xp: int = 0
    reward_item: Optional[Dict[str, Any]] = None
    completion_text: str = ""
    repeatable: bool = False

    def is_satisfied_by(self, inventory: Iterable[Stack]) -> bool:
        """Whether any inventory stack satisfies the target"""
        return any(self.target.matches(stack) for stack in inventory)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "objective": self.objective,
            "target": self.target.to_dict(),
            "vendor_id": self.vendor_id,
            "vendor_chunk": list(self.vendor_chunk) if self.vendor_chunk is not None else None,
            "reward_gold": self.reward_gold,
            "reward_xp": self.reward_xp,
            "reward_item": self.reward_item,
            "completion_text": self.completion_text,
            "repeatable": self.repeatable,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FetchQuestOffer":
        vendor_chunk = data.get("vendor_chunk")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            objective=data.get("objective", ""),
            target=FetchTarget.from_dict(data.get("target") or {}),
            vendor_id=data.get("vendor_id", ""),
            vendor_chunk=tuple(vendor_chunk) if vendor_chunk is not None else None,
            reward_gold=data.get("reward_gold", 0),
            reward_xp=data.get("reward_xp", 0),
            reward_item=data.get("reward_item"),
            completion_text=data.get("completion_text", ""),
            repeatable=data.get("repeatable", False),
        )


def rehydrate_offer(offer: FetchQuestOffer, registry: FetchItemRegistry) -> bool:
    """
    Restore a stripped target predicate on one offer

    Args:
        offer: Offer whose target may have lost its predicate
        registry: Templates to restore from

    Returns:
        True if the target was replaced by a registry template
    """
    if offer.target.predicate is not None:
        return False
    try:
        offer.target = registry.require(offer.target.name)
    except RehydrationMiss:
        logger.warning("No fetch item named %r; quest %s cannot be completed", offer.target.name, offer.id)
        return False
    return True


def rehydrate_items(items: Iterable[Any], registry: FetchItemRegistry) -> int:
    """
    Restore fetch-quest predicates on a chunk's vendor items

    Args:
        items: WorldItem list of a chunk
        registry: Templates to restore from

    Returns:
        Number of targets restored
    """
    restored = 0
    for item in items:
        offer = getattr(item, "fetch_quest", None)
        if item.kind == "vendor" and offer is not None:
            restored += rehydrate_offer(offer, registry)
    return restored


def rehydrate_fetch_quests(quests: Mapping[str, FetchQuestOffer], registry: FetchItemRegistry) -> int:
    """Restore predicates on the player's accepted fetch quests"""
    return sum(rehydrate_offer(offer, registry) for offer in quests.values())


def restore_fetch_quests(raw: Mapping[str, Mapping[str, Any]],
                         registry: FetchItemRegistry) -> Dict[str, FetchQuestOffer]:
    """
    Rebuild the player's fetch-quest bookkeeping from saved session data

    Args:
        raw: Quest id -> plain-data offer, as produced by FetchQuestOffer.to_dict()
        registry: Templates to restore predicates from

    Returns:
        Quest id -> live offer
    """
    quests = {quest_id: FetchQuestOffer.from_dict(data) for quest_id, data in raw.items()}
    rehydrate_fetch_quests(quests, registry)
    return quests


def dump_fetch_quests(quests: Mapping[str, FetchQuestOffer]) -> Dict[str, Dict[str, Any]]:
    """Plain-data form of the player's fetch quests for session state"""
    return {quest_id: offer.to_dict() for quest_id, offer in quests.items()}


def holds_fetch_item(inventory: Iterable[Stack], offer: FetchQuestOffer) -> bool:
    """Check if an inventory holds the item an offer asks for"""
    return offer.is_satisfied_by(inventory)
