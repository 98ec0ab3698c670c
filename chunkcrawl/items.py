"""
Positioned world objects: chests, shrines, vendors and loot
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from chunkcrawl.quests import FetchQuestOffer


@dataclass
class VendorListing:
    """One entry of a vendor's stock"""
    slot: str  # potion, weapon, armor or headgear
    item: Dict[str, Any]
    price: int

    def to_dict(self) -> Dict[str, Any]:
        return {"slot": self.slot, "item": dict(self.item), "price": self.price}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VendorListing":
        return cls(slot=data["slot"], item=dict(data["item"]), price=data["price"])


@dataclass
class WorldItem:
    """An object placed on a chunk tile"""
    kind: str
    x: int
    y: int
    slot: Optional[str] = None  # equipment only
    item: Optional[Dict[str, Any]] = None  # potion/equipment stats
    opened: bool = False  # chests
    used: bool = False  # shrines
    vendor_id: Optional[str] = None
    stock: List[VendorListing] = field(default_factory=list)
    fetch_quest: Optional[FetchQuestOffer] = None

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data form for persistence"""
        return {
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "slot": self.slot,
            "item": dict(self.item) if self.item is not None else None,
            "opened": self.opened,
            "used": self.used,
            "vendor_id": self.vendor_id,
            "stock": [listing.to_dict() for listing in self.stock],
            "fetch_quest": self.fetch_quest.to_dict() if self.fetch_quest is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorldItem":
        fetch_quest = data.get("fetch_quest")
        return cls(
            kind=data["kind"],
            x=data["x"],
            y=data["y"],
            slot=data.get("slot"),
            item=data.get("item"),
            opened=data.get("opened", False),
            used=data.get("used", False),
            vendor_id=data.get("vendor_id"),
            stock=[VendorListing.from_dict(entry) for entry in data.get("stock") or []],
            fetch_quest=FetchQuestOffer.from_dict(fetch_quest) if fetch_quest else None,
        )
