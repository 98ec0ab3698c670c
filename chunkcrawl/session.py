"""
Per-playthrough context: world seed, chunk store, fetch-item registry and event bus
"""
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from chunkcrawl.constants import WorldSettings
from chunkcrawl.events import EventBus
from chunkcrawl.persistence import ChunkStore
from chunkcrawl.quests import (
    FetchItemRegistry, FetchQuestOffer, default_registry, dump_fetch_quests, restore_fetch_quests
)
from chunkcrawl.world import Chunk, ChunkGenerator

logger = logging.getLogger(__name__)


class WorldSession:
    """Everything the world core needs, passed around instead of held globally"""

    def __init__(self, settings: Optional[WorldSettings] = None, store: Optional[ChunkStore] = None,
                 registry: Optional[FetchItemRegistry] = None, bus: Optional[EventBus] = None):
        """
        Args:
            settings: World settings, a random seed when omitted
            store: Chunk store, a fresh one at settings.db_path when omitted
            registry: Fetch-item templates, the built-in ones when omitted
            bus: Event bus for chunk transition notifications
        """
        self.settings = settings if settings is not None else WorldSettings()
        self.store = store if store is not None else ChunkStore(self.settings.db_path, self.settings.store_prefix)
        self.registry = registry if registry is not None else default_registry()
        self.bus = bus if bus is not None else EventBus()
        self.generator = ChunkGenerator(self.registry, self.settings.width, self.settings.height)
        # Player's accepted fetch quests, by quest id
        self.fetch_quests: Dict[str, FetchQuestOffer] = {}

    @property
    def seed(self) -> int:
        return self.settings.seed

    def load_or_generate(self, cx: int, cy: int) -> Tuple[Chunk, bool]:
        """
        Get chunk (cx, cy) from the store, generating it on a miss

        Returns:
            (chunk, loaded) where loaded is True when it came from the store
        """
        chunk = self.store.load(self.seed, cx, cy)
        if chunk is not None:
            return chunk, True
        return self.generator.generate(self.seed, cx, cy), False

    def save_chunk(self, cx: int, cy: int, chunk: Chunk) -> bool:
        """Store a chunk under the coordinates it was entered at"""
        return self.store.save(self.seed, cx, cy, chunk)

    def clear_world(self) -> int:
        """Forget every stored chunk of this world (new game)"""
        return self.store.clear(self.seed)

    def restore_quests(self, raw: Mapping[str, Mapping[str, Any]]) -> None:
        """Load the player's fetch quests from saved session data"""
        self.fetch_quests = restore_fetch_quests(raw, self.registry)
        logger.debug("Restored %d fetch quests", len(self.fetch_quests))

    def dump_quests(self) -> Dict[str, Dict[str, Any]]:
        return dump_fetch_quests(self.fetch_quests)

    def close(self) -> None:
        self.store.close()
