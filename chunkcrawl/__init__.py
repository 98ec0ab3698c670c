"""
chunkcrawl: procedurally generated, persisted and seamlessly stitched chunk world
"""
from chunkcrawl.constants import WorldSettings
from chunkcrawl.events import ChunkDidChange, ChunkWillChange, EventBus
from chunkcrawl.navigator import WorldNavigator, find_landing, ring_cells
from chunkcrawl.persistence import ChunkStore
from chunkcrawl.quests import FetchItemRegistry, FetchTarget, default_registry
from chunkcrawl.session import WorldSession
from chunkcrawl.world import Chunk, ChunkGenerator, generate_chunk
