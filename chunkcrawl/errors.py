"""
Error conditions of the world core.

None of these escape the package: generation, persistence and rehydration
catch them where they occur and degrade (skip a feature, treat a chunk as
unsaved, regenerate, leave a quest unsatisfiable).
"""


class ChunkCrawlError(Exception):
    """Base class for world core errors"""


class GenerationDegenerate(ChunkCrawlError):
    """An optional feature found no free floor cell within the attempt budget"""


class PersistenceWriteFailure(ChunkCrawlError):
    """The backing store refused a write"""


class PersistenceReadCorrupt(ChunkCrawlError):
    """A stored record could not be decoded into a chunk"""


class RehydrationMiss(ChunkCrawlError):
    """No registry entry matches a stripped fetch target's display name"""
