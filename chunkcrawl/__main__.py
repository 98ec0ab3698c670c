"""
Command-line preview of a generated chunk
"""
import argparse
import logging
from collections import Counter

from chunkcrawl.constants import WorldSettings
from chunkcrawl.session import WorldSession
from chunkcrawl.world import biome_tier


def main() -> None:
    """Print one chunk of a world with a summary of what lives in it"""
    parser = argparse.ArgumentParser(description="Generate and print a chunk of a chunkcrawl world")
    parser.add_argument("--seed", type=int, default=None, help="World seed (random when omitted)")
    parser.add_argument("--cx", type=int, default=0, help="Chunk x-coordinate")
    parser.add_argument("--cy", type=int, default=0, help="Chunk y-coordinate")
    parser.add_argument("--db", default=":memory:", help="SQLite file to load chunks from and save them to")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log generation details")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = WorldSettings(args.seed)
    settings.db_path = args.db
    session = WorldSession(settings)
    try:
        chunk, loaded = session.load_or_generate(args.cx, args.cy)
        for row in chunk.tiles:
            print("".join(row))

        print(f"seed {session.seed}  chunk ({chunk.cx}, {chunk.cy})  {'loaded' if loaded else 'generated'}")
        print(f"biome {chunk.biome} (max tier {biome_tier(chunk.cx, chunk.cy)})  danger {chunk.danger}")
        monsters = Counter(monster.name for monster in chunk.monsters)
        print("monsters: " + ", ".join(f"{count}x {name}" for name, count in sorted(monsters.items())))
        items = Counter(item.kind for item in chunk.items)
        print("items: " + ", ".join(f"{count}x {kind}" for kind, count in sorted(items.items())))
        for item in chunk.items:
            if item.fetch_quest is not None:
                print(f"vendor at ({item.x}, {item.y}) wants {item.fetch_quest.target.name}")

        if args.db != ":memory:":
            session.save_chunk(args.cx, args.cy, chunk)
    finally:
        session.close()


if __name__ == "__main__":
    main()
