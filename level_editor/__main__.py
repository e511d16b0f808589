#!/usr/bin/env python3
"""
Command-line entry point for the Level Editor core.

    python -m level_editor generate --width 64 --height 16 --seed 7 --out level.json
"""

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import CONFIG, EditorConfig
from .generator import LevelGenerator
from .group_manager import GroupManager
from .map_manager import MapManager
from .tools import apply_generated_level
from .undo_manager import UndoManager

logger = logging.getLogger("level_editor")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="level_editor")
    parser.add_argument("--config", help="Path to a level_editor.toml file")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a level from smart components")
    gen.add_argument("--width", type=int)
    gen.add_argument("--height", type=int)
    gen.add_argument("--groups", help="TOML group library to generate from")
    gen.add_argument("--only", nargs="*", help="Restrict generation to these group ids")
    gen.add_argument("--seed", type=int)
    gen.add_argument("--out", default="level.json", help="Map document to write")
    return parser


def summary_table(map_mgr: MapManager) -> Table:
    table = Table(title=f"Level {map_mgr.width}x{map_mgr.height}")
    table.add_column("#", justify="right")
    table.add_column("Layer")
    table.add_column("Id")
    table.add_column("Tiles", justify="right")
    table.add_column("Visible")
    table.add_column("Opacity", justify="right")
    for i, lyr in enumerate(map_mgr.layers):
        table.add_row(
            str(i),
            lyr.name,
            lyr.id,
            str(len(lyr.data)),
            "yes" if lyr.visible else "no",
            f"{lyr.opacity:.2f}",
        )
    return table


def run_generate(args, config: EditorConfig, console: Console) -> int:
    groups = GroupManager()
    if args.groups and not groups.load_library(args.groups):
        logger.error("Could not load group library %s", args.groups)
        return 1

    map_mgr = MapManager(
        args.width or config.map_width, args.height or config.map_height, groups=groups
    )
    undo_mgr = UndoManager(config.history_limit)
    generator = LevelGenerator(config=config.generation, seed=args.seed)

    if not apply_generated_level(
        map_mgr, undo_mgr, generator, groups.eligible_groups(args.only)
    ):
        logger.error("Nothing generated: no eligible terrain groups")
        return 1

    if not map_mgr.save(args.out):
        return 1
    console.print(summary_table(map_mgr))
    console.print(f"Saved to [bold]{args.out}[/bold]")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )
    config = EditorConfig.load_from_toml(args.config) if args.config else CONFIG
    console = Console()

    if args.command == "generate":
        return run_generate(args, config, console)
    return 1


if __name__ == "__main__":
    sys.exit(main())
