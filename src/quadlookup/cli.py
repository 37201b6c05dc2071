"""
Command-line interface for quadlookup.

Provides commands for encoding and navigating quadkeys and for checking
the lookup tree against a brute-force oracle.
"""

import argparse
import logging
import math
import sys
from typing import Optional

from .declination import DeclinationCache, DipoleModel
from .duckdb_oracle import DuckDBOracle
from .oracle import ListOracle
from .projection import (
    MAX_ZOOM,
    MIN_ZOOM,
    map_size_tiles,
    raster_size,
    resolution_m_per_pixel,
    resolution_m_per_tile,
)
from .quadkey import Quadkey, lat_lon_to_quadkey
from .verify import VerifyConfig, run_verification


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="quadlookup",
        description="Mercator quadkeys and quadkey lookup trees",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Encode command
    encode_parser = subparsers.add_parser(
        "encode",
        help="Quadkey of the tile containing a coordinate",
    )
    encode_parser.add_argument("lat", type=float, help="Latitude in degrees")
    encode_parser.add_argument("lon", type=float, help="Longitude in degrees")
    encode_parser.add_argument(
        "-z", "--zoom",
        type=int,
        default=12,
        help="Zoom level (default: 12)",
    )

    # Decode command
    decode_parser = subparsers.add_parser(
        "decode",
        help="Tile index and center of a quadkey",
    )
    decode_parser.add_argument("quadkey", type=str, help="Quadkey digits")

    # Neighbors command
    neighbors_parser = subparsers.add_parser(
        "neighbors",
        help="Neighborhood of a quadkey",
    )
    neighbors_parser.add_argument("quadkey", type=str, help="Quadkey digits")
    neighbors_parser.add_argument(
        "--ring",
        type=int,
        choices=[4, 9, 49],
        default=9,
        help="Neighborhood: 4 (around), 9 (3x3) or 49 (coarse 7x7) (default: 9)",
    )

    # Stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show grid statistics for a zoom level",
    )
    stats_parser.add_argument(
        "-z", "--zoom",
        type=int,
        default=12,
        help="Zoom level (default: 12)",
    )
    stats_parser.add_argument(
        "--lat",
        type=float,
        default=0.0,
        help="Latitude for the ground resolution (default: 0)",
    )

    # Verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Check a lookup tree against a brute-force oracle",
    )
    verify_parser.add_argument(
        "--count",
        type=int,
        default=1000,
        help="Number of random items (default: 1000)",
    )
    verify_parser.add_argument(
        "--min-zoom",
        type=int,
        default=3,
        help="Root zoom of the tree (default: 3)",
    )
    verify_parser.add_argument(
        "--max-zoom",
        type=int,
        default=10,
        help="Max zoom of the tree (default: 10)",
    )
    verify_parser.add_argument(
        "--branch-limit",
        type=int,
        default=32,
        help="Items per level before splitting (default: 32)",
    )
    verify_parser.add_argument(
        "--item-zoom",
        type=int,
        default=12,
        help="Zoom of the item keys (default: 12)",
    )
    verify_parser.add_argument(
        "--query-zoom",
        type=int,
        default=6,
        help="Zoom of the part-of queries (default: 6)",
    )
    verify_parser.add_argument(
        "--queries",
        type=int,
        default=200,
        help="Number of queries of each kind (default: 200)",
    )
    verify_parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed (default: 42)",
    )
    verify_parser.add_argument(
        "--oracle",
        type=str,
        choices=["list", "duckdb"],
        default="duckdb",
        help="Oracle to compare against (default: duckdb)",
    )

    # Declination command
    declination_parser = subparsers.add_parser(
        "declination",
        help="Cached dipole declination at a coordinate",
    )
    declination_parser.add_argument("lat", type=float, help="Latitude in degrees")
    declination_parser.add_argument("lon", type=float, help="Longitude in degrees")
    declination_parser.add_argument(
        "-z", "--zoom",
        type=int,
        default=8,
        help="Cache tile zoom level (default: 8)",
    )

    return parser


def cmd_encode(args: argparse.Namespace) -> int:
    """Handle the encode command."""
    quadkey = lat_lon_to_quadkey(args.lat, args.lon, args.zoom)
    if not quadkey:
        print(f"Error: zoom must be within {MIN_ZOOM}..{MAX_ZOOM}")
        return 1
    print(quadkey)
    return 0


def cmd_decode(args: argparse.Namespace) -> int:
    """Handle the decode command."""
    key = Quadkey(args.quadkey)
    tile = key.to_tile()
    lat, lon = key.center()

    print(f"Quadkey {key}:")
    print(f"  Zoom: {key.zoom}")
    print(f"  Tile: x={tile.x} y={tile.y}")
    print(f"  Center: {lat:.6f}, {lon:.6f}")
    return 0


def cmd_neighbors(args: argparse.Namespace) -> int:
    """Handle the neighbors command."""
    key = Quadkey(args.quadkey)
    if key.is_empty:
        print("Error: the empty quadkey has no neighbors")
        return 1

    if args.ring == 4:
        keys = key.around()
    elif args.ring == 9:
        keys = key.around9()
    else:
        keys = key.around49ex()

    for k in keys:
        print(k)
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle the stats command."""
    z = args.zoom
    if z < MIN_ZOOM or z > MAX_ZOOM:
        print(f"Error: zoom must be within {MIN_ZOOM}..{MAX_ZOOM}")
        return 1

    tiles = map_size_tiles(z)
    print(f"Grid statistics for zoom {z}:")
    print(f"  Raster size: {raster_size(z):,} pixels per side")
    print(f"  Tiles per side: {tiles:,}")
    print(f"  Total tiles: {tiles * tiles:,}")
    print(f"  Pixel resolution at {args.lat}: {resolution_m_per_pixel(z, args.lat):.3f} m")
    print(f"  Tile resolution at {args.lat}: {resolution_m_per_tile(z, args.lat):.1f} m")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    """Handle the verify command."""
    config = VerifyConfig(
        count=args.count,
        min_zoom=args.min_zoom,
        max_zoom=args.max_zoom,
        branch_limit=args.branch_limit,
        item_zoom=args.item_zoom,
        query_zoom=args.query_zoom,
        queries=args.queries,
        seed=args.seed,
    )

    if args.oracle == "duckdb":
        print(f"Verifying against DuckDBOracle with {config.count} items...")
        with DuckDBOracle() as oracle:
            lookup, stats = run_verification(config, oracle)
    else:
        print(f"Verifying against ListOracle with {config.count} items...")
        lookup, stats = run_verification(config, ListOracle())

    print(f"\nVerification statistics:")
    print(f"  Items added: {stats.items_added}")
    print(f"  Branch limit: {lookup.config.branch_limit}")
    print(f"  Max level reached: {stats.max_level_reached}")
    print(f"  Levels: {stats.node_count}")
    print(f"  Leaf levels: {stats.leaf_count}")
    print(f"  Part-of queries: {stats.part_of_queries} ({stats.items_returned} items)")
    print(f"  Includes queries: {stats.include_queries} ({stats.include_hits} hits)")
    print(f"  Mismatches: {stats.mismatches}")
    print(f"  Elapsed: {stats.elapsed_s:.3f} s")

    return 0 if stats.mismatches == 0 else 1


def cmd_declination(args: argparse.Namespace) -> int:
    """Handle the declination command."""
    cache = DeclinationCache(DipoleModel(), zoom=args.zoom)
    decl = cache.declination_rad(args.lat, args.lon)
    print(f"{math.degrees(decl):.3f} deg ({decl:.5f} rad)")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "encode":
            return cmd_encode(args)
        elif args.command == "decode":
            return cmd_decode(args)
        elif args.command == "neighbors":
            return cmd_neighbors(args)
        elif args.command == "stats":
            return cmd_stats(args)
        elif args.command == "verify":
            return cmd_verify(args)
        elif args.command == "declination":
            return cmd_declination(args)
        else:
            parser.print_help()
            return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
