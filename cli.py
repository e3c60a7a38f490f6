#!/usr/bin/env python
"""
Command-line interface for OSM multipolygon assembly

Usage:
    python cli.py assemble --input overpass.json --output relations.json
    python cli.py fetch --relation-id 62422 --output relation.json
"""

import os
import sys
import json
import argparse
from typing import Any, Dict, List, Optional

from loguru import logger
import shapely
from shapely.geometry import mapping

from osm_multipolygon.assembler import MultipolygonAssembler
from osm_multipolygon.errors import RelationAssemblyError
from osm_multipolygon.models import AssembledRelation, Relation
from osm_multipolygon.osm import OSMResponseParser, OverpassAPIClient, is_multipolygon


def setup_logging(verbose: bool = False):
    """Configure logging"""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=level
    )


def build_report(relation: Relation, wkb: Optional[bytes], error: Optional[str] = None) -> AssembledRelation:
    """Describe the outcome of one relation"""
    report = {
        "id": relation.id,
        "version": relation.version,
        "timestamp": relation.timestamp,
        "tags": relation.tags,
        "member_count": len(relation.members),
        "success": wkb is not None,
        "error": error,
    }
    if wkb is not None:
        geometry = shapely.from_wkb(wkb)
        polygons = list(geometry.geoms) if geometry.geom_type == "MultiPolygon" else [geometry]
        report.update({
            "geometry": mapping(geometry),
            "wkb_hex": wkb.hex(),
            "polygon_count": len(polygons),
            "hole_count": sum(len(p.interiors) for p in polygons),
            "area": geometry.area,
        })
    return AssembledRelation(**report)


def assemble_response(
    data: Dict[str, Any],
    assembler: MultipolygonAssembler,
    relation_id: Optional[int] = None
) -> List[AssembledRelation]:
    """Assemble every multipolygon relation of an Overpass response"""
    _, ways, relations = OSMResponseParser.parse_elements(data)

    reports = []
    for osm_relation in relations:
        if relation_id is not None and osm_relation.id != relation_id:
            continue
        if not is_multipolygon(osm_relation.tags, assembler.config.relation_types):
            logger.debug(f"Skipping relation {osm_relation.id}: type={osm_relation.tags.get('type')}")
            continue

        relation = OSMResponseParser.to_relation(osm_relation, ways)
        try:
            wkb = assembler.assemble_or_raise(
                relation.id, relation.version, relation.timestamp, relation.members
            )
            reports.append(build_report(relation, wkb))
            logger.info(f"✓ Relation {relation.id} assembled")
        except RelationAssemblyError as e:
            logger.warning(f"✗ Relation {relation.id}: {type(e).__name__}: {e}")
            reports.append(build_report(relation, None, f"{type(e).__name__}: {e}"))
        except Exception as e:
            logger.opt(exception=e).warning(f"✗ Relation {relation.id}: {e!r}")
            reports.append(build_report(relation, None, repr(e)))

    return reports


def write_reports(reports: List[AssembledRelation], output_path: Optional[str]):
    payload = json.dumps([r.model_dump(mode="json") for r in reports], indent=2, ensure_ascii=False)
    if output_path:
        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(payload)
        logger.info(f"✓ Saved: {output_path}")
    else:
        print(payload)


def _finish(reports: List[AssembledRelation], args) -> int:
    write_reports(reports, args.output)
    succeeded = sum(1 for r in reports if r.success)
    logger.info(f"Assembled {succeeded}/{len(reports)} relations")
    return 0 if succeeded else 1


def cmd_assemble(args):
    """Assemble relations from a saved Overpass response"""
    setup_logging(args.verbose)

    if not os.path.exists(args.input):
        logger.error(f"Input file not found: {args.input}")
        return 1

    with open(args.input, "r", encoding="utf-8") as f:
        data = json.load(f)

    reports = assemble_response(data, MultipolygonAssembler(), args.relation_id)
    return _finish(reports, args)


def cmd_fetch(args):
    """Fetch a relation from Overpass and assemble it"""
    setup_logging(args.verbose)

    try:
        data = OverpassAPIClient().fetch_relation(args.relation_id)
    except RuntimeError as e:
        logger.error(f"Failed to fetch relation {args.relation_id}: {e}")
        return 1

    reports = assemble_response(data, MultipolygonAssembler(), args.relation_id)
    return _finish(reports, args)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="OSM Multipolygon Assembler CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Assemble relations from an Overpass response ('out meta geom'):
    python cli.py assemble --input overpass.json --output relations.json

  Fetch and assemble one relation:
    python cli.py fetch --relation-id 62422
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Assemble command
    assemble_parser = subparsers.add_parser("assemble", help="Assemble relations from an Overpass JSON file")
    assemble_parser.add_argument("--input", "-i", required=True, help="Overpass JSON response")
    assemble_parser.add_argument("--output", "-o", help="Output JSON report (stdout if not specified)")
    assemble_parser.add_argument("--relation-id", type=int, help="Only assemble this relation")
    assemble_parser.set_defaults(func=cmd_assemble)

    # Fetch command
    fetch_parser = subparsers.add_parser("fetch", help="Fetch a relation from Overpass and assemble it")
    fetch_parser.add_argument("--relation-id", type=int, required=True, help="OSM relation ID")
    fetch_parser.add_argument("--output", "-o", help="Output JSON report (stdout if not specified)")
    fetch_parser.set_defaults(func=cmd_fetch)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
