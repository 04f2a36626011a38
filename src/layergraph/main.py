"""
layergraph - Main Entry Point

Headless command line for saved documents:

    python -m layergraph info document.json
    python -m layergraph render document.json output.png [--strict]
"""

import argparse
import logging
import sys
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="layergraph", description="Layered node-graph documents")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    info = sub.add_parser("info", help="Describe a saved document")
    info.add_argument("document", type=Path)

    render = sub.add_parser("render", help="Composite a saved document to an image file")
    render.add_argument("document", type=Path)
    render.add_argument("output", type=Path)
    render.add_argument("--strict", action="store_true",
                        help="Fail on any layer error instead of skipping the layer")
    return parser


def _info(document) -> None:
    print(f"Layers: {len(document)}")
    for index, layer in enumerate(document.layers):
        flags = "visible" if layer.visible else "hidden"
        output = layer.output_node if layer.output_node is not None else "-"
        print(
            f"  [{index}] {layer.name}: {flags}, {layer.blend_mode.label}, "
            f"opacity {layer.opacity:.2f}, {len(layer.graph)} node(s), output {output}"
        )


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for layergraph.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from layergraph.core.errors import LayerGraphError
    from layergraph.core.node_types import NodeRegistry
    from layergraph.core.workspace import load_document
    from layergraph.nodes import register_all_nodes

    registry = register_all_nodes(NodeRegistry())
    try:
        document = load_document(args.document, registry)
        if args.command == "info":
            _info(document)
            return 0

        image = document.render(strict=args.strict)
        if image is None:
            print("Error: nothing to render (no visible layer has an output)", file=sys.stderr)
            return 1
        try:
            image.save(args.output)
        except ValueError as e:
            # Pillow rejects suffixes it has no writer for
            print(f"Error: cannot write {args.output}: {e}", file=sys.stderr)
            return 1
        print(f"Wrote {image.width}x{image.height} image to {args.output}")
        return 0
    except (LayerGraphError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
