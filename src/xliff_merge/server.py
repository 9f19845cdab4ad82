"""
MCP Server for XLIFF merging

This server exposes the merge engine through the Model Context Protocol (MCP):
merging freshly extracted units into a translated file, and summarizing an
XLIFF file before or after a merge.
"""

import asyncio
import json
import logging
import sys
import traceback
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .files import read_xliff, validate_file_extension, write_xliff
from .merge import describe, merge_with_id_mapping
from .options import MergeOptions


def setup_logging():
    """Log to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    return logging.getLogger("xliff-merge-server")


logger = setup_logging()

# Create the MCP server instance
app = Server("xliff-merge-server")

# Tool arguments that map one-to-one onto MergeOptions fields
OPTION_NAMES = frozenset(f.name for f in fields(MergeOptions)) - {'exclude_files'}


def resolve_file_path(file_path: str, must_exist: bool = True) -> Path:
    """
    Resolve a file path passed to a tool.

    Args:
        file_path: The file path to resolve
        must_exist: Raise if the file does not exist

    Returns:
        Resolved Path object

    Raises:
        FileNotFoundError: If must_exist is set and the file cannot be found
        ValueError: If the file extension is not allowed
    """
    validate_file_extension(file_path)
    path = Path(file_path).expanduser()
    if must_exist and not path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")
    return path.resolve()


def build_options(arguments: Dict[str, Any]) -> MergeOptions:
    """Build MergeOptions from tool arguments, reading any exclude files."""
    raw = arguments.get("options") or {}
    unknown = set(raw) - OPTION_NAMES
    if unknown:
        raise ValueError(f"Unknown merge options: {', '.join(sorted(unknown))}")
    exclude_files = [read_xliff(resolve_file_path(p)) for p in arguments.get("exclude_files") or []]
    return MergeOptions(exclude_files=exclude_files, **raw)


def run_merge(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """
    Execute the merge_xliff tool.

    Returns:
        Dictionary with the output path (None for a dry run), id renames and
        unit counts; a dry run also includes the merged text
    """
    origin_paths = arguments["origin_files"]
    if isinstance(origin_paths, str):
        origin_paths = [origin_paths]
    destination_path = resolve_file_path(arguments["destination_file"], must_exist=False)
    output_path = arguments.get("output_file")
    if output_path:
        validate_file_extension(output_path)
    dry_run = bool(arguments.get("dry_run", False))

    origins = [read_xliff(resolve_file_path(p)) for p in origin_paths]
    destination = read_xliff(destination_path, missing_ok=True)
    options = build_options(arguments)

    result = merge_with_id_mapping(origins, destination, options, destination_path.name)
    logger.info(f"merge into {destination_path}: {result.stats}")

    summary: Dict[str, Any] = {
        "output_file": None,
        "id_mapping": result.id_mapping,
        "stats": result.stats,
    }
    if dry_run:
        summary["merged"] = result.output
    else:
        summary["output_file"] = str(write_xliff(destination_path, result.output, output_path))
    return summary


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available XLIFF merge tools."""
    return [
        Tool(
            name="merge_xliff",
            description=(
                "Merge freshly extracted XLIFF units (origin) into a translated XLIFF file "
                "(destination). Keeps existing translations, updates changed sources and "
                "resets their state, adds new units, removes obsolete ones and matches "
                "renamed units by source similarity. Supports XLIFF 1.2 and 2.0."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "origin_files": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Paths of the extracted XLIFF files, merged in order",
                    },
                    "destination_file": {
                        "type": "string",
                        "description": "Path of the translated XLIFF file (created if missing)",
                    },
                    "output_file": {
                        "type": "string",
                        "description": "Optional output path. If not provided, overwrites the destination.",
                    },
                    "exclude_files": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "XLIFF files whose unit ids are left out of the merge",
                    },
                    "options": {
                        "type": "object",
                        "description": (
                            "Merge options: fuzzy_match, collapse_whitespace, "
                            "reset_translation_state, source_language, replace_apostrophe, "
                            "new_translation_targets_blank (true/false/'omit'), "
                            "sync_targets_with_initial_state"
                        ),
                    },
                    "dry_run": {
                        "type": "boolean",
                        "description": "Return the merged text instead of writing it",
                    },
                },
                "required": ["origin_files", "destination_file"],
            },
        ),
        Tool(
            name="get_xliff_statistics",
            description=(
                "Get statistics about an XLIFF file: version, source/target language, "
                "number of units and counts by translation state."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "file_path": {
                        "type": "string",
                        "description": "Path to the XLIFF file",
                    },
                },
                "required": ["file_path"],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""

    logger.info(f"call_tool: {name} with arguments: {arguments}")

    try:
        if name == "merge_xliff":
            summary = run_merge(arguments)
            return [
                TextContent(
                    type="text",
                    text=json.dumps(summary, indent=2, ensure_ascii=False),
                )
            ]

        elif name == "get_xliff_statistics":
            path = resolve_file_path(arguments["file_path"])
            stats = describe(read_xliff(path))
            return [
                TextContent(
                    type="text",
                    text=json.dumps(stats, indent=2, ensure_ascii=False),
                )
            ]

        else:
            return [
                TextContent(
                    type="text",
                    text=f"Unknown tool: {name}",
                )
            ]

    except FileNotFoundError as e:
        return [TextContent(type="text", text=f"File not found.\nError: {str(e)}")]
    except Exception as e:
        # Provide detailed error for debugging
        error_details = traceback.format_exc()
        return [TextContent(
            type="text",
            text=f"Error: {str(e)}\n\nDetails:\n{error_details}"
        )]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(
            read_stream,
            write_stream,
            app.create_initialization_options(),
        )


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
