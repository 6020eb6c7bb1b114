import asyncio
import json
import logging
import sys
from typing import Annotated, Any

from fastmcp import FastMCP
from pydantic import Field

from .analysis import (
    CodeAnalysisEngine,
    ProjectFile,
    build_dependency_map,
    compare_reports,
)
from .constants import LOG_CONSOLE, LOG_FILE, LOG_LEVEL, MCP_PORT
from .core import InvalidInputError
from .logging_config import configure_analysis_logging

# Configure logging to stderr to avoid interfering with JSON-RPC on stdout
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format="[%(asctime)s] %(name)s %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger("codeflow")

# Initialize FastMCP server
mcp: FastMCP = FastMCP("codeflow-mcp")

engine = CodeAnalysisEngine()


def _error_payload(message: str, **extra: Any) -> str:
    return json.dumps({"status": "error", "message": message, **extra}, indent=2)


def _analyze_project_files(files: list[dict[str, str]]) -> tuple[list[ProjectFile], list[dict[str, str]]]:
    """Analyze each ``{'path', 'content'}`` entry; rejected files are skipped."""
    analyzed: list[ProjectFile] = []
    skipped: list[dict[str, str]] = []
    for file_info in files:
        path = file_info.get("path", "untitled")
        content = file_info.get("content", "")
        try:
            report = engine.analyze(content, filename=path)
        except InvalidInputError as e:
            skipped.append({"path": path, "reason": str(e)})
            continue
        analyzed.append(ProjectFile(file_id=path, name=path, source_code=content, report=report))
    return analyzed, skipped


@mcp.tool
async def analyze_code(
    code: Annotated[str, Field(description="Full source text of the file to analyze")],
    filename: Annotated[
        str,
        Field(description="File name, used for language detection (e.g. 'app.ts')", default="untitled"),
    ] = "untitled",
    language: Annotated[
        str | None,
        Field(
            description="Language tag (javascript, typescript, python, ...). Detected from the file name and code when omitted.",
            default=None,
        ),
    ] = None,
    include_tree: Annotated[
        bool,
        Field(description="Include the syntax tree as nested data in the result", default=False),
    ] = False,
) -> str:
    """Run static analysis over ONE JavaScript or TypeScript source file.

    USE THIS TOOL WHEN:
    - You want cyclomatic complexity or a maintainability index for a file
    - You want to check a file for eval(), innerHTML, hardcoded credentials or ReDoS-prone regexes
    - You need the file's imports, exports, functions, variables, HTTP calls or database calls

    Source that does not parse is still analyzed with text patterns (mode
    "text_patterns"); other languages get line and word counts only
    (mode "text_only").

    Returns the analysis report as JSON.
    """
    try:
        logger.info(f"Analyzing {filename} ({len(code)} chars)")
        report = await asyncio.to_thread(engine.analyze, code, filename, language)
        return json.dumps({"status": "success", "analysis": report.to_dict(include_tree=include_tree)}, indent=2)
    except InvalidInputError as e:
        logger.warning(f"Rejected input for {filename}: {e}")
        return _error_payload(str(e), filename=filename)


@mcp.tool
async def compare_code(
    code_before: Annotated[str, Field(description="Source text before the change")],
    code_after: Annotated[str, Field(description="Source text after the change")],
    filename: Annotated[
        str,
        Field(description="File name used for both versions", default="untitled.js"),
    ] = "untitled.js",
) -> str:
    """Compare two versions of a file and rate the risk of the change.

    Reports the change in complexity and security score, new findings,
    added/removed imports and functions, and a risk level
    (low/medium/high/critical).
    """
    try:
        before = await asyncio.to_thread(engine.analyze, code_before, filename)
        after = await asyncio.to_thread(engine.analyze, code_after, filename)
    except InvalidInputError as e:
        logger.warning(f"Rejected comparison input for {filename}: {e}")
        return _error_payload(str(e), filename=filename)

    comparison = compare_reports(before, after)
    return json.dumps({"status": "success", "comparison": comparison.model_dump(mode="json")}, indent=2)


@mcp.tool
async def map_project_dependencies(
    files: Annotated[
        list[dict[str, str]],
        Field(
            description="Project files. Each file should have 'path' and 'content' keys. Example: [{'path': 'src/api.js', 'content': 'export function get() {}'}, ...]"
        ),
    ],
) -> str:
    """Build a dependency map across the files of a project.

    Nodes are files and their named functions; edges are imports resolved
    against file names and calls to exported names. Empty files are
    skipped and listed under "skipped".
    """
    logger.info(f"Mapping dependencies across {len(files)} files")
    analyzed, skipped = await asyncio.to_thread(_analyze_project_files, files)
    dependency_map = build_dependency_map(analyzed)
    return json.dumps(
        {"status": "success", "dependency_map": dependency_map.to_dict(), "skipped": skipped},
        indent=2,
    )


def main() -> None:
    """Run the MCP server with HTTP streaming transport."""
    configure_analysis_logging(log_file=LOG_FILE, log_level=LOG_LEVEL, enable_console=LOG_CONSOLE)

    print("CodeFlow MCP Server v0.1.0 (HTTP Streaming)", file=sys.stderr)
    print("=" * 50, file=sys.stderr)
    print(f"Starting HTTP streaming server on port {MCP_PORT}...", file=sys.stderr)
    print(f"HTTP endpoint will be available at: http://localhost:{MCP_PORT}/mcp", file=sys.stderr)

    try:
        asyncio.run(mcp.run_http_async(transport="streamable-http", host="0.0.0.0", port=MCP_PORT))
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"MCP server error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
