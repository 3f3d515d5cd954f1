import asyncio
import json
from typing import Any, Dict

import click

from .config import ConfigManager
from .logging_setup import setup_logging
from .mcp_server import FileSystemMCPServer
from .tools import find_tool_handler, list_tool_handler


def _echo_response(ctx, response: Dict[str, Any]):
    click.echo(json.dumps(response, indent=2))
    if response.get("status") == "error":
        ctx.exit(1)


def _meta_value(raw: str):
    return None if raw.lower() in ("null", "none") else raw


@click.group()
@click.option('--config', '-c', default=None, help='Configuration file path (YAML)')
@click.pass_context
def cli(ctx, config):
    """fsquery filesystem tool server"""
    ctx.ensure_object(dict)
    try:
        manager = ConfigManager(config)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    ctx.obj['config'] = manager.get_config()
    setup_logging(ctx.obj['config'])


@cli.command()
@click.pass_context
def serve(ctx):
    """Serve the find and list tools over MCP on stdio"""
    server = FileSystemMCPServer(ctx.obj['config'])
    asyncio.run(server.run())


@cli.command()
@click.argument('base_path')
@click.option('--name', 'names', multiple=True, help='Glob matched against entry names')
@click.option('--content', 'contents', multiple=True, help='Text (or regex with --regex) to search in files')
@click.option('--regex', is_flag=True, help='Treat --content values as regular expressions')
@click.option('--case-sensitive', is_flag=True, help='Case-sensitive content matching')
@click.option('--ext', 'extensions', multiple=True, help='Restrict content search to these extensions')
@click.option('--meta', 'metas', multiple=True, nargs=3, metavar='ATTR OP VALUE',
              help='Metadata filter, e.g. --meta size_bytes gt 1024')
@click.option('--type', 'entry_type', type=click.Choice(['file', 'directory', 'any']),
              default='any', help='Entry type filter')
@click.option('--recursive/--no-recursive', default=None, help='Recurse into subdirectories')
@click.pass_context
def find(ctx, base_path, names, contents, regex, case_sensitive, extensions, metas, entry_type, recursive):
    """Find entries under BASE_PATH matching every given criterion"""
    criteria = [{"type": "name_pattern", "pattern": pattern} for pattern in names]
    for pattern in contents:
        criterion = {
            "type": "content_pattern",
            "pattern": pattern,
            "is_regex": regex,
            "case_sensitive": case_sensitive,
        }
        if extensions:
            criterion["file_types_to_search"] = list(extensions)
        criteria.append(criterion)
    for attribute, operator, value in metas:
        criteria.append({
            "type": "metadata_filter",
            "attribute": attribute,
            "operator": operator,
            "value": _meta_value(value),
            "case_sensitive": case_sensitive,
        })

    params = {
        "base_path": base_path,
        "match_criteria": criteria,
        "entry_type_filter": entry_type,
    }
    if recursive is not None:
        params["recursive"] = recursive

    _echo_response(ctx, find_tool_handler(params, ctx.obj['config']))


@cli.command(name='list')
@click.argument('path')
@click.option('--depth', '-d', default=0, type=int, help='Recursion depth for the listing')
@click.option('--size', is_flag=True, help='Calculate recursive sizes of directories')
@click.pass_context
def list_entries(ctx, path, depth, size):
    """List the entries of PATH as a tree"""
    params = {
        "operation": "entries",
        "path": path,
        "recursive_depth": depth,
        "calculate_recursive_size": size,
    }
    _echo_response(ctx, list_tool_handler(params, ctx.obj['config']))


@cli.command()
@click.pass_context
def config(ctx):
    """Show the active configuration"""
    click.echo(json.dumps(ctx.obj['config'].model_dump(), indent=2))
