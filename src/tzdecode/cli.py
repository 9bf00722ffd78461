import asyncio
import logging
from typing import Any

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tzdecode.clients.explorer import ExplorerClient
from tzdecode.core.config import DecodeOptions, load_config
from tzdecode.core.errors import DecodeError, NotFound
from tzdecode.core.models import Block, Op, default_columns, record_columns
from tzdecode.decoding.objects import encode_value
from tzdecode.micheline.value import OnError
from tzdecode.storage.arrow import to_arrow_table, write_parquet

console = Console()

# httpx/httpcore emit one line per connection event at DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _split_columns(value: str) -> list[str]:
    return [c.strip() for c in value.split(",") if c.strip()]


def _parse_filters(filters: tuple[str, ...]) -> dict[str, str]:
    out: dict[str, str] = {}
    for f in filters:
        key, sep, value = f.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {f!r}", param_hint="--filter")
        out[key.strip()] = value.strip()
    return out


def _cell(v: Any) -> str:
    if v is None:
        return ""
    rendered = encode_value(v)
    return rendered if isinstance(rendered, str) else repr(rendered)


def _render(records: Any, record_type: type, columns: list[str]) -> Table:
    attrs = {c.alias: c.attr for c in record_columns(record_type)}
    shown = [c for c in columns if c in attrs]
    table = Table(show_lines=False)
    for c in shown:
        table.add_column(c, overflow="fold")
    for r in records:
        table.add_row(*(_cell(getattr(r, attrs[c])) for c in shown))
    return table


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except (DecodeError, NotFound) as e:
        raise click.ClickException(str(e)) from e
    except httpx.HTTPError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}") from e


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """tzdecode: typed Tezos explorer rows, contract data included."""
    configure_logging(verbose)


def _query_options(f):
    f = click.option("--columns", default="", help="Comma-separated column list (default: all non-notable)")(f)
    f = click.option("--limit", type=int, default=None, help="Rows per request")(f)
    f = click.option("--cursor", type=int, default=None, help="Continue after this row id")(f)
    f = click.option("--filter", "filters", multiple=True, help="Explorer filter key=value; repeatable")(f)
    f = click.option("--parquet", "parquet_path", type=click.Path(dir_okay=False), default=None, help="Also write rows to Parquet")(f)
    return f


def _emit(result: Any, record_type: type, columns: list[str], parquet_path: str | None) -> None:
    console.print(_render(result, record_type, columns))
    if parquet_path:
        out = write_parquet(to_arrow_table(result, record_type), parquet_path)
        console.print(f"[bold]wrote[/] → {out}  (rows={len(result)})")
    cursor = result.cursor
    console.print(f"[bold]rows[/]={len(result)}  [bold]cursor[/]={cursor if cursor is not None else '-'}")


@cli.command("blocks")
@_query_options
def blocks_cmd(
    columns: str,
    limit: int | None,
    cursor: int | None,
    filters: tuple[str, ...],
    parquet_path: str | None,
) -> None:
    """Query the block table and print decoded rows."""
    cols = _split_columns(columns) or default_columns(Block)
    flt = _parse_filters(filters)
    config = load_config()

    async def run():
        async with ExplorerClient(config) as client:
            return await client.query_blocks(cols, filters=flt, limit=limit, cursor=cursor)

    _emit(_run(run()), Block, cols, parquet_path)


@cli.command("ops")
@_query_options
@click.option("--prim", "with_prim", is_flag=True, help="Keep Micheline primitives next to decoded values")
@click.option("--meta", "with_meta", is_flag=True, help="Attach provenance to big-map updates")
@click.option("--lenient", is_flag=True, help="Render mismatched contract values instead of failing")
def ops_cmd(
    columns: str,
    limit: int | None,
    cursor: int | None,
    filters: tuple[str, ...],
    parquet_path: str | None,
    with_prim: bool,
    with_meta: bool,
    lenient: bool,
) -> None:
    """Query the operation table and print decoded rows, contract data included."""
    cols = _split_columns(columns) or default_columns(Op)
    flt = _parse_filters(filters)
    config = load_config()
    options = DecodeOptions(
        with_prim=with_prim,
        with_meta=with_meta,
        on_error=OnError.RENDER if lenient else OnError.FAIL,
    )

    async def run():
        async with ExplorerClient(config, options=options) as client:
            return await client.query_ops(cols, filters=flt, limit=limit, cursor=cursor)

    _emit(_run(run()), Op, cols, parquet_path)


if __name__ == "__main__":
    cli()
