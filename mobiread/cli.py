"""Click CLI for inspecting MOBI books and their INDX records."""
from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import click

from mobiread.config import BOOK_SUFFIXES, derive_export_path
from mobiread.errors import DecodeError
from mobiread.profiles import (
    Config,
    Profile,
    load_config,
    profile_name_error,
    resolve_profile,
    save_config,
)


class Context:
    """Holds the book path and settings resolved from --book / --profile / config."""

    def __init__(self, book: Path | None = None, profile: str | None = None):
        self._explicit_book = book
        self._profile_name = profile
        self._profile: Profile | None = None

    def _resolve(self) -> Profile:
        if self._profile is None:
            self._profile = resolve_profile(self._explicit_book, self._profile_name)
        return self._profile

    @property
    def book(self) -> Path:
        return self._resolve().book

    @property
    def max_chain_depth(self) -> Optional[int]:
        return self._resolve().max_chain_depth

    def open(self, max_chain_depth: Optional[int] = None):
        """Open the resolved book, turning decode failures into CLI errors."""
        from mobiread.mobi.reader import MobiReader

        depth = max_chain_depth if max_chain_depth is not None else self.max_chain_depth
        try:
            return MobiReader(self.book, max_chain_depth=depth)
        except DecodeError as e:
            raise click.ClickException(f"{self.book.name}: {e}") from e


pass_ctx = click.make_pass_decorator(Context)


@click.group()
@click.option(
    "--book", "-b", required=False, default=None,
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    help="Path to a .mobi/.azw/.prc file (optional if profiles configured)",
)
@click.option(
    "--profile", "-p", default=None, type=str,
    help="Named profile to use (from mobiread init)",
)
@click.version_option(package_name="mobiread")
@click.pass_context
def cli(ctx, book: Optional[Path], profile: Optional[str]):
    """mobiread - MOBI container and index inspector.

    Reads the Palm database layout of a MOBI book, its PalmDOC/MOBI/EXTH
    headers, and decodes INDX records into tagged values.
    """
    ctx.ensure_object(dict)
    ctx.obj = Context(book=book, profile=profile)


def _echo_profiles(config: Config):
    for name, p in config.profiles.items():
        depth = f", chain depth {p.max_chain_depth}" if p.max_chain_depth else ""
        default_marker = " (default)" if name == config.default_profile else ""
        click.echo(f"  {name}: {p.book}{depth}{default_marker}")


def _prompt_book() -> Path:
    """Ask for a book; a folder lists the books inside it to pick from."""
    while True:
        raw = click.prompt("Path to book or folder").strip().strip('"').strip("'")
        path = Path(raw).expanduser()
        if path.is_dir():
            books = sorted(p for p in path.iterdir() if p.suffix.lower() in BOOK_SUFFIXES)
            if not books:
                click.echo(f"No books ({', '.join(sorted(BOOK_SUFFIXES))}) in {path}")
                continue
            for i, book in enumerate(books, 1):
                click.echo(f"  {i:>3}. {book.name}")
            choice = click.prompt("Book number", type=click.IntRange(1, len(books)), default=1)
            return books[choice - 1]
        if path.is_file():
            if path.suffix.lower() not in BOOK_SUFFIXES:
                click.echo(f"Warning: unexpected extension '{path.suffix}'.")
            return path
        click.echo(f"File not found: {path}")


def _describe_book(path: Path):
    """Echo what the book's headers say, so a wrong file is caught at setup."""
    from mobiread.mobi.reader import MobiReader

    try:
        reader = MobiReader(path)
    except DecodeError as e:
        click.echo(f"Warning: {path.name} does not read as a MOBI book: {e}")
        return
    index = reader.header.index_record_offset
    where = f"INDX at record {index}" if index is not None else "no INDX"
    click.echo(f"  Found \"{reader.header.full_name}\": {reader.store.record_count} records, {where}")


@cli.command()
def init():
    """Set up config profiles for book paths (interactive)."""
    config = load_config()

    if config.profiles:
        click.echo("Current profiles:")
        _echo_profiles(config)
        click.echo()
        if not click.confirm("Overwrite existing configuration?", default=False):
            click.echo("Aborted.")
            return
        config = Config()

    click.echo("Set up mobiread profiles. Each profile names a book and its decode settings.\n")

    while True:
        name = click.prompt(
            "Profile name", default="default" if not config.profiles else None
        ).strip()
        error = profile_name_error(name, config)
        if error:
            click.echo(error)
            continue

        book = _prompt_book()
        _describe_book(book)
        depth = click.prompt(
            "Max index chain depth (0 for default)", type=click.IntRange(min=0), default=0
        )
        config.profiles[name] = Profile(name=name, book=book, max_chain_depth=depth or None)

        if config.default_profile is None or click.confirm(
            f"Make '{name}' the default profile?", default=False
        ):
            config.default_profile = name

        if not click.confirm("\nAdd another profile?", default=False):
            break
        click.echo()

    saved_path = save_config(config)
    click.echo(f"\nConfig saved to {saved_path}\n")
    _echo_profiles(config)

    click.echo("\nExample commands:")
    click.echo("  mobiread info")
    click.echo(f"  mobiread --profile {name} index --limit 20")
    click.echo("  mobiread --book <path> export --format json   (override profile)")


@cli.command()
@pass_ctx
def info(ctx: Context):
    """Show PDB, PalmDOC and MOBI header summary."""
    from mobiread.mobi.enums import COMPRESSION, MOBI_TYPE, TEXT_ENCODING, lookup_enum

    reader = ctx.open()
    pdb = reader.pdb
    h = reader.header

    click.echo(f"Book: {ctx.book} ({reader.store.file_size / 1024:.0f} KB)")
    click.echo(f"  PDB name:     {pdb.name}")
    click.echo(f"  Type/Creator: {pdb.type.decode('latin-1')}/{pdb.creator.decode('latin-1')}")
    click.echo(f"  Records:      {reader.store.record_count:,}")
    click.echo(f"  Title:        {h.full_name or '(none)'}")
    click.echo(f"  Compression:  {lookup_enum(COMPRESSION, h.palmdoc.compression)}")
    click.echo(f"  Text length:  {h.palmdoc.text_length:,} bytes in {h.palmdoc.text_record_count} records")
    click.echo(f"  MOBI type:    {lookup_enum(MOBI_TYPE, h.mobi.mobi_type)}")
    click.echo(f"  Encoding:     {lookup_enum(TEXT_ENCODING, h.encoding)}")
    click.echo(f"  Version:      {h.mobi.file_version}")
    click.echo(f"  EXTH records: {len(h.exth)}")
    index = h.index_record_offset
    click.echo(f"  INDX record:  {index if index is not None else '(none)'}")


@cli.command()
@pass_ctx
def exth(ctx: Context):
    """List EXTH metadata records."""
    from mobiread.mobi.header import text_codec

    reader = ctx.open()
    records = reader.header.exth
    if not records:
        click.echo("No EXTH metadata in this book.")
        return

    codec = text_codec(reader.header.encoding)
    click.echo(f"{'Type':>5}  {'Name':<24}  {'Value'}")
    click.echo("-" * 70)
    for rec in records:
        value = rec.value(codec)
        if isinstance(value, bytes):
            value = value.hex()
        click.echo(f"{rec.type:>5}  {rec.name:<24}  {value}")


@cli.command()
@pass_ctx
def records(ctx: Context):
    """List every PDB record's byte span."""
    reader = ctx.open()
    click.echo(f"{'#':>5}  {'Offset':>10}  {'Length':>10}  {'Magic'}")
    click.echo("-" * 40)
    for i, span in enumerate(reader.store.spans()):
        magic = reader.store.data[span.start:span.start + 4]
        shown = magic.decode("ascii") if magic.isalpha() else ""
        click.echo(f"{i:>5}  {span.start:>10,}  {span.length:>10,}  {shown}")


@cli.command()
@click.option("--start", type=int, default=None, help="First INDX record (default: from MOBI header)")
@click.option("--max-depth", type=int, default=None, help="Maximum chained records to follow")
@click.option("--limit", type=int, default=50, help="Items to show per record")
@pass_ctx
def index(ctx: Context, start: Optional[int], max_depth: Optional[int], limit: int):
    """Decode the INDX chain and show its entries."""
    from mobiread.mobi.enums import INDX_TYPE, lookup_enum
    from mobiread.mobi.header import text_codec

    reader = ctx.open(max_depth)
    if start is None and not reader.has_index:
        click.echo("This book has no INDX record.")
        return

    t0 = time.perf_counter()
    try:
        index_records = reader.index_records(start)
    except DecodeError as e:
        raise click.ClickException(str(e)) from e
    elapsed = time.perf_counter() - t0
    codec = text_codec(reader.header.encoding)

    for rec in index_records:
        kind = lookup_enum(INDX_TYPE, rec.header.index_type)
        click.echo(f"\nINDX record {rec.record_index} ({kind}): {len(rec.items)} items")
        if rec.tag_table is not None:
            tags = ", ".join(str(t.tag) for t in rec.tag_table.tags if not t.control_flag)
            click.echo(f"  TAGX: {rec.tag_table.control_byte_count} control byte(s), tags [{tags}]")
        if rec.cncx is not None:
            click.echo(f"  CNCX: {rec.cncx.length} bytes, {rec.cncx.ncx_count} NCX entries")
        for item in rec.items[:limit]:
            label = item.label.decode(codec, errors="replace")
            fields = "  ".join(
                f"{e.tag_name}={e.value}" for e in item.entries
            )
            click.echo(f"  {label:<20}  {fields}")
        if len(rec.items) > limit:
            click.echo(f"  ... and {len(rec.items) - limit} more")

    total = sum(len(r.entries) for r in index_records)
    click.echo(f"\nDecoded {len(index_records)} record(s), {total:,} values in {elapsed:.3f}s")


@cli.command()
@click.option("--format", "fmt", type=click.Choice(["csv", "json"]), required=True)
@click.option("--start", type=int, default=None, help="First INDX record (default: from MOBI header)")
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output file path")
@click.option("--default-output", is_flag=True, help="Write next to the book as <name>.index.<format>")
@pass_ctx
def export(ctx: Context, fmt: str, start: Optional[int], output: Optional[Path], default_output: bool):
    """Export the decoded index to CSV or JSON."""
    from mobiread.mobi.header import text_codec

    reader = ctx.open()
    try:
        index_records = reader.index_records(start)
    except DecodeError as e:
        raise click.ClickException(str(e)) from e
    codec = text_codec(reader.header.encoding)

    if fmt == "json":
        from mobiread.export.json_export import export_json
        data = export_json(index_records, title=reader.header.full_name, encoding=codec)
    else:
        from mobiread.export.csv_export import export_csv
        data = export_csv(index_records, encoding=codec)

    if default_output and output is None:
        output = derive_export_path(ctx.book, fmt)

    if output:
        output.write_text(data, encoding="utf-8")
        click.echo(f"Exported to {output}")
    else:
        click.echo(data)

