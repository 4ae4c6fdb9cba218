# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m zxtapi` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``zxtapi.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``zxtapi.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import logging
from typing import IO
from typing import Optional

import click

from .__init__ import __version__
from .errors import TapError
from .extract import default_output_dir
from .extract import extract_blocks
from .extract import print_basic_program
from .extract import print_binary_code
from .scanner import ScanEntry
from .scanner import scan_blocks
from .tap import TapBlockType
from .utils import Reporter
from .utils import parse_int


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


class IndexParamType(click.ParamType):
    name = 'index'

    def convert(self, value, param, ctx):
        try:
            i = parse_int(value)
            if i < 1:
                raise ValueError()
            return i
        except ValueError:
            self.fail(f'invalid index: {value!r}', param, ctx)


BASED_INT = BasedIntParamType()
INDEX_INT = IndexParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)
DIR_PATH_OUT = click.Path(file_okay=False, writable=True)

LIST_TITLE = 'IDX: name       : type         : Length : Param1 : Param2 '
LIST_RULER = '---:------------:--------------:--------:--------:--------'


# ----------------------------------------------------------------------------

def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


def setup_logging(verbose: bool) -> None:

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(name)s: %(message)s' if verbose else '%(message)s',
    )


def format_header_row(entry: ScanEntry) -> str:

    header = entry.header
    if header is not None:
        name = f'"{header.name}"'
        return (f' {header.index:02d}:{name:<12s}:{header.type_name:<14s} '
                f'{header.length:6d}    {header.param1:6d}  {header.param2:6d}')
    else:
        label = f'//data{entry.fragment}'
        return f'    {"":<12s} {label:<14s} {len(entry.block.data):6d}'


# ----------------------------------------------------------------------------

class TapInputCtxMgr:

    def __init__(
        self,
        input_path: str,
        reporter: Reporter,
    ):

        self.input_path: str = input_path
        self.reporter: Reporter = reporter
        self.stream: Optional[IO] = None

    def __enter__(self) -> 'TapInputCtxMgr':

        self.stream = click.open_file(self.input_path, 'rb')
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:

        if self.stream is not None:
            self.stream.close()
            self.stream = None

        suppress = isinstance(exc_val, (TapError, OSError))
        if suppress:
            self.reporter.error('%s', exc_val)

        if (exc_val is None or suppress) and self.reporter.errors:
            raise click.exceptions.Exit(1)

        return suppress


# ============================================================================

@click.group()
@click.option('--color/--no-color', 'color', default=None, help="""
    Forces colored messages on or off.
    By default, colors are used only on a terminal.
""")
@click.option('-v', '--verbose', is_flag=True, help="""
    Prints debug messages.
""")
@click.option('--version', is_flag=True, is_eager=True,
              expose_value=False, callback=print_version, help="""
    Prints the package version number.
""")
@click.pass_context
def main(
    ctx: click.Context,
    color: Optional[bool],
    verbose: bool,
) -> None:
    """
    A set of command line utilities to inspect ZX-Spectrum TAP tape images.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for the standard input/output.
    """

    setup_logging(verbose)
    ctx.obj = Reporter(color=color)


# ----------------------------------------------------------------------------

@main.command(name='list')
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_obj
def list_(
    reporter: Reporter,
    infile: str,
) -> None:
    r"""Lists the blocks of a tape.

    Headers are listed with their 1-based index, name, type, length and
    parameters.
    Other blocks are listed as data fragments of the previous header.

    ``INFILE`` is the path of the tape file.
    Set to ``-`` to read from standard input.
    """

    with TapInputCtxMgr(infile, reporter) as ctx:
        click.echo(LIST_TITLE)
        click.echo(LIST_RULER)

        for entry in scan_blocks(ctx.stream, reporter):
            click.echo(format_header_row(entry))


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_obj
def detail(
    reporter: Reporter,
    infile: str,
) -> None:
    r"""Prints the details of every block.

    For each block: flag, declared length, stored and computed checksum.
    Headers also show their fields, with a type-specific interpretation of
    the parameters.

    ``INFILE`` is the path of the tape file.
    Set to ``-`` to read from standard input.
    """

    with TapInputCtxMgr(infile, reporter) as ctx:
        for entry in scan_blocks(ctx.stream, reporter):
            block = entry.block
            tag = block.tag
            kind = tag.name if isinstance(tag, TapBlockType) else 'UNKNOWN'
            computed = block.compute_checksum()
            status = 'OK' if block.checksum == computed else 'BAD'

            click.echo(f'Block {block.coords[0] + 1}: '
                       f'flag=0x{int(tag):02X} ({kind}) '
                       f'length={block.count} '
                       f'checksum=0x{block.checksum:02X}/0x{computed:02X} {status}')

            header = entry.header
            if header is not None:
                click.echo(f'    index:    {header.index}')
                click.echo(f'    name:     "{header.name}"')
                click.echo(f'    type:     {header.type_name}')
                click.echo(f'    length:   {header.length}')
                click.echo(f'    param1:   {header.param1}')
                click.echo(f'    param2:   {header.param2}')
                for key, value in header.get_details().items():
                    click.echo(f'    {key + ":":<9s} {value}')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-n', '--name', help="""
    Selects the program by its exact name.
""")
@click.option('-i', '--index', type=INDEX_INT, help="""
    Selects the program by its 1-based header index.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_obj
def basic(
    reporter: Reporter,
    name: Optional[str],
    index: Optional[int],
    infile: str,
) -> None:
    r"""Prints a BASIC program as text.

    The name selection takes precedence over the index one.
    Without both, the first BASIC program is printed.

    ``INFILE`` is the path of the tape file.
    Set to ``-`` to read from standard input.
    """

    with TapInputCtxMgr(infile, reporter) as ctx:
        out = click.get_text_stream('stdout')
        print_basic_program(ctx.stream, out, name=name, index=index, reporter=reporter)
        out.flush()


# ----------------------------------------------------------------------------

@main.command()
@click.option('-n', '--name', help="""
    Selects the code block by its exact name.
""")
@click.option('-i', '--index', type=INDEX_INT, help="""
    Selects the code block by its 1-based header index.
""")
@click.option('-a', '--address', type=BASED_INT, help="""
    Overrides the load address stated by the header.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
@click.pass_obj
def code(
    reporter: Reporter,
    name: Optional[str],
    index: Optional[int],
    address: Optional[int],
    infile: str,
    outfile: Optional[str],
) -> None:
    r"""Prints binary code as Intel HEX.

    The name selection takes precedence over the index one.
    Without both, the first code block is printed.

    ``INFILE`` is the path of the tape file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` or leave empty to write to standard output.
    """

    color = reporter.color is True and outfile in (None, '-')

    with TapInputCtxMgr(infile, reporter) as ctx:
        with click.open_file(outfile or '-', 'wb', lazy=True) as out:
            print_binary_code(ctx.stream, out, name=name, index=index,
                              address=address, color=color, reporter=reporter)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-n', '--name', help="""
    Extracts only the blocks with this exact name.
""")
@click.option('-i', '--index', type=INDEX_INT, help="""
    Extracts only the block with this 1-based header index.
""")
@click.option('-d', '--output-dir', type=DIR_PATH_OUT, help="""
    Output directory, created if missing.
    Defaults to the name of the tape file without extension.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.pass_obj
def extract(
    reporter: Reporter,
    name: Optional[str],
    index: Optional[int],
    output_dir: Optional[str],
    infile: str,
) -> None:
    r"""Extracts tape blocks into files.

    BASIC programs are written as text into ``.bas`` files, binary code as
    Intel HEX into ``.hex`` files.
    Other data types are skipped.
    Existing files are never overwritten.

    The name selection takes precedence over the index one.
    Without both, all the blocks are extracted.

    ``INFILE`` is the path of the tape file.
    Set to ``-`` to read from standard input; output directory required.
    """

    if not output_dir:
        if infile == '-':
            raise click.UsageError('standard input requires output directory')
        output_dir = default_output_dir(infile)

    with TapInputCtxMgr(infile, reporter) as ctx:
        extract_blocks(ctx.stream, output_dir, name=name, index=index, reporter=reporter)
