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

r"""Extraction of tape contents into files and streams.

Supported data types:

============== ========= =================================================
Data type      Extension Output
============== ========= =================================================
BASIC program  ``.bas``  Detokenized program text.
Code           ``.hex``  Intel HEX records at the header load address.
============== ========= =================================================

Numeric and character arrays, as well as unknown data types, are skipped
with a warning.
"""

import enum
import logging
import os
from typing import IO
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

from .basic import write_basic_program
from .errors import BlockNotFoundError
from .errors import TapFormatError
from .errors import TapWriteError
from .errors import UnsupportedTypeError
from .ihex import encode
from .scanner import check_block
from .scanner import find_header
from .scanner import match_header
from .tap import DataType
from .tap import TapBlock
from .tap import TapBlockType
from .tap import TapHeader
from .tap import TapReader
from .utils import Reporter
from .utils import create_directory
from .utils import safe_file_name
from .utils import unique_path

_logger = logging.getLogger(__name__)

EXTENSIONS: Mapping[int, str] = {
    DataType.BASIC: '.bas',
    DataType.CODE: '.hex',
}
r"""Output file extension of each supported data type."""


class ExtractState(enum.Enum):
    r"""Extraction state machine states."""

    SEEK_HEADER = 'seek-header'
    r"""Waiting for a header block."""

    EMIT_DATA = 'emit-data'
    r"""Waiting for the data block paired to the last header."""


def _get_payload(header: TapHeader, block: TapBlock) -> bytes:

    data = block.data
    if header.length > len(data):
        raise TapFormatError(f'declared length exceeds block size: '
                             f'{header.length} > {len(data)}')
    return data


def extract_block(
    header: TapHeader,
    block: TapBlock,
    output_dir: Optional[str] = None,
) -> str:
    r"""Extracts a data block into a new file.

    The file is named after the header, with the extension of its data type
    (see :data:`EXTENSIONS`), and never overwrites an existing file
    (see :func:`unique_path`).

    Whatever was written before a decoding error stays written.

    Args:
        header (:class:`TapHeader`):
            Header describing `block`.

        block (:class:`TapBlock`):
            Data block paired to `header`.

        output_dir (str):
            Output directory; ``None`` for the current one.

    Returns:
        str: Path of the written file.

    Raises:
        :class:`UnsupportedTypeError`: Data type not supported.

        :class:`TapFormatError`: Malformed data.

        :class:`TapWriteError`: Output file failure.
    """

    data_type = header.data_type
    try:
        ext = EXTENSIONS[data_type]
    except KeyError:
        raise UnsupportedTypeError(data_type) from None

    data = _get_payload(header, block)
    name = safe_file_name(header.name)
    path = ''
    try:
        path = unique_path(output_dir, name, ext)
        _logger.debug(f'writing {path!r}')

        if data_type == DataType.BASIC:
            with open(path, 'xt', encoding='utf-8', newline='\n') as stream:
                write_basic_program(stream, data)
        else:
            with open(path, 'xb') as stream:
                encode(stream, header.param1, data)

    except TapWriteError:
        raise

    except OSError as exc:
        raise TapWriteError(f'cannot write {path or name!r}: {exc}') from exc

    return path


def extract_blocks(
    stream: Union[IO, TapReader],
    output_dir: str,
    name: Optional[str] = None,
    index: Optional[int] = None,
    reporter: Optional[Reporter] = None,
) -> List[str]:
    r"""Extracts the selected blocks of a whole tape.

    Each header is selected by `name`, or else by its 1-based `index`;
    without both, every header is selected.
    The block following a header is always consumed as its data block,
    even when the header is not selected.

    Errors of a single block (unsupported type, malformed data, output
    failure) are reported, and extraction goes on with the next block.
    Stream errors abort the whole extraction.

    Args:
        stream (bytes IO or :class:`TapReader`):
            Input stream.

        output_dir (str):
            Output directory, created if missing.

        name (str):
            Exact name of the header to extract.

        index (int):
            1-based index of the header to extract.

        reporter (:class:`Reporter`):
            Progress and error reporter; ``None`` creates a default one.

    Returns:
        list of str: Paths of the written files.

    Raises:
        :class:`TapFormatError`: Invalid block length prefix.

        :class:`TapReadError`: Stream ended in the middle of a block.

        OSError: Output directory creation failure.
    """

    if reporter is None:
        reporter = Reporter()

    reader = stream if isinstance(stream, TapReader) else TapReader(stream)
    create_directory(output_dir)

    state = ExtractState.SEEK_HEADER
    header: Optional[TapHeader] = None
    header_index = 0
    selected = False
    paths: List[str] = []

    while True:
        block = reader.read_block()

        if state is ExtractState.SEEK_HEADER:
            if block is None:
                break
            check_block(block, reporter)

            header = TapHeader.from_block(block)
            if header is None:
                _logger.debug(f'skipping orphan block #{block.coords[0] + 1}')
                continue

            header_index += 1
            header.index = header_index
            selected = match_header(header, name, index)
            _logger.debug(f'header #{header_index} {header.name!r} '
                          f'selected: {selected}')
            state = ExtractState.EMIT_DATA

        else:
            state = ExtractState.SEEK_HEADER
            label = f'{header.index:02d}_{header.name}'

            if block is None:
                if selected:
                    reporter.error('missing data block for %s', label)
                break
            check_block(block, reporter)

            if not selected:
                continue

            if block.tag != TapBlockType.DATA:
                reporter.warning('block %d is not a data block', block.coords[0] + 1)

            reporter.echo('Extracting: %s', label)
            try:
                path = extract_block(header, block, output_dir)

            except UnsupportedTypeError as exc:
                reporter.warning('skipping %s: %s', label, exc)

            except (TapFormatError, TapWriteError) as exc:
                reporter.error('cannot extract %s: %s', label, exc)

            else:
                paths.append(path)

    return paths


def _read_selected(
    stream: Union[IO, TapReader],
    data_type: DataType,
    name: Optional[str],
    index: Optional[int],
    reporter: Optional[Reporter],
) -> Tuple[TapHeader, TapBlock]:

    reader = stream if isinstance(stream, TapReader) else TapReader(stream)
    found = find_header(reader, name=name, index=index, data_type=data_type,
                        reporter=reporter)
    if found is None:
        raise BlockNotFoundError('block not found')

    header = found[0]
    if header.data_type != data_type:
        kind = 'a BASIC program' if data_type == DataType.BASIC else 'binary code'
        raise UnsupportedTypeError(header.data_type,
                                   f'selected block is not {kind}')

    block = reader.read_block()
    if block is None:
        raise TapFormatError('missing data block')
    check_block(block, reporter)
    return header, block


def print_basic_program(
    stream: Union[IO, TapReader],
    out: IO,
    name: Optional[str] = None,
    index: Optional[int] = None,
    reporter: Optional[Reporter] = None,
) -> TapHeader:
    r"""Prints a BASIC program as text.

    Without `name` and `index`, the first BASIC program is selected.

    Args:
        stream (bytes IO or :class:`TapReader`):
            Input stream.

        out (text IO):
            Output text stream.

        name (str):
            Exact name of the program header.

        index (int):
            1-based index of the program header.

        reporter (:class:`Reporter`):
            Optional reporter for checksum warnings.

    Returns:
        :class:`TapHeader`: Header of the printed program.

    Raises:
        :class:`BlockNotFoundError`: No matching header.

        :class:`UnsupportedTypeError`: The selected block is not a BASIC
        program.

        :class:`TapFormatError`: Malformed program.

    Examples:
        >>> import io
        >>> from zxtapi.extract import print_basic_program
        >>> from zxtapi.tap import TapBlock
        >>> program = b'\x00\x0a\x06\x00\xf5"Hi"\x0d'
        >>> blocks = [TapBlock.create_header(0, 'hello', len(program)),
        ...           TapBlock.create_data(program)]
        >>> stream = io.BytesIO(b''.join(bytes(block) for block in blocks))
        >>> out = io.StringIO()
        >>> print_basic_program(stream, out).name
        'hello'
        >>> out.getvalue()
        '   10 PRINT "Hi"\n'
    """

    header, block = _read_selected(stream, DataType.BASIC, name, index, reporter)
    write_basic_program(out, _get_payload(header, block))
    return header


def print_binary_code(
    stream: Union[IO, TapReader],
    out: IO,
    name: Optional[str] = None,
    index: Optional[int] = None,
    address: Optional[int] = None,
    color: bool = False,
    reporter: Optional[Reporter] = None,
) -> TapHeader:
    r"""Prints binary code as Intel HEX records.

    Without `name` and `index`, the first code block is selected.
    Exactly one End Of File record terminates the output.

    Args:
        stream (bytes IO or :class:`TapReader`):
            Input stream.

        out (bytes IO):
            Output byte stream.

        name (str):
            Exact name of the code header.

        index (int):
            1-based index of the code header.

        address (int):
            Load address override; ``None`` uses the one of the header.

        color (bool):
            Records are colorized with ANSI codes.

        reporter (:class:`Reporter`):
            Optional reporter for checksum warnings.

    Returns:
        :class:`TapHeader`: Header of the printed code.

    Raises:
        :class:`BlockNotFoundError`: No matching header.

        :class:`UnsupportedTypeError`: The selected block is not code.

        :class:`TapWriteError`: Output stream failure.
    """

    header, block = _read_selected(stream, DataType.CODE, name, index, reporter)
    if address is None:
        address = header.param1
    encode(out, address, _get_payload(header, block), color=color)
    return header


def default_output_dir(path: str) -> str:
    r"""Output directory named after a tape file.

    Args:
        path (str):
            Tape file path.

    Returns:
        str: File name of `path` without its extension.

    Examples:
        >>> from zxtapi.extract import default_output_dir
        >>> default_output_dir('games/manic.tap')
        'manic'
    """

    return os.path.splitext(os.path.basename(path))[0]
