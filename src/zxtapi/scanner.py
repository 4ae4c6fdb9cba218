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

r"""Block scanning and header lookup."""

import logging
from typing import IO
from typing import Iterator
from typing import NamedTuple
from typing import Optional
from typing import Tuple
from typing import Union

from .tap import DataType
from .tap import TapBlock
from .tap import TapHeader
from .tap import TapReader
from .utils import Reporter

_logger = logging.getLogger(__name__)


class ScanEntry(NamedTuple):
    r"""Scanned block."""

    block: TapBlock
    r"""Raw block."""

    header: Optional[TapHeader]
    r"""Parsed header, with its 1-based :attr:`TapHeader.index`; ``None``
    for anything else."""

    fragment: Optional[int]
    r"""For non-header blocks, their 0-based index since the last header;
    used for display only."""


def _as_reader(stream: Union[IO, TapReader]) -> TapReader:

    if isinstance(stream, TapReader):
        return stream
    return TapReader(stream)


def check_block(block: TapBlock, reporter: Optional[Reporter] = None) -> bool:
    r"""Checks the stored checksum of a block.

    A mismatch is reported as a warning, and never stops processing.

    Args:
        block (:class:`TapBlock`):
            Block to check.

        reporter (:class:`Reporter`):
            Optional warning reporter.

    Returns:
        bool: The checksum matches.
    """

    valid = block.is_checksum_valid()
    if not valid:
        index, offset = block.coords
        _logger.debug(f'checksum mismatch at offset {offset}: '
                      f'stored 0x{block.checksum:02X}, '
                      f'computed 0x{block.compute_checksum():02X}')
        if reporter is not None:
            reporter.warning('checksum mismatch in block %d', index + 1)
    return valid


def scan_blocks(
    stream: Union[IO, TapReader],
    reporter: Optional[Reporter] = None,
) -> Iterator[ScanEntry]:
    r"""Scans the blocks of a TAP stream.

    Each block is read only when requested, so that the stream is left just
    after the last yielded block.

    Args:
        stream (bytes IO or :class:`TapReader`):
            Input stream.

        reporter (:class:`Reporter`):
            Optional reporter for checksum warnings.

    Yields:
        :class:`ScanEntry`: Scanned block.

    Raises:
        :class:`TapFormatError`: Invalid block length prefix.

        :class:`TapReadError`: Stream ended in the middle of a block.
    """

    reader = _as_reader(stream)
    header_index = 0
    fragment_index = 0

    for block in reader:
        check_block(block, reporter)
        header = TapHeader.from_block(block)

        if header is not None:
            header_index += 1
            fragment_index = 0
            header.index = header_index
            _logger.debug(f'header #{header_index}: {header!r}')
            yield ScanEntry(block, header, None)
        else:
            _logger.debug(f'fragment //data{fragment_index}: {len(block.data)} bytes')
            yield ScanEntry(block, None, fragment_index)
            fragment_index += 1


def match_header(
    header: TapHeader,
    name: Optional[str] = None,
    index: Optional[int] = None,
    data_type: int = DataType.ANY,
) -> bool:
    r"""Tells whether a header matches the selection criteria.

    Only the first provided criterion is checked, in this order: `name`,
    `index`, `data_type`.

    Args:
        header (:class:`TapHeader`):
            Header to check.

        name (str):
            Exact name, without trailing spaces.

        index (int):
            1-based header index.

        data_type (int):
            Data type; :attr:`DataType.ANY` matches any.

    Returns:
        bool: The header matches.
    """

    if name is not None:
        return header.name == name
    if index is not None:
        return header.index == index
    return data_type == DataType.ANY or header.data_type == data_type


def find_header(
    stream: Union[IO, TapReader],
    name: Optional[str] = None,
    index: Optional[int] = None,
    data_type: int = DataType.ANY,
    reporter: Optional[Reporter] = None,
) -> Optional[Tuple[TapHeader, int]]:
    r"""Finds a header.

    Blocks are consumed one at a time, until a header matches the criteria
    (see :func:`match_header`).
    Non-header blocks are skipped.

    On a match, the stream is left at the beginning of the following block,
    i.e. the data block paired to the header.

    Args:
        stream (bytes IO or :class:`TapReader`):
            Input stream.

        name (str):
            Exact name, without trailing spaces.

        index (int):
            1-based header index.

        data_type (int):
            Data type; :attr:`DataType.ANY` matches any.

        reporter (:class:`Reporter`):
            Optional reporter for checksum warnings.

    Returns:
        (header, offset): The matching header and the byte offset of the
        following block, relative to the beginning of the scan;
        ``None`` if not found.

    Raises:
        :class:`TapFormatError`: Invalid block length prefix.

        :class:`TapReadError`: Stream ended in the middle of a block.

    Examples:
        >>> import io
        >>> from zxtapi.scanner import find_header
        >>> from zxtapi.tap import TapBlock
        >>> blocks = [TapBlock.create_header(3, 'a', 1), TapBlock.create_data(b'1'),
        ...           TapBlock.create_header(3, 'b', 1), TapBlock.create_data(b'2')]
        >>> stream = io.BytesIO(b''.join(bytes(block) for block in blocks))
        >>> header, offset = find_header(stream, index=2)
        >>> header.name, offset
        ('b', 47)
        >>> TapBlock.read(stream).data
        b'2'
    """

    reader = _as_reader(stream)

    for entry in scan_blocks(reader, reporter):
        header = entry.header
        if header is not None and match_header(header, name, index, data_type):
            _logger.debug(f'found header #{header.index} at offset {reader.offset}')
            return header, reader.offset

    _logger.debug('no matching header')
    return None
