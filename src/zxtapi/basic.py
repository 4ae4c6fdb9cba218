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

r"""ZX-Spectrum tokenized BASIC programs.

A BASIC program saved on tape is a sequence of lines, each one made of:

====== ============ =================================================
Size   Field        Description
====== ============ =================================================
2      line number  **Big-endian**; 16384 or more starts the variables.
2      line length  Little-endian size of the following body.
N      body         Tokenized text, terminated by ``0x0D``.
====== ============ =================================================

Within the body, keywords take a single byte from ``0xA3`` upwards, and
numeric literals are followed by a hidden ``0x0E`` marker plus 5 bytes of
their binary form.

See Also:
    `<https://en.wikipedia.org/wiki/ZX_Spectrum_character_set>`_
"""

import io
from typing import IO
from typing import Iterator
from typing import NamedTuple
from typing import Sequence

from .base import AnyBytes
from .errors import TapFormatError

VARIABLES_LINE: int = 16384
r"""Line numbers from this value onwards mark the end of the program."""

NUMBER_MARKER: int = 0x0E
r"""Control code introducing the binary form of a number."""

NUMBER_SIZE: int = 5
r"""Size of the binary form of a number."""

QUOTE: int = 0x22
REM: int = 0xEA
COPYRIGHT: str = '{(C)}'

CONTROL_CODES: Sequence[str] = (
    # 0x00
    '{00}', '{01}', '{02}', '{03}', '{04}', '{05}', '\t', '{07}',
    # 0x08
    '{08}', '{09}', '{0A}', '{0B}', '{0C}', '\n', '', '{0F}',
    # 0x10
    '{INK %d}', '{PAPER %d}', '{FLASH %d}', '{BRIGHT %d}',
    '{INVERSE %d}', '{OVER %d}', '{AT %d,%d}', '{TAB %d,%d}',
    # 0x18
    '{18}', '{19}', '{1A}', '{1B}', '{1C}', '{1D}', '{1E}', '{1F}',
)
r"""Control code templates, with ``%d`` placeholders for parameter bytes."""

GRAPHICS_START: int = 0x80
GRAPHICS: Sequence[str] = (
    # 0x80
    '{-8}', '{-1}', '{-2}', '{-3}', '{-4}', '{-5}', '{-6}', '{-7}',
    # 0x88
    '{+7}', '{+6}', '{+5}', '{+4}', '{+3}', '{+2}', '{+1}', '{+8}',
)
r"""Block graphics symbols."""

UDG_START: int = 0x90
UDG_END: int = 0xA3
UDG_END_QUOTED: int = 0xA5
UDG: Sequence[str] = (
    # 0x90
    '{A}', '{B}', '{C}', '{D}', '{E}', '{F}', '{G}', '{H}',
    # 0x98
    '{I}', '{J}', '{K}', '{L}', '{M}', '{N}', '{O}', '{P}',
    # 0xA0
    '{Q}', '{R}', '{S}', '{T}', '{U}',
)
r"""User-defined graphics symbols.

``{T}`` and ``{U}`` overlap the ``SPECTRUM`` and ``PLAY`` keywords, thus they
are rendered only within quoted strings.
"""

KEYWORDS_START: int = 0xA3
KEYWORDS: Sequence[str] = (
    # 0xA3
    ' SPECTRUM ', ' PLAY ', 'RND', 'INKEY$', 'PI',
    # 0xA8
    'FN ', 'POINT ', 'SCREEN$ ', 'ATTR ', 'AT ', 'TAB ', 'VAL$ ', 'CODE ',
    # 0xB0
    'VAL ', 'LEN ', 'SIN ', 'COS ', 'TAN ', 'ASN ', 'ACS ', 'ATN ',
    # 0xB8
    'LN ', 'EXP ', 'INT ', 'SQR ', 'SGN ', 'ABS ', 'PEEK ', 'IN ',
    # 0xC0
    'USR ', 'STR$ ', 'CHR$ ', 'NOT ', 'BIN ', ' OR ', ' AND ', '<=',
    # 0xC8
    '>=', '<>', ' LINE ', ' THEN ', ' TO ', ' STEP ', ' DEF FN ', ' CAT ',
    # 0xD0
    ' FORMAT ', ' MOVE ', ' ERASE ', ' OPEN #', ' CLOSE #', ' MERGE ',
    ' VERIFY ', ' BEEP ',
    # 0xD8
    ' CIRCLE ', ' INK ', ' PAPER ', ' FLASH ', ' BRIGHT ', ' INVERSE ',
    ' OVER ', ' OUT ',
    # 0xE0
    ' LPRINT ', ' LLIST ', ' STOP ', ' READ ', ' DATA ', ' RESTORE ',
    ' NEW ', ' BORDER ',
    # 0xE8
    ' CONTINUE ', ' DIM ', ' REM ', ' FOR ', ' GO TO ', ' GO SUB ',
    ' INPUT ', ' LOAD ',
    # 0xF0
    ' LIST ', ' LET ', ' PAUSE ', ' NEXT ', ' POKE ', ' PRINT ', ' PLOT ',
    ' RUN ',
    # 0xF8
    ' SAVE ', ' RANDOMIZE ', ' IF ', ' CLS ', ' DRAW ', ' CLEAR ',
    ' RETURN ', ' COPY ',
)
r"""Keywords, padded with the spaces the ROM prints around them."""


class BasicLine(NamedTuple):
    r"""Tokenized BASIC line."""

    line_number: int
    r"""Line number."""

    line_length: int
    r"""Declared body size."""

    tokens: bytes
    r"""Tokenized body."""


def _lookup(table: Sequence[str], start: int, byte: int) -> str:

    offset = byte - start
    if not 0 <= offset < len(table):
        raise TapFormatError(f'byte 0x{byte:02X} outside of symbol table')
    return table[offset]


def count_parameters(template: str) -> int:
    r"""Counts the parameter placeholders of a control code template.

    Examples:
        >>> from zxtapi.basic import count_parameters
        >>> count_parameters('{AT %d,%d}')
        2
        >>> count_parameters('{07}')
        0
    """

    return template.count('%')


def iter_basic_lines(data: AnyBytes) -> Iterator[BasicLine]:
    r"""Iterates over the lines of a tokenized BASIC program.

    Iteration stops at the first line number equal to or greater than
    :data:`VARIABLES_LINE`, ignoring any following bytes.

    Args:
        data (bytes):
            Tokenized program, i.e. the payload of the data block following
            a BASIC header.

    Yields:
        :class:`BasicLine`: Tokenized line.

    Raises:
        :class:`TapFormatError`: Truncated line; all the lines before it are
        yielded anyway.
    """

    size = len(data)
    offset = 0

    while offset < size:
        if size - offset < 2:
            raise TapFormatError('truncated line number')
        line_number = (data[offset] << 8) | data[offset + 1]
        offset += 2

        if line_number >= VARIABLES_LINE:
            break

        if size - offset < 2:
            raise TapFormatError('truncated line length')
        line_length = data[offset] | (data[offset + 1] << 8)
        offset += 2

        if line_length > size - offset:
            raise TapFormatError('line body truncated')

        tokens = bytes(data[offset:(offset + line_length)])
        offset += line_length
        yield BasicLine(line_number, line_length, tokens)


def write_basic_line(stream: IO, tokens: AnyBytes) -> None:
    r"""Writes the human-readable text of a tokenized line body.

    Args:
        stream (text IO):
            Output text stream.

        tokens (bytes):
            Tokenized line body, without line number and length.
    """

    size = len(tokens)
    in_quotes = False
    in_rem = False
    last_was_space = False
    i = 0

    while i < size:
        byte = tokens[i]
        skip = 0

        if byte < 0x20:
            template = CONTROL_CODES[byte]
            if byte == NUMBER_MARKER:
                text = ''
                skip = NUMBER_SIZE
            else:
                skip = count_parameters(template)
                params = tuple((tokens[j] if j < size else 0)
                               for j in range(i + 1, i + 1 + skip))
                text = template % params

        elif byte < GRAPHICS_START:
            text = COPYRIGHT if byte == 0x7F else chr(byte)

        elif byte < UDG_START:
            text = _lookup(GRAPHICS, GRAPHICS_START, byte)

        elif byte < (UDG_END_QUOTED if in_quotes else UDG_END):
            text = _lookup(UDG, UDG_START, byte)

        else:
            text = _lookup(KEYWORDS, KEYWORDS_START, byte)
            if last_was_space and text.startswith(' '):
                text = text[1:]

        stream.write(text)
        last_was_space = text.endswith(' ')

        if byte == QUOTE and not in_rem:
            in_quotes = not in_quotes
        if byte == REM:
            in_rem = True

        i += 1 + skip


def write_basic_program(stream: IO, data: AnyBytes) -> int:
    r"""Writes the human-readable text of a tokenized BASIC program.

    Each line is prefixed by its line number, right-justified within
    5 characters.

    Output is streamed line by line: whatever was written before an error
    stays written.

    Args:
        stream (text IO):
            Output text stream.

        data (bytes):
            Tokenized program.

    Returns:
        int: Number of written lines.

    Raises:
        :class:`TapFormatError`: Malformed program.
    """

    count = 0
    for line in iter_basic_lines(data):
        stream.write(f'{line.line_number:5d}')
        write_basic_line(stream, line.tokens)
        count += 1
    return count


def detokenize(data: AnyBytes) -> str:
    r"""Converts a tokenized BASIC program into text.

    Args:
        data (bytes):
            Tokenized program.

    Returns:
        str: Program text.

    Raises:
        :class:`TapFormatError`: Malformed program.

    Examples:
        >>> from zxtapi.basic import detokenize
        >>> detokenize(b'\x00\x0a\x06\x00\xf5"Hi"\x0d')
        '   10 PRINT "Hi"\n'
        >>> detokenize(b'\x00\x0a\x03\x00\xf5\xf1\x0d')
        '   10 PRINT LET \n'
    """

    stream = io.StringIO()
    write_basic_program(stream, data)
    return stream.getvalue()
