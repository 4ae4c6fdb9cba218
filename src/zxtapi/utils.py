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

r"""Generic utility functions and I/O collaborators."""

import binascii
import os
import re
import sys
from typing import IO
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Union

import click
import colorama

SUFFIX_SCALE: Mapping[str, int] = {
    'k': 2**10,
    'kib': 2**10,
}
r"""Integer suffix to scale factor."""

INT_REGEX = re.compile(r'^\s*(?P<sign>[+-]?)\s*'
                       r'(?P<prefix>(0x|0b|0o|0|\$)?)'
                       r'(?P<value>[a-f0-9]+)'
                       r'(?P<suffix>h?)'
                       r'\s*(?P<scale>(k|kib)?)\s*$')

MAX_UNIQUE_NUMBER: int = 9999
r"""Highest disambiguation number tried by :func:`unique_path`."""

FALLBACK_NAME: str = 'unnamed'
r"""File name for tape blocks with an empty name."""

_UNSAFE_NAME_CHARS = re.compile(r'[\x00-\x1F/\\]')


def hexlify(
    bytestr: Union[bytes, bytearray, memoryview],
    upper: bool = True,
) -> bytes:
    r"""Converts raw bytes into a hexadecimal byte string.

    Args:
        bytestr (bytes):
            Source byte string.

        upper (bool):
            Uppercase hexadecimal string.

    Returns:
        bytes: Hexadecimal byte string.

    Examples:
        >>> from zxtapi.utils import hexlify
        >>> hexlify(b'\xAA\xBB\xCC')
        b'AABBCC'
        >>> hexlify(b'\xAA\xBB\xCC', upper=False)
        b'aabbcc'
    """

    hexstr = binascii.hexlify(bytestr)
    if upper:
        hexstr = hexstr.upper()
    return hexstr


def parse_int(
    value: Union[str, Any],
) -> Optional[int]:
    r"""Parses an integer.

    Args:
        value:
            A generic object to convert to integer.
            In case `value` is a :obj:`str` (case-insensitive), it can be
            either prefixed with ``0x`` or ``$``, or postfixed with ``h``, to
            convert from a hexadecimal representation, or prefixed with ``0b``
            from binary; a prefix of only ``0`` converts from octal.
            A further ``k`` suffix scales by 1024.
            A ``None`` value evaluates as ``None``.
            Any other object class will call the standard :func:`int`.

    Returns:
        int: None if `value` is ``None``, its integer conversion otherwise.

    Examples:
        >>> from zxtapi.utils import parse_int
        >>> parse_int('0x8000')
        32768
        >>> parse_int('$4000')
        16384
        >>> parse_int('32k')
        32768
        >>> parse_int(12)
        12
    """

    if value is None:
        return None

    elif isinstance(value, str):
        value = value.lower()
        m = INT_REGEX.match(value)
        if not m:
            raise ValueError(f'invalid syntax: {value!r}')
        g = m.groupdict()
        sign = g['sign']
        prefix = g['prefix']
        value = g['value']
        suffix = g['suffix']
        scale = g['scale']
        if prefix in ('0b', '0o') and suffix == 'h':
            raise ValueError(f'invalid syntax: {value!r}')

        if prefix in ('0x', '$') or suffix == 'h':
            i = int(value, 16)
        elif prefix == '0b':
            i = int(value, 2)
        elif prefix == '0' or prefix == '0o':
            i = int(value, 8)
        else:
            i = int(value, 10)

        i *= SUFFIX_SCALE.get(scale or '', 1)

        if sign == '-':
            i = -i

        return i

    else:
        return int(value)


def safe_file_name(name: str) -> str:
    r"""Makes a tape block name usable as a file name.

    Args:
        name (str):
            Block name.

    Returns:
        str: `name` with control characters and path separators replaced by
        ``_``; :data:`FALLBACK_NAME` if empty.

    Examples:
        >>> from zxtapi.utils import safe_file_name
        >>> safe_file_name('a/b')
        'a_b'
        >>> safe_file_name('')
        'unnamed'
    """

    name = _UNSAFE_NAME_CHARS.sub('_', name)
    if not name.strip():
        name = FALLBACK_NAME
    return name


def unique_path(dirname: Optional[str], name: str, ext: str = '') -> str:
    r"""Allocates a path not colliding with existing files.

    It tries ``name + ext`` first, then ``name + '_2_' + ext``,
    ``name + '_3_' + ext``, and so on, up to :data:`MAX_UNIQUE_NUMBER`.

    Args:
        dirname (str):
            Parent directory; ``None`` or empty for the current one.

        name (str):
            Base file name, without extension.

        ext (str):
            File extension, dot included.

    Returns:
        str: First path not pointing to any existing file or directory.

    Raises:
        FileExistsError: All the candidate paths already exist.
    """

    dirname = dirname or ''
    path = os.path.join(dirname, name + ext)
    if not os.path.exists(path):
        return path

    for number in range(2, MAX_UNIQUE_NUMBER + 1):
        path = os.path.join(dirname, f'{name}_{number}_{ext}')
        if not os.path.exists(path):
            return path

    raise FileExistsError(f'no unique path available for {name + ext!r}')


def create_directory(path: str) -> str:
    r"""Creates a directory, along with its missing parents.

    Args:
        path (str):
            Directory path.

    Returns:
        str: `path`.

    Raises:
        ValueError: Empty path.

        OSError: Directory creation failed.
    """

    if not path:
        raise ValueError('invalid directory path')
    os.makedirs(path, exist_ok=True)
    return path


class Reporter:
    r"""Error and warning reporter.

    Messages are printed on *stderr* (or the provided text stream) as
    ``[ERROR] message`` or ``[WARNING] message``, colorized unless disabled.

    Args:
        color (bool):
            ``True`` forces ANSI colors, ``False`` disables them, ``None``
            leaves the decision to :func:`click.echo` (colors only on a
            terminal).

        stream (text IO):
            Output stream; ``None`` selects *stderr*.

    Attributes:
        errors (int):
            Number of reported errors.

        warnings (int):
            Number of reported warnings.
    """

    ERROR_COLOR: str = colorama.Fore.LIGHTRED_EX
    WARNING_COLOR: str = colorama.Fore.LIGHTYELLOW_EX
    BRACKET_COLOR: str = colorama.Fore.LIGHTCYAN_EX
    RESET: str = colorama.Style.RESET_ALL

    def __init__(
        self,
        color: Optional[bool] = None,
        stream: Optional[IO] = None,
    ):

        self.color: Optional[bool] = color
        self.stream: Optional[IO] = stream
        self.errors: int = 0
        self.warnings: int = 0

    def _format(self, label: str, label_color: str, message: str) -> str:

        if self.color is False:
            return f'[{label}] {message}'

        return (f'{self.BRACKET_COLOR}[{label_color}{label}{self.BRACKET_COLOR}]'
                f'{self.RESET} {message}')

    def _print(self, text: str) -> None:

        if self.stream is None:
            click.echo(text, file=sys.stderr, color=self.color)
        else:
            click.echo(text, file=self.stream, color=self.color)

    def echo(self, message: str, *args) -> None:
        r"""Prints an informational message on the standard output."""

        if args:
            message = message % args
        click.echo(message)

    def error(self, message: str, *args) -> None:
        r"""Reports an error.

        Args:
            message (str):
                Message text; ``%`` formatted with `args`, if any.

            args:
                Formatting arguments.
        """

        if args:
            message = message % args
        self.errors += 1
        self._print(self._format('ERROR', self.ERROR_COLOR, message))

    def warning(self, message: str, *args) -> None:
        r"""Reports a warning.

        Args:
            message (str):
                Message text; ``%`` formatted with `args`, if any.

            args:
                Formatting arguments.
        """

        if args:
            message = message % args
        self.warnings += 1
        self._print(self._format('WARNING', self.WARNING_COLOR, message))
