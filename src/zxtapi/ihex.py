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

r"""Intel HEX output.

Only the record types needed to dump a 16-bit memory image are supported:
*data* and *End Of File*.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
from typing import IO
from typing import Any
from typing import Mapping
from typing import Type
from typing import TypeVar
from typing import cast as _cast

from bytesparse import Memory

from .base import AnyBytes
from .base import BaseRecord
from .base import BaseTag
from .base import TypeAlias
from .errors import TapWriteError
from .utils import hexlify

try:
    from typing import Self
except ImportError:  # pragma: no cover
    Self: TypeAlias = Any  # Python < 3.11
__TYPING_HAS_SELF = Self is not Any

MAX_DATA_LENGTH: int = 16
r"""Maximum number of data bytes per record."""


class IhexTag(BaseTag, enum.IntEnum):
    r"""Intel HEX tag."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    _DATA = DATA

    def is_data(self) -> bool:

        return self == self.DATA

    def is_eof(self) -> bool:
        r"""Tells whether this is an End Of File record tag.

        Returns:
            bool: This is an End Of File record tag.

        Examples:
            >>> from zxtapi.ihex import IhexTag
            >>> IhexTag.END_OF_FILE.is_eof()
            True
            >>> IhexTag.DATA.is_eof()
            False
        """

        return self == self.END_OF_FILE


if not __TYPING_HAS_SELF:  # pragma: no cover
    del Self
    Self = TypeVar('Self', bound='IhexRecord')


class IhexRecord(BaseRecord):
    r"""Intel HEX record object."""

    Tag: Type[IhexTag] = IhexTag

    def compute_checksum(self) -> int:

        if self.count is None:
            raise ValueError('missing count')

        count = self.count & 0xFF
        address = self.address & 0xFFFF
        sum_address = (address >> 8) + (address & 0xFF)
        sum_data = sum(iter(self.data))
        tag = _cast(IhexTag, self.tag) & 0xFF
        checksum = (count + sum_address + tag + sum_data)
        checksum = (0x100 - (checksum & 0xFF)) & 0xFF
        return checksum

    def compute_count(self) -> int:

        return len(self.data)

    @classmethod
    def create_data(
        cls,
        address: int,
        data: AnyBytes,
    ) -> Self:
        r"""Creates a data record.

        Args:
            address (int):
                16-bit load address.

            data (bytes):
                Record byte data.

        Returns:
            :class:`IhexRecord`: Data record object.

        Examples:
            >>> from zxtapi.ihex import IhexRecord
            >>> str(IhexRecord.create_data(0x1234, b'abc'))
            ':0312340061626391\n'
        """

        address = address.__index__()
        if not 0 <= address <= 0xFFFF:
            raise ValueError('address overflow')

        size = len(data)
        if size > 0xFF:
            raise ValueError('data size overflow')

        record = cls(cls.Tag.DATA, address=address, data=data)
        return record

    @classmethod
    def create_end_of_file(cls) -> Self:
        r"""Creates an End Of File record.

        Returns:
            :class:`IhexRecord`: End Of File record object.

        Examples:
            >>> from zxtapi.ihex import IhexRecord
            >>> str(IhexRecord.create_end_of_file())
            ':00000001FF\n'
        """

        record = cls(cls.Tag.END_OF_FILE)
        return record

    def to_bytestr(self, end: AnyBytes = b'\n') -> bytes:

        self.validate(checksum=False, count=False)

        bytestr = b':%02X%04X%02X%s%02X%s' % (
            (self.count or 0) & 0xFF,
            self.address & 0xFFFF,
            _cast(IhexTag, self.tag) & 0xFF,
            hexlify(self.data),
            (self.checksum or 0) & 0xFF,
            end,
        )
        return bytestr

    def to_tokens(self, end: AnyBytes = b'\n') -> Mapping[str, bytes]:

        self.validate(checksum=False, count=False)
        return {
            'begin': b':',
            'count': b'%02X' % ((self.count or 0) & 0xFF),
            'address': b'%04X' % (self.address & 0xFFFF),
            'tag': b'%02X' % (_cast(IhexTag, self.tag) & 0xFF),
            'data': hexlify(self.data),
            'checksum': b'%02X' % ((self.checksum or 0) & 0xFF),
            'end': end,
        }

    def validate(
        self,
        checksum: bool = True,
        count: bool = True,
    ) -> Self:

        super().validate(checksum=checksum, count=count)

        if self.checksum is not None:
            if not 0 <= self.checksum <= 0xFF:
                raise ValueError('checksum overflow')

        if self.count is not None:
            if not 0 <= self.count <= 0xFF:
                raise ValueError('count overflow')

        data_size = len(self.data)
        if data_size > 0xFF:
            raise ValueError('data size overflow')

        if not 0 <= self.address <= 0xFFFF:
            raise ValueError('address overflow')

        tag = _cast(IhexTag, self.tag)
        if tag.is_eof():
            if data_size:
                raise ValueError('unexpected data')

        return self


def write_hex_data(
    stream: IO,
    address: int,
    data: AnyBytes,
    maxdatalen: int = MAX_DATA_LENGTH,
    color: bool = False,
) -> int:
    r"""Writes binary data as Intel HEX data records.

    The data is split into chunks of up to `maxdatalen` bytes, each one
    written as a data record at `address` plus its offset, wrapped within
    16 bits.
    No End Of File record is written; see :func:`write_hex_eof`.

    Args:
        stream (bytes IO):
            Output byte stream.

        address (int):
            Load address of the first byte.

        data (bytes):
            Binary data; empty data writes nothing.

        maxdatalen (int):
            Maximum number of data bytes per record.

        color (bool):
            Records are colorized with ANSI codes.

    Returns:
        int: Number of written records.

    Raises:
        :class:`TapWriteError`: Output stream failure.

    Examples:
        >>> import io
        >>> from zxtapi.ihex import write_hex_data
        >>> stream = io.BytesIO()
        >>> write_hex_data(stream, 0x8000, bytes(range(1, 21)))
        2
        >>> print(stream.getvalue().decode(), end='')
        :108000000102030405060708090A0B0C0D0E0F10E8
        :048010001112131422
    """

    if not 0 < maxdatalen <= 0xFF:
        raise ValueError('invalid maximum data length')

    memory = Memory.from_bytes(data, offset=address)
    count = 0
    chunk_views = []
    try:
        for chunk_start, chunk_view in memory.chop(maxdatalen, align=False):
            chunk_views.append(chunk_view)
            record = IhexRecord.create_data(chunk_start & 0xFFFF, bytes(chunk_view))
            record.print(stream=stream, color=color)
            count += 1

    except OSError as exc:
        raise TapWriteError(f'cannot write HEX records: {exc}') from exc

    finally:
        for chunk_view in chunk_views:
            chunk_view.release()

    return count


def write_hex_eof(stream: IO, color: bool = False) -> None:
    r"""Writes the Intel HEX End Of File record.

    Args:
        stream (bytes IO):
            Output byte stream.

        color (bool):
            The record is colorized with ANSI codes.

    Raises:
        :class:`TapWriteError`: Output stream failure.
    """

    record = IhexRecord.create_end_of_file()
    try:
        record.print(stream=stream, color=color)
    except OSError as exc:
        raise TapWriteError(f'cannot write HEX records: {exc}') from exc


def encode(
    stream: IO,
    address: int,
    data: AnyBytes,
    color: bool = False,
) -> int:
    r"""Writes a whole Intel HEX file.

    It writes the data records of :func:`write_hex_data`, followed by exactly
    one End Of File record.

    Args:
        stream (bytes IO):
            Output byte stream.

        address (int):
            Load address of the first byte.

        data (bytes):
            Binary data.

        color (bool):
            Records are colorized with ANSI codes.

    Returns:
        int: Number of written records, End Of File included.

    Raises:
        :class:`TapWriteError`: Output stream failure.
    """

    count = write_hex_data(stream, address, data, color=color)
    write_hex_eof(stream, color=color)
    return count + 1
