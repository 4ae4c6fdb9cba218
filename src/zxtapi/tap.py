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

r"""ZX-Spectrum TAP tape images.

A TAP image is a plain sequence of blocks, without any file header:

====== ======== =====================================================
Size   Field    Description
====== ======== =====================================================
2      length   Little-endian count of the following bytes.
1      flag     ``0x00`` for headers, ``0xFF`` for data blocks.
N-2    payload  Block content.
1      checksum XOR of *flag* and every *payload* byte.
====== ======== =====================================================

A *header* block carries a 17 bytes payload describing the *data* block
which follows it.

See Also:
    `<https://sinclair.wiki.zxnet.co.uk/wiki/TAP_format>`_
"""

import enum
from typing import IO
from typing import Any
from typing import Iterator
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Type
from typing import TypeVar
from typing import Union
from typing import cast as _cast

from .base import AnyBytes
from .base import BaseRecord
from .base import BaseTag
from .base import TypeAlias
from .errors import TapFormatError
from .errors import TapReadError
from .utils import hexlify

try:
    from typing import Self
except ImportError:  # pragma: no cover
    Self: TypeAlias = Any  # Python < 3.11
__TYPING_HAS_SELF = Self is not Any

HEADER_SIZE: int = 17
r"""Size of the payload of a header block."""

NAME_SIZE: int = 10
r"""Size of the space-padded name field of a header."""


class TapBlockType(BaseTag, enum.IntEnum):
    r"""TAP block flag byte."""

    HEADER = 0x00
    r"""Header block."""

    DATA = 0xFF
    r"""Data block."""

    _DATA = DATA

    def is_data(self) -> bool:

        return self == self.DATA

    def is_header(self) -> bool:
        r"""Tells whether this is a header block flag.

        Returns:
            bool: This is a header block flag.

        Examples:
            >>> from zxtapi.tap import TapBlockType
            >>> TapBlockType.HEADER.is_header()
            True
            >>> TapBlockType.DATA.is_header()
            False
        """

        return self == self.HEADER


class DataType(enum.IntEnum):
    r"""Data type stated by a header."""

    BASIC = 0
    r"""Tokenized BASIC program."""

    NUMBER_ARRAY = 1
    r"""Numeric array."""

    STRING_ARRAY = 2
    r"""Character array."""

    CODE = 3
    r"""Binary code (memory dump)."""

    ANY = 0xFF
    r"""Wildcard, for searches only."""


DATATYPE_NAMES: Mapping[int, str] = {
    DataType.BASIC: 'BASIC-PROGRAM',
    DataType.NUMBER_ARRAY: 'NUMBER-ARRAY',
    DataType.STRING_ARRAY: 'STRING-ARRAY',
    DataType.CODE: 'CODE',
}
r"""Display names of the data types."""


def get_datatype_name(data_type: int) -> str:
    r"""Gets the display name of a data type.

    Args:
        data_type (int):
            Data type, as stored within a header.

    Returns:
        str: Display name; ``UNKNOWN(n)`` for unknown values.

    Examples:
        >>> from zxtapi.tap import get_datatype_name
        >>> get_datatype_name(3)
        'CODE'
        >>> get_datatype_name(7)
        'UNKNOWN(7)'
    """

    data_type = int(data_type)
    try:
        return DATATYPE_NAMES[data_type]
    except KeyError:
        return f'UNKNOWN({data_type})'


def _get_le_word(data: AnyBytes, offset: int) -> int:

    return data[offset] | (data[offset + 1] << 8)


if not __TYPING_HAS_SELF:  # pragma: no cover
    del Self
    Self = TypeVar('Self', bound='TapBlock')


class TapBlock(BaseRecord):
    r"""TAP block object.

    The :attr:`tag` holds the flag byte, as a :class:`TapBlockType` when known,
    or as the raw integer value otherwise.
    The :attr:`data` holds the payload, while :attr:`count` holds the
    declared block length, i.e. the payload size plus the flag and checksum
    bytes.
    The :attr:`address` is meaningless, and kept zero.

    The stored :attr:`checksum` is never enforced while reading; see
    :meth:`is_checksum_valid`.
    """

    Tag: Type[TapBlockType] = TapBlockType

    def compute_checksum(self) -> int:

        checksum = int(self.tag) & 0xFF
        for byte in self.data:
            checksum ^= byte
        return checksum

    def compute_count(self) -> int:

        return len(self.data) + 2

    @classmethod
    def create_data(cls, data: AnyBytes) -> Self:
        r"""Creates a data block.

        Args:
            data (bytes):
                Block payload.

        Returns:
            :class:`TapBlock`: Data block object.

        Examples:
            >>> from zxtapi.tap import TapBlock
            >>> bytes(TapBlock.create_data(b'\x01\x02'))
            b'\x04\x00\xff\x01\x02\xfc'
        """

        return cls(cls.Tag.DATA, data=bytes(data))

    @classmethod
    def create_header(
        cls,
        data_type: int,
        name: str,
        length: int,
        param1: int = 0,
        param2: int = 0,
    ) -> Self:
        r"""Creates a header block.

        Args:
            data_type (int):
                Data type of the following data block.

            name (str):
                Name, up to 10 characters.

            length (int):
                Size of the following data block payload.

            param1 (int):
                First type-specific parameter.

            param2 (int):
                Second type-specific parameter.

        Returns:
            :class:`TapBlock`: Header block object.

        Examples:
            >>> from zxtapi.tap import TapBlock, classify
            >>> block = TapBlock.create_header(3, 'ROM', 16384, 0x8000)
            >>> classify(block).name
            'ROM'
        """

        header = TapHeader(data_type, name, length, param1, param2)
        return cls(cls.Tag.HEADER, data=header.to_bytes())

    def is_checksum_valid(self) -> bool:
        r"""Tells whether the stored checksum matches the content.

        Returns:
            bool: The stored checksum matches :meth:`compute_checksum`.
        """

        return self.checksum == self.compute_checksum()

    def is_header(self) -> bool:
        r"""Tells whether this block is flagged as a header.

        Returns:
            bool: The flag byte is :attr:`TapBlockType.HEADER`.
        """

        return self.tag == TapBlockType.HEADER

    @classmethod
    def parse(
        cls,
        chunk: AnyBytes,
        validate: bool = True,
    ) -> Self:
        r"""Parses a whole serialized block.

        Args:
            chunk (bytes):
                Serialized block, length prefix included.

            validate (bool):
                Checks the stored checksum.

        Returns:
            :class:`TapBlock`: Parsed block.

        Raises:
            :class:`TapFormatError`: Length prefix not matching `chunk`.

        Examples:
            >>> from zxtapi.tap import TapBlock
            >>> block = TapBlock.parse(b'\x04\x00\xff\x01\x02\xfc')
            >>> block.data
            b'\x01\x02'
        """

        if len(chunk) < 2:
            raise TapFormatError('missing block length')

        length = _get_le_word(chunk, 0)
        if length < 2:
            raise TapFormatError(f'block length underflow: {length}')
        if len(chunk) != length + 2:
            raise TapFormatError('block length mismatch')

        return cls._from_body(chunk[2:], length, validate=validate)

    @classmethod
    def _from_body(
        cls,
        body: AnyBytes,
        length: int,
        coords: Tuple[int, int] = (-1, -1),
        validate: bool = False,
    ) -> Self:

        flag = body[0]
        try:
            tag = cls.Tag(flag)
        except ValueError:
            tag = flag  # unknown flags pass through

        block = cls(tag,
                    data=bytes(body[1:-1]),
                    count=length,
                    checksum=body[-1],
                    coords=coords,
                    validate=False)
        block.validate(checksum=validate)
        return block

    @classmethod
    def read(
        cls,
        stream: IO,
        coords: Tuple[int, int] = (-1, -1),
    ) -> Optional[Self]:
        r"""Reads the next block from a byte stream.

        Args:
            stream (bytes IO):
                Byte stream, positioned at the beginning of a block.

            coords (int couple):
                Assigned to :attr:`coords`.

        Returns:
            :class:`TapBlock`: The read block; ``None`` at the end of the
            stream.

        Raises:
            :class:`TapFormatError`: Block length prefix lower than 2.

            :class:`TapReadError`: Stream ended in the middle of the block.

        Examples:
            >>> import io
            >>> from zxtapi.tap import TapBlock
            >>> stream = io.BytesIO(b'\x04\x00\xff\x01\x02\xfc')
            >>> TapBlock.read(stream).data
            b'\x01\x02'
            >>> TapBlock.read(stream) is None
            True
        """

        prefix = stream.read(2)
        if len(prefix) < 2:
            return None

        length = _get_le_word(prefix, 0)
        if length < 2:
            raise TapFormatError(f'block length underflow: {length}')

        body = stream.read(length)
        if len(body) < length:
            raise TapReadError(f'truncated block: {len(body)} of {length} bytes')

        return cls._from_body(body, length, coords=coords)

    def to_bytestr(self) -> bytes:

        self.validate(checksum=False, count=False)
        tokens = self._to_raw_tokens()
        return b''.join(tokens)

    def _to_raw_tokens(self) -> Tuple[bytes, bytes, bytes, bytes]:

        count = self.compute_count() if self.count is None else self.count
        checksum = self.compute_checksum() if self.checksum is None else self.checksum
        return (count.to_bytes(2, byteorder='little'),
                bytes([int(self.tag) & 0xFF]),
                bytes(self.data),
                bytes([checksum & 0xFF]))

    def to_tokens(self, end: AnyBytes = b'\n') -> Mapping[str, bytes]:

        self.validate(checksum=False, count=False)
        count, tag, data, checksum = self._to_raw_tokens()
        return {
            'count': hexlify(count),
            'tag': hexlify(tag),
            'data': hexlify(data),
            'checksum': hexlify(checksum),
            'end': end,
        }

    def validate(
        self,
        checksum: bool = True,
        count: bool = True,
    ) -> Self:

        if self.checksum is not None:
            if not 0 <= self.checksum <= 0xFF:
                raise ValueError('checksum overflow')

            if checksum:
                if not self.is_checksum_valid():
                    raise ValueError('wrong checksum')

        if self.count is not None:
            if not 2 <= self.count <= 0xFFFF:
                raise ValueError('count overflow')

            if count:
                if self.count != self.compute_count():
                    raise ValueError('wrong count')

        if len(self.data) > 0xFFFD:
            raise ValueError('data size overflow')

        if not 0 <= int(self.tag) <= 0xFF:
            raise ValueError('tag overflow')

        return self


def read_block(stream: IO) -> Optional[TapBlock]:
    r"""Reads the next block from a byte stream.

    Shortcut to :meth:`TapBlock.read`.
    """

    return TapBlock.read(stream)


class TapReader:
    r"""Sequential TAP block reader.

    It keeps track of the ordinal index and byte offset of each read block,
    assigned to :attr:`TapBlock.coords`.

    Args:
        stream (bytes IO):
            Input byte stream, positioned at the beginning of a block.

    Examples:
        >>> import io
        >>> from zxtapi.tap import TapBlock, TapReader
        >>> data = bytes(TapBlock.create_data(b'a')) + bytes(TapBlock.create_data(b'b'))
        >>> [block.coords for block in TapReader(io.BytesIO(data))]
        [(0, 0), (1, 5)]
    """

    def __init__(self, stream: IO):

        self.stream: IO = stream
        self.index: int = 0
        self.offset: int = 0

    def __iter__(self) -> Iterator[TapBlock]:

        while True:
            block = self.read_block()
            if block is None:
                break
            yield block

    def read_block(self) -> Optional[TapBlock]:
        r"""Reads the next block.

        Returns:
            :class:`TapBlock`: The read block; ``None`` at the end of the
            stream.

        Raises:
            :class:`TapFormatError`: Block length prefix lower than 2.

            :class:`TapReadError`: Stream ended in the middle of the block.
        """

        block = TapBlock.read(self.stream, coords=(self.index, self.offset))
        if block is not None:
            self.index += 1
            self.offset += block.count + 2
        return block


class TapHeader:
    r"""Parsed header block.

    Attributes:
        data_type (int):
            Type of the following data block; a :class:`DataType` when known.

        name (str):
            Name, trailing spaces removed.

        length (int):
            Size of the following data block payload.

        param1 (int):
            First type-specific parameter: autostart line for BASIC programs,
            load address for code.

        param2 (int):
            Second type-specific parameter: variables offset for BASIC
            programs.

        index (int):
            1-based ordinal among the headers of a stream, if known.
    """

    EQUALITY_KEYS = ('data_type', 'name', 'length', 'param1', 'param2')

    def __init__(
        self,
        data_type: int,
        name: str,
        length: int,
        param1: int = 0,
        param2: int = 0,
        index: Optional[int] = None,
    ):

        try:
            data_type = DataType(data_type)
        except ValueError:
            data_type = int(data_type)

        self.data_type: Union[DataType, int] = data_type
        self.name: str = name
        self.length: int = length
        self.param1: int = param1
        self.param2: int = param2
        self.index: Optional[int] = index

    def __eq__(self, other: Any) -> bool:

        if not isinstance(other, TapHeader):
            return NotImplemented
        return all(getattr(self, key) == getattr(other, key)
                   for key in self.EQUALITY_KEYS)

    def __repr__(self) -> str:

        return (f'<{self.__class__.__name__} '
                f'{self.type_name} {self.name!r} length={self.length} '
                f'param1={self.param1} param2={self.param2}>')

    @classmethod
    def from_block(cls, block: Optional[TapBlock]) -> Optional['TapHeader']:
        r"""Interprets a block as a header.

        Args:
            block (:class:`TapBlock`):
                Block to interpret.

        Returns:
            :class:`TapHeader`: Parsed header; ``None`` if `block` is not a
            header block with a 17 bytes payload.
        """

        if block is None:
            return None
        if not block.is_header() or len(block.data) != HEADER_SIZE:
            return None

        data = block.data
        name = bytes(data[1:(1 + NAME_SIZE)]).rstrip(b' ').decode('latin-1')
        header = cls(data[0],
                     name,
                     _get_le_word(data, 11),
                     _get_le_word(data, 13),
                     _get_le_word(data, 15))
        return header

    def get_details(self) -> Mapping[str, str]:
        r"""Gets a human-readable interpretation of the parameters.

        Returns:
            dict: Parameter names mapped to their display values.

        Examples:
            >>> from zxtapi.tap import TapHeader
            >>> TapHeader(0, 'demo', 120, 10, 100).get_details()
            {'autostart': '10', 'variables': '100'}
            >>> TapHeader(3, 'scr', 6912, 16384).get_details()
            {'address': '0x4000'}
        """

        data_type = self.data_type

        if data_type == DataType.BASIC:
            autostart = str(self.param1) if self.param1 < 0x8000 else 'none'
            return {'autostart': autostart, 'variables': str(self.param2)}

        elif data_type == DataType.CODE:
            return {'address': f'0x{self.param1:04X}'}

        elif data_type in (DataType.NUMBER_ARRAY, DataType.STRING_ARRAY):
            return {'variable': f'0x{(self.param1 >> 8) & 0xFF:02X}'}

        else:
            return {'param1': str(self.param1), 'param2': str(self.param2)}

    def to_bytes(self) -> bytes:
        r"""Serializes into a header block payload.

        Returns:
            bytes: 17 bytes payload.

        Raises:
            ValueError: Field overflow.
        """

        name = self.name.encode('latin-1')
        if len(name) > NAME_SIZE:
            raise ValueError('name too long')

        for value in (self.length, self.param1, self.param2):
            if not 0 <= value <= 0xFFFF:
                raise ValueError('parameter overflow')

        if not 0 <= int(self.data_type) <= 0xFF:
            raise ValueError('data type overflow')

        return b''.join([
            bytes([int(self.data_type)]),
            name.ljust(NAME_SIZE, b' '),
            self.length.to_bytes(2, byteorder='little'),
            self.param1.to_bytes(2, byteorder='little'),
            self.param2.to_bytes(2, byteorder='little'),
        ])

    @property
    def type_name(self) -> str:
        r"""str: Display name of :attr:`data_type`."""

        return get_datatype_name(self.data_type)


def classify(block: Optional[TapBlock]) -> Optional[TapHeader]:
    r"""Interprets a block as a header.

    Shortcut to :meth:`TapHeader.from_block`.
    """

    return TapHeader.from_block(_cast(TapBlock, block))
