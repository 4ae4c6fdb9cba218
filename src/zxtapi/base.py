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

r"""Record abstraction shared by TAP blocks and Intel HEX records."""

import abc
import sys
from typing import IO
from typing import Any
from typing import Mapping
from typing import MutableMapping
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Type
from typing import TypeVar
from typing import Union
from typing import cast as _cast

import colorama

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

try:
    from typing import Self
except ImportError:  # pragma: no cover
    Self: TypeAlias = Any  # Python < 3.11
__TYPING_HAS_SELF = Self is not Any

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
EllipsisType: TypeAlias = Type['Ellipsis']

TOKEN_COLOR_CODES: Mapping[str, bytes] = {
    '':         colorama.Style.RESET_ALL.encode(),
    '<':        colorama.Style.RESET_ALL.encode(),
    '>':        colorama.Style.RESET_ALL.encode(),
    'address':  colorama.Fore.RED.encode(),
    'after':    colorama.Style.RESET_ALL.encode(),
    'before':   colorama.Style.RESET_ALL.encode(),
    'begin':    colorama.Fore.YELLOW.encode(),
    'checksum': colorama.Fore.MAGENTA.encode(),
    'count':    colorama.Fore.BLUE.encode(),
    'data':     colorama.Fore.CYAN.encode(),
    'dataalt':  colorama.Fore.LIGHTCYAN_EX.encode(),
    'end':      colorama.Style.RESET_ALL.encode(),
    'tag':      colorama.Fore.GREEN.encode(),
}
r"""ANSI color codes for each possible token type."""


def colorize_tokens(
    tokens: Mapping[str, bytes],
    altdata: bool = True,
) -> Mapping[str, bytes]:
    r"""Prepends ANSI color codes to record field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    The retrieved code (byte string) is prepended to the token.
    All the modified tokens are then collected and returned.

    Args:
        tokens (dict):
            A mapping of each token key name to token byte string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).
            If false, only the ``data`` code is prepended.

    Returns:
        dict: `tokens` with prepended ANSI color codes.

    Examples:
        >>> from zxtapi.base import colorize_tokens
        >>> from zxtapi.ihex import IhexRecord
        >>> record = IhexRecord.create_end_of_file()
        >>> colorized = colorize_tokens(record.to_tokens())
        >>> colorized['tag']
        b'\x1b[32m01'
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if value:
            code = codes[key]

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                buffer = bytearray()
                length = len(value)
                i = 0

                for i in range(0, length - 1, 2):
                    buffer.extend(altcode if i & 2 else code)
                    buffer.append(value[i])
                    buffer.append(value[i + 1])

                if length & 1:
                    buffer.extend(code if i & 2 else altcode)
                    buffer.append(value[length - 1])

                colorized[key] = bytes(buffer)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized


class BaseTag:
    r"""Record tag.

    The *record tag* indicates the *nature* of a record.
    The record tag class usually enumerates all the possible natures of a
    record within a *record format*.
    """

    _DATA: Optional['BaseTag'] = None
    r"""Alias to a common data record tag."""

    @abc.abstractmethod
    def is_data(self) -> bool:
        r"""Tells whether this is a data record tag.

        Returns:
            bool: This is a data record tag.

        Examples:
            >>> from zxtapi.ihex import IhexRecord
            >>> IhexRecord.create_data(123, b'abc').tag.is_data()
            True
            >>> IhexRecord.create_end_of_file().tag.is_data()
            False
        """
        ...


if not __TYPING_HAS_SELF:  # pragma: no cover
    del Self
    Self = TypeVar('Self', bound='BaseRecord')


class BaseRecord(abc.ABC):
    r"""Record.

    A *record* is the basic unit of the formats handled by this package:
    a *block* read from a TAP tape image, or a line of an Intel HEX file.

    Attributes:
        tag (:class:`BaseTag`):
            The mandatory *tag*, indicating the *nature* of the record.

        address (int):
            Load address of the carried data, or zero if meaningless.

        data (bytes):
            Carried binary data.

        count (int):
            Size information stored within the serialized record.

        checksum (int):
            Consistency check stored within the serialized record.

        coords (int couple):
            Coordinates of the parsed record, as ``(index, offset)``.
            Useful for diagnostics only.

    Args:
        tag (:class:`BaseTag`):
            See :attr:`tag` attribute.

        address (int):
            See :attr:`address` attribute.

        data (bytes):
            See :attr:`data` attribute.

        count (int):
            See :attr:`count` attribute.
            ``Ellipsis`` initializes :attr:`count` via :meth:`compute_count`.
            ``None`` assigns ``None``, skipping further validation.

        checksum (int):
            See :attr:`checksum` attribute.
            ``Ellipsis`` initializes :attr:`checksum` via
            :meth:`compute_checksum`.
            ``None`` assigns ``None``, skipping further validation.

        coords (int couple):
            See :attr:`coords` attribute.

        validate (bool):
            If true, :meth:`validate` is called upon initialization.
    """

    EQUALITY_KEYS: Sequence[str] = [
        'address',
        'checksum',
        'count',
        'data',
        'tag',
    ]
    r"""Meta keys for equality checks."""

    META_KEYS: Sequence[str] = [
        'address',
        'checksum',
        'coords',
        'count',
        'data',
        'tag',
    ]
    r"""Meta keys."""

    Tag: Type[BaseTag] = None  # override
    r"""Tag object type."""

    def __bytes__(self) -> bytes:

        return self.to_bytestr()

    def __eq__(self, other: 'BaseRecord') -> bool:

        return not self != other

    def __init__(
        self,
        tag: BaseTag,
        address: int = 0,
        data: AnyBytes = b'',
        count: Optional[Union[int, EllipsisType]] = Ellipsis,
        checksum: Optional[Union[int, EllipsisType]] = Ellipsis,
        coords: Tuple[int, int] = (-1, -1),
        validate: bool = True,
    ):

        self.address: int = address.__index__()
        self.checksum: Optional[int] = None
        self.coords: Tuple[int, int] = coords
        self.count: Optional[int] = None
        self.data: AnyBytes = data
        self.tag: BaseTag = tag

        if count is Ellipsis:
            self.update_count()
        elif count is not None:
            self.count = count.__index__()

        if checksum is Ellipsis:
            self.update_checksum()
        elif checksum is not None:
            self.checksum = checksum.__index__()

        if validate:
            _count = count is not None
            _checksum = checksum is not None and _count
            self.validate(checksum=_checksum, count=_count)

    def __ne__(self, other: 'BaseRecord') -> bool:

        for key in self.EQUALITY_KEYS:
            if not hasattr(other, key):
                return True
            self_value = getattr(self, key)
            other_value = getattr(other, key)
            if self_value != other_value:
                return True

        return False

    def __repr__(self) -> str:

        meta = self.get_meta()
        text = f'<{self.__class__!s} @0x{id(self):08X} '
        text += ' '.join(f'{key!s}:={value!r}' for key, value in meta.items())
        text += '>'
        return text

    def __str__(self) -> str:

        return self.to_bytestr().decode('latin-1')

    @abc.abstractmethod
    def compute_checksum(self) -> Optional[int]:
        r"""Computes the checksum field value.

        Returns:
            int: Computed checksum value.
        """
        ...

    @abc.abstractmethod
    def compute_count(self) -> Optional[int]:
        r"""Computes the count field value.

        Returns:
            int: Computed count value.
        """
        ...

    def get_meta(self) -> MutableMapping[str, Any]:
        r"""Gets meta information.

        It returns all the object attributes whose keys are listed by
        :attr:`META_KEYS`.

        Returns:
             dict: Attribute values listed by :attr:`META_KEYS`.
        """

        meta = {key: getattr(self, key) for key in self.META_KEYS}
        return meta

    def print(
        self,
        *args,
        stream: Optional[IO] = None,
        color: bool = False,
        **kwargs,
    ) -> Self:
        r"""Prints a record.

        The record is converted into tokens (eventually colorized) then joined
        and written onto a byte stream (*stdout* by default).

        Args:
            args:
                Forwarded to the underlying call to :meth:`to_tokens`.

            stream (bytes IO):
                The byte stream where the record tokens are printed.
                If ``None``, *stdout* is selected.

            color (bool):
                Tokens are colorized before printing.

            kwargs:
                Forwarded to the underlying call to :meth:`to_tokens`.

        Returns:
            :class:`BaseRecord`: *self*.

        Examples:
            >>> import io
            >>> from zxtapi.ihex import IhexRecord
            >>> record = IhexRecord.create_data(0x1234, b'abc')
            >>> stream = io.BytesIO()
            >>> _ = record.print(stream=stream)
            >>> stream.getvalue()
            b':0312340061626391\n'
        """

        if stream is None:
            stream = sys.stdout.buffer
        tokens = self.to_tokens(*args, **kwargs)
        if color:
            tokens = colorize_tokens(tokens)
        stream.writelines(tokens.values())
        return self

    @abc.abstractmethod
    def to_bytestr(self, *args, **kwargs) -> bytes:
        r"""Converts into a byte string."""
        ...

    @abc.abstractmethod
    def to_tokens(self, *args, **kwargs) -> Mapping[str, bytes]:
        r"""Converts into byte string tokens."""
        ...

    def update_checksum(self) -> Self:

        self.checksum = self.compute_checksum()
        return self

    def update_count(self) -> Self:

        self.count = self.compute_count()
        return self

    def validate(
        self,
        checksum: bool = True,
        count: bool = True,
    ) -> Self:
        r"""Validates consistency of attribute values.

        Args:
            checksum (bool):
                Check the consistency of the :attr:`checksum` attribute.

            count (bool):
                Check the consistency of the :attr:`count` attribute.

        Returns:
            :class:`BaseRecord`: *self*.

        Raises:
            ValueError: Some targeted attributes are inconsistent.
        """

        if self.address < 0:
            raise ValueError('address overflow')

        if self.checksum is not None:
            if self.checksum < 0:
                raise ValueError('checksum overflow')

            if checksum:
                if self.checksum != self.compute_checksum():
                    raise ValueError('wrong checksum')

        if self.count is not None:
            if self.count < 0:
                raise ValueError('count overflow')

            if count:
                if self.count != self.compute_count():
                    raise ValueError('wrong count')

        TagType = _cast(Any, self.Tag)
        TagType(self.tag)

        return self
