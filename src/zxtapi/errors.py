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

r"""Exceptions raised while reading and converting TAP images.

End of stream is not an error: readers return ``None`` when the stream ends
exactly on a block boundary.
"""

from typing import Optional


class TapError(Exception):
    r"""Base class of all the errors raised by this package."""


class TapReadError(TapError, EOFError):
    r"""Short read in the middle of a block.

    It aborts the whole scan, as the stream cannot be resynchronized.
    """


class TapFormatError(TapError, ValueError):
    r"""Malformed content.

    Raised for impossible block length prefixes, truncated BASIC lines, or
    declared lengths exceeding the available bytes.
    It aborts the decoding of the current block only.
    """


class UnsupportedTypeError(TapError, ValueError):
    r"""Data type which cannot be extracted.

    Attributes:
        data_type (int):
            The offending header data type.
    """

    def __init__(self, data_type: int, message: Optional[str] = None):

        if message is None:
            from .tap import get_datatype_name
            message = f'unsupported data type: {get_datatype_name(data_type)}'
        super().__init__(message)
        self.data_type: int = data_type


class TapWriteError(TapError, OSError):
    r"""Output sink failure.

    The original :class:`OSError` is chained as ``__cause__``.
    """


class BlockNotFoundError(TapError, LookupError):
    r"""No header matches the selection criteria."""
