import abc
import io
import sys
from typing import IO
from typing import Optional
from typing import Union
from typing import cast as _cast

import pytest

import zxtapi.base as _zb
from zxtapi.base import AnyBytes
from zxtapi.base import BaseRecord
from zxtapi.base import BaseTag
from zxtapi.base import colorize_tokens
from zxtapi.ihex import IhexRecord


@pytest.fixture
def fake_token_color_codes(request):
    backup = _zb.TOKEN_COLOR_CODES
    _zb.TOKEN_COLOR_CODES = {key: (b'[%s]' % key.encode()) for key in backup}
    yield
    _zb.TOKEN_COLOR_CODES = backup


class replace_stdout:

    def __init__(self, stream: Optional[IO] = None):
        if stream is None:
            stream = io.StringIO()
        self.buffer = stream
        self.original = sys.stdout
        self.write = stream.write

    def __enter__(self):
        sys.stdout = self
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        sys.stdout = self.original

    def assert_normalized(self, expected: Union[str, AnyBytes]):  # pragma: no cover
        if isinstance(self.buffer, io.StringIO):
            actual = ''.join(self.buffer.getvalue().split())
        else:
            actual = _cast(io.BytesIO, self.buffer)
            actual = b''.join(actual.getvalue().split())

        if isinstance(expected, str):
            expected = ''.join(expected.split())
        else:
            expected = b''.join(expected.split())

        assert actual == expected


def test_colorize_tokens_altdata(fake_token_color_codes):

    tokens = {
        '':         b'(empty)',
        '<':        b'(stx)',
        '>':        b'(etx)',
        'address':  b'(address)',
        'begin':    b'(begin)',
        'checksum': b'(checksum)',
        'count':    b'(count)',
        'data':     b'AABBCCD',
        'end':      b'(end)',
        'tag':      b'(tag)',
        'unknown':  b'(unknown)',
    }
    expected = {
        '':         b'[](unknown)',
        '<':        b'[<](stx)',
        '>':        b'[>](etx)',
        'address':  b'[address](address)',
        'begin':    b'[begin](begin)',
        'checksum': b'[checksum](checksum)',
        'count':    b'[count](count)',
        'data':     b'[data]AA[dataalt]BB[data]CC[dataalt]D',
        'end':      b'[end](end)',
        'tag':      b'[tag](tag)',
    }
    actual = colorize_tokens(tokens, altdata=True)
    assert actual == expected


def test_colorize_tokens_plaindata(fake_token_color_codes):

    tokens = {
        'begin':    b'(begin)',
        'count':    b'(count)',
        'data':     b'AABBCCD',
        'checksum': b'(checksum)',
    }
    expected = {
        '<':        b'[<]',
        'begin':    b'[begin](begin)',
        'count':    b'[count](count)',
        'data':     b'[data]AABBCCD',
        'checksum': b'[checksum](checksum)',
        '>':        b'[>]',
    }
    actual = colorize_tokens(tokens, altdata=False)
    assert actual == expected


def test_colorize_tokens_skips_empty(fake_token_color_codes):

    tokens = {
        'begin':    b':',
        'data':     b'',
    }
    actual = colorize_tokens(tokens)
    assert 'data' not in actual
    assert actual['begin'] == b'[begin]:'


def test_colorize_tokens_ihex():

    record = IhexRecord.create_end_of_file()
    colorized = colorize_tokens(record.to_tokens())
    assert colorized['<'] == b'\x1b[0m'
    assert colorized['begin'] == b'\x1b[33m:'
    assert colorized['count'] == b'\x1b[34m00'
    assert colorized['address'] == b'\x1b[31m0000'
    assert colorized['tag'] == b'\x1b[32m01'
    assert colorized['checksum'] == b'\x1b[35mFF'
    assert colorized['end'] == b'\x1b[0m\n'
    assert colorized['>'] == b'\x1b[0m'


class BaseTestTag:

    Tag = BaseTag
    Tag_FAKE = _cast(BaseTag, -1)

    @abc.abstractmethod
    def test_is_data(self):
        ...


class BaseTestRecord:

    Record = BaseRecord

    def test___bytes__(self):
        Record = self.Record
        record = Record(self.Record.Tag._DATA)
        assert bytes(record) == record.to_bytestr()

    def test___eq__(self):
        Tag = self.Record.Tag
        Record = self.Record
        records = [
            Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                   coords=(33, 44), validate=False),
            Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                   coords=(55, 44), validate=False),
            Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                   coords=(33, 66), validate=False),
        ]
        record1 = records[0]
        for record2 in records:
            assert record2 == record1

    def test___init___basic(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                        coords=(33, 44), validate=False)
        assert record.address == 0x1234
        assert record.checksum == 0xA5
        assert record.coords == (33, 44)
        assert record.count == 3
        assert record.data == b'xyz'
        assert record.tag == Tag._DATA

    def test___init___checksum_ellipsis(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=..., checksum=...,
                        coords=(33, 44), validate=False)
        assert record.checksum == record.compute_checksum()
        assert record.count == record.compute_count()
        assert record.data == b'xyz'

    def test___init___checksum_none(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=..., checksum=None,
                        coords=(33, 44), validate=False)
        assert record.checksum is None
        assert record.count == record.compute_count()

    def test___init___count_none(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=None, checksum=0xA5,
                        coords=(33, 44), validate=False)
        assert record.checksum == 0xA5
        assert record.count is None

    def test___init___default(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA)
        assert record.address == 0
        assert record.checksum == record.compute_checksum()
        assert record.coords == (-1, -1)
        assert record.count == record.compute_count()
        assert record.data == b''
        assert record.tag == Tag._DATA

    def test___ne__(self):
        Tag = self.Record.Tag
        Record = self.Record
        Tag_FAKE = _cast(Tag, -1)
        records = [
            Record(Tag_FAKE, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                   coords=(33, 44), validate=False),
            Record(Tag._DATA, address=0x4321, data=b'xyz', count=3, checksum=0xA5,
                   coords=(33, 44), validate=False),
            Record(Tag._DATA, address=0x1234, data=b'abc', count=3, checksum=0xA5,
                   coords=(33, 44), validate=False),
            Record(Tag._DATA, address=0x1234, data=b'xyz', count=4, checksum=0xA5,
                   coords=(33, 44), validate=False),
            Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0x5A,
                   coords=(33, 44), validate=False),
        ]
        record1 = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                         coords=(33, 44), validate=False)
        for record2 in records:
            assert record2 != record1

    def test___ne___meta_keys(self):
        Tag = self.Record.Tag
        Record = self.Record
        record1 = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                         coords=(33, 44), validate=False)
        record2 = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                         coords=(33, 44), validate=False)
        delattr(record1, 'data')
        assert record2 != record1

    def test___repr___type(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                        coords=(33, 44), validate=False)
        text = repr(record)
        assert isinstance(text, str)
        assert text

    def test___str___type(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                        coords=(33, 44), validate=False)
        text = str(record)
        assert isinstance(text, str)
        assert text

    @abc.abstractmethod
    def test_compute_checksum(self):
        ...

    @abc.abstractmethod
    def test_compute_count(self):
        ...

    def test_get_meta(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                        coords=(33, 44), validate=False)
        actual = record.get_meta()
        expected = {
            'address': 0x1234,
            'checksum': 0xA5,
            'coords': (33, 44),
            'count': 3,
            'data': b'xyz',
            'tag': Tag._DATA,
        }
        assert actual == expected

    def test_print(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=0xA5,
                        coords=(33, 44), validate=False)
        plain_stream = io.BytesIO()
        record.print(stream=plain_stream, color=False)
        color_stream = io.BytesIO()
        record.print(stream=color_stream, color=True)
        plain_text = plain_stream.getvalue()
        color_text = color_stream.getvalue()
        assert plain_text
        assert color_text
        assert len(color_text) > len(plain_text)

    @abc.abstractmethod
    def test_to_bytestr(self):
        ...

    @abc.abstractmethod
    def test_to_tokens(self):
        ...

    def test_update_checksum(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=3, checksum=None,
                        coords=(33, 44), validate=False)
        assert record.checksum is None
        returned = record.update_checksum()
        assert returned is record
        assert record.checksum == record.compute_checksum()

    def test_update_count(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, address=0x1234, data=b'xyz', count=None, checksum=0xA5,
                        coords=(33, 44), validate=False)
        assert record.count is None
        returned = record.update_count()
        assert returned is record
        assert record.count == record.compute_count()

    def test_validate_default(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA)
        returned = record.validate()
        assert returned is record

    def test_validate_checksum_none(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, checksum=None)
        returned = record.validate(checksum=False)
        assert returned is record

    def test_validate_count_none(self):
        Tag = self.Record.Tag
        Record = self.Record
        record = Record(Tag._DATA, count=None, checksum=None)
        returned = record.validate(count=False, checksum=False)
        assert returned is record
