import io
from typing import cast as _cast

import pytest
from test_base import BaseTestRecord
from test_base import BaseTestTag

from zxtapi.errors import TapWriteError
from zxtapi.ihex import IhexRecord
from zxtapi.ihex import IhexTag
from zxtapi.ihex import encode
from zxtapi.ihex import write_hex_data
from zxtapi.ihex import write_hex_eof

DATA = IhexTag.DATA
EOF = IhexTag.END_OF_FILE


def _record_sum(line: bytes) -> int:
    return sum(bytes.fromhex(line[1:].decode())) & 0xFF


class BrokenStream(io.BytesIO):

    def writelines(self, lines):
        raise OSError('disk full')


class TestIhexTag(BaseTestTag):

    Tag = IhexTag

    def test_enum(self):
        assert IhexTag.DATA == 0
        assert IhexTag.END_OF_FILE == 1

    def test_is_data(self):
        assert IhexTag.DATA.is_data() is True
        assert IhexTag.END_OF_FILE.is_data() is False

    def test_is_eof(self):
        assert IhexTag.DATA.is_eof() is False
        assert IhexTag.END_OF_FILE.is_eof() is True


class TestIhexRecord(BaseTestRecord):

    Record = IhexRecord

    # https://en.wikipedia.org/wiki/Intel_HEX#Record_types
    def test_compute_checksum(self):
        vector = [
            (0xA7, IhexRecord(DATA, address=0x0010, data=b'address gap')),
            (0xFF, IhexRecord(EOF)),
            (0x1E, IhexRecord(DATA, address=0x0030, data=b'\x02\x33\x7A')),
        ]
        for expected, record in vector:
            record.validate()
            actual = record.compute_checksum()
            assert actual == expected

    def test_compute_checksum_raises_count(self):
        record = IhexRecord(IhexTag.END_OF_FILE, checksum=None, count=None)
        with pytest.raises(ValueError, match='missing count'):
            record.compute_checksum()

    def test_compute_count(self):
        contents = [
            b'',
            b'abc',
            b'a' * 0xFF,
        ]
        for data in contents:
            record = IhexRecord.create_data(0x1234, data)
            record.validate()
            assert record.count == len(data)
            assert record.compute_count() == len(data)

    def test_create_data(self):
        contents = [
            b'',
            b'abc',
            b'a' * 0xFF,
        ]
        addresses = [
            0x0000,
            0xFFFF,
        ]
        for data in contents:
            for address in addresses:
                record = IhexRecord.create_data(address, data)
                record.validate()
                assert record.tag == IhexTag.DATA
                assert record.address == address
                assert record.count == len(data)
                assert record.data == data

    def test_create_data_raises_address(self):
        addresses = [
            -1,
            0x10000,
        ]
        for address in addresses:
            with pytest.raises(ValueError, match='address overflow'):
                IhexRecord.create_data(address, b'abc')

    def test_create_data_raises_data(self):
        with pytest.raises(ValueError, match='data size overflow'):
            IhexRecord.create_data(0, b'a' * 0x100)

    def test_create_eof(self):
        record = IhexRecord.create_end_of_file()
        record.validate()
        assert record.tag == IhexTag.END_OF_FILE
        assert record.address == 0
        assert record.count == 0
        assert record.data == b''
        assert record.checksum == 0xFF

    def test_to_bytestr(self):
        lines = [
            b':0000000000\n',
            b':00FFFF0002\n',
            b':FF000000' + (b'FF' * 0xFF) + b'00\n',
            b':FFFFFF00' + (b'FF' * 0xFF) + b'02\n',
            b':00000001FF\n',
        ]
        records = [
            IhexRecord.create_data(0x0000, b''),
            IhexRecord.create_data(0xFFFF, b''),
            IhexRecord.create_data(0x0000, (b'\xFF' * 0xFF)),
            IhexRecord.create_data(0xFFFF, (b'\xFF' * 0xFF)),
            IhexRecord.create_end_of_file(),
        ]
        for expected, record in zip(lines, records):
            record = _cast(IhexRecord, record)
            actual = record.to_bytestr()
            assert actual == expected

    def test_to_bytestr_end(self):
        record = IhexRecord.create_end_of_file()
        assert record.to_bytestr(end=b'\r\n') == b':00000001FF\r\n'

    def test_to_tokens(self):
        lines = [
            b'|:|00|0000|00||00|\n',
            b'|:|00|FFFF|00||02|\n',
            b'|:|03|1234|00|616263|91|\n',
            b'|:|00|0000|01||FF|\n',
        ]
        records = [
            IhexRecord.create_data(0x0000, b''),
            IhexRecord.create_data(0xFFFF, b''),
            IhexRecord.create_data(0x1234, b'abc'),
            IhexRecord.create_end_of_file(),
        ]
        keys = [
            'begin',
            'count',
            'address',
            'tag',
            'data',
            'checksum',
            'end',
        ]
        for expected, record in zip(lines, records):
            tokens = record.to_tokens()
            assert list(tokens.keys()) == keys
            actual = b'|' + b'|'.join(tokens[key] for key in keys)
            assert actual == expected

    def test_validate_raises(self):
        matches = [
            'checksum overflow',
            'checksum overflow',

            'count overflow',
            'count overflow',

            'data size overflow',

            'address overflow',
            'address overflow',

            'unexpected data',

            'is not a valid IhexTag',
        ]
        records = [
            IhexRecord(IhexTag.DATA, validate=False, checksum=-1),
            IhexRecord(IhexTag.DATA, validate=False, checksum=0x100),

            IhexRecord(IhexTag.DATA, validate=False, count=-1),
            IhexRecord(IhexTag.DATA, validate=False, count=0x100),

            IhexRecord(IhexTag.DATA, validate=False, data=(b'x' * 0x100), count=0xFF),

            IhexRecord(IhexTag.DATA, validate=False, address=-1),
            IhexRecord(IhexTag.DATA, validate=False, address=0x10000),

            IhexRecord(IhexTag.END_OF_FILE, validate=False, data=b'0'),

            IhexRecord(_cast(IhexTag, 666), validate=False),
        ]
        for match, record in zip(matches, records):
            record = _cast(IhexRecord, record)
            record.compute_checksum = lambda: record.checksum  # fake
            record.compute_count = lambda: record.count  # fake

            with pytest.raises(ValueError, match=match):
                record.validate()

    def test_validate_raises_basic(self):
        records = [
            IhexRecord(DATA, address=-1, count=0, checksum=0, validate=False),
            IhexRecord(DATA, address=0, count=0, checksum=42, validate=False),
            IhexRecord(DATA, address=0, count=42, checksum=0, validate=False),
        ]
        matches = [
            'address overflow',
            'wrong checksum',
            'wrong count',
        ]
        for record, match in zip(records, matches):
            record.compute_checksum = lambda: 0  # override
            record.compute_count = lambda: 0  # override

            with pytest.raises(ValueError, match=match):
                record.validate()

    def test_validate_samples(self):
        records = [
            IhexRecord(DATA, count=0x00, address=0x0000, checksum=0x00, data=b''),
            IhexRecord(DATA, count=0x00, address=0xFFFF, checksum=0x02, data=b''),
            IhexRecord(DATA, count=0xFF, address=0x0000, checksum=0x00, data=(b'\xFF' * 0xFF)),
            IhexRecord(DATA, count=0xFF, address=0xFFFF, checksum=0x02, data=(b'\xFF' * 0xFF)),

            IhexRecord(EOF, count=0x00, address=0x0000, checksum=0xFF, data=b''),
            IhexRecord(EOF, count=0x00, address=0xFFFF, checksum=0x01, data=b''),
        ]
        for record in records:
            returned = record.validate()
            assert returned is record


def test_write_hex_data_chunks():
    stream = io.BytesIO()
    count = write_hex_data(stream, 0x8000, bytes(range(1, 21)))
    assert count == 2
    lines = stream.getvalue().splitlines()
    assert lines == [
        b':108000000102030405060708090A0B0C0D0E0F10E8',
        b':048010001112131422',
    ]
    for line in lines:
        assert _record_sum(line) == 0


def test_write_hex_data_empty():
    stream = io.BytesIO()
    count = write_hex_data(stream, 0x8000, b'')
    assert count == 0
    assert stream.getvalue() == b''


def test_write_hex_data_maxdatalen():
    stream = io.BytesIO()
    count = write_hex_data(stream, 0x0000, b'abcde', maxdatalen=2)
    assert count == 3
    lines = stream.getvalue().splitlines()
    assert lines[0].startswith(b':02000000')
    assert lines[1].startswith(b':02000200')
    assert lines[2].startswith(b':01000400')


def test_write_hex_data_raises_maxdatalen():
    for maxdatalen in (0, 0x100):
        with pytest.raises(ValueError, match='invalid maximum data length'):
            write_hex_data(io.BytesIO(), 0, b'abc', maxdatalen=maxdatalen)


def test_write_hex_data_wraps_address():
    stream = io.BytesIO()
    write_hex_data(stream, 0xFFF8, bytes(32))
    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith(b':10FFF800')
    assert lines[1].startswith(b':10000800')
    for line in lines:
        assert _record_sum(line) == 0


def test_write_hex_data_color():
    plain = io.BytesIO()
    write_hex_data(plain, 0x4000, b'abc')
    colored = io.BytesIO()
    write_hex_data(colored, 0x4000, b'abc', color=True)
    assert b'\x1b[' in colored.getvalue()
    assert len(colored.getvalue()) > len(plain.getvalue())


def test_write_hex_data_raises_write():
    with pytest.raises(TapWriteError, match='cannot write HEX records'):
        write_hex_data(BrokenStream(), 0, b'abc')


def test_write_hex_eof():
    stream = io.BytesIO()
    write_hex_eof(stream)
    assert stream.getvalue() == b':00000001FF\n'


def test_write_hex_eof_raises_write():
    with pytest.raises(TapWriteError):
        write_hex_eof(BrokenStream())


def test_encode():
    stream = io.BytesIO()
    count = encode(stream, 0x8000, bytes(range(1, 21)))
    assert count == 3
    lines = stream.getvalue().splitlines()
    assert len(lines) == 3
    assert lines[-1] == b':00000001FF'
    assert stream.getvalue().endswith(b'\n')
    assert b'\r' not in stream.getvalue()


def test_encode_empty():
    stream = io.BytesIO()
    count = encode(stream, 0x1234, b'')
    assert count == 1
    assert stream.getvalue() == b':00000001FF\n'


def test_encode_single_eof():
    stream = io.BytesIO()
    encode(stream, 0x4000, bytes(6912))
    lines = stream.getvalue().splitlines()
    assert len(lines) == 6912 // 16 + 1
    assert lines.count(b':00000001FF') == 1
