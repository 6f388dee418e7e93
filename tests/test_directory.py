import io
import logging
import struct

import pytest

import geotiv
from geotiv import directory
from geotiv.byteio import ByteReader, ByteWriter
from geotiv.constants import Datatype, Tag

from .tiffbuilder import ASCII, DOUBLE, LONG, SHORT, build_tiff


def _open(entries, bigEndian=False):
    data = build_tiff([{'entries': entries, 'strips': []}], bigEndian=bigEndian)
    reader = ByteReader(io.BytesIO(data), bigEndian=bigEndian)
    reader.seek(4)
    ifd = directory.read_directory(reader, reader.read_uint32())
    return reader, ifd


@pytest.mark.parametrize('bigEndian', [False, True])
def test_read_directory(bigEndian):
    reader, ifd = _open([
        (256, SHORT, [5]),
        (258, SHORT, [8, 8]),
        (273, LONG, [1, 2, 3]),
        (278, LONG, [9]),
        (270, ASCII, 'hello'),
        (33550, DOUBLE, [0.5, 0.5, 0.0]),
    ], bigEndian)
    assert ifd['tagcount'] == 6
    assert ifd['nextifd'] == 0
    assert ifd['tags'][256]['count'] == 1
    assert directory.resolve_tag(reader, ifd, Tag.ImageWidth) == [5]
    assert directory.resolve_tag(reader, ifd, 258) == [8, 8]
    assert directory.resolve_tag(reader, ifd, 273) == [1, 2, 3]
    assert directory.resolve_tag(reader, ifd, 278) == [9]
    assert directory.resolve_tag(reader, ifd, 270) == 'hello'
    assert directory.resolve_tag(reader, ifd, 33550) == [0.5, 0.5, 0.0]
    assert directory.resolve_tag(reader, ifd, 257) is None
    assert 'data' in ifd['tags'][258]


def test_read_directory_truncated():
    data = build_tiff([{'entries': [(256, SHORT, [5])], 'strips': []}])
    reader = ByteReader(io.BytesIO(data[:-6]))
    with pytest.raises(geotiv.TruncatedInputError) as exc:
        directory.read_directory(reader, 8)
    assert 'desired offset' in str(exc.value)


def test_read_directory_duplicate(caplog):
    with caplog.at_level(logging.WARNING):
        reader, ifd = _open([(256, SHORT, [5]), (256, SHORT, [6])])
    assert 'Duplicate tag 256' in caplog.text
    assert directory.get_uint(reader, ifd, 256) == 6


def test_ascii_without_terminator():
    reader, ifd = _open([(270, ASCII, b'abcdef', 6)])
    assert directory.get_string(reader, ifd, 270) == 'abcdef'


def test_ascii_stops_at_null():
    reader, ifd = _open([(270, ASCII, b'abc\x00def\x00')])
    assert directory.get_string(reader, ifd, 270) == 'abc'


def test_out_of_range_offset():
    reader, ifd = _open([(273, LONG, [1, 2, 3])])
    ifd['tags'][273]['value'] = reader.size + 100
    with pytest.raises(geotiv.TruncatedInputError):
        directory.resolve_tag(reader, ifd, 273)


def test_get_uint_defaults():
    reader, ifd = _open([(256, LONG, [7])])
    assert directory.get_uint(reader, ifd, Tag.ImageWidth) == 7
    assert directory.get_uint(reader, ifd, Tag.ImageLength) == 0
    assert directory.get_uint(reader, ifd, Tag.SamplesPerPixel) == 1
    assert directory.get_uint(reader, ifd, Tag.BitsPerSample) == 1
    assert directory.get_uint(reader, ifd, Tag.ImageLength, 3) == 3
    assert directory.get_uints(reader, ifd, Tag.StripOffsets) == []


def test_get_uint_wrong_type():
    reader, ifd = _open([(256, DOUBLE, [7.0])])
    with pytest.raises(geotiv.MalformedLayerError):
        directory.get_uint(reader, ifd, Tag.ImageWidth)


def test_typed_getters_ignore_other_types():
    reader, ifd = _open([(270, SHORT, [1]), (33550, LONG, [1, 2])])
    assert directory.get_string(reader, ifd, 270) is None
    assert directory.get_doubles(reader, ifd, 33550) == []
    assert directory.get_doubles(reader, ifd, 33922) == []


def test_unknown_datatype(caplog):
    reader, ifd = _open([(50001, 7, b'\x01\x02\x03\x04')])
    with caplog.at_level(logging.WARNING):
        assert directory.resolve_tag(reader, ifd, 50001) is None
    assert 'Unknown datatype 7' in caplog.text


def test_custom_tags_long_rule():
    reader, ifd = _open([
        (256, SHORT, [5]),
        (50002, LONG, [10, 20, 30]),
        (50001, LONG, [42]),
        (50003, 7, struct.pack('<LL', 5, 6), 2),
    ])
    assert directory.get_custom_tags(reader, ifd) == {
        50001: [42], 50002: [10, 20, 30], 50003: [5, 6]}
    assert list(directory.get_custom_tags(reader, ifd)) == [50001, 50002, 50003]


@pytest.mark.parametrize('datatype,count,size', [
    (Datatype.SHORT, 1, 0),
    (Datatype.SHORT, 2, 0),
    (Datatype.SHORT, 3, 6),
    (Datatype.LONG, 1, 0),
    (Datatype.LONG, 2, 8),
    (Datatype.ASCII, 1, 1),
    (Datatype.ASCII, 4, 4),
    (Datatype.DOUBLE, 1, 8),
    (Datatype.DOUBLE, 3, 24),
])
def test_entry_data_size(datatype, count, size):
    assert directory.entry_data_size(datatype, count) == size


def test_pack_entry_inline():
    writer = ByteWriter()
    directory.pack_entry(writer, 258, Datatype.SHORT, [8, 9])
    assert writer.getvalue() == struct.pack('<HHLHH', 258, 3, 2, 8, 9)
    writer = ByteWriter()
    directory.pack_entry(writer, 256, Datatype.SHORT, [8])
    assert writer.getvalue() == struct.pack('<HHLHH', 256, 3, 1, 8, 0)


def test_pack_entry_offset():
    writer = ByteWriter()
    directory.pack_entry(writer, 270, Datatype.ASCII, b'abc\x00', 1000)
    assert writer.getvalue() == struct.pack('<HHLL', 270, 2, 4, 1000)
    writer = ByteWriter()
    directory.pack_entry(writer, 33550, Datatype.DOUBLE, [1.0], 64)
    assert writer.getvalue() == struct.pack('<HHLL', 33550, 12, 1, 64)


def test_get_uint_unknown_datatype(caplog):
    reader, ifd = _open([(277, 7, b'\x03\x00')])
    with caplog.at_level(logging.WARNING):
        assert directory.get_uint(reader, ifd, Tag.SamplesPerPixel) == 1
    assert 'Unknown datatype' in caplog.text
