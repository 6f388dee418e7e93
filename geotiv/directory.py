import logging
import struct

from .constants import CUSTOM_TAG_MIN, ENTRY_SIZE, Datatype, Tag, get_or_create_tag
from .exceptions import MalformedLayerError, TruncatedInputError

logger = logging.getLogger(__name__)


def check_offset(reader, offset, length):
    """
    Check that a specific number of bytes can be read from the source at a
    given offset.

    :param reader: a ByteReader.
    :param offset: an absolute offset in the source.
    :param length: the number of bytes to read.
    """
    if offset < 0 or length < 0 or offset + length > reader.size:
        msg = 'Cannot read %d (0x%x) bytes from desired offset %d (0x%x).' % (
            length, length, offset, offset)
        raise TruncatedInputError(msg)


def read_directory(reader, ifdOffset):
    """
    Read the entry table of one directory.  Values are not resolved; each
    entry keeps its raw 4-byte value field so that it can be resolved later
    by datatype.

    The result is a dictionary with:
    - offset: the offset of this directory.
    - tagcount: the number of entries.
    - tags: a dictionary keyed by integer tag id.  Each entry has datatype,
        count, datapos (the position of the value field), raw (the 4 bytes of
        the value field) and value (the value field as an unsigned 32-bit
        integer in the file's byte order).
    - nextifd: the offset of the next directory, 0 for the last one.

    :param reader: a ByteReader positioned anywhere.
    :param ifdOffset: byte location of the directory.
    :returns: the directory record.
    """
    logger.debug('read_directory: %d (0x%X)', ifdOffset, ifdOffset)
    check_offset(reader, ifdOffset, 2)
    reader.seek(ifdOffset)
    ifd = {
        'offset': ifdOffset,
        'tags': {},
    }
    ifd['tagcount'] = reader.read_uint16()
    check_offset(reader, ifdOffset + 2, ifd['tagcount'] * ENTRY_SIZE + 4)
    for _entry in range(ifd['tagcount']):
        tag = reader.read_uint16()
        datatype = reader.read_uint16()
        count = reader.read_uint32()
        datapos = reader.tell()
        raw = reader.read_bytes(4)
        taginfo = {
            'datatype': datatype,
            'count': count,
            'datapos': datapos,
            'raw': raw,
            'value': struct.unpack(reader.bom + 'L', raw)[0],
        }
        if tag in ifd['tags']:
            logger.warning('Duplicate tag %d: data at %d and %d', tag, ifd['tags'][tag]['datapos'], datapos)
        ifd['tags'][tag] = taginfo
    ifd['nextifd'] = reader.read_uint32()
    return ifd


def _read_values(reader, pack, size, offset, count):
    check_offset(reader, offset, size * count)
    reader.seek(offset)
    return reader.read_array(pack, count)


def _resolve_short(reader, taginfo):
    count = taginfo['count']
    if count <= 2:
        # One or two values share the 4-byte field; struct applies the byte
        # order so the first value is always in the first half.
        return list(struct.unpack(reader.bom + 'H' * count, taginfo['raw'][:2 * count]))
    return _read_values(reader, 'H', 2, taginfo['value'], count)


def _resolve_long(reader, taginfo):
    if taginfo['count'] == 1:
        return [taginfo['value']]
    return _read_values(reader, 'L', 4, taginfo['value'], taginfo['count'])


def _resolve_ascii(reader, taginfo):
    count = taginfo['count']
    if not count:
        return ''
    check_offset(reader, taginfo['value'], count)
    reader.seek(taginfo['value'])
    rawdata = reader.read_bytes(count)
    if not rawdata.endswith(b'\x00'):
        rawdata += b'\x00'
    rawdata = rawdata[:rawdata.index(b'\x00')]
    try:
        return rawdata.decode()
    except UnicodeDecodeError:
        return rawdata.decode('latin-1')


def _resolve_double(reader, taginfo):
    return _read_values(reader, 'd', 8, taginfo['value'], taginfo['count'])


_RESOLVERS = {
    Datatype.ASCII.value: _resolve_ascii,
    Datatype.SHORT.value: _resolve_short,
    Datatype.LONG.value: _resolve_long,
    Datatype.DOUBLE.value: _resolve_double,
}


def resolve_tag(reader, ifd, tag):
    """
    Resolve a tag's data based on its datatype.  The result is cached in the
    tag's record as 'data'.

    :param reader: the ByteReader of the source.
    :param ifd: a directory record from read_directory.
    :param tag: a tag id or Tag constant.
    :returns: None if the tag is absent or has an unsupported datatype, a
        string for ASCII, otherwise a list of numbers.
    """
    taginfo = ifd['tags'].get(int(tag))
    if taginfo is None:
        return None
    if 'data' not in taginfo:
        resolver = _RESOLVERS.get(taginfo['datatype'])
        if resolver is None:
            logger.warning(
                'Unknown datatype %d (0x%X) in tag %d (0x%X)',
                taginfo['datatype'], taginfo['datatype'], int(tag), int(tag))
            return None
        taginfo['data'] = resolver(reader, taginfo)
    return taginfo['data']


def _integer_values(reader, ifd, tag):
    taginfo = ifd['tags'].get(int(tag))
    if taginfo is None:
        return None
    if (taginfo['datatype'] in Datatype and
            taginfo['datatype'] not in (Datatype.SHORT.value, Datatype.LONG.value)):
        msg = 'Tag %s has datatype %d; expected SHORT or LONG.' % (
            get_or_create_tag(tag, Tag), taginfo['datatype'])
        raise MalformedLayerError(msg)
    return resolve_tag(reader, ifd, tag)


def get_uint(reader, ifd, tag, default=None):
    """
    Get the first value of an integer tag.

    :param reader: the ByteReader of the source.
    :param ifd: a directory record.
    :param tag: a tag id or Tag constant.
    :param default: the value when the tag is absent.  If None, the tag's
        documented default is used, or 0 if it has none.
    :returns: an integer.
    """
    values = _integer_values(reader, ifd, tag)
    if not values:
        if default is None:
            default = get_or_create_tag(tag, Tag).get('default', 0)
        return default
    return values[0]


def get_uints(reader, ifd, tag):
    """
    Get all values of an integer tag; an absent tag is an empty list.
    """
    return list(_integer_values(reader, ifd, tag) or [])


def get_doubles(reader, ifd, tag):
    """
    Get all values of a DOUBLE tag.  An absent tag or one of another datatype
    is an empty list.
    """
    taginfo = ifd['tags'].get(int(tag))
    if taginfo is None or taginfo['datatype'] != Datatype.DOUBLE.value:
        return []
    return resolve_tag(reader, ifd, tag)


def get_string(reader, ifd, tag):
    """
    Get the value of an ASCII tag, or None if it is absent or not ASCII.
    """
    taginfo = ifd['tags'].get(int(tag))
    if taginfo is None or taginfo['datatype'] != Datatype.ASCII.value:
        return None
    return resolve_tag(reader, ifd, tag)


def get_long_array(reader, taginfo):
    """
    Resolve an entry as an array of 32-bit values, ignoring its declared
    datatype.  This is how custom tags are read.

    :param reader: the ByteReader of the source.
    :param taginfo: an entry record from read_directory.
    :returns: a list of integers.
    """
    return _resolve_long(reader, taginfo)


def get_custom_tags(reader, ifd):
    """
    Collect every entry in the private tag range.

    :returns: a dictionary of tag id to list of integers, in tag order.
    """
    return {
        tag: get_long_array(reader, taginfo)
        for tag, taginfo in sorted(ifd['tags'].items()) if tag >= CUSTOM_TAG_MIN}


def entry_data_size(datatype, count):
    """
    Get the number of bytes an entry needs outside of its directory.  ASCII
    and DOUBLE data is always stored out of line; SHORT and LONG data is
    stored in the entry when it fits in 4 bytes.

    :param datatype: a Datatype.
    :param count: the number of values (bytes including the terminator for
        ASCII).
    :returns: 0 if the data is inline, otherwise its size in bytes.
    """
    datatype = Datatype[datatype]
    size = datatype.size * count
    if datatype in (Datatype.SHORT, Datatype.LONG) and size <= 4:
        return 0
    return size


def pack_entry(writer, tag, datatype, values, offset=0):
    """
    Write a single 12-byte directory entry.

    :param writer: a ByteWriter.
    :param tag: the tag id.
    :param datatype: a Datatype.
    :param values: a list of numbers, or bytes including the terminator for
        ASCII.
    :param offset: where the data is stored when it is not inline.
    """
    datatype = Datatype[datatype]
    count = len(values)
    writer.write_uint16(int(tag))
    writer.write_uint16(int(datatype))
    writer.write_uint32(count)
    if entry_data_size(datatype, count):
        writer.write_uint32(offset)
    else:
        data = struct.pack(writer.bom + datatype.pack * count, *values)
        writer.write_bytes(data + b'\x00' * (4 - len(data)))
