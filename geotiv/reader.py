import logging

from .byteio import ByteReader
from .constants import CRS, HEADER_SIZE, TIFF_MAGIC, Compression, PlanarConfig, Tag
from .directory import (check_offset, get_custom_tags, get_doubles, get_string, get_uint,
                        get_uints, read_directory)
from .exceptions import (BadHeaderError, EmptyCollectionError, InvalidMetadataError,
                         MalformedLayerError, TruncatedInputError, UnsupportedFormatError)
from .geo import DEFAULT_HEADING, DEFAULT_SHIFT, SENTINEL_DATUM, GeoKeysToDict, parse_description
from .models import Layer, RasterCollection
from .path_or_fobj import OpenPathOrFobj, is_bytes_like

logger = logging.getLogger(__name__)


def _source_name(source):
    if is_bytes_like(source):
        return '<%d bytes>' % len(source)
    return getattr(source, 'name', source)


def read_header(reader):
    """
    Read the 8-byte file header and set the reader's byte order.

    :param reader: a ByteReader on the start of the source.
    :returns: the offset of the first directory.
    """
    if reader.size < HEADER_SIZE:
        msg = 'File is %d bytes; a header needs %d.' % (reader.size, HEADER_SIZE)
        raise TruncatedInputError(msg)
    reader.seek(0)
    marker = reader.read_bytes(2)
    if marker not in (b'II', b'MM'):
        msg = 'Not a known byte order marker: %r' % marker
        raise BadHeaderError(msg)
    reader.bigEndian = marker == b'MM'
    reader.bom = '>' if reader.bigEndian else '<'
    magic = reader.read_uint16()
    if magic != TIFF_MAGIC:
        msg = 'Not a classic tiff; magic number is %d' % magic
        raise BadHeaderError(msg)
    return reader.read_uint32()


def _read_strips(reader, layer):
    data = bytearray()
    for offset, length in zip(layer.stripOffsets, layer.stripByteCounts):
        check_offset(reader, offset, length)
        reader.seek(offset)
        data += reader.read_bytes(length)
    return data


def _build_grid(data, layer):
    width, spp = layer.width, layer.samplesPerPixel
    if layer.planarConfig == PlanarConfig.Planar or spp == 1:
        # the first plane is the first width * height bytes
        return [bytearray(data[row * width:(row + 1) * width]) for row in range(layer.height)]
    rowlen = width * spp
    return [bytearray(data[row * rowlen:(row + 1) * rowlen:spp]) for row in range(layer.height)]


def _read_geospatial(reader, ifd, layer, requireDatum):
    description = get_string(reader, ifd, Tag.ImageDescription) or ''
    layer.imageDescription = description
    meta = parse_description(description)
    layer.crs = meta.get('crs', CRS.WGS)
    layer.shift = meta.get('shift', DEFAULT_SHIFT)
    layer.heading = meta.get('heading', DEFAULT_HEADING)
    if 'datum' in meta:
        layer.datum = meta['datum']
    elif requireDatum:
        msg = 'Directory at %d has no DATUM in its ImageDescription' % ifd['offset']
        raise InvalidMetadataError(msg)
    else:
        logger.warning(
            'Directory at %d has no DATUM in its ImageDescription; using %r',
            ifd['offset'], tuple(SENTINEL_DATUM))
        layer.datum = SENTINEL_DATUM
    scale = get_doubles(reader, ifd, Tag.ModelPixelScaleTag)
    layer.resolution = scale[0] if len(scale) >= 2 else 1.0
    if not layer.resolution > 0:
        msg = 'Directory at %d has a pixel scale of %r' % (ifd['offset'], layer.resolution)
        raise InvalidMetadataError(msg)
    layer.tiepoint = list(get_doubles(reader, ifd, Tag.ModelTiepointTag))
    if int(Tag.GeoKeyDirectoryTag) in ifd['tags']:
        layer.geoKeys = GeoKeysToDict(
            get_uints(reader, ifd, Tag.GeoKeyDirectoryTag),
            get_doubles(reader, ifd, Tag.GeoDoubleParamsTag),
            get_string(reader, ifd, Tag.GeoAsciiParamsTag) or '')


def read_layer(reader, ifdOffset, requireDatum=False):
    """
    Read one directory and its pixels as a Layer.

    :param reader: a ByteReader whose byte order has been set from the header.
    :param ifdOffset: the offset of the directory.
    :param requireDatum: if True, a directory without a DATUM is an error
        rather than being given the sentinel datum.
    :returns: the layer and the offset of the next directory.
    """
    ifd = read_directory(reader, ifdOffset)
    layer = Layer()
    layer.ifdOffset = ifdOffset
    layer.width = get_uint(reader, ifd, Tag.ImageWidth)
    layer.height = get_uint(reader, ifd, Tag.ImageLength)
    if not layer.width or not layer.height:
        msg = 'Directory at %d has a size of %dx%d' % (ifdOffset, layer.width, layer.height)
        raise MalformedLayerError(msg)
    # an explicit 0 is read as the default of 1
    layer.samplesPerPixel = get_uint(reader, ifd, Tag.SamplesPerPixel) or 1
    layer.planarConfig = get_uint(reader, ifd, Tag.PlanarConfig)
    bitsPerSample = get_uint(reader, ifd, Tag.BitsPerSample)
    if bitsPerSample != 8:
        msg = 'Directory at %d has %d bits per sample; only 8 is supported' % (
            ifdOffset, bitsPerSample)
        raise UnsupportedFormatError(msg)
    compression = get_uint(reader, ifd, Tag.Compression)
    if compression not in Compression:
        msg = 'Directory at %d uses compression %d' % (ifdOffset, compression)
        raise UnsupportedFormatError(msg)
    layer.stripOffsets = get_uints(reader, ifd, Tag.StripOffsets)
    layer.stripByteCounts = get_uints(reader, ifd, Tag.StripByteCounts)
    if not layer.stripOffsets or len(layer.stripOffsets) != len(layer.stripByteCounts):
        msg = 'Directory at %d has %d strip offsets and %d strip byte counts' % (
            ifdOffset, len(layer.stripOffsets), len(layer.stripByteCounts))
        raise MalformedLayerError(msg)
    expected = layer.width * layer.height * layer.samplesPerPixel
    if sum(layer.stripByteCounts) != expected:
        msg = 'Directory at %d has %d bytes of strips; expected %d' % (
            ifdOffset, sum(layer.stripByteCounts), expected)
        raise MalformedLayerError(msg)
    data = _read_strips(reader, layer)
    _read_geospatial(reader, ifd, layer, requireDatum)
    layer.customTags = get_custom_tags(reader, ifd)
    layer.grid = _build_grid(data, layer)
    return layer, ifd['nextifd']


def read_geotiff(source, requireDatum=False):
    """
    Read a file into a RasterCollection.  Each directory in the chain becomes
    a layer; the collection defaults are taken from the first one.

    :param source: a path, pathlib Path, filelike object, bytes, or '-' for
        stdin.
    :param requireDatum: if True, a directory whose ImageDescription has no
        DATUM raises InvalidMetadataError instead of using the sentinel datum.
    :returns: a RasterCollection with at least one layer.
    """
    collection = RasterCollection()
    with OpenPathOrFobj(source, 'rb') as fobj:
        reader = ByteReader(fobj)
        nextifd = read_header(reader)
        seen = set()
        while nextifd:
            if nextifd in seen:
                logger.warning('Directory chain revisits offset %d; stopping', nextifd)
                break
            seen.add(nextifd)
            layer, nextifd = read_layer(reader, nextifd, requireDatum)
            if not collection.layers:
                collection.crs = layer.crs
                collection.datum = layer.datum
                collection.heading = layer.heading
                collection.resolution = layer.resolution
            collection.layers.append(layer)
    if not collection.layers:
        msg = 'No directories in %s' % _source_name(source)
        raise EmptyCollectionError(msg)
    logger.debug('read_geotiff: %d layer(s) from %s', len(collection.layers), _source_name(source))
    return collection


def decode(data, requireDatum=False):
    """
    Decode the bytes of a file into a RasterCollection.

    :param data: a bytes-like object.
    :param requireDatum: see read_geotiff.
    :returns: a RasterCollection.
    """
    return read_geotiff(bytes(data), requireDatum=requireDatum)
