import logging
import os

from .byteio import ByteWriter
from .constants import (CRS, CUSTOM_TAG_MAX, CUSTOM_TAG_MIN, ENTRY_SIZE, HEADER_SIZE, TIFF_MAGIC,
                        Compression, Datatype, Photometric, PlanarConfig, Tag)
from .directory import entry_data_size, pack_entry
from .exceptions import (EmptyCollectionError, InvalidMetadataError, IOFailureError,
                         MalformedLayerError)
from .geo import (DEFAULT_SHIFT, WGS84_GEOKEYS, Datum, Heading, Shift, dictToGeoKeys,
                  format_description, tiepoint)
from .path_or_fobj import OpenPathOrFobj, is_bytes_like, is_filelike_object

logger = logging.getLogger(__name__)

# Classic tiff offsets are 32-bit.
MAX_FILE_SIZE = 2 ** 32

# Out-of-line data is stored after all directories in this order for each
# layer, followed by the custom tags in tag order.
_DATA_ORDER = (Tag.ImageDescription, Tag.ModelPixelScaleTag, Tag.GeoKeyDirectoryTag,
               Tag.ModelTiepointTag)


def _grid_size(layer, idx):
    grid = layer.grid
    if grid is None or not len(grid) or not len(grid[0]):
        msg = 'Layer %d has an empty grid' % idx
        raise MalformedLayerError(msg)
    height, width = len(grid), len(grid[0])
    for row in grid:
        if len(row) != width:
            msg = 'Layer %d has rows of %d and %d samples' % (idx, width, len(row))
            raise MalformedLayerError(msg)
    if (layer.width and layer.width != width) or (layer.height and layer.height != height):
        msg = 'Layer %d is declared as %dx%d but its grid is %dx%d' % (
            idx, layer.width, layer.height, width, height)
        raise MalformedLayerError(msg)
    return width, height


def _flatten(layer, idx, samplesPerPixel, planarConfig):
    """
    Flatten a grid into the bytes of a single strip.  Each value is repeated
    for every sample of its pixel.
    """
    try:
        if planarConfig == PlanarConfig.Planar or samplesPerPixel == 1:
            plane = b''.join(bytes(row) for row in layer.grid)
            return plane * samplesPerPixel
        return b''.join(bytes(val for val in row for _ in range(samplesPerPixel))
                        for row in layer.grid)
    except (TypeError, ValueError) as exc:
        msg = 'Layer %d has samples that are not 8-bit values: %s' % (idx, exc)
        raise MalformedLayerError(msg) from exc


def _check_custom_tags(customTags, idx):
    for tag, values in customTags.items():
        if not CUSTOM_TAG_MIN <= int(tag) <= CUSTOM_TAG_MAX:
            msg = 'Layer %d has custom tag %d outside of %d to %d' % (
                idx, int(tag), CUSTOM_TAG_MIN, CUSTOM_TAG_MAX)
            raise InvalidMetadataError(msg)
        if not len(values):
            msg = 'Layer %d has no values for custom tag %d' % (idx, int(tag))
            raise InvalidMetadataError(msg)
        for value in values:
            if not isinstance(value, int) or not 0 <= value < 2 ** 32:
                msg = 'Layer %d custom tag %d has a value that is not a 32-bit unsigned integer: %r' % (
                    idx, int(tag), value)
                raise InvalidMetadataError(msg)


def plan_layer(collection, layer, idx):
    """
    Validate a layer and resolve everything that will be written for it.

    :param collection: the RasterCollection that supplies defaults.
    :param layer: the Layer.
    :param idx: the index of the layer, used in error messages.
    :returns: a dictionary with the strip 'data' and the directory 'entries',
        a list of (tag, datatype, values) in tag order.
    """
    width, height = _grid_size(layer, idx)
    samplesPerPixel = layer.samplesPerPixel
    if not isinstance(samplesPerPixel, int) or samplesPerPixel < 1:
        msg = 'Layer %d has %r samples per pixel' % (idx, samplesPerPixel)
        raise MalformedLayerError(msg)
    try:
        planarConfig = int(PlanarConfig[layer.planarConfig])
    except KeyError:
        msg = 'Layer %d has planar configuration %r' % (idx, layer.planarConfig)
        raise MalformedLayerError(msg)
    try:
        CRS[layer.crs if layer.crs is not None else collection.crs]
    except KeyError:
        msg = 'Layer %d has an unknown CRS %r' % (idx, layer.crs)
        raise InvalidMetadataError(msg)
    datum = Datum(*(layer.datum if layer.datum is not None else collection.datum))
    heading = Heading(*(layer.heading if layer.heading is not None else collection.heading))
    shift = Shift(*(layer.shift if layer.shift is not None else DEFAULT_SHIFT))
    resolution = layer.resolution if layer.resolution is not None else collection.resolution
    if not resolution > 0:
        msg = 'Layer %d has a resolution of %r' % (idx, resolution)
        raise InvalidMetadataError(msg)
    _check_custom_tags(layer.customTags, idx)
    data = _flatten(layer, idx, samplesPerPixel, planarConfig)
    description = layer.imageDescription or format_description(datum, shift, heading)
    entries = [
        (Tag.ImageWidth, Datatype.LONG, [width]),
        (Tag.ImageLength, Datatype.LONG, [height]),
        (Tag.BitsPerSample, Datatype.SHORT, [8]),
        (Tag.Compression, Datatype.SHORT, [int(Compression['None'])]),
        (Tag.Photometric, Datatype.SHORT, [int(Photometric.MinIsBlack)]),
        (Tag.ImageDescription, Datatype.ASCII, description.encode() + b'\x00'),
        # filled in by the layout
        (Tag.StripOffsets, Datatype.LONG, [0]),
        (Tag.SamplesPerPixel, Datatype.SHORT, [samplesPerPixel]),
        (Tag.RowsPerStrip, Datatype.LONG, [height]),
        (Tag.StripByteCounts, Datatype.LONG, [len(data)]),
        (Tag.PlanarConfig, Datatype.SHORT, [planarConfig]),
        (Tag.ModelPixelScaleTag, Datatype.DOUBLE, [float(resolution), float(resolution), 0.0]),
        (Tag.ModelTiepointTag, Datatype.DOUBLE, tiepoint(width, height, datum, shift)),
        (Tag.GeoKeyDirectoryTag, Datatype.SHORT, dictToGeoKeys(WGS84_GEOKEYS)),
    ]
    for tag, values in sorted(layer.customTags.items()):
        entries.append((int(tag), Datatype.LONG, list(values)))
    return {'data': data, 'entries': entries}


def layout(plans):
    """
    Assign file offsets to every strip, directory, and out-of-line value.
    The file is the header, then every strip, then every directory, then the
    out-of-line data of each layer in turn.

    :param plans: a list of dictionaries from plan_layer.  Each is updated
        with 'stripOffset', 'ifdOffset', and 'dataOffsets' (a dictionary of
        tag to offset).
    :returns: the total length of the file.
    """
    pos = HEADER_SIZE
    for plan in plans:
        plan['stripOffset'] = pos
        pos += len(plan['data'])
    for plan in plans:
        plan['ifdOffset'] = pos
        pos += 2 + ENTRY_SIZE * len(plan['entries']) + 4
    for plan in plans:
        plan['dataOffsets'] = {}
        sizes = {int(tag): entry_data_size(datatype, len(values))
                 for tag, datatype, values in plan['entries']}
        order = [int(tag) for tag in _DATA_ORDER] + sorted(
            tag for tag in sizes if tag >= CUSTOM_TAG_MIN)
        for tag in order:
            if sizes[tag]:
                plan['dataOffsets'][tag] = pos
                pos += sizes[tag]
    if pos > MAX_FILE_SIZE:
        msg = 'The file would be %d bytes; classic tiff is limited to 4 GiB' % pos
        raise MalformedLayerError(msg)
    return pos


def _check_position(writer, expected):
    if writer.tell() != expected:
        msg = 'Wrote %d bytes where the layout expected %d' % (writer.tell(), expected)
        raise MalformedLayerError(msg)


def encode(collection):
    """
    Encode a RasterCollection as the bytes of a little-endian GeoTIFF file.
    Each layer is written as one directory with a single strip.

    :param collection: a RasterCollection with at least one layer.
    :returns: the file as bytes.
    """
    if not collection.layers:
        msg = 'Cannot write a collection without layers'
        raise EmptyCollectionError(msg)
    plans = [plan_layer(collection, layer, idx) for idx, layer in enumerate(collection.layers)]
    length = layout(plans)
    writer = ByteWriter()
    writer.write_bytes(b'II')
    writer.write_uint16(TIFF_MAGIC)
    writer.write_uint32(plans[0]['ifdOffset'])
    for plan in plans:
        writer.write_bytes(plan['data'])
    for idx, plan in enumerate(plans):
        _check_position(writer, plan['ifdOffset'])
        logger.debug('encode: layer %d directory at %d (0x%X)', idx, writer.tell(), writer.tell())
        writer.write_uint16(len(plan['entries']))
        for tag, datatype, values in plan['entries']:
            if tag == Tag.StripOffsets:
                values = [plan['stripOffset']]
            pack_entry(writer, tag, datatype, values, plan['dataOffsets'].get(int(tag), 0))
        writer.write_uint32(plans[idx + 1]['ifdOffset'] if idx + 1 < len(plans) else 0)
    for plan in plans:
        entries = {int(tag): (datatype, values) for tag, datatype, values in plan['entries']}
        for tag, offset in sorted(plan['dataOffsets'].items(), key=lambda item: item[1]):
            _check_position(writer, offset)
            datatype, values = entries[tag]
            if datatype == Datatype.ASCII:
                writer.write_bytes(values)
            else:
                writer.write_array(datatype.pack, values)
    _check_position(writer, length)
    return writer.getvalue()


def write_geotiff(collection, path, allowExisting=False):
    """
    Write a RasterCollection to a file.  The whole file is encoded before the
    destination is opened, so nothing is written if the collection is
    invalid.

    :param collection: a RasterCollection with at least one layer.
    :param path: output path, pathlib Path, stream, or '-' for stdout.
    :param allowExisting: if False, raise an error if the path already exists.
    """
    if is_bytes_like(path):
        msg = 'Cannot write to a bytes object'
        raise IOFailureError(msg)
    if (not is_filelike_object(path) and path not in (None, '-') and
            os.path.exists(path) and not allowExisting):
        msg = 'File already exists'
        raise IOFailureError(msg)
    data = encode(collection)
    with OpenPathOrFobj(path, 'wb') as dest:
        dest.write(data)
    logger.debug('write_geotiff: %d bytes, %d layer(s)', len(data), len(collection.layers))
