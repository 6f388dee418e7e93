import struct
import zlib

from .constants import CRS, GLOBAL_PROPERTIES_BASE_TAG, GLOBAL_PROPERTIES_TAG_COUNT
from .geo import DEFAULT_DATUM, DEFAULT_HEADING


def make_grid(width, height, fill=0):
    """
    Create a grid of 8-bit samples.

    :param width: number of columns.
    :param height: number of rows.
    :param fill: the initial value of every sample.
    :returns: a list of height bytearrays of width samples each.
    """
    return [bytearray([fill]) * width for _ in range(height)]


def string_to_ascii_tag(text):
    """
    Pack a string into a list of 32-bit values, four characters per value
    with the first character in the low byte.  The string is terminated and
    padded with nulls.
    """
    data = text.encode() + b'\x00'
    data += b'\x00' * (-len(data) % 4)
    return list(struct.unpack('<' + 'L' * (len(data) // 4), data))


def ascii_tag_to_string(values):
    """
    Unpack a string stored by string_to_ascii_tag.
    """
    data = struct.pack('<' + 'L' * len(values), *values)
    return data.split(b'\x00', 1)[0].decode(errors='replace')


def global_property_tag(key):
    """
    Get the custom tag used to store a global property.
    """
    return GLOBAL_PROPERTIES_BASE_TAG + zlib.crc32(key.encode()) % GLOBAL_PROPERTIES_TAG_COUNT


class Layer:
    """
    A single raster layer.  Each layer is stored as one directory in a file.

    Geospatial fields that are None are taken from the enclosing
    RasterCollection when writing.  Layers produced by the reader always have
    every field set.

    Attributes:
    - ifdOffset: offset of the layer's directory in the file it was read from.
    - width, height: pixel dimensions.
    - samplesPerPixel: number of samples per pixel.
    - planarConfig: 1 for chunky (interleaved) samples, 2 for planar.
    - stripOffsets, stripByteCounts: the strips the pixels were read from.
    - crs: a CRS constant.
    - datum: a Datum of the reference latitude, longitude, and altitude.
    - heading: a Heading; only the yaw is stored in files.
    - shift: a Shift of the layer's local offset from the datum.
    - resolution: map units per pixel.
    - imageDescription: free text.  When empty, the writer synthesizes one
        from the geospatial fields.
    - customTags: a dictionary of tag id (50000 or greater) to a list of
        32-bit unsigned values.
    - grid: a list of rows of 8-bit samples; grid[row][col].
    - tiepoint: the ModelTiepointTag values read from the file.
    - geoKeys: the GeoKey directory read from the file, as a dictionary.
    """

    def __init__(self, grid=None, width=0, height=0, samplesPerPixel=1, planarConfig=1,
                 crs=None, datum=None, heading=None, shift=None, resolution=None,
                 imageDescription='', customTags=None):
        self.ifdOffset = 0
        self.grid = grid if grid is not None else []
        self.width = width
        self.height = height
        self.samplesPerPixel = samplesPerPixel
        self.planarConfig = planarConfig
        self.stripOffsets = []
        self.stripByteCounts = []
        self.crs = crs
        self.datum = datum
        self.heading = heading
        self.shift = shift
        self.resolution = resolution
        self.imageDescription = imageDescription
        self.customTags = dict(customTags) if customTags else {}
        self.tiepoint = []
        self.geoKeys = {}

    def __repr__(self):
        return '<Layer %dx%d spp=%d pc=%d at %d>' % (
            self.width, self.height, self.samplesPerPixel, self.planarConfig, self.ifdOffset)

    def setGlobalProperty(self, key, value):
        """
        Store a key=value string in a custom tag derived from the key.
        """
        self.customTags[global_property_tag(key)] = string_to_ascii_tag('%s=%s' % (key, value))

    def getGlobalProperties(self):
        """
        Collect the key=value strings stored by setGlobalProperty.

        :returns: a dictionary of keys to values.
        """
        props = {}
        for tag, values in sorted(self.customTags.items()):
            if GLOBAL_PROPERTIES_BASE_TAG <= tag < GLOBAL_PROPERTIES_BASE_TAG + GLOBAL_PROPERTIES_TAG_COUNT:
                keyValue = ascii_tag_to_string(values)
                if '=' in keyValue:
                    key, value = keyValue.split('=', 1)
                    props[key] = value
        return props

    def removeGlobalProperty(self, key):
        self.customTags.pop(global_property_tag(key), None)


class RasterCollection:
    """
    An ordered list of layers with collection-level defaults.  The defaults
    are used by the writer for any layer field that is None; the reader sets
    them from the first directory of the file.
    """

    def __init__(self, layers=None, crs=CRS.WGS, datum=DEFAULT_DATUM, heading=DEFAULT_HEADING,
                 resolution=1.0):
        self.layers = list(layers) if layers else []
        self.crs = crs
        self.datum = datum
        self.heading = heading
        self.resolution = resolution

    def __len__(self):
        return len(self.layers)

    def __iter__(self):
        return iter(self.layers)

    def __repr__(self):
        return '<RasterCollection %d layer(s) crs=%s datum=%r>' % (
            len(self.layers), self.crs.name, tuple(self.datum))

    def getGlobalPropertiesFromFirstLayer(self):
        if not self.layers:
            return {}
        return self.layers[0].getGlobalProperties()

    def setGlobalPropertiesOnAllLayers(self, props):
        for layer in self.layers:
            for key, value in props.items():
                layer.setGlobalProperty(key, value)
