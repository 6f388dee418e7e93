# flake8: noqa: E501
# Disable flake8 line-length check (E501), it makes this file harder to read

from .exceptions import UnknownTagError

# Tags at or above this value are application-defined and are carried in a
# layer's customTags.
CUSTOM_TAG_MIN = 50000
CUSTOM_TAG_MAX = 65535

# Global properties are stored as ASCII packed into custom LONG tags in this
# range.
GLOBAL_PROPERTIES_BASE_TAG = 50100
GLOBAL_PROPERTIES_TAG_COUNT = 1000

HEADER_SIZE = 8
ENTRY_SIZE = 12
TIFF_MAGIC = 42


class TiffConstant(int):
    def __new__(cls, value, *args, **kwargs):
        return super().__new__(cls, value)

    def __init__(self, value, constantDict):
        """
        Create a constant.  The constant is at least a value and an
        associated name.  It can have other properties.

        :param value: an integer.
        :param constantDict: a dictionary with at least a 'name' key.
        """
        self.__dict__.update(constantDict)
        self.value = value
        self.name = str(getattr(self, 'name', self.value))

    def __str__(self):
        if str(self.name) != str(self.value):
            return '%s %d (0x%X)' % (self.name, self.value, self.value)
        return '%d (0x%X)' % (self.value, self.value)

    def __getitem__(self, key):
        try:
            return getattr(self, str(key))
        except AttributeError:
            raise KeyError(key)

    def __int__(self):
        return self.value

    def __eq__(self, other):
        if isinstance(other, TiffConstant):
            return self.value == other.value and self.name == other.name
        try:
            return self.value == int(other)
        except ValueError:
            try:
                return self.value == int(other, 0)
            except ValueError:
                pass
        except TypeError:
            return False
        return self.name.upper() == other.upper()

    def __ne__(self, other):
        return not self.__eq__(other)

    def __contains__(self, other):
        return hasattr(self, str(other))

    def __hash__(self):
        return hash((type(self).__name__, self.value))

    def get(self, key, default=None):
        return getattr(self, str(key), default)


class TiffTag(TiffConstant):
    def isCustom(self):
        return CUSTOM_TAG_MIN <= self.value <= CUSTOM_TAG_MAX


class TiffConstantSet:
    def __init__(self, setNameOrClass, setDict):
        """
        Create a set of TiffConstant values.

        :param setNameOrClass: the set name or class; this is the class name
            for the constants.  If a class, this must be a subclass of
            TiffConstant.
        :param setDict: a dictionary to turn into TiffConstant values.  The
            keys should be integers and the values dictionaries with at least a
            name key.
        """
        if isinstance(setNameOrClass, str):
            setClass = type(setNameOrClass, (TiffConstant,), {})
            globals()[setNameOrClass] = setClass
        else:
            setClass = setNameOrClass
        entries = {}
        names = {}
        for k, v in setDict.items():
            entry = setClass(k, v)
            entries[k] = entry
            names[entry.name.upper()] = entry
            names[str(int(entry))] = entry
            for altname in v.get('altnames', ()):
                names[altname.upper()] = entry
        self.__dict__.update(names)
        self._entries = entries
        self._setClass = setClass

    def _lookup(self, key):
        if isinstance(key, TiffConstant):
            key = int(key)
        key = str(key)
        try:
            key = str(int(key, 0))
        except ValueError:
            pass
        entry = self.__dict__.get(key.upper())
        return entry if isinstance(entry, TiffConstant) else None

    def __contains__(self, other):
        return self._lookup(other) is not None

    def __getattr__(self, key):
        try:
            key = str(int(key, 0))
        except (ValueError, TypeError):
            pass
        try:
            return self.__dict__[key.upper()]
        except KeyError:
            raise AttributeError("'%s' object has no attribute '%s'" % (type(self).__name__, key))

    def __getitem__(self, key):
        entry = self._lookup(key)
        if entry is None:
            raise KeyError(key)
        return entry

    def get(self, key, default=None):
        entry = self._lookup(key)
        return default if entry is None else entry

    def __iter__(self):
        for _k, v in sorted(self._entries.items()):
            yield v


def get_or_create_tag(key, tagSet=None, **tagOptions):
    """
    Get a tag from a tag set.  If the key does not exist and can be converted
    to an integer, create a tag with that value of the same type as used by the
    specified tag set.  If no tag set is specified, return a TiffTag with the
    specified value.

    :param key: the name or value of the tag to get or create.
    :param tagSet: optional TiffConstantSet with known tags.
    :param **tagOptions: if tag needs to be created and this is specified, add
        this as part of creating the tag.
    :returns: a TiffConstant.
    """
    if tagSet and key in tagSet:
        return tagSet[key]
    try:
        value = int(key)
    except ValueError:
        try:
            value = int(key, 0)
        except ValueError:
            value = -1
    if tagSet and value in tagSet:
        return tagSet[value]
    if value < 0 or value > CUSTOM_TAG_MAX:
        raise UnknownTagError('Unknown tag %s' % key)
    tagClass = tagSet._setClass if tagSet else TiffTag
    return tagClass(value, tagOptions)


# Only these four datatypes are interpreted.  Other datatypes are kept as raw
# entries so that custom tags can still be resolved as LONG arrays.
Datatype = TiffConstantSet('TiffDatatype', {
    2: {'pack': None, 'name': 'ASCII', 'size': 1, 'desc': 'null-terminated string'},
    3: {'pack': 'H', 'name': 'SHORT', 'size': 2, 'desc': 'UINT16 - unsigned short'},
    4: {'pack': 'L', 'name': 'LONG', 'size': 4, 'desc': 'UINT32 - unsigned long', 'altnames': {'DWORD'}},
    12: {'pack': 'd', 'name': 'DOUBLE', 'size': 8, 'desc': 'binary64 - IEEE-754 double precision float'},
})

Compression = TiffConstantSet('TiffCompression', {
    1: {'name': 'None', 'desc': 'No compression, but pack data into bytes as tightly as possible leaving no unused bits except at the end of a row'},
})

Photometric = TiffConstantSet('TiffPhotometric', {
    0: {'name': 'MinIsWhite', 'desc': 'Min value is white'},
    1: {'name': 'MinIsBlack', 'altnames': {'BlackIsZero'}, 'desc': 'Min value is black'},
})

PlanarConfig = TiffConstantSet('PlanarConfig', {
    1: {'name': 'Chunky', 'altnames': {'Contig', 'Contiguous'}, 'desc': 'The component values for each pixel are stored contiguously'},
    2: {'name': 'Planar', 'altnames': {'Separate'}, 'desc': 'The components are stored in separate component planes'},
})

# Coordinate flavors.  WGS layers carry their shift as a geographic offset,
# ENU layers as a metric east-north-up offset from the datum.
CRS = TiffConstantSet('GeotivCRS', {
    0: {'name': 'WGS', 'altnames': {'WGS84', 'EPSG:4326'}, 'desc': 'WGS84 geographic coordinates'},
    1: {'name': 'ENU', 'desc': 'Local east-north-up coordinates relative to the datum'},
})

# These aren't tiff tags; these are GeoTIFF GeoKey values.
GeoTiffGeoKey = TiffConstantSet(TiffTag, {
    1024: {'name': 'GTModelType', 'altnames': {'GTModelTypeGeoKey'}},
    1025: {'name': 'GTRasterType', 'altnames': {'GTRasterTypeGeoKey'}},
    1026: {'name': 'GTCitation', 'altnames': {'GTCitationGeoKey'}},
    2048: {'name': 'GeographicType', 'altnames': {'GeographicTypeGeoKey'}},
    2049: {'name': 'GeogCitation', 'altnames': {'GeogCitationGeoKey'}},
    2050: {'name': 'GeogGeodeticDatum', 'altnames': {'GeogGeodeticDatumGeoKey'}},
    2054: {'name': 'GeogAngularUnits', 'altnames': {'GeogAngularUnitsGeoKey'}},
    2056: {'name': 'GeogEllipsoid', 'altnames': {'GeogEllipsoidGeoKey'}},
    3072: {'name': 'ProjectedCSType', 'altnames': {'ProjectedCSTypeGeoKey'}},
    3076: {'name': 'ProjLinearUnits', 'altnames': {'ProjLinearUnitsGeoKey'}},
    4096: {'name': 'VerticalCSType', 'altnames': {'VerticalCSTypeGeoKey'}},
})

GeoTiffModelType = TiffConstantSet('GeoTiffModelType', {
    1: {'name': 'Projected', 'altnames': {'ModelTypeProjected'}},
    2: {'name': 'Geographic', 'altnames': {'ModelTypeGeographic'}},
    3: {'name': 'Geocentric', 'altnames': {'ModelTypeGeocentric'}},
})

GeoTiffRasterType = TiffConstantSet('GeoTiffRasterType', {
    1: {'name': 'PixelIsArea', 'altnames': {'RasterPixelIsArea'}},
    2: {'name': 'PixelIsPoint', 'altnames': {'RasterPixelIsPoint'}},
})

GeoTiffAngularUnits = TiffConstantSet('GeoTiffAngularUnits', {
    9101: {'name': 'Radian', 'altnames': {'Angular_Radian'}},
    9102: {'name': 'Degree', 'altnames': {'Angular_Degree'}},
})

EPSG_WGS84 = 4326

Tag = TiffConstantSet(TiffTag, {
    256: {'name': 'ImageWidth', 'datatype': (Datatype.SHORT, Datatype.LONG), 'count': 1, 'desc': 'The number of columns in the image, i.e., the number of pixels per scanline'},
    257: {'name': 'ImageLength', 'altnames': {'ImageHeight'}, 'datatype': (Datatype.SHORT, Datatype.LONG), 'count': 1, 'desc': 'The number of rows (sometimes described as scanlines) in the image'},
    258: {'name': 'BitsPerSample', 'datatype': Datatype.SHORT, 'desc': 'Number of bits per component', 'default': 1},
    259: {'name': 'Compression', 'datatype': Datatype.SHORT, 'count': 1, 'enum': Compression, 'desc': 'Compression scheme used on the image data', 'default': 1},
    262: {'name': 'Photometric', 'altnames': {'PhotometricInterpretation'}, 'datatype': Datatype.SHORT, 'count': 1, 'enum': Photometric, 'desc': 'The color space of the image data'},
    270: {'name': 'ImageDescription', 'datatype': Datatype.ASCII, 'desc': 'A string that describes the subject of the image'},
    273: {'name': 'StripOffsets', 'datatype': (Datatype.SHORT, Datatype.LONG), 'desc': 'The byte offset of each strip with respect to the beginning of the TIFF file'},
    277: {'name': 'SamplesPerPixel', 'datatype': Datatype.SHORT, 'count': 1, 'desc': 'The number of components per pixel', 'default': 1},
    278: {'name': 'RowsPerStrip', 'datatype': (Datatype.SHORT, Datatype.LONG), 'count': 1, 'desc': 'The number of rows per strip'},
    279: {'name': 'StripByteCounts', 'datatype': (Datatype.SHORT, Datatype.LONG), 'desc': 'For each strip, the number of bytes in the strip'},
    284: {'name': 'PlanarConfig', 'altnames': {'PlanarConfiguration'}, 'datatype': Datatype.SHORT, 'count': 1, 'enum': PlanarConfig, 'desc': 'How the components of each pixel are stored', 'default': 1},
    33550: {'name': 'ModelPixelScaleTag', 'altnames': {'ModelPixelScale'}, 'datatype': Datatype.DOUBLE, 'count': 3, 'desc': 'Size of a raster pixel in model space units (X, Y, Z)'},
    33922: {'name': 'ModelTiepointTag', 'altnames': {'ModelTiepoint'}, 'datatype': Datatype.DOUBLE, 'desc': 'Raster (I, J, K) to model (X, Y, Z) tie-points'},
    34735: {'name': 'GeoKeyDirectoryTag', 'altnames': {'GeoKeyDirectory'}, 'datatype': Datatype.SHORT, 'desc': 'GeoTIFF key directory'},
    34736: {'name': 'GeoDoubleParamsTag', 'altnames': {'GeoDoubleParams'}, 'datatype': Datatype.DOUBLE, 'desc': 'GeoTIFF double parameters referenced by the key directory'},
    34737: {'name': 'GeoAsciiParamsTag', 'altnames': {'GeoAsciiParams'}, 'datatype': Datatype.ASCII, 'desc': 'GeoTIFF string parameters referenced by the key directory'},
})
