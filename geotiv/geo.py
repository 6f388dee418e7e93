import collections
import logging
import math

import pyproj

from .constants import (CRS, EPSG_WGS84, GeoTiffAngularUnits, GeoTiffGeoKey, GeoTiffModelType,
                        GeoTiffRasterType, Tag, get_or_create_tag)

logger = logging.getLogger(__name__)

Datum = collections.namedtuple('Datum', ['lat', 'lon', 'alt'])
Heading = collections.namedtuple('Heading', ['roll', 'pitch', 'yaw'])
Shift = collections.namedtuple('Shift', ['x', 'y', 'z'])

# Used when a file's ImageDescription carries no usable DATUM.  It is not the
# origin so that consumers can tell it apart from an unset datum.
SENTINEL_DATUM = Datum(0.001, 0.001, 1.0)

DEFAULT_DATUM = Datum(0.0, 0.0, 0.0)
DEFAULT_HEADING = Heading(0.0, 0.0, 0.0)
DEFAULT_SHIFT = Shift(0.0, 0.0, 0.0)

# Geodetic (lon, lat, height) and geocentric WGS84
_TO_ECEF = pyproj.Transformer.from_crs('EPSG:4979', 'EPSG:4978', always_xy=True)
_FROM_ECEF = pyproj.Transformer.from_crs('EPSG:4978', 'EPSG:4979', always_xy=True)

GEOKEY_VERSION = (1, 1, 0)

# CRS flavors are matched by name only, not by value.
_CRS_FLAVORS = {
    name.upper(): crs for crs in CRS for name in [crs.name] + sorted(crs.get('altnames', ()))}


def format_description(datum, shift, heading):
    """
    Build the ImageDescription written for layers that do not supply their
    own.

    :param datum: a Datum.
    :param shift: a Shift.
    :param heading: a Heading; only the yaw is stored.
    :returns: the description string.
    """
    return 'CRS WGS84 DATUM %f %f %f SHIFT %f %f %f %f' % (
        datum.lat, datum.lon, datum.alt, shift.x, shift.y, shift.z, heading.yaw)


def _take_floats(tokens, idx, count):
    values = tokens[idx:idx + count]
    if len(values) != count:
        return None
    try:
        return [float(v) for v in values]
    except ValueError:
        return None


def parse_description(text):
    """
    Parse the keyword grammar of an ImageDescription.  Recognized keywords are
    CRS <flavor>, DATUM <lat> <lon> <alt>, SHIFT <x> <y> <z> <yaw>, and
    HEADING <yaw>.  Everything else is skipped.

    :param text: the description.
    :returns: a dictionary with any of the keys crs, datum, shift, and
        heading.
    """
    result = {}
    tokens = text.split()
    idx = 0
    while idx < len(tokens):
        token = tokens[idx]
        idx += 1
        if token == 'CRS' and idx < len(tokens):
            flavor = tokens[idx]
            if flavor.upper() in _CRS_FLAVORS:
                result['crs'] = _CRS_FLAVORS[flavor.upper()]
                idx += 1
            else:
                logger.debug('Ignoring unknown CRS flavor %r', flavor)
        elif token == 'DATUM':
            values = _take_floats(tokens, idx, 3)
            if values is not None:
                result['datum'] = Datum(*values)
                idx += 3
        elif token == 'SHIFT':
            values = _take_floats(tokens, idx, 4)
            if values is not None:
                result['shift'] = Shift(*values[:3])
                result['heading'] = Heading(0.0, 0.0, values[3])
                idx += 4
        elif token == 'HEADING':
            values = _take_floats(tokens, idx, 1)
            if values is not None:
                result['heading'] = Heading(0.0, 0.0, values[0])
                idx += 1
    return result


def enu_to_wgs(east, north, up, datum):
    """
    Convert a local east-north-up offset in meters from a datum to WGS84
    geodetic coordinates.

    :param east, north, up: the offset in meters.
    :param datum: the Datum the offset is relative to.
    :returns: a Datum with the resulting latitude, longitude, and altitude.
    """
    x, y, z = _TO_ECEF.transform(datum.lon, datum.lat, datum.alt)
    lat0 = math.radians(datum.lat)
    lon0 = math.radians(datum.lon)
    sinlat, coslat = math.sin(lat0), math.cos(lat0)
    sinlon, coslon = math.sin(lon0), math.cos(lon0)
    # rotate the local offset into the geocentric frame
    x += -sinlon * east - sinlat * coslon * north + coslat * coslon * up
    y += coslon * east - sinlat * sinlon * north + coslat * sinlon * up
    z += coslat * north + sinlat * up
    lon, lat, alt = _FROM_ECEF.transform(x, y, z)
    return Datum(lat, lon, alt)


def tiepoint(width, height, datum, shift):
    """
    Compute the ModelTiepointTag values tying the center of the image to the
    WGS84 position of the layer.  The shift is meters east, north, and up of
    the datum.

    :returns: a list of six doubles: I, J, K, X (longitude), Y (latitude),
        Z (altitude).
    """
    anchor = enu_to_wgs(shift.x, shift.y, shift.z, datum)
    return [width / 2.0, height / 2.0, 0.0, anchor.lon, anchor.lat, anchor.alt]


def dictToGeoKeys(geoDict):
    """
    Convert a dictionary of GeoKeys with short values into the list of values
    for the GeoKeyDirectoryTag.

    :param geoDict: a dictionary of GeoKey names or ids to integer values.
    :returns: a list of SHORT values.
    """
    geokeys = [list(GEOKEY_VERSION) + [len(geoDict)]]
    for key, value in geoDict.items():
        key = get_or_create_tag(key, GeoTiffGeoKey)
        geokeys.append([int(key), 0, 1, int(value)])
    return geokeys[0] + [v for geokey in sorted(geokeys[1:]) for v in geokey]


def GeoKeysToDict(keys, doubles=None, asciis=''):
    """
    Convert the GeoKeys list of values into a dictionary.

    :param keys: the list of values from the GeoKeyDirectoryTag.  This is a
        multiple of four values where the first 3 values are a version tuple
        and the fourth value is the number of 4-tuples in the rest of the list.
        Each further set of 4 values is (0) a key id from GeoTiffGeoKey, (1)
        either a 0 to indicate there is exactly one short value stored in the
        last element of the tuple, or the tag of GeoDoubleParamsTag or
        GeoAsciiParamsTag, (2) the number of values used for this tag, (3)
        either a short value or the offset in the list of doubles or
        characters.
    :param doubles: the values of GeoDoubleParamsTag, if any.
    :param asciis: the value of GeoAsciiParamsTag, if any.
    :returns: a dictionary of key names to lists of values or strings.  An
        unrecognized directory version returns an empty dictionary.
    """
    result = {}
    if len(keys) < 4 or tuple(keys[:2]) != (1, 1) or keys[3] * 4 + 4 != len(keys):
        return result
    doubles = doubles or []
    for idx in range(4, len(keys), 4):
        keyid, location, count, offset = keys[idx:idx + 4]
        name = get_or_create_tag(keyid, GeoTiffGeoKey).name
        if not location:
            result[name] = [offset]
        elif location == Tag.GeoDoubleParamsTag.value:
            result[name] = doubles[offset:offset + count]
        elif location == Tag.GeoAsciiParamsTag.value:
            val = asciis[offset:offset + count]
            result[name] = val[:-1] if val[-1:] == '|' else val
    return result


WGS84_GEOKEYS = {
    GeoTiffGeoKey.GTModelType: GeoTiffModelType.Geographic,
    GeoTiffGeoKey.GTRasterType: GeoTiffRasterType.PixelIsArea,
    GeoTiffGeoKey.GeographicType: EPSG_WGS84,
    GeoTiffGeoKey.GeogAngularUnits: GeoTiffAngularUnits.Degree,
}
