import logging
from importlib.metadata import PackageNotFoundError, version

from .commands import (geotiv_concat, geotiv_dump, geotiv_info, geotiv_merge, geotiv_split,
                       main)
from .constants import CRS, Datatype, Tag, TiffDatatype, TiffTag
from .exceptions import (BadHeaderError, BadHeaderException, EmptyCollectionError,
                         EmptyCollectionException, GeotivError, GeotivException,
                         InvalidMetadataError, InvalidMetadataException, IOFailureError,
                         IOFailureException, MalformedLayerError, MalformedLayerException,
                         TruncatedInputError, TruncatedInputException, UnknownTagError,
                         UnknownTagException, UnsupportedFormatError, UnsupportedFormatException)
from .geo import Datum, Heading, Shift
from .models import Layer, RasterCollection, make_grid
from .reader import decode, read_geotiff
from .writer import encode, write_geotiff

try:
    __version__ = version(__name__)
except PackageNotFoundError:
    # package is not installed
    __version__ = '0.0.0'


logger = logging.getLogger(__name__)

# See http://docs.python.org/3.3/howto/logging.html#configuring-logging-for-a-library
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = (
    'CRS',
    'Datatype', 'TiffDatatype',
    'Tag', 'TiffTag',

    'Datum',
    'Heading',
    'Shift',
    'Layer',
    'RasterCollection',
    'make_grid',

    'GeotivError',
    'TruncatedInputError',
    'BadHeaderError',
    'MalformedLayerError',
    'UnsupportedFormatError',
    'InvalidMetadataError',
    'EmptyCollectionError',
    'UnknownTagError',
    'IOFailureError',
    'GeotivException',
    'TruncatedInputException',
    'BadHeaderException',
    'MalformedLayerException',
    'UnsupportedFormatException',
    'InvalidMetadataException',
    'EmptyCollectionException',
    'UnknownTagException',
    'IOFailureException',

    'decode',
    'encode',
    'read_geotiff',
    'write_geotiff',

    'geotiv_concat',
    'geotiv_dump',
    'geotiv_info',
    'geotiv_merge',
    'geotiv_split',

    '__version__',
    'main',
)
