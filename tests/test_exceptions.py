import pytest

import geotiv


@pytest.mark.parametrize('error,alias', [
    (geotiv.GeotivError, geotiv.GeotivException),
    (geotiv.TruncatedInputError, geotiv.TruncatedInputException),
    (geotiv.BadHeaderError, geotiv.BadHeaderException),
    (geotiv.MalformedLayerError, geotiv.MalformedLayerException),
    (geotiv.UnsupportedFormatError, geotiv.UnsupportedFormatException),
    (geotiv.InvalidMetadataError, geotiv.InvalidMetadataException),
    (geotiv.EmptyCollectionError, geotiv.EmptyCollectionException),
    (geotiv.UnknownTagError, geotiv.UnknownTagException),
    (geotiv.IOFailureError, geotiv.IOFailureException),
])
def test_exception_aliases(error, alias):
    assert error is alias
    assert issubclass(error, geotiv.GeotivError)


def test_io_failure_is_os_error():
    assert issubclass(geotiv.IOFailureError, OSError)
    with pytest.raises(OSError):
        geotiv.read_geotiff('/nonexistent/path/sample.tif')
