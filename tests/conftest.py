import pytest

import geotiv

from .tiffbuilder import build_tiff, geotiff_ifd


def _collection(count):
    layers = []
    for idx in range(count):
        layer = geotiv.Layer(geotiv.make_grid(4 + idx, 3, idx * 10))
        layer.customTags[50001] = [idx]
        layers.append(layer)
    collection = geotiv.RasterCollection(layers, datum=geotiv.Datum(47.5, 8.5, 200.0))
    collection.setGlobalPropertiesOnAllLayers({'sensor': 'lidar'})
    return collection


@pytest.fixture
def sample_path(tmp_path):
    """A file with three layers."""
    path = tmp_path / 'sample.tif'
    geotiv.write_geotiff(_collection(3), path)
    return str(path)


@pytest.fixture
def second_path(tmp_path):
    """A file with two layers."""
    path = tmp_path / 'second.tif'
    geotiv.write_geotiff(_collection(2), path)
    return str(path)


@pytest.fixture
def no_datum_path(tmp_path):
    """A file whose description has no DATUM."""
    path = tmp_path / 'nodatum.tif'
    path.write_bytes(build_tiff([geotiff_ifd(2, 2, b'\x01\x02\x03\x04', 'Produced by a scanner')]))
    return str(path)
