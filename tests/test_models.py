import zlib

import geotiv
from geotiv import models


def test_make_grid():
    grid = models.make_grid(3, 2, 7)
    assert len(grid) == 2
    assert grid[1] == bytearray([7, 7, 7])
    grid[0][0] = 1
    assert grid[1][0] == 7


def test_layer_defaults():
    layer = geotiv.Layer()
    assert layer.samplesPerPixel == 1
    assert layer.planarConfig == 1
    assert layer.crs is None
    assert layer.datum is None
    assert layer.resolution is None
    assert layer.customTags == {}
    assert layer.grid == []
    assert 'Layer 0x0' in repr(layer)


def test_collection_defaults():
    collection = geotiv.RasterCollection()
    assert len(collection) == 0
    assert collection.crs == geotiv.CRS.WGS
    assert collection.datum == geotiv.Datum(0, 0, 0)
    assert collection.heading == geotiv.Heading(0, 0, 0)
    assert collection.resolution == 1.0
    assert collection.getGlobalPropertiesFromFirstLayer() == {}


def test_ascii_tag_packing():
    values = models.string_to_ascii_tag('abcd')
    assert values == [0x64636261, 0]
    assert models.ascii_tag_to_string(values) == 'abcd'
    assert models.string_to_ascii_tag('abc') == [0x00636261]


def test_global_property_tag():
    tag = models.global_property_tag('sensor')
    assert tag == 50100 + zlib.crc32(b'sensor') % 1000
    assert 50100 <= tag < 51100


def test_global_properties():
    layer = geotiv.Layer()
    layer.setGlobalProperty('sensor', 'lidar')
    layer.setGlobalProperty('operator', 'a=b')
    layer.customTags[50001] = [1, 2]
    assert layer.getGlobalProperties() == {'sensor': 'lidar', 'operator': 'a=b'}
    layer.removeGlobalProperty('sensor')
    assert layer.getGlobalProperties() == {'operator': 'a=b'}
    assert 50001 in layer.customTags
    layer.removeGlobalProperty('notset')


def test_collection_global_properties():
    collection = geotiv.RasterCollection([geotiv.Layer(), geotiv.Layer()])
    collection.setGlobalPropertiesOnAllLayers({'mission': 'm1', 'run': 3})
    assert collection.getGlobalPropertiesFromFirstLayer() == {'mission': 'm1', 'run': '3'}
    assert collection.layers[1].getGlobalProperties() == {'mission': 'm1', 'run': '3'}
