import argparse
import json
import logging
import math
import os
import sys

from .exceptions import GeotivException
from .models import RasterCollection
from .reader import read_geotiff
from .writer import write_geotiff

logger = logging.getLogger(__name__)


class ThrowOnLevelHandler(logging.NullHandler):
    def handle(self, record):
        raise GeotivException(record.getMessage())


def _collection_for_layers(layers, defaults):
    return RasterCollection(
        layers, crs=defaults.crs, datum=defaults.datum, heading=defaults.heading,
        resolution=defaults.resolution)


def geotiv_merge(*args, **kwargs):
    """
    Alias for geotiv_concat.
    """
    return geotiv_concat(*args, **kwargs)


def geotiv_concat(source, output, overwrite=False, **kwargs):
    """
    Concatenate the layers of a list of source files into a single output
    file.  The collection defaults are taken from the first source.

    :param source: a list of input paths
    :param output: the output path
    :param overwrite: if False, throw an error if the output already exists.
    """
    layers = []
    first = None
    for path in source:
        collection = read_geotiff(path)
        if first is None:
            first = collection
        layers.extend(collection.layers)
    write_geotiff(_collection_for_layers(layers, first), output, allowExisting=overwrite)


def geotiv_info(*args, **kwargs):
    """
    Alias for geotiv_dump.
    """
    return geotiv_dump(*args, **kwargs)


def _format_values(values, max):
    text = ' '.join('%.10g' % val for val in values[:max])
    if len(values) != 1:
        text = '<%d> %s' % (len(values), text)
    if len(values) > max:
        text += ' ...'
    return text


def collection_to_dict(collection):
    """
    Describe a collection without its pixels in a form suitable for json.

    :param collection: a RasterCollection.
    :returns: a dictionary.
    """
    return {
        'crs': collection.crs.name,
        'datum': collection.datum._asdict(),
        'heading': collection.heading._asdict(),
        'resolution': collection.resolution,
        'layers': [{
            'ifdOffset': layer.ifdOffset,
            'width': layer.width,
            'height': layer.height,
            'samplesPerPixel': layer.samplesPerPixel,
            'planarConfig': layer.planarConfig,
            'stripOffsets': layer.stripOffsets,
            'stripByteCounts': layer.stripByteCounts,
            'crs': layer.crs.name,
            'datum': layer.datum._asdict(),
            'heading': layer.heading._asdict(),
            'shift': layer.shift._asdict(),
            'resolution': layer.resolution,
            'imageDescription': layer.imageDescription,
            'tiepoint': layer.tiepoint,
            'geoKeys': layer.geoKeys,
            'customTags': {str(tag): values for tag, values in layer.customTags.items()},
            'globalProperties': layer.getGlobalProperties(),
        } for layer in collection.layers],
    }


def _dump_layers(collection, max, dest):
    for idx, layer in enumerate(collection.layers):
        dest.write('Directory %d: offset %d (0x%x)\n' % (idx, layer.ifdOffset, layer.ifdOffset))
        dest.write('  Size: %d x %d, %d sample(s) per pixel, planar configuration %d\n' % (
            layer.width, layer.height, layer.samplesPerPixel, layer.planarConfig))
        dest.write('  Strips: %s\n' % _format_values(layer.stripOffsets, max))
        dest.write('  ImageDescription: %s\n' % layer.imageDescription)
        dest.write('  CRS: %s\n' % layer.crs.name)
        dest.write('  DATUM: %.10g %.10g %.10g\n' % tuple(layer.datum))
        dest.write('  SHIFT: %.10g %.10g %.10g\n' % tuple(layer.shift))
        dest.write('  HEADING: %.10g\n' % layer.heading.yaw)
        dest.write('  RESOLUTION: %.10g\n' % layer.resolution)
        if layer.tiepoint:
            dest.write('  ModelTiepoint: %s\n' % _format_values(layer.tiepoint, max))
        for key, value in layer.geoKeys.items():
            dest.write('  GeoKey %s: %s\n' % (key, value))
        for tag, values in layer.customTags.items():
            dest.write('  Custom %d: %s\n' % (tag, _format_values(values, max)))
        for key, value in layer.getGlobalProperties().items():
            dest.write('  Property %s: %s\n' % (key, value))


def geotiv_dump(source, max=20, dest=None, *args, **kwargs):
    """
    Print the contents of a file other than its pixels.

    :param source: the source path or a list of source paths.
    :param max: the maximum number of items to display for lists.
    :param dest: an open stream to write to.
    """
    dest = sys.stdout if dest is None else dest
    if isinstance(source, list):
        if kwargs.get('json'):
            dest.write('{\n')
        for srcidx, src in enumerate(source):
            if kwargs.get('json'):
                json.dump(src, dest)
                dest.write(': ')
            else:
                dest.write('-- %s --\n' % src)
            geotiv_dump(src, max=max, dest=dest, *args, **kwargs)
            if kwargs.get('json'):
                dest.write(',\n' if srcidx + 1 != len(source) else '\n}')
        return
    collection = read_geotiff(source, requireDatum=bool(kwargs.get('requireDatum')))
    if kwargs.get('json'):
        json.dump(collection_to_dict(collection), dest, indent=2)
        return
    dest.write('GeoTIFF RasterCollection\n')
    dest.write('CRS: %s\n' % collection.crs.name)
    dest.write('DATUM: %.10g %.10g %.10g\n' % tuple(collection.datum))
    dest.write('HEADING: %.10g\n' % collection.heading.yaw)
    dest.write('RESOLUTION: %.10g\n' % collection.resolution)
    dest.write('Layers: %d\n' % len(collection.layers))
    _dump_layers(collection, max, dest)


def _make_split_name(prefix, num, neededChars):
    """
    Construct a split name from a prefix, a number, and the number of
    characters needed to represent the number.

    :param prefix: the prefix or None.
    :param num: the zero-based index.
    :param neededChars: the number of characters to appened before the file
        extension.
    :returns: a file path.
    """
    if prefix is None:
        prefix = './'
    suffix = '.tif'
    for _ in range(neededChars):
        suffix = chr((num % 26) + 97) + suffix
        num //= 26
    return str(prefix) + suffix


def geotiv_split(source, prefix=None, overwrite=False, **kwargs):
    """
    Split a file into one file per layer.

    :param source: the source path.
    :param prefix: the root location for the result.  This will always append
        at least 3 characters followed by .tif.  These are sequential from a to
        z, and always append enough characters to be unique.
    :param overwrite: if False, throw an error if any of the ouput paths
        already exist.
    """
    collection = read_geotiff(source)
    numOutput = len(collection.layers)
    neededChars = max(int(math.ceil(math.log(numOutput) / math.log(26))), 3)
    if not overwrite:
        logger.debug('Verifying output files do not exist')
        for idx in range(numOutput):
            outputPath = _make_split_name(prefix, idx, neededChars)
            if os.path.exists(outputPath):
                raise GeotivException('File already exists: %s' % outputPath)
    for idx, layer in enumerate(collection.layers):
        outputPath = _make_split_name(prefix, idx, neededChars)
        logger.info('Writing %s', outputPath)
        write_geotiff(
            _collection_for_layers([layer], collection), outputPath, allowExisting=overwrite)


def main(args=None):
    from . import __version__

    if args is None:
        args = sys.argv[1:]
    description = 'Read, inspect, and write multi-layer GeoTIFF files.  Version %s.' % __version__
    argumentsForAllParsers = [{
        'args': ('--verbose', '-v'),
        'kwargs': dict(action='count', default=0, help='Increase output.'),
    }, {
        'args': ('--silent', '--quiet', '-q'),
        'kwargs': dict(action='count', default=0, help='Decrease output.'),
    }, {
        'args': ('--stop-on-warning', '-X'),
        'kwargs': dict(
            dest='warningIsError', action='store_true', help='Treat warnings as errors.'),
    }]
    mainParser = argparse.ArgumentParser(description=description)
    secondaryParser = argparse.ArgumentParser(description=description, add_help=False)
    subparsers = mainParser.add_subparsers(
        dest='command',
        title='subcommands',
        help='Subcommands.  See <subcommand> --help for details.')

    parserSplit = subparsers.add_parser(
        'split',
        help='split [--overwrite] source [prefix]',
        description='Split layers into separate files.')
    parserSplit.add_argument('source', help='Source file to split, - for stdin.')
    parserSplit.add_argument('prefix', nargs='?', help='Prefix of split files.')
    parserSplit.add_argument(
        '--overwrite', '-y', action='store_true',
        help='Allow overwriting an existing output file.')

    parserConcat = subparsers.add_parser(
        'concat',
        aliases=['merge'],
        help='concat [--overwrite] source [source ...] output',
        description='Concatenate the layers of multiple files into a single file.')
    parserConcat.add_argument(
        'source', nargs='+',
        help='Source files to concatenate, - for one file on stdin.')
    parserConcat.add_argument(
        'output', help='Output file, - for stdout.')
    parserConcat.add_argument(
        '--overwrite', '-y', action='store_true',
        help='Allow overwriting an existing output file.')

    parserInfo = subparsers.add_parser(
        'dump',
        aliases=['info'],
        help='dump [--max MAX] [--json] [--require-datum] source [source ...]',
        description='Print the layers and geospatial metadata of a file.')
    parserInfo.add_argument(
        'source', nargs='+', help='Source file.')
    parserInfo.add_argument(
        '--max', '-m', type=int, help='Maximum items to display.', default=20)
    parserInfo.add_argument(
        '--json', action='store_true',
        help='Output as json.')
    parserInfo.add_argument(
        '--require-datum', dest='requireDatum', action='store_true',
        help='Fail if a layer has no DATUM rather than using a placeholder.')

    for parser in (secondaryParser, parserSplit, parserConcat, parserInfo):
        for argument in argumentsForAllParsers:
            parser.add_argument(*argument['args'], **argument['kwargs'])

    # This allows argumentsForAllParsers to be either before or after the
    # command.
    secondary, notInSecondary = secondaryParser.parse_known_args(args)
    args = mainParser.parse_args(notInSecondary)
    for k, v in vars(secondary).items():
        setattr(args, k, v)
    logging.basicConfig(
        stream=sys.stderr, level=max(1, logging.WARNING - 10 * (args.verbose - args.silent)))
    logger.debug('Parsed arguments: %r', args)
    logLevelHandler = ThrowOnLevelHandler(
        level=logging.WARNING if args.warningIsError else logging.ERROR)
    try:
        logging.getLogger('geotiv').addHandler(logLevelHandler)
        if args.command:
            try:
                func = globals().get('geotiv_' + args.command)
                func(**vars(args))
            except Exception as exc:
                if args.verbose - args.silent >= 1:
                    raise
                sys.stderr.write(str(exc).strip() + '\n')
                return 1
        else:
            mainParser.print_help(sys.stdout)
    finally:
        logging.getLogger('geotiv').handlers.remove(logLevelHandler)
