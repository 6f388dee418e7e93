"""
Build small tiff files in memory for tests.  This is independent of the
package's writer so that the reader can be tested against files laid out
differently than the writer would.
"""
import struct

ASCII, SHORT, LONG, DOUBLE = 2, 3, 4, 12

_PACK = {1: 'B', 3: 'H', 4: 'L', 11: 'f', 12: 'd', 16: 'Q'}

# Marks the StripOffsets entry; the builder fills in the actual offsets.
STRIP_OFFSETS = object()


def _pack(bom, datatype, values):
    if isinstance(values, (bytes, bytearray)):
        return bytes(values), len(values)
    if datatype == ASCII:
        data = values.encode() + b'\x00'
        return data, len(data)
    return struct.pack(bom + _PACK[datatype] * len(values), *values), len(values)


def geotiff_ifd(width, height, pixels, description='CRS WGS84 DATUM 10.0 20.0 30.0',
                samplesPerPixel=1, planarConfig=1, stripCount=1, scale=(1.0, 1.0, 0.0),
                extra=None, omit=()):
    """
    Describe a directory with 8-bit uncompressed pixels.

    :param pixels: the bytes of the image in file order.
    :param stripCount: split the pixels into this many roughly equal strips.
    :param extra: a list of additional (tag, datatype, values[, count])
        entries.
    :param omit: tags to leave out of the standard entries.
    :returns: a dictionary for build_tiff.
    """
    stripLen = -(-len(pixels) // stripCount)
    strips = [pixels[idx:idx + stripLen] for idx in range(0, len(pixels), stripLen)]
    entries = [
        (256, LONG, [width]),
        (257, LONG, [height]),
        (258, SHORT, [8] * samplesPerPixel),
        (259, SHORT, [1]),
        (262, SHORT, [1]),
        (270, ASCII, description),
        (273, LONG, STRIP_OFFSETS),
        (277, SHORT, [samplesPerPixel]),
        (278, LONG, [-(-height // stripCount)]),
        (279, LONG, [len(strip) for strip in strips]),
        (284, SHORT, [planarConfig]),
        (33550, DOUBLE, list(scale)),
    ]
    entries = [entry for entry in entries if entry[0] not in omit]
    entries.extend(extra or [])
    return {'entries': sorted(entries, key=lambda entry: entry[0]), 'strips': strips}


def build_tiff(ifds, bigEndian=False, loopTo=None):
    """
    Lay out a classic tiff.  Each directory is preceded by its strips and its
    out-of-line data.

    :param ifds: a list of dictionaries with 'entries' and 'strips'.
    :param bigEndian: True to write a big-endian file.
    :param loopTo: if not None, the last directory's next pointer refers to
        the directory with this index instead of ending the chain.
    :returns: the file as bytes.
    """
    bom = '>' if bigEndian else '<'
    data = bytearray(b'MM' if bigEndian else b'II')
    data += struct.pack(bom + 'HL', 42, 0)
    nextPtr = 4
    ifdOffsets = []
    for ifd in ifds:
        stripOffsets = []
        for strip in ifd['strips']:
            stripOffsets.append(len(data))
            data += strip
        packed = []
        for entry in ifd['entries']:
            tag, datatype, values = entry[:3]
            if values is STRIP_OFFSETS:
                values = stripOffsets
            raw, count = _pack(bom, datatype, values)
            if len(entry) > 3:
                count = entry[3]
            if len(raw) <= 4 and datatype != ASCII:
                field = raw + b'\x00' * (4 - len(raw))
            else:
                if len(data) % 2:
                    data += b'\x00'
                field = struct.pack(bom + 'L', len(data))
                data += raw
            packed.append(struct.pack(bom + 'HHL', tag, datatype, count) + field)
        if len(data) % 2:
            data += b'\x00'
        ifdOffsets.append(len(data))
        struct.pack_into(bom + 'L', data, nextPtr, len(data))
        data += struct.pack(bom + 'H', len(packed))
        data += b''.join(packed)
        nextPtr = len(data)
        data += struct.pack(bom + 'L', 0)
    if loopTo is not None:
        struct.pack_into(bom + 'L', data, nextPtr, ifdOffsets[loopTo])
    return bytes(data)
