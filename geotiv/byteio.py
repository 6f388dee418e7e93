import os
import struct

from .exceptions import TruncatedInputError


class ByteReader:
    """
    Read fixed-width values from a seekable binary stream in a single byte
    order.
    """

    def __init__(self, fobj, bigEndian=False):
        """
        :param fobj: a seekable filelike object opened for binary reading.
        :param bigEndian: True if values are stored big endian.
        """
        self.fobj = fobj
        self.bigEndian = bigEndian
        self.bom = '>' if bigEndian else '<'
        pos = fobj.tell()
        fobj.seek(0, os.SEEK_END)
        self.size = fobj.tell()
        fobj.seek(pos)

    def seek(self, offset):
        self.fobj.seek(offset)

    def tell(self):
        return self.fobj.tell()

    def read_bytes(self, length):
        """
        Read exactly length bytes from the current position.

        :param length: the number of bytes to read.
        :returns: the bytes read.
        """
        pos = self.fobj.tell()
        data = self.fobj.read(length)
        if len(data) != length:
            msg = 'Cannot read %d (0x%x) bytes from offset %d (0x%x); %d available.' % (
                length, length, pos, pos, len(data))
            raise TruncatedInputError(msg)
        return data

    def read_array(self, pack, count):
        """
        Read a list of values of a single struct type.

        :param pack: a struct format character, e.g., 'H' or 'd'.
        :param count: the number of values.
        :returns: a list of values.
        """
        fmt = self.bom + pack * count
        return list(struct.unpack(fmt, self.read_bytes(struct.calcsize(fmt))))

    def read_uint16(self):
        return struct.unpack(self.bom + 'H', self.read_bytes(2))[0]

    def read_uint32(self):
        return struct.unpack(self.bom + 'L', self.read_bytes(4))[0]

    def read_uint64(self):
        return struct.unpack(self.bom + 'Q', self.read_bytes(8))[0]

    def read_double(self):
        return struct.unpack(self.bom + 'd', self.read_bytes(8))[0]


class ByteWriter:
    """
    Append fixed-width values to a growable buffer in a single byte order.
    """

    def __init__(self, bigEndian=False):
        self.buffer = bytearray()
        self.bigEndian = bigEndian
        self.bom = '>' if bigEndian else '<'

    def tell(self):
        return len(self.buffer)

    def getvalue(self):
        return bytes(self.buffer)

    def write_bytes(self, data):
        self.buffer += data

    def write_array(self, pack, values):
        self.buffer += struct.pack(self.bom + pack * len(values), *values)

    def write_uint16(self, value):
        self.buffer += struct.pack(self.bom + 'H', value)

    def write_uint32(self, value):
        self.buffer += struct.pack(self.bom + 'L', value)

    def write_uint64(self, value):
        self.buffer += struct.pack(self.bom + 'Q', value)

    def write_double(self, value):
        self.buffer += struct.pack(self.bom + 'd', value)
