class GeotivError(Exception):
    pass


class TruncatedInputError(GeotivError):
    pass


class BadHeaderError(GeotivError):
    pass


class MalformedLayerError(GeotivError):
    pass


class UnsupportedFormatError(GeotivError):
    pass


class InvalidMetadataError(GeotivError):
    pass


class EmptyCollectionError(GeotivError):
    pass


class UnknownTagError(GeotivError):
    pass


class IOFailureError(GeotivError, OSError):
    pass


GeotivException = GeotivError
TruncatedInputException = TruncatedInputError
BadHeaderException = BadHeaderError
MalformedLayerException = MalformedLayerError
UnsupportedFormatException = UnsupportedFormatError
InvalidMetadataException = InvalidMetadataError
EmptyCollectionException = EmptyCollectionError
UnknownTagException = UnknownTagError
IOFailureException = IOFailureError
