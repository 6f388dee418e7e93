import contextlib
import io
import shutil
import sys
import tempfile

from .exceptions import IOFailureError


def is_filelike_object(fobj):
    """
    Check if an object is file-like in that it has a read method.

    :param fobj: the possible filelike-object.
    :returns: True if the object is filelike.
    """
    return hasattr(fobj, 'read')


def is_bytes_like(obj):
    return isinstance(obj, (bytes, bytearray, memoryview))


@contextlib.contextmanager
def OpenPathOrFobj(pathOrObj, mode='rb'):
    """
    Given any of a file path, a pathlib Path object, a bytes-like object (read
    only), a filelike-object that is seekable, a filelike-object that is not
    seekable, or '-' or None to indicate either stdin or stdout, return a
    seekable filelike-object.

    Paths are opened for the duration of the context and are always closed
    when it exits.  Failure to open a path raises IOFailureError.

    :param pathOrObj: one of a file path, pathlib Path, bytes, filelike-object,
        or None or '-'.
    :param mode: the mode to open a path or temporary file as needed.  This
        won't affect a seekable filelike-object.  If '-' or None is specified,
        the presence of 'w' determines if stdout or stdin is opened (always in
        binary mode).
    :yields: a seekable filelike object.
    """
    writing = 'w' in mode.lower()
    if is_bytes_like(pathOrObj):
        if writing:
            msg = 'Cannot write to a bytes object'
            raise IOFailureError(msg)
        yield io.BytesIO(pathOrObj)
        return
    if pathOrObj is None or (isinstance(pathOrObj, str) and pathOrObj == '-'):
        pathOrObj = sys.stdout.buffer if writing else sys.stdin.buffer
    if not is_filelike_object(pathOrObj) and not hasattr(pathOrObj, 'write'):
        try:
            fobj = open(pathOrObj, mode)
        except OSError as exc:
            raise IOFailureError('Cannot open %s: %s' % (pathOrObj, exc.strerror or exc)) from exc
        with fobj:
            yield fobj
    elif (hasattr(pathOrObj, 'seekable') and pathOrObj.seekable() and
            hasattr(pathOrObj, 'tell') and hasattr(pathOrObj, 'truncate')):
        yield pathOrObj
    elif not writing:
        with tempfile.TemporaryFile('w+b') as fobj:
            shutil.copyfileobj(pathOrObj, fobj)
            fobj.seek(0)
            yield fobj
    else:
        with tempfile.TemporaryFile('w+b') as fobj:
            yield fobj
            fobj.seek(0)
            shutil.copyfileobj(fobj, pathOrObj)
