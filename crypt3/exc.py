"""crypt3.exc -- exceptions & warnings raised by crypt3"""
#==========================================================================
# exceptions
#==========================================================================
class UnsupportedAlgorithmError(ValueError):
    """Error raised if the requested digest algorithm is not one of
    the algorithms crypt3 knows how to use
    (``md5``, ``sha1``, ``sha256``, ``sha384``, ``sha512``, ``rmd160``).

    This is always raised before any digest work is performed.
    """
    def __init__(self, name):
        self.name = name
        ValueError.__init__(self, "unsupported algorithm: %r" % (name,))

class MalformedHashError(ValueError):
    """Error raised if a hash string can't be parsed into
    its magic, salt & checksum components.
    """

class DigestTooShortError(ValueError):
    """Error raised when a handler is created for a digest whose output
    is too small for the crypt3 encoder.

    The encoder reads bytes ``0..15`` of the final digest,
    so any digest smaller than 16 bytes is rejected when the handler
    class is built, rather than when a hash is encoded.
    """

class PasswordSizeError(ValueError):
    """Error raised if the password provided exceeds the limit set by
    the ``CRYPT3_MAX_PASSWORD_SIZE`` environmental variable.

    crypt3 feeds the whole password into each of the 1000 rounds,
    so applications accepting passwords from untrusted sources
    may wish to cap their size. By default there is no limit.
    """
    def __init__(self, max_size):
        self.max_size = max_size
        ValueError.__init__(self, "password exceeds maximum allowed size "
                                  "(%d bytes)" % (max_size,))

#==========================================================================
# warnings
#==========================================================================
class Crypt3Warning(UserWarning):
    """base class for crypt3's user warnings"""

class Crypt3HashWarning(Crypt3Warning):
    """Warning issued when a hash is created with settings that
    crypt3 can produce but not parse back, such as a magic string
    which isn't of the form ``$id$``.
    """

#==========================================================================
# error constructors
#
# note: these functions return the exception rather than raising it,
# so the caller's traceback points at the actual failure site.
#==========================================================================

def _get_name(handler):
    return handler.name if handler else "<unnamed>"

def type_name(value):
    "return pretty-printed string containing name of value's type"
    cls = value.__class__
    if cls.__module__ and cls.__module__ != "builtins":
        return "%s.%s" % (cls.__module__, cls.__name__)
    elif value is None:
        return 'None'
    else:
        return cls.__name__

def ExpectedTypeError(value, expected, param):
    "error message when param was supposed to be one type, but found another"
    # NOTE: value is never displayed, since it may sometimes be a password.
    name = type_name(value)
    return TypeError("%s must be %s, not %s" % (param, expected, name))

def ExpectedStringError(value, param):
    "error message when param was supposed to be unicode or bytes"
    return ExpectedTypeError(value, "unicode or bytes", param)

def InvalidHashError(handler=None, reason=None):
    "error returned if hash can't be split into magic, salt & checksum"
    text = "not a valid %s hash" % _get_name(handler)
    if reason:
        text = "%s (%s)" % (text, reason)
    return MalformedHashError(text)

def ChecksumSizeError(handler):
    "error returned if hash was recognized, but checksum was wrong size"
    return MalformedHashError("checksum wrong size (%s checksum must be "
                              "exactly %d chars)" %
                              (handler.name, handler.checksum_size))

#==========================================================================
# eof
#==========================================================================
