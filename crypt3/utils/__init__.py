"""crypt3 utility functions"""
#=================================================================================
#imports
#=================================================================================
#core
from hashlib import sha256
import logging; log = logging.getLogger(__name__)
import os
import random
import time
#site
#pkg
from crypt3.exc import ExpectedStringError, PasswordSizeError
#local
__all__ = [
    #decorators
    "classproperty",

    #config
    "MAX_PASSWORD_SIZE",
    "validate_secret",

    #bytes<->unicode
    "to_bytes",
    "to_native_str",

    #string helpers
    "consteq",
    "HASH64_CHARS",

    #randomness
    "rng",
    "getrandstr",
]

#=================================================================================
#constants
#=================================================================================

#: hash64 alphabet, used for salts and for the checksum encoding
HASH64_CHARS = "./0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"

def _read_max_password_size(value):
    "parse CRYPT3_MAX_PASSWORD_SIZE; unset or 0 means unlimited"
    if not value:
        return None
    try:
        size = int(value)
    except ValueError:
        raise ValueError("CRYPT3_MAX_PASSWORD_SIZE must be an integer: %r" %
                         (value,))
    if size < 0:
        raise ValueError("CRYPT3_MAX_PASSWORD_SIZE must be >= 0: %r" % (value,))
    return size or None

#: maximum password size in bytes, or ``None`` if unlimited
MAX_PASSWORD_SIZE = _read_max_password_size(os.environ.get("CRYPT3_MAX_PASSWORD_SIZE"))

#=================================================================================
#decorators and meta helpers
#=================================================================================
class classproperty(object):
    """Function decorator which acts like a combination of classmethod+property (limited to read-only properties)"""

    def __init__(self, func):
        self.im_func = func

    def __get__(self, obj, cls):
        return self.im_func(cls)

    @property
    def __func__(self):
        return self.im_func

#==========================================================
#bytes <-> unicode conversion helpers
#==========================================================

def to_bytes(source, encoding="utf-8", errname="value"):
    """helper to encode unicode -> bytes

    :arg source: source bytes/unicode to process
    :arg encoding: target character encoding
    :param errname: optional name of variable/noun to reference when raising errors

    :raises TypeError: if source is not unicode or bytes.

    :returns: bytes object
    """
    if isinstance(source, bytes):
        return source
    elif isinstance(source, str):
        return source.encode(encoding)
    else:
        raise ExpectedStringError(source, errname)

def to_native_str(source, encoding="ascii", errname="value"):
    "take in unicode or bytes, return native string (decoding bytes using specified encoding)"
    if isinstance(source, str):
        return source
    elif isinstance(source, bytes):
        return source.decode(encoding)
    else:
        raise ExpectedStringError(source, errname)

def validate_secret(secret):
    "encode secret to bytes, enforcing :data:`MAX_PASSWORD_SIZE`"
    secret = to_bytes(secret, "utf-8", errname="secret")
    if MAX_PASSWORD_SIZE and len(secret) > MAX_PASSWORD_SIZE:
        raise PasswordSizeError(MAX_PASSWORD_SIZE)
    return secret

def consteq(left, right):
    """check two strings/bytes for equality, taking constant time relative
    to the size of the righthand input.

    The purpose of this function is to aid in preventing timing attacks
    during digest comparisons.
    """
    # NOTE:
    # This function attempts to take an amount of time proportional
    # to ``THETA(len(right))``. The main loop is designed so that timing attacks
    # against this function should reveal nothing about how much (or which
    # parts) of the two inputs match.

    # validate types
    if isinstance(left, str):
        if not isinstance(right, str):
            raise TypeError("inputs must be both unicode or bytes")
        left = left.encode("utf-8")
        right = right.encode("utf-8")
    elif isinstance(left, bytes):
        if not isinstance(right, bytes):
            raise TypeError("inputs must be both unicode or bytes")
    else:
        raise TypeError("inputs must be both unicode or bytes")

    # do size comparison.
    # NOTE: the double-if construction below is done deliberately, to ensure
    # the same number of operations (including branches) is performed regardless
    # of whether left & right are the same size.
    same = (len(left) == len(right))
    if same:
        # if sizes are the same, setup loop to perform actual check of contents.
        tmp = left
        result = 0
    if not same:
        # if sizes aren't the same, set 'result' so equality will fail regardless
        # of contents. then, to ensure we do exactly 'len(right)' iterations
        # of the loop, just compare 'right' against itself.
        tmp = right
        result = 1

    # run constant-time string comparision
    for l, r in zip(tmp, right):
        result |= l ^ r
    return result == 0

#-----------------------------------------------------------------------
# setup rng for generating salts
#-----------------------------------------------------------------------

#NOTE:
# generating salts doesn't require cryptographically strong randomness.
# it just requires enough range of possible outputs that making a
# rainbow table is too costly. SystemRandom is used where available,
# otherwise the mersenne twister prng, seeded from a couple of
# minor entropy sources.

try:
    os.urandom(1)
    has_urandom = True
except NotImplementedError: #pragma: no cover
    has_urandom = False

def genseed(value=None):
    "generate prng seed value from system resources"
    #if value is rng, extract a bunch of bits from it's state
    if hasattr(value, "getrandbits"):
        value = value.getrandbits(256)
    text = "%s %s %s %.15f %s" % (
        value,
            #if user specified a seed value (eg current rng state), mix it in

        os.getpid() if hasattr(os, "getpid") else None,
            #add current process id

        id(object()),
            #id of a freshly created object.
            #(at least 2 bytes of which should be hard to predict)

        time.time(),
            #the current time, to whatever precision os uses

        os.urandom(16).decode("latin-1") if has_urandom else 0,
            #if urandom available, might as well mix some bytes in.
        )
    #hash it all up and return it as int
    return int(sha256(text.encode("utf-8")).hexdigest(), 16)

if has_urandom:
    rng = random.SystemRandom()
else: #pragma: no cover
    #NOTE: to reseed - rng.seed(genseed(rng))
    rng = random.Random(genseed())

def getrandstr(rng, charset, count):
    """return string containing *count* number of chars, whose elements are drawn from specified charset, using specified rng"""
    #check alphabet & count
    if count < 0:
        raise ValueError("count must be >= 0")
    letters = len(charset)
    if letters == 0:
        raise ValueError("alphabet must not be empty")
    if letters == 1:
        return charset * count
    return "".join(charset[rng.randrange(letters)] for _ in range(count))

#=================================================================================
#eof
#=================================================================================
