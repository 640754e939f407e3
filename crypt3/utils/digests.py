"""crypt3.utils.digests - lookup of the digest algorithms crypt3 can be built on"""
#=============================================================================
# imports
#=============================================================================
# core
import hashlib
import logging; log = logging.getLogger(__name__)
import re
# site
from Crypto.Hash import RIPEMD160
# pkg
from crypt3.exc import UnsupportedAlgorithmError
from crypt3.utils import to_native_str
# local
__all__ = [
    "ALGORITHMS",
    "norm_algorithm_name",
    "DigestEngine",
    "get_digest_engine",
]

def _clear_caches():
    """unittest helper -- clears get_digest_engine() cache"""
    _engine_cache.clear()

#=============================================================================
# algorithm names
#=============================================================================

# known algorithms
_algorithm_names = [
    # format: (crypt3 name, hashlib name, other known aliases ...)
    ("md5", "md5"),
    ("sha1", "sha1", "sha-1"),
    ("sha256", "sha256", "sha-256", "sha2-256"),
    ("sha384", "sha384", "sha-384", "sha2-384"),
    ("sha512", "sha512", "sha-512", "sha2-512"),
    ("rmd160", "ripemd160", "ripemd-160", "rmd-160"),
]

#: names of all supported algorithms, in canonical form
ALGORITHMS = tuple(row[0] for row in _algorithm_names)

# map of every known alias -> row of _algorithm_names
_alias_map = dict((alias, row) for row in _algorithm_names for alias in row)

def norm_algorithm_name(name, format="crypt3"):
    """Normalize digest algorithm name

    :arg name:
        Original algorithm name. Case is ignored,
        and underscores / spaces are treated as hyphens.

    :param format:
        ``"crypt3"`` (the default) returns the name crypt3 uses
        (e.g. ``"rmd160"``); ``"hashlib"`` returns the name
        :func:`hashlib.new` knows the digest under (e.g. ``"ripemd160"``).

    :raises UnsupportedAlgorithmError: if the name isn't one of :data:`ALGORITHMS`.

    :returns:
        Algorithm name, returned as native :class:`!str`.
    """
    if format == "crypt3":
        idx = 0
    elif format == "hashlib":
        idx = 1
    else:
        raise ValueError("unknown format: %r" % (format,))
    try:
        return _alias_map[name][idx]
    except (KeyError, TypeError):
        pass
    orig = name

    # normalize input
    if not isinstance(name, str):
        try:
            name = to_native_str(name, "ascii", "algorithm name")
        except (TypeError, UnicodeDecodeError):
            raise UnsupportedAlgorithmError(orig)
    name = re.sub("[_ /]", "-", name.strip().lower())

    for key in (name, name.replace("-", "")):
        row = _alias_map.get(key)
        if row:
            return row[idx]
    raise UnsupportedAlgorithmError(orig)

#=============================================================================
# digest engines
#=============================================================================

def _get_hash_const(name):
    """internal helper used by :func:`get_digest_engine`,
    returns constructor for specified hashlib name"""
    # first, check hashlib.<attr> for an efficient constructor
    const = getattr(hashlib, name, None)
    if const:
        return const

    # second, check hashlib.new() in case SSL supports the digest
    try:
        # new() should throw ValueError if alg is unknown
        hashlib.new(name, b"")
    except ValueError:
        pass
    else:
        def const(msg=b""):
            return hashlib.new(name, msg)
        const.__name__ = "new(%r)" % name
        const.__module__ = "hashlib"
        const.__doc__ = "wrapper for %s hash constructor" % name
        return const

    # third, use pycryptodome for ripemd160, since openssl 3 ships it
    # in the legacy provider which is often disabled.
    if name == "ripemd160":
        log.debug("hashlib lacks ripemd160, using pycryptodome implementation")
        return RIPEMD160.new

    # finally, give up!
    return None

class DigestEngine(object):
    """wrapper around a digest constructor

    :arg name: canonical crypt3 algorithm name
    :arg const: constructor returning a fresh hash object

    .. attribute:: name
    .. attribute:: digest_size
    .. attribute:: block_size
    """
    def __init__(self, name, const):
        self.name = name
        self._const = const
        tmp = const()
        if len(tmp.digest()) != tmp.digest_size:
            raise RuntimeError("%r constructor failed sanity check" % name)
        self.digest_size = tmp.digest_size
        self.block_size = tmp.block_size

    def new(self, data=b""):
        "return a fresh incremental hash object, optionally fed with *data*"
        m = self._const()
        if data:
            m.update(data)
        return m

    def one_shot(self, data):
        "return raw digest of *data*"
        return self.new(data).digest()

    def __repr__(self):
        return "<DigestEngine %s digest_size=%d>" % (self.name, self.digest_size)

# cache for get_digest_engine() lookups, keyed by canonical name only
_engine_cache = {}

def get_digest_engine(name):
    """Lookup digest engine by algorithm name.

    :arg name: algorithm name, anything :func:`norm_algorithm_name` accepts

    :raises UnsupportedAlgorithmError: if the algorithm is unknown,
        or the local hash libraries can't provide it.

    :returns: :class:`DigestEngine` instance
    """
    try:
        return _engine_cache[name]
    except (KeyError, TypeError):
        pass
    canon = norm_algorithm_name(name)
    try:
        engine = _engine_cache[canon]
    except KeyError:
        const = _get_hash_const(norm_algorithm_name(canon, "hashlib"))
        if not const:
            raise UnsupportedAlgorithmError(name)
        engine = _engine_cache[canon] = DigestEngine(canon, const)
        log.debug("loaded digest engine: %r", engine)
    return engine

#=============================================================================
# eof
#=============================================================================
