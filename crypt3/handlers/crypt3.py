"""crypt3.handlers.crypt3 - md5-crypt style hash, generalized over several digests"""
#=========================================================
#imports
#=========================================================
#core
import logging; log = logging.getLogger(__name__)
#site
#libs
from crypt3.exc import DigestTooShortError, InvalidHashError
from crypt3.registry import get_crypt_handler
from crypt3.utils import h64, getrandstr, rng, validate_secret, HASH64_CHARS
from crypt3.utils.digests import DigestEngine, get_digest_engine
import crypt3.utils.handlers as uh
#pkg
#local
__all__ = [
    "raw_crypt3",
    "parse_crypt3",
    "create_crypt3_hash",
    "md5_crypt3",
    "sha1_crypt3",
    "sha256_crypt3",
    "sha384_crypt3",
    "sha512_crypt3",
    "rmd160_crypt3",
    "crypt",
    "check",
    "generate_salt",
]

#=========================================================
#pure-python implementation
#=========================================================
B_NULL = b"\x00"

#: number of stretching rounds, fixed by the format
ROUNDS = 1000

#: size of the mixin block repeated over the password
MIXIN_SIZE = 16

# final digest bytes in the order they are encoded. each group of
# three is little-endian, so (12,6,0) encodes the value
# final[0]<<16 | final[6]<<8 | final[12]. byte 11 fills the last 2 chars,
# bytes past 15 are never encoded.
_chk_offsets = (
    12,6,0,
    13,7,1,
    14,8,2,
    15,9,3,
    5,10,4,
    11,
)

#: smallest digest the encoder can read all offsets from
MIN_DIGEST_SIZE = max(_chk_offsets) + 1

def extend(source, size_ref):
    "helper which repeats <source> so it's the same length as <size_ref>"
    m,d = divmod(len(size_ref), len(source))
    if d:
        return source*m + source[:d]
    else:
        return source*m

def raw_crypt3(password, salt, magic, engine):
    """perform raw crypt3 calculation

    :arg password:
        password as bytes

    :arg salt:
        salt as bytes, any length

    :arg magic:
        magic identifier as bytes, e.g. ``b"$1$"``

    :arg engine:
        :class:`~crypt3.utils.digests.DigestEngine` to hash with

    :returns:
        encoded checksum as unicode (always 22 chars)
    """
    new = engine.new

    # primary hash = password+magic+salt+...
    a_hash = new(password)
    a_hash.update(magic)
    a_hash.update(salt)

    # primary hash - add len(password) chars of tmp hash,
    # where temp hash is digest(password+salt+password).
    # only the first 16 bytes are cycled, whatever the digest size.
    b = engine.one_shot(password + salt + password)
    if password:
        a_hash.update(extend(b[:MIXIN_SIZE], password))

    # primary hash - add null chars & first char of password !?!
    #
    # this was historically a bug in the original md5-crypt,
    # where they meant to use tmp[0] instead of '\x00',
    # and password[idx] instead of password[0].
    # compatible implementations all have to reproduce it.
    idx = len(password)
    evenchar = password[:1]
    while idx:
        a_hash.update(B_NULL if idx & 1 else evenchar)
        idx >>= 1
    result = a_hash.digest()

    # next:
    # do 1000 rounds to make things harder.
    # each round we do digest of round-specific content,
    # where content is formed from concatenation of...
    #   secret if round % 2 else result
    #   salt if round % 3
    #   secret if round % 7
    #   result if round % 2 else secret
    for i in range(ROUNDS):
        c_hash = new()
        if i & 1:
            c_hash.update(password)
        else:
            c_hash.update(result)
        if i % 3:
            c_hash.update(salt)
        if i % 7:
            c_hash.update(password)
        if i & 1:
            c_hash.update(result)
        else:
            c_hash.update(password)
        result = c_hash.digest()

    # encode resulting hash
    return h64.encode_transposed_bytes(result, _chk_offsets)

def parse_crypt3(hash, handler=None):
    """extract magic & salt from crypt3 hash or config string

    :raises MalformedHashError: if hash has fewer than 3 ``$``-separated fields.

    :returns: ``(magic, salt)`` as native strings
    """
    magic, salt, _ = uh.parse_magic_hash(hash, handler)
    return magic, salt

#=========================================================
#handler
#=========================================================
class Crypt3Hash(uh.HasMagic, uh.HasSalt, uh.GenericHandler):
    """template for crypt3 handlers; the digest is filled in by :func:`create_crypt3_hash`"""
    #=========================================================
    #algorithm information
    #=========================================================
    #--GenericHandler--
    #name in subclass
    setting_kwds = ("salt", "salt_size", "magic")
    checksum_size = 22
    checksum_chars = uh.HASH64_CHARS

    #--HasMagic--
    default_magic = "$1$"

    #--HasSalt--
    min_salt_size = 0
    max_salt_size = None
    default_salt_size = 8
    default_salt_chars = uh.HASH64_CHARS

    #--Crypt3Hash--
    algorithm = None # filled in by create_crypt3_hash()
    digest_size = None # filled in by create_crypt3_hash()
    _engine = None # filled in by create_crypt3_hash()

    #=========================================================
    #internal helpers
    #=========================================================
    def _norm_salt(self, salt, **kwds):
        salt = super(Crypt3Hash, self)._norm_salt(salt, **kwds)
        if "$" in salt:
            raise ValueError("invalid characters in %s salt: '$'" % (self.name,))
        return salt

    @classmethod
    def from_string(cls, hash):
        magic, salt, chk = uh.parse_magic_hash(hash, cls)
        if chk is None:
            raise InvalidHashError(cls, "missing checksum")
        return cls(magic=magic, salt=salt, checksum=chk)

    @classmethod
    def from_config(cls, config):
        # checksum is ignored, verify() compares the whole string
        magic, salt = parse_crypt3(config, cls)
        return cls(magic=magic, salt=salt)

    def to_string(self):
        return uh.render_mc2(self.magic, self.salt, self.checksum)

    #=========================================================
    #primary interface
    #=========================================================
    def calc_checksum(self, secret):
        secret = validate_secret(secret)
        return raw_crypt3(secret, self.salt.encode("utf-8"),
                          self.magic.encode("utf-8"), self._engine)

    #=========================================================
    #eoc
    #=========================================================

def create_crypt3_hash(algorithm, name=None):
    """create crypt3 handler class for the specified digest

    :arg algorithm:
        algorithm name (see :data:`~crypt3.utils.digests.ALGORITHMS`),
        or a :class:`~crypt3.utils.digests.DigestEngine` instance.

    :param name:
        optional handler name, defaults to ``<algorithm>_crypt3``.

    :raises UnsupportedAlgorithmError: if the algorithm is unknown.
    :raises DigestTooShortError: if the digest is under 16 bytes.
    """
    if isinstance(algorithm, DigestEngine):
        engine = algorithm
    else:
        engine = get_digest_engine(algorithm)
    if engine.digest_size < MIN_DIGEST_SIZE:
        raise DigestTooShortError("%s digest is %d bytes, crypt3 requires at "
                                  "least %d" % (engine.name, engine.digest_size,
                                                MIN_DIGEST_SIZE))
    if name is None:
        name = engine.name + "_crypt3"
    log.debug("creating crypt3 handler %r from %r", name, engine)
    return type(name, (Crypt3Hash,), dict(
        name=name,
        algorithm=engine.name,
        digest_size=engine.digest_size,
        _engine=engine,
        __module__=__name__,
        __doc__="""This class implements the crypt3 password hash using the %s digest.

It supports a variable-length salt. The :meth:`encrypt()` and :meth:`genconfig`
methods accept the following optional keywords:

:param salt:
    Optional salt string.
    If not specified, an 8 character one will be autogenerated from ``[./0-9A-Za-z]``.
    If specified, it may be any length, and must not contain ``$``.

:param salt_size:
    Size of the autogenerated salt.

:param magic:
    Magic identifier mixed into the digest and prefixed to the hash,
    defaults to ``$1$``.
""" % (engine.name,)
    ))

#=========================================================
#predefined handlers
#=========================================================
md5_crypt3      = create_crypt3_hash("md5")
sha1_crypt3     = create_crypt3_hash("sha1")
sha256_crypt3   = create_crypt3_hash("sha256")
sha384_crypt3   = create_crypt3_hash("sha384")
sha512_crypt3   = create_crypt3_hash("sha512")
rmd160_crypt3   = create_crypt3_hash("rmd160")

#=========================================================
#quickstart interface
#=========================================================
def generate_salt(size=8):
    "generate random salt of *size* chars drawn from ``[./0-9A-Za-z]``"
    return getrandstr(rng, HASH64_CHARS, size)

def crypt(password, algo="md5", salt=None, magic="$1$"):
    """hash a password.

    :arg password: password, bytes or unicode (encoded to utf-8)
    :param algo: digest algorithm, defaults to ``"md5"``
    :param salt: salt string, a random 8 char salt is generated if ``None``
    :param magic: magic identifier, defaults to ``"$1$"``

    :raises UnsupportedAlgorithmError: if *algo* isn't known.

    :returns: hash string ``magic + salt + "$" + checksum``
    """
    handler = get_crypt_handler(algo)
    return handler.encrypt(password, salt=salt, magic=magic)

def check(password, hash, algo="md5", constant_time=False):
    """check a password against a hash created by :func:`crypt`.

    magic & salt are taken from *hash*; *algo* must be the same
    algorithm *hash* was created with, the magic is not checked against it.

    :raises MalformedHashError: if the magic & salt can't be found in *hash*.

    :returns: ``True`` if *password* rehashes to exactly *hash*.
    """
    handler = get_crypt_handler(algo)
    return handler.verify(password, hash, constant_time=constant_time)

#=========================================================
#eof
#=========================================================
