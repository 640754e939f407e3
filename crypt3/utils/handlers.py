"""crypt3.utils.handlers - framework for implementing password hash handlers"""
#=========================================================
#imports
#=========================================================
#core
import logging; log = logging.getLogger(__name__)
import re
from warnings import warn
#site
#libs
from crypt3.exc import Crypt3HashWarning, ChecksumSizeError, InvalidHashError, \
                       MalformedHashError
from crypt3.utils import classproperty, consteq, getrandstr, rng, \
                         to_native_str, HASH64_CHARS
#pkg
#local
__all__ = [
    #parsing helpers
    'norm_hash_str',
    'parse_magic_hash',
    'render_mc2',

    #framework for implementing handlers
    'GenericHandler',
        'HasMagic',
        'HasSalt',
]

#=========================================================
#parsing helpers
#=========================================================
def norm_hash_str(hash, handler=None):
    """decode hash to native str

    :raises TypeError: if hash is not unicode or bytes.
    :raises MalformedHashError: if hash is bytes containing non-ascii chars.
    """
    try:
        return to_native_str(hash, "ascii", "hash")
    except UnicodeDecodeError:
        raise InvalidHashError(handler, "non-ascii hash")

def parse_magic_hash(hash, handler=None, sep="$"):
    """parse hash using ``$magic$salt$checksum`` format

    the hash is split on *sep*; the second and third fields give the
    magic identifier & salt, the salt may be empty.
    everything after the salt is returned as the checksum
    (``None`` if the hash is only a config string).

    :raises MalformedHashError: if fewer than 3 fields are present.

    :returns: ``(magic, salt, checksum)``
    """
    if not hash:
        raise InvalidHashError(handler, "no hash specified")
    hash = norm_hash_str(hash, handler)
    parts = hash.split(sep)
    if len(parts) < 3:
        raise InvalidHashError(handler, "missing magic or salt")
    magic = sep + parts[1] + sep
    salt = parts[2]
    if len(parts) > 3:
        chk = sep.join(parts[3:])
    else:
        chk = None
    return magic, salt, chk

def render_mc2(ident, salt, checksum, sep="$"):
    "format hash using 2-part modular crypt format; inverse of parse_magic_hash"
    if checksum is not None:
        return "%s%s%s%s" % (ident, salt, sep, checksum)
    else:
        return "%s%s" % (ident, salt)

#=====================================================
#GenericHandler
#=====================================================
class GenericHandler(object):
    """helper class for implementing hash handlers.

    :param checksum:
        this should contain the digest portion of a
        parsed hash (mainly provided when the constructor is called
        by :meth:`from_string()`).
        defaults to ``None``.

    :param use_defaults:
        If ``False`` (the default), a :exc:`TypeError` should be thrown
        if any settings required by the handler were not explicitly provided.

        If ``True``, the handler should attempt to provide a default for any
        missing values. This means generate missing salts, fill in the
        default magic, etc.

        This is typically only set to ``True`` when the constructor
        is called by :meth:`encrypt`.

    Class Attributes
    ================

    .. attribute:: name

        [required] name of the handler, as found in the registry.

    .. attribute:: setting_kwds

        [required] tuple of keywords accepted by :meth:`encrypt`
        and :meth:`genconfig`.

    .. attribute:: checksum_size

        [optional]
        Specifies the number of characters that should be expected in the checksum string.
        If omitted, no check will be performed.

    .. attribute:: checksum_chars

        [optional]
        A string listing all the characters allowed in the checksum string.
        If omitted, no check will be performed.

    Required Methods
    ================
    The following methods must be provided by handler subclass:

    .. automethod:: from_string
    .. automethod:: to_string
    .. automethod:: calc_checksum

    Default Class Methods
    =====================
    .. automethod:: from_config
    .. automethod:: genconfig
    .. automethod:: genhash
    .. automethod:: identify
    .. automethod:: encrypt
    .. automethod:: verify
    """

    #=====================================================
    #class attr
    #=====================================================
    name = None
    setting_kwds = ()

    checksum_size = None #if specified, _norm_checksum will require this length
    checksum_chars = None #if specified, _norm_checksum() will validate this

    #=====================================================
    #instance attrs
    #=====================================================
    checksum = None # stores checksum

    #=====================================================
    #init
    #=====================================================
    def __init__(self, checksum=None, use_defaults=False, **kwds):
        self.use_defaults = use_defaults
        super(GenericHandler, self).__init__(**kwds)
        self.checksum = self._norm_checksum(checksum)

    def _norm_checksum(self, checksum):
        """validates checksum keyword against class requirements,
        returns normalized version of checksum.
        """
        if checksum is None:
            return None

        # normalize to unicode
        if isinstance(checksum, bytes):
            checksum = checksum.decode('ascii')

        # check size
        cc = self.checksum_size
        if cc and len(checksum) != cc:
            raise ChecksumSizeError(self)

        # check charset
        cs = self.checksum_chars
        if cs:
            bad = set(checksum)
            bad.difference_update(cs)
            if bad:
                raise MalformedHashError("invalid characters in %s checksum: %r" %
                                         (self.name, "".join(sorted(bad))))

        return checksum

    #=====================================================
    #password hash api - formatting interface
    #=====================================================
    @classmethod
    def identify(cls, hash):
        "check if hash parses as belonging to this handler"
        if not hash:
            return False
        try:
            cls.from_string(hash)
        except (ValueError, TypeError):
            return False
        return True

    @classmethod
    def from_string(cls, hash): #pragma: no cover
        """return parsed instance from hash/configuration string

        :raises ValueError: if hash is incorrectly formatted

        :returns:
            hash parsed into components,
            for formatting / calculating checksum.
        """
        raise NotImplementedError("%s must implement from_string()" % (cls,))

    @classmethod
    def from_config(cls, config):
        """return parsed instance from configuration string,
        used by :meth:`genhash`. defaults to :meth:`from_string`,
        subclasses may override it to ignore the checksum portion.
        """
        return cls.from_string(config)

    def to_string(self): #pragma: no cover
        """render instance to hash or configuration string

        :returns:
            if :attr:`checksum` is set, should return full hash string.
            if not, should return abbreviated configuration string.
        """
        raise NotImplementedError("%s must implement to_string()" % (type(self),))

    #=========================================================
    #'crypt-style' interface (default implementation)
    #=========================================================
    @classmethod
    def genconfig(cls, **settings):
        return cls(use_defaults=True, **settings).to_string()

    @classmethod
    def genhash(cls, secret, config):
        self = cls.from_config(config)
        self.checksum = self.calc_checksum(secret)
        return self.to_string()

    def calc_checksum(self, secret): #pragma: no cover
        "given secret; calcuate and return encoded checksum portion of hash string, taking config from object state"
        raise NotImplementedError("%s must implement calc_checksum()" % (self.__class__,))

    #=========================================================
    #'application' interface (default implementation)
    #=========================================================
    @classmethod
    def encrypt(cls, secret, **settings):
        self = cls(use_defaults=True, **settings)
        self.checksum = self.calc_checksum(secret)
        return self.to_string()

    @classmethod
    def verify(cls, secret, hash, constant_time=False):
        """rehash *secret* using the settings found in *hash*,
        and compare the result against the whole of *hash*.

        by default this uses plain string equality, which is not safe
        against timing attacks; pass ``constant_time=True`` to
        compare using :func:`~crypt3.utils.consteq` instead.
        """
        hash = norm_hash_str(hash, cls)
        result = cls.genhash(secret, hash)
        if constant_time:
            return consteq(result, hash)
        return result == hash

    #=========================================================
    #eoc
    #=========================================================

#=====================================================
#GenericHandler mixin classes
#=====================================================
_magic_re = re.compile(r"^\$[^$]*\$$")

class HasMagic(GenericHandler):
    """mixin for hashes which mix a caller-selectable magic prefix into the digest

    This mixin adds a ``magic`` keyword to the constructor.
    Any string is accepted; but only magic strings of the form ``$id$``
    can be recovered by :func:`parse_magic_hash`, so anything else
    issues a :exc:`~crypt3.exc.Crypt3HashWarning`.
    """
    #=========================================================
    #class attrs
    #=========================================================
    default_magic = None #: should be unicode

    #=========================================================
    #instance attrs
    #=========================================================
    magic = None

    #=========================================================
    #init
    #=========================================================
    def __init__(self, magic=None, **kwds):
        super(HasMagic, self).__init__(**kwds)
        self.magic = self._norm_magic(magic)

    def _norm_magic(self, magic):
        # fill in default magic
        if magic is None:
            if not self.use_defaults:
                raise TypeError("no magic specified")
            magic = self.default_magic
            assert magic is not None, "class must define default_magic"

        magic = to_native_str(magic, "ascii", "magic")
        if not _magic_re.match(magic):
            warn("%s: magic %r is not of the form '$id$', hashes using it "
                 "can't be verified" % (self.name, magic), Crypt3HashWarning)
        return magic

    #=========================================================
    #eoc
    #=========================================================

class HasSalt(GenericHandler):
    """mixin for validating salts.

    This :class:`GenericHandler` mixin adds a ``salt`` keyword to the class constuctor;
    any value provided is passed through the :meth:`_norm_salt` method,
    which takes care of validating salt length and content,
    as well as generating new salts if one it not provided.

    :param salt: optional salt string
    :param salt_size: optional size of salt (only used if no salt provided); defaults to :attr:`default_salt_size`.

    Class Attributes
    ================
    .. attribute:: min_salt_size

        [required]
        The minimum number of characters allowed in a salt string.

    .. attribute:: max_salt_size

        [required]
        The maximum number of characters allowed in a salt string,
        or ``None`` for no limit.

    .. attribute:: default_salt_size

        [optional]
        size of salts generated when none is provided.
        defaults to :attr:`max_salt_size`.

    .. attribute:: salt_chars

        [required]
        A string containing all the characters which are allowed in the salt string,
        or ``None`` to skip this check.

    .. attribute:: default_salt_chars

        [optional]
        characters used to generate *new* salts; mirrors :attr:`salt_chars`
        unless overridden.
    """
    #=========================================================
    #class attrs
    #=========================================================

    min_salt_size = None
    max_salt_size = None
    salt_chars = None

    @classproperty
    def default_salt_size(cls):
        "default salt size (defaults to max_salt_size if not specified by subclass)"
        return cls.max_salt_size

    @classproperty
    def default_salt_chars(cls):
        "required - set of characters used to generate *new* salt strings (defaults to salt_chars)"
        return cls.salt_chars

    #=========================================================
    #instance attrs
    #=========================================================
    salt = None

    #=========================================================
    #init
    #=========================================================
    def __init__(self, salt=None, salt_size=None, **kwds):
        super(HasSalt, self).__init__(**kwds)
        self.salt = self._norm_salt(salt, salt_size=salt_size)

    def _norm_salt(self, salt, salt_size=None):
        """helper to normalize & validate user-provided salt string

        If no salt provided, a random salt is generated
        using :attr:`default_salt_size` and :attr:`default_salt_chars`.

        :raises TypeError:
            If salt not provided and ``use_defaults=False``.

        :raises ValueError:

            * if salt contains chars that aren't in :attr:`salt_chars`.
            * if salt contains less than :attr:`min_salt_size` characters.
            * if salt has more than :attr:`max_salt_size` characters.

        :returns:
            normalized or generated salt
        """
        # generate new salt if none provided
        if salt is None:
            if not self.use_defaults:
                raise TypeError("no salt specified")
            if salt_size is None:
                salt_size = self.default_salt_size
            salt = self._generate_salt(salt_size)

        # check type
        salt = to_native_str(salt, "ascii", "salt")

        # check charset
        sc = self.salt_chars
        if sc is not None:
            bad = set(salt)
            bad.difference_update(sc)
            if bad:
                raise ValueError("invalid characters in %s salt: %r" %
                                 (self.name, "".join(sorted(bad))))

        # check min size
        mn = self.min_salt_size
        if mn and len(salt) < mn:
            raise ValueError("salt too small (%s requires >= %d chars)" %
                             (self.name, mn))

        # check max size
        mx = self.max_salt_size
        if mx and len(salt) > mx:
            raise ValueError("salt too large (%s requires <= %d chars)" %
                             (self.name, mx))

        return salt

    def _generate_salt(self, salt_size):
        """helper method for _norm_salt(); generates a new random salt string.
        :arg salt_size: salt size to generate
        """
        return getrandstr(rng, self.default_salt_chars, salt_size)

    #=========================================================
    #eoc
    #=========================================================

#=========================================================
#eof
#=========================================================
