"""helpers for crypt3 unittests"""
#=========================================================
#imports
#=========================================================
#core
import logging; log = logging.getLogger(__name__)
import re
import sys
import unittest
import warnings
from math import log as logb
#site
#pkg
import crypt3.exc
import crypt3.utils
from crypt3.utils import classproperty
#local
__all__ = [
    #util funcs
    'set_max_password_size',

    #unit testing
    'TestCase',
    'HandlerCase',
]

#=========================================================
#helpers
#=========================================================
def tonn(source):
    "convert native string to non-native string"
    if not isinstance(source, str):
        return source
    return source.encode("utf-8")

def set_max_password_size(test, value):
    "set crypt3.utils.MAX_PASSWORD_SIZE for the duration of *test*"
    test.addCleanup(setattr, crypt3.utils, "MAX_PASSWORD_SIZE",
                    crypt3.utils.MAX_PASSWORD_SIZE)
    crypt3.utils.MAX_PASSWORD_SIZE = value

#=========================================================
#custom test base
#=========================================================
class TestCase(unittest.TestCase):
    """crypt3-specific test case class

    this class adds a number of features to the standard TestCase...
    * common prefix for all test descriptions
    * resets warnings filter & registry for every test
    * tweaks to message formatting
    * __msg__ kwd added to assertRaises()
    """
    #----------------------------------------------------------------
    # make it easy for test cases to add common prefix to shortDescription
    #----------------------------------------------------------------

    # string prepended to all tests in TestCase
    descriptionPrefix = None

    def shortDescription(self):
        "wrap shortDescription() method to prepend descriptionPrefix"
        desc = super(TestCase, self).shortDescription()
        prefix = self.descriptionPrefix
        if prefix:
            desc = "%s: %s" % (prefix, desc or str(self))
        return desc

    #----------------------------------------------------------------
    # skip subclasses who have "__unittest_skip=True" set,
    # or whose names start with "_"
    #----------------------------------------------------------------
    @classproperty
    def __unittest_skip__(cls):
        # NOTE: this attr is technically a unittest internal detail.
        name = cls.__name__
        return name.startswith("_") or \
               getattr(cls, "_%s__unittest_skip" % name, False)

    @classproperty
    def __test__(cls):
        # make pytest proxy __unittest_skip__
        return not cls.__unittest_skip__

    # flag to skip *this* class
    __unittest_skip = True

    #----------------------------------------------------------------
    # reset warning filters & registry before each test
    #----------------------------------------------------------------

    # flag to enable this feature
    resetWarningState = True

    def setUp(self):
        super(TestCase, self).setUp()
        self.setUpWarnings()

    def setUpWarnings(self):
        if self.resetWarningState:
            ctx = warnings.catch_warnings()
            ctx.__enter__()
            self.addCleanup(ctx.__exit__)
            warnings.resetwarnings()
            warnings.simplefilter("always")
            # clear __warningregistry__ so repeated warnings are seen again
            for name, mod in list(sys.modules.items()):
                if name.startswith("crypt3"):
                    reg = getattr(mod, "__warningregistry__", None)
                    if reg:
                        reg.clear()

    #----------------------------------------------------------------
    # tweak message formatting so longMessage mode is only enabled
    # if msg ends with ":", and turn on longMessage by default.
    #----------------------------------------------------------------
    longMessage = True

    def _formatMessage(self, msg, std):
        if self.longMessage and msg and msg.rstrip().endswith(":"):
            return '%s %s' % (msg.rstrip(), std)
        else:
            return msg or std

    #----------------------------------------------------------------
    # override assertRaises() to support '__msg__' keyword
    #----------------------------------------------------------------
    def assertRaises(self, _exc_type, _callable=None, *args, **kwds):
        msg = kwds.pop("__msg__", None)
        if _callable is None:
            return super(TestCase, self).assertRaises(_exc_type, *args, **kwds)
        try:
            result = _callable(*args, **kwds)
        except _exc_type:
            return
        std = "function returned %r, expected it to raise %r" % (result,
                                                                 _exc_type)
        raise self.failureException(self._formatMessage(msg, std))

    #----------------------------------------------------------------
    # helpers for checking a function against a table of results
    #----------------------------------------------------------------
    def assertFunctionResults(self, func, cases):
        """helper for running through function calls.

        func should be the function to call.
        cases should be list of tuples, ``(result, *args)``.
        """
        for elem in cases:
            correct = elem[0]
            args = elem[1:]
            result = func(*args)
            self.assertEqual(result, correct,
                    "error for case %r:" % (args,))

#=========================================================
#handler test base
#=========================================================
class HandlerCase(TestCase):
    """base class for testing crypt3 hash handlers

    In order to use this to test a handler,
    create a subclass with the ``handler`` attribute and test vectors
    filled in, and run the subclass via unittest.
    """
    #=========================================================
    # attrs to be filled in by subclass for testing specific handler
    #=========================================================

    # specify handler object here (required)
    handler = None

    # list of (secret, hash) tuples which are known to be correct
    known_correct_hashes = []

    # hashes which can't be split into magic & salt, or decoded at all;
    # they should cause an error when passed to genhash/verify.
    known_malformed_hashes = [
        '',
        'abc',
        '$1',
        b'$1$\xff$abc',
    ]

    # hashes with a recognizable magic & salt, but a bad checksum;
    # identify() should reject them, verify() should return False.
    known_bad_checksums = [
        # bad char in otherwise correct hash \/
        '$1$dOHYPKoP$tnxS1T8Q6VVn3kpV8cN6o!',
        # too short
        '$1$dOHYPKoP$tnxS1T8Q6VVn3kpV8cN6o',
        # extra segment
        '$1$dOHYPKoP$tnxS1T8Q6VVn3kpV8cN6o.$',
    ]

    # passwords used to test basic encrypt behavior - generally
    # don't need to be overidden.
    stock_passwords = [
        "test",
        "€¥$",
        b'\xe2\x82\xac\xc2\xa5$',
    ]

    #=========================================================
    # alg interface helpers
    #=========================================================

    def do_encrypt(self, secret, **kwds):
        "call handler's encrypt method with specified options"
        return self.handler.encrypt(secret, **kwds)

    def do_verify(self, secret, hash, **kwds):
        "call handler's verify method"
        return self.handler.verify(secret, hash, **kwds)

    def do_identify(self, hash):
        "call handler's identify method"
        return self.handler.identify(hash)

    def do_genconfig(self, **kwds):
        "call handler's genconfig method with specified options"
        return self.handler.genconfig(**kwds)

    def do_genhash(self, secret, config, **kwds):
        "call handler's genhash method with specified options"
        return self.handler.genhash(secret, config, **kwds)

    #=========================================================
    # support
    #=========================================================
    def check_verify(self, secret, hash, msg=None, negate=False, **kwds):
        "helper to check verify() outcome"
        result = self.do_verify(secret, hash, **kwds)
        self.assertTrue(result is True or result is False,
                        "verify() returned non-boolean value: %r" % (result,))
        if negate:
            if not result:
                return
            if not msg:
                msg = ("verify incorrectly returned True: secret=%r, hash=%r" %
                       (secret, hash))
            raise self.failureException(msg)
        else:
            if result:
                return
            if not msg:
                msg = "verify failed: secret=%r, hash=%r" % (secret, hash)
            raise self.failureException(msg)

    def check_returned_native_str(self, result, func_name):
        self.assertIsInstance(result, str,
            "%s() failed to return native string: %r" % (func_name, result,))

    def check_hash_shape(self, hash, magic="$1$", salt=None):
        "check hash is magic + salt + '$' + 22 char checksum"
        self.assertTrue(hash.startswith(magic), hash)
        rest = hash[len(magic):]
        self.assertEqual(rest.count("$"), 1, hash)
        hsalt, chk = rest.split("$")
        if salt is not None:
            self.assertEqual(hsalt, salt)
        self.assertEqual(len(chk), 22, hash)
        self.assertEqual(len(hash), len(magic) + len(hsalt) + 1 + 22)
        return hsalt, chk

    #=========================================================
    # internal class attrs
    #=========================================================
    __unittest_skip = True

    @property
    def descriptionPrefix(self):
        return self.handler.name

    #=========================================================
    # basic tests
    #=========================================================
    def test_01_required_attributes(self):
        "validate required attributes"
        handler = self.handler
        def ga(name):
            return getattr(handler, name, None)

        name = ga("name")
        self.assertTrue(name, "name not defined:")
        self.assertIsInstance(name, str, "name must be native str")
        self.assertTrue(name.lower() == name, "name not lower-case:")
        self.assertTrue(re.match("^[a-z0-9_]+$", name),
                        "name must be alphanum + underscore: %r" % (name,))

        settings = ga("setting_kwds")
        self.assertTrue(settings is not None, "setting_kwds must be defined:")
        self.assertIsInstance(settings, tuple, "setting_kwds must be a tuple:")

        self.assertEqual(ga("checksum_size"), 22)
        self.assertEqual(ga("default_magic"), "$1$")
        self.assertGreaterEqual(ga("digest_size"), 16)

    def test_02_config_workflow(self):
        """test basic config-string workflow

        this tests that genconfig() returns the expected types,
        and that identify() and genhash() handle the result correctly.
        """
        config = self.do_genconfig()
        self.check_returned_native_str(config, "genconfig")
        self.assertTrue(config.startswith("$1$"))
        self.assertEqual(len(config), 3 + self.handler.default_salt_size)

        # genhash() should always accept genconfig()'s output
        result = self.do_genhash('stub', config)
        self.check_returned_native_str(result, "genhash")
        self.check_hash_shape(result, salt=config[3:])

        # verify() never matches a config string, since it has no checksum
        self.check_verify('stub', config, negate=True)

        # identify() only accepts full hashes, config strings lack a checksum
        self.assertFalse(self.do_identify(config),
            "identify() accepted genconfig() output: %r" % (config,))
        self.assertFalse(self.do_identify("$1$saltsalt"))
        self.assertRaises(crypt3.exc.MalformedHashError,
                          self.handler.from_string, config)

    def test_03_hash_workflow(self):
        """test basic hash-string workflow.

        this tests that encrypt()'s hashes are accepted
        by verify() and identify(), and regenerated correctly by genhash().
        the test is run against a couple of different stock passwords.
        """
        wrong_secret = 'stub'
        for secret in self.stock_passwords:

            # encrypt() should generate native str hash
            result = self.do_encrypt(secret)
            self.check_returned_native_str(result, "encrypt")
            self.check_hash_shape(result)

            # verify() should work only against secret
            self.check_verify(secret, result)
            self.check_verify(wrong_secret, result, negate=True)
            self.check_verify(secret, result, constant_time=True)
            self.check_verify(wrong_secret, result, negate=True,
                              constant_time=True)

            # genhash() should reproduce original hash
            other = self.do_genhash(secret, result)
            self.check_returned_native_str(other, "genhash")
            self.assertEqual(other, result, "genhash() failed to reproduce "
                             "hash: secret=%r hash=%r: result=%r" %
                             (secret, result, other))

            # genhash() should NOT reproduce original hash for wrong password
            other = self.do_genhash(wrong_secret, result)
            self.assertNotEqual(other, result, "genhash() duplicated "
                             "hash: secret=%r hash=%r wrong_secret=%r: result=%r" %
                             (secret, result, wrong_secret, other))

            # identify() should positively identify hash
            self.assertTrue(self.do_identify(result))

    def test_04_hash_types(self):
        "test hashes can be unicode or bytes"
        # encrypt using bytes secret
        result = self.do_encrypt(tonn('stub'))
        self.check_returned_native_str(result, "encrypt")

        # verify using bytes hash
        self.check_verify('stub', tonn(result))

        # verify using bytes hash AND secret
        self.check_verify(tonn('stub'), tonn(result))

        # genhash using bytes hash
        other = self.do_genhash('stub', tonn(result))
        self.check_returned_native_str(other, "genhash")
        self.assertEqual(other, result)

        # identify using bytes hash
        self.assertTrue(self.do_identify(tonn(result)))

        # other types are rejected
        self.assertRaises(TypeError, self.do_encrypt, None)
        self.assertRaises(TypeError, self.do_encrypt, 1)
        self.assertRaises(TypeError, self.do_verify, 'stub', None)

    def test_05_deterministic(self):
        "test fixed secret, salt & magic always give the same hash"
        first = self.do_encrypt("password", salt="sAlT./09")
        for _ in range(3):
            self.assertEqual(self.do_encrypt("password", salt="sAlT./09"),
                             first)
        self.check_hash_shape(first, salt="sAlT./09")

    #==============================================================
    # salts
    #==============================================================
    @property
    def salt_bits(self):
        "calculate number of salt bits in hash"
        handler = self.handler
        return int(handler.default_salt_size *
                   logb(len(handler.default_salt_chars), 2))

    def test_10_salt_attributes(self):
        "validate salt attributes"
        cls = self.handler
        self.assertIn("salt", cls.setting_kwds)
        self.assertIn("salt_size", cls.setting_kwds)
        self.assertEqual(cls.min_salt_size, 0)
        self.assertIs(cls.max_salt_size, None)
        self.assertEqual(cls.default_salt_size, 8)
        self.assertEqual(cls.default_salt_chars, crypt3.utils.HASH64_CHARS)

    def test_11_unique_salt(self):
        "test encrypt() / genconfig() creates new salt each time"
        # odds of picking 'n' identical salts at random is '(.5**salt_bits)**n'.
        samples = max(1, 7 - self.salt_bits)
        def sampler(func):
            value1 = func()
            for i in range(samples):
                value2 = func()
                if value1 != value2:
                    return
            raise self.failureException("failed to find different salt after "
                                        "%d samples" % (samples,))
        sampler(self.do_genconfig)
        sampler(lambda : self.do_encrypt("stub"))

    def test_12_salt_size(self):
        "test salt_size & explicit salts of any length"
        for size in (0, 1, 8, 9, 32):
            config = self.do_genconfig(salt_size=size)
            self.assertEqual(len(config), 3 + size)
            result = self.do_encrypt("stub", salt_size=size)
            salt, _ = self.check_hash_shape(result)
            self.assertEqual(len(salt), size)
            self.check_verify("stub", result)

        salt = "0123456789abcdefghij"
        result = self.do_encrypt("stub", salt=salt)
        self.check_hash_shape(result, salt=salt)
        self.check_verify("stub", result)

        # empty salt
        result = self.do_encrypt("stub", salt="")
        self.assertTrue(result.startswith("$1$$"))
        self.check_verify("stub", result)

    def test_13_salt_sensitive(self):
        "test salt changes checksum"
        h1 = self.do_encrypt("stub", salt="aaaaaaaa")
        h2 = self.do_encrypt("stub", salt="aaaaaaab")
        self.assertNotEqual(h1.split("$")[-1], h2.split("$")[-1])

    def test_14_salt_chars(self):
        "test salt chars"
        # generated salts use hash64 alphabet
        for _ in range(10):
            salt = self.do_genconfig()[3:]
            self.assertTrue(all(c in crypt3.utils.HASH64_CHARS for c in salt),
                            salt)

        # mixed case, '.' & '/' survive a round trip
        salt = "aZ./09yB"
        result = self.do_encrypt("stub", salt=salt)
        self.check_hash_shape(result, salt=salt)
        self.check_verify("stub", result)

        # bytes salt accepted
        self.assertEqual(self.do_encrypt("stub", salt=salt.encode("ascii")),
                         result)

        # '$' can't be used
        self.assertRaises(ValueError, self.do_encrypt, "stub", salt="ab$cd")
        self.assertRaises(TypeError, self.do_encrypt, "stub", salt=1)

    #==============================================================
    # magic
    #==============================================================
    def test_30_magic(self):
        "test magic keyword"
        result = self.do_encrypt("stub", salt="saltsalt", magic="$xyz$")
        self.check_hash_shape(result, magic="$xyz$", salt="saltsalt")
        self.check_verify("stub", result)
        self.check_verify("other", result, negate=True)

        # magic is mixed into the digest
        default = self.do_encrypt("stub", salt="saltsalt")
        self.assertNotEqual(result.split("$")[-1], default.split("$")[-1])

        # bytes magic accepted
        self.assertEqual(self.do_encrypt("stub", salt="saltsalt",
                                         magic=b"$xyz$"), result)

    def test_31_unparsable_magic(self):
        "test magic without '$id$' form issues warning"
        with self.assertWarns(crypt3.exc.Crypt3HashWarning):
            result = self.do_encrypt("stub", salt="saltsalt", magic="{X}")
        self.assertTrue(result.startswith("{X}saltsalt$"))

    #==============================================================
    # hash parsing
    #==============================================================
    def test_40_malformed_hashes(self):
        "test malformed hashes are rejected"
        for hash in self.known_malformed_hashes:
            self.assertRaises(crypt3.exc.MalformedHashError, self.do_verify,
                              'stub', hash, __msg__="hash=%r:" % (hash,))
            self.assertRaises(ValueError, self.do_genhash, 'stub', hash,
                              __msg__="hash=%r:" % (hash,))
            self.assertFalse(self.do_identify(hash),
                             "identify() accepted malformed hash: %r" % (hash,))

    def test_41_bad_checksums(self):
        "test hashes with bad checksums don't verify"
        for hash in self.known_bad_checksums:
            self.assertFalse(self.do_identify(hash),
                             "identify() accepted bad checksum: %r" % (hash,))
            self.check_verify('', hash, negate=True)
            self.assertRaises(ValueError, self.handler.from_string, hash)

    #==============================================================
    # secrets
    #==============================================================
    def test_60_secret_size(self):
        "test MAX_PASSWORD_SIZE is enforced"
        from crypt3.exc import PasswordSizeError
        set_max_password_size(self, 16)
        secret = "." * 16
        hash = self.do_encrypt(secret)
        self.check_verify(secret, hash)
        self.assertRaises(PasswordSizeError, self.do_encrypt, secret + ".")
        self.assertRaises(PasswordSizeError, self.do_verify, secret + ".", hash)

    def test_61_secret_case_sensitive(self):
        "test password case sensitivity"
        hash_lower = self.do_encrypt("test", salt="saltsalt")
        hash_upper = self.do_encrypt("TEST", salt="saltsalt")
        self.assertNotEqual(hash_lower, hash_upper)
        self.check_verify("TEST", hash_lower, negate=True)

    def test_62_secret_lengths(self):
        "test passwords around the mixin block size"
        seen = set()
        for size in (0, 1, 2, 15, 16, 17, 31, 32, 33, 64, 100):
            secret = "x" * size
            hash = self.do_encrypt(secret, salt="saltsalt")
            self.check_hash_shape(hash, salt="saltsalt")
            self.check_verify(secret, hash)
            seen.add(hash)
        self.assertEqual(len(seen), 11)

    def test_63_null_bytes(self):
        "test passwords containing null bytes are hashed in full"
        h1 = self.do_encrypt(b"a\x00b", salt="saltsalt")
        h2 = self.do_encrypt(b"a\x00c", salt="saltsalt")
        self.assertNotEqual(h1, h2)
        self.check_verify(b"a\x00b", h1)

    #==============================================================
    # known hashes
    #==============================================================
    def test_70_hashes(self):
        "test known hashes"
        for secret, hash in self.known_correct_hashes:
            self.assertTrue(self.do_identify(hash),
                            "identify() failed to identify hash: %r" % (hash,))
            self.check_verify(secret, hash, "verify() of known hash failed: "
                              "secret=%r, hash=%r" % (secret, hash))
            result = self.do_genhash(secret, hash)
            self.assertEqual(result, hash, "genhash() failed to reproduce "
                             "known hash: secret=%r, hash=%r: result=%r" %
                             (secret, hash, result))

    #=========================================================
    # eoc
    #=========================================================

#=========================================================
#EOF
#=========================================================
