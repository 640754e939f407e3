"""crypt3.utils.h64 - hash64 encoding helpers"""
#=================================================================================
#imports
#=================================================================================
#core
import logging; log = logging.getLogger(__name__)
#site
#pkg
from crypt3.utils import HASH64_CHARS
#local
__all__ = [
    "CHARS",

    "decode_bytes",                "encode_bytes",
    "decode_transposed_bytes",     "encode_transposed_bytes",

    "decode_int6",  "encode_int6",
    "decode_int12", "encode_int12",
    "decode_int24", "encode_int24",
]

#=================================================================================
#6 bit value <-> char mapping, and other internal helpers
#=================================================================================
CHARS = HASH64_CHARS

#base64 char sequence
encode_6bit = CHARS.__getitem__ # int -> char

#inverse map (char->value)
_CHARIDX = dict((c, i) for i, c in enumerate(CHARS))
decode_6bit = _CHARIDX.__getitem__ # char -> int

_sjoin = "".join

#=================================================================================
#encode offsets from buffer - used by crypt3
#=================================================================================

def encode_bytes(source):
    """encode byte string to h64 format

    each group of 3 bytes is read little-endian into a 24-bit integer,
    and written out as 4 chars, least significant 6 bits first.
    a trailing single byte becomes 2 chars (upper 4 bits always 0),
    a trailing pair becomes 3 chars (upper 2 bits always 0).
    """
    out = []
    write = out.append
    end = len(source)
    tail = end % 3
    end -= tail
    idx = 0
    while idx < end:
        v1 = source[idx]
        v2 = source[idx+1]
        v3 = source[idx+2]
        write(encode_int24(v1 + (v2<<8) + (v3<<16)))
        idx += 3
    if tail:
        v1 = source[idx]
        if tail == 1:
            write(encode_int12(v1))
        else:
            v2 = source[idx+1]
            write(encode_int18(v1 + (v2<<8)))
    return _sjoin(out)

def decode_bytes(source):
    "decode h64 format into byte string"
    out = bytearray()
    end = len(source)
    tail = end % 4
    if tail == 1:
        #only 6 bits left, can't encode a whole byte!
        raise ValueError("input string length cannot be == 1 mod 4")
    end -= tail
    idx = 0
    while idx < end:
        v = decode_int24(source[idx:idx+4])
        out += bytes((v & 0xff, (v>>8) & 0xff, v>>16))
        idx += 4
    if tail:
        if tail == 2:
            #NOTE: 4 msb of int are ignored (should be 0)
            v = decode_int12(source[idx:idx+2])
            out.append(v & 0xff)
        else:
            #NOTE: 2 msb of int are ignored (should be 0)
            v = decode_int18(source[idx:idx+3])
            out += bytes((v & 0xff, (v>>8) & 0xff))
    return bytes(out)

def encode_transposed_bytes(source, offsets):
    "encode byte string to h64 format, using offset list to transpose elements"
    #NOTE: any byte of source not named in offsets is never encoded
    tmp = bytes(source[off] for off in offsets)
    return encode_bytes(tmp)

def decode_transposed_bytes(source, offsets):
    "decode h64 format into byte string, then undoing specified transposition; inverse of :func:`encode_transposed_bytes`"
    #NOTE: if transposition does not use all bytes of source, original can't be recovered
    tmp = decode_bytes(source)
    buf = bytearray(max(offsets) + 1)
    for off, char in zip(offsets, tmp):
        buf[off] = char
    return bytes(buf)

#=================================================================================
# int <-> b64 string
#=================================================================================

def decode_int6(value):
    "decodes single hash64 character -> 6-bit integer"
    try:
        return decode_6bit(value)
    except KeyError:
        raise ValueError("invalid character")

def encode_int6(value):
    "encodes 6-bit integer -> single hash64 character"
    if value < 0 or value > 63:
        raise ValueError("value out of range")
    return encode_6bit(value)

#---------------------------------------------------------------------

def decode_int12(value):
    "decodes 2 char hash64 string -> 12-bit integer (little-endian order)"
    try:
        return (decode_6bit(value[1])<<6) + decode_6bit(value[0])
    except KeyError:
        raise ValueError("invalid character")

def encode_int12(value):
    "encodes 12-bit integer -> 2 char hash64 string (little-endian order)"
    return encode_6bit(value & 0x3f) + encode_6bit((value>>6) & 0x3f)

#---------------------------------------------------------------------

def decode_int18(value):
    "decodes 3 char hash64 string -> 18-bit integer (little-endian order)"
    try:
        return (
            decode_6bit(value[0]) +
            (decode_6bit(value[1])<<6) +
            (decode_6bit(value[2])<<12)
            )
    except KeyError:
        raise ValueError("invalid character")

def encode_int18(value):
    "encodes 18-bit integer -> 3 char hash64 string (little-endian order)"
    return (
        encode_6bit(value & 0x3f) +
        encode_6bit((value>>6) & 0x3f) +
        encode_6bit((value>>12) & 0x3f)
        )

#---------------------------------------------------------------------

def decode_int24(value):
    "decodes 4 char hash64 string -> 24-bit integer (little-endian order)"
    try:
        return  decode_6bit(value[0]) +\
                (decode_6bit(value[1])<<6)+\
                (decode_6bit(value[2])<<12)+\
                (decode_6bit(value[3])<<18)
    except KeyError:
        raise ValueError("invalid character")

def encode_int24(value):
    "encodes 24-bit integer -> 4 char hash64 string (little-endian order)"
    return  encode_6bit(value & 0x3f) + \
            encode_6bit((value>>6) & 0x3f) + \
            encode_6bit((value>>12) & 0x3f) + \
            encode_6bit((value>>18) & 0x3f)

#=================================================================================
#eof
#=================================================================================
