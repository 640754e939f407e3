"""crypt3 - salted & stretched crypt(3) style password hashing over several digests"""

__version__ = "1.1.5"

#=========================================================
#quickstart interface
#=========================================================
from crypt3.handlers.crypt3 import crypt, check, generate_salt

__all__ = [
    "crypt",
    "check",
    "generate_salt",
]
