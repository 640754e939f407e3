"""crypt3.registry - closed registry mapping digest algorithms to crypt3 handlers"""
#=========================================================
#imports
#=========================================================
#core
import logging; log = logging.getLogger(__name__)
#site
#libs
from crypt3.exc import UnsupportedAlgorithmError
from crypt3.utils.digests import norm_algorithm_name
#pkg
#local
__all__ = [
    "get_crypt_handler",
    "list_crypt_handlers",
    "has_crypt_handler",
]

#==========================================================
#internal registry state
#==========================================================

#: dict mapping canonical algorithm name -> handler for all loaded handlers
_handlers = {}

#: dict mapping algorithm -> (module path, attribute) for lazy-loading of handlers
_handler_locations = {
    "md5":      ("crypt3.handlers.crypt3", "md5_crypt3"),
    "sha1":     ("crypt3.handlers.crypt3", "sha1_crypt3"),
    "sha256":   ("crypt3.handlers.crypt3", "sha256_crypt3"),
    "sha384":   ("crypt3.handlers.crypt3", "sha384_crypt3"),
    "sha512":   ("crypt3.handlers.crypt3", "sha512_crypt3"),
    "rmd160":   ("crypt3.handlers.crypt3", "rmd160_crypt3"),
}

class _UndefType(object):
    def __repr__(self):
        return "<Undef>"

Undef = _UndefType()

#==========================================================
#registry frontend functions
#==========================================================
def get_crypt_handler(name, default=Undef):
    """return crypt3 handler for specified digest algorithm.

    if the handler is not already loaded,
    its module is imported first.

    :arg name: algorithm name (``"md5"``, ``"sha256"``, ``"rmd160"``, etc),
        any alias :func:`~crypt3.utils.digests.norm_algorithm_name` accepts.
    :param default: optional default value to return if the algorithm is unknown.

    :raises UnsupportedAlgorithmError:
        if the algorithm is unknown, and no default specified.

    :returns: handler attached to name, or default value (if specified).
    """
    #check if handler loaded
    try:
        return _handlers[name]
    except (KeyError, TypeError):
        pass

    #normalize name
    try:
        algo = norm_algorithm_name(name)
    except UnsupportedAlgorithmError:
        if default is Undef:
            raise
        return default

    handler = _handlers.get(algo)
    if handler is None:
        modname, modattr = _handler_locations[algo]
        mod = __import__(modname, None, None, ['dummy'], 0)
        handler = _handlers[algo] = getattr(mod, modattr)
        log.debug("loaded crypt3 handler for %r: %r", algo, handler.name)
    return handler

def list_crypt_handlers(loaded_only=False):
    """return sorted list of all known algorithm names.

    :param loaded_only: if ``True``, only returns names of algorithms whose handler has actually been loaded.
    """
    if loaded_only:
        return sorted(_handlers)
    return sorted(_handler_locations)

def has_crypt_handler(name, loaded_only=False):
    """check if algorithm name is known.

    :arg name: algorithm name or alias
    :param loaded_only: if ``True``, returns False if handler exists but hasn't been loaded
    """
    try:
        algo = norm_algorithm_name(name)
    except UnsupportedAlgorithmError:
        return False
    return (algo in _handlers) or not loaded_only

def _unload_handler_name(name):
    """unloads a handler from the registry.

    .. warning::

        this is an internal function,
        used only by the unittests.
    """
    _handlers.pop(norm_algorithm_name(name), None)

#=========================================================
# eof
#=========================================================
