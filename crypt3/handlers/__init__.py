"""crypt3.handlers -- holds implementations of the crypt3 hash handlers"""
