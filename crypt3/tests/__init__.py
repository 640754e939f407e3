"""crypt3 tests"""
