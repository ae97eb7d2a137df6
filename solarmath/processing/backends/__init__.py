"""
Operation implementations, grouped by concern.

Every module below this package is imported by the function registry; each
function marked with @image_function becomes an operation.
"""
