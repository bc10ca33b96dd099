"""raybox — Algorithm comparison package.

Reproducible ray sets, timing and cross-checking of the box algorithms,
and persistence of the raw results.
"""
