"""
build_check — inspect the results of an OpenBLAS make build.

Parses the generated Makefile.conf, linker flag strings, and the
symbol / dynamic-dependency tables of the built libraries, then reports
which optional features (CBLAS, LAPACK, LAPACKE) the build delivered.
"""

__version__ = "0.1.0"
CHECKER_VERSION = "v0"
PACKAGE_NAME = "build_check"
SCHEMA_VERSION = "0.1"
