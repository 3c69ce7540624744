"""Examples directory.

This directory exists so that we can run linting checks on the examples we embed in our
documentation. All of the python files in this directory are linted as part of CI.
"""
