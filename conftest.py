"""Root pytest configuration.

The `autorecognition` package is a namespace package at the repository root;
keeping this file here puts the root on sys.path so tests import it without
an editable install.
"""
