"""Unit tests for SchedTrack web route modules.

Each route module has a corresponding test file. Routes are mounted on a bare
FastAPI app whose state holds a mocked store.
"""
