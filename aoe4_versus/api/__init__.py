"""AoE4 Versus HTTP API

A small JSON API over the comparison engine: list units, resolve stats and
compare two selections.

Usage:
    python -m aoe4_versus.api.run

Then open http://localhost:8000/docs in your browser.
"""

__version__ = "0.1.0"
