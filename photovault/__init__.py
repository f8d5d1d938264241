"""
PhotoVault - annotation editor for a personal photo vault.

This package contains:
- editor: canvas annotation engine (input, model, history, rendering, export)
- services: application services (config, logging)
"""

__version__ = "0.1.0"
