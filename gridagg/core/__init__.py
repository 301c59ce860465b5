"""
Core Package

Algorithmic heart of gridagg.

Structure:
- grid/ - cell indexing, concurrent accumulation and classification

Usage:
Core modules are imported by the CLI, reporting and export layers. Do not
import those layers from core.
"""
