"""
tfbin - cache-first resolution of Terraform provider plugin binaries.
"""

__version__ = "0.1.0"
