"""FalconERP service package.

This package is organized by feature modules (users, backups, ...) with a
thin Flask controller layer over service/repository layers.
"""
