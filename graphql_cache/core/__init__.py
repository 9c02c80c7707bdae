"""
Core Module

Configuration and exception types shared across the package.
"""
