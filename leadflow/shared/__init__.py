"""Shared utilities and cross-domain components.

This module contains utilities used across multiple domains:
- Exception classes for consistent error handling
- Non-fatal user notifications
- Permission dependencies for runtime, role-based access control
"""
