"""Core application components.

This module provides the foundational components for the LeadFlow API:
- Remote row gateway over the Supabase data API
- Application settings and configuration
"""
