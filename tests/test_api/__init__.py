"""
Test API Package
"""
