"""
Test Actions Package
"""
