"""
Core modules for the Doclair tools service
"""
