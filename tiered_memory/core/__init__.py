"""
Core layer - configuration, stores, rule ordering and the memory service.
"""
