"""
Core package - framework-free utilities shared by services.
"""
