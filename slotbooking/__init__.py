"""
slotbooking - book interview slots inside a fixed daily window.
"""

__version__ = "0.1.0"
