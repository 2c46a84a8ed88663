"""
MyAutoWhiz Backend API
Vehicle analysis, VIN reference data and subscription billing.
"""

__version__ = "1.0.0"
