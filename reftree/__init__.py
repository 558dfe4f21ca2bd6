"""
reftree - binary referral tree visualization and placement links.
"""

__version__ = "0.1.0"
