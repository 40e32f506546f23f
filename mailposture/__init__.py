"""
mailposture

Email authentication posture scanner: fetches DMARC, SPF, DKIM and MX
records for a domain and scores them.
"""

__version__ = '1.0.0'
