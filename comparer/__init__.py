"""
Profile Comparer - GitHub profile comparison with streamed AI narration

Fetches two GitHub profiles, relays an OpenRouter generation stream as a
normalized event stream, and paces it out word by word on the client side.
"""

__version__ = "1.0.0"
__author__ = "Profile Comparer"
