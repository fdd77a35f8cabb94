"""
HTTP surface for the feed ranking service.
"""
