"""
Version 1 of the Memberly HTTP API
"""
