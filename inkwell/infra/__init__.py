"""
Fetch layer: plain HTTP and headless-browser page retrieval.
"""
