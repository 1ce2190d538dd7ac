"""
HTML and structured-data extraction helpers shared by every source.
"""
