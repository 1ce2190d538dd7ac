"""
Transformers from the intermediary Article document to syndication formats.
"""
