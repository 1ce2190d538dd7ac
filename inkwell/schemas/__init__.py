"""
Intermediary document schema and its validator.
"""
