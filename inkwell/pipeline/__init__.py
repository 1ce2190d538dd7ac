"""
Polling pipeline: state store, output files and the discover/scrape loop.
"""
