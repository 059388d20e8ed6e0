"""
hackmd_index

Download a HackMD team workspace into a local JSON database and push that
database into a Meilisearch index for full-text search.
"""

__version__ = "0.1.0"
