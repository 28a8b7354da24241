"""
Backend package for the Culinary Canvas restaurant site.

Menu items, gallery images and admin accounts are persisted either in
MongoDB or, when MongoDB cannot be reached at startup, in local JSON files.
"""
