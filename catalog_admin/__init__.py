"""
Admin backend for the business catalog website.

This package provides a FastAPI application that authenticates the site
admin and manages the product and course collections, persisting either to
a relational database plus object storage or to local JSON files.
"""
