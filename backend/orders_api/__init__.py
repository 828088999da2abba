"""
Orders API: Application Package
================================

What: HTTP backend for restaurant orders stored in MongoDB.
Who:  Imported by uvicorn (`uvicorn orders_api.main:app`) and by the test suite.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Store Access)     │  One store call per operation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  bson documents + pydantic
    ├─────────────────────────────────────┤
    │        Database (Connection)        │  Single AsyncMongoClient
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
