"""
Storage adapters.

- sqlite_store.py: SqliteStore, the Store port backed by one JSON document per key
"""
