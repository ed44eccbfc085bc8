"""
Persistence backends implementing the KeyValueStore port.

- kv_store.py: MemoryKeyValueStore (tests, demos) and SqliteKeyValueStore
"""
