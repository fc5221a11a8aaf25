"""Local gateway pack for development and tests.

- FilesystemObjectStore: objects as files under a base directory
- SqliteStreamGateway: stream, consumer groups and cursors in SQLite
"""
