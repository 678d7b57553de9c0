"""SQLite repositories: namespaces, catalogs and published records."""
