"""Versioned migration files for BookPager's SQLite schema.

Each module in this package exposes a single ``MIGRATION`` constant of type
:class:`~BookPager.storage.migration.Migration`. Modules are discovered and
sorted by :func:`~BookPager.storage.migration.load_migrations`; file names
follow the ``vNNN_<description>.py`` convention for readability.
"""
