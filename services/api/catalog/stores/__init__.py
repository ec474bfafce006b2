"""Data stores for persistence and object storage.

Stores handle:
- PostgreSQL: DB session, catalog upserts, admin queries
- Object storage: Supabase Storage uploads and public URLs

No classification/merging logic in stores - that belongs in services.
"""
