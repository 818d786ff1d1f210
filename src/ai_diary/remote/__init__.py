"""
RemoteTaskService implementations.

- rest_service.py: PostgREST/Supabase over httpx
- memory_service.py: in-memory backend for offline runs
"""
