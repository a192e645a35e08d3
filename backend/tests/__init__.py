"""
Pytest suite for the COD storefront backend.

Test categories:
- Unit tests: validators, hashing, in-memory throttle
- Service tests: pipeline stages against in-memory SQLite
- API tests: full FastAPI app through httpx ASGITransport
"""
