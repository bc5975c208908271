"""
HTTP API
========

FastAPI application (``hybridrag.api.main:app``) with the /hybrid router.
"""
