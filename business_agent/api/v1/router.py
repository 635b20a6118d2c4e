# business_agent/api/v1/router.py

from fastapi import APIRouter
from .endpoints import query, schema

api_router = APIRouter(prefix="/api/v1")

# POST /api/v1/query
api_router.include_router(query.router, tags=["query"])
api_router.include_router(schema.router, prefix="/schema", tags=["schema"])
