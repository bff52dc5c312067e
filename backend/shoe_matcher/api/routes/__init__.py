from fastapi import APIRouter
from shoe_matcher.api.routes import analyze, shoes

api_router = APIRouter()

api_router.include_router(analyze.router, tags=["analyze"])
api_router.include_router(shoes.router, prefix="/shoes", tags=["shoes"])
