from fastapi import APIRouter
from receiptwiser.api.v1.endpoints import analyze, receipts, share

api_router = APIRouter()

api_router.include_router(analyze.router, prefix="/analyze-receipt", tags=["extraction"])
api_router.include_router(receipts.router, prefix="/receipts", tags=["receipts"])
api_router.include_router(share.router, prefix="/share", tags=["share"])
