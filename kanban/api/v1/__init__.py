from fastapi import APIRouter
from kanban.api.v1.auth import router as auth_router
from kanban.api.v1.users import router as users_router
from kanban.api.v1.boards import router as boards_router
from kanban.api.v1.columns import router as columns_router
from kanban.api.v1.cards import router as cards_router
from kanban.api.v1.comments import router as comments_router
from kanban.api.v1.shares import router as shares_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(boards_router)
api_router.include_router(columns_router)
api_router.include_router(cards_router)
api_router.include_router(comments_router)
api_router.include_router(shares_router)
