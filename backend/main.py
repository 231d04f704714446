from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from db.database import create_db_and_tables, dispose_engine
from routers.wines import router as wines_router
from routers.bottles import router as bottles_router
from routers.events import router as events_router
from routers.unload import router as unload_router
from core.auth import fastapi_users, auth_backend
from core.logging_config import logger
from contextlib import asynccontextmanager
from schemas.users import UserRead, UserCreate, UserUpdate

@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    logger.info("Database tables ready")
    yield
    await dispose_engine()


app = FastAPI(
    title="Convivio Cellar API",
    description="API for the wine cellar and dinner events, including post-dinner bottle unloading",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Authentication routes (fastapi-users)
app.include_router(fastapi_users.get_auth_router(auth_backend), prefix="/auth/jwt", tags=["auth"],)
app.include_router(fastapi_users.get_register_router(UserRead, UserCreate), prefix="/auth", tags=["auth"])
app.include_router(fastapi_users.get_users_router(UserRead, UserUpdate), prefix="/users", tags=["users"])

# Cellar routes
app.include_router(wines_router, prefix="/wines", tags=["wines"])
app.include_router(bottles_router, prefix="/bottles", tags=["bottles"])

# Dinner event routes
app.include_router(events_router, prefix="/events", tags=["events"])
app.include_router(unload_router, prefix="/events", tags=["unload"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
