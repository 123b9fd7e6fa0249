from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import Base, engine
from app.core.logging import setup_logging
from app.models.user import User  # noqa: F401
from app.models.group import GroupChat  # noqa: F401
from app.models.membership import GroupMember  # noqa: F401
from app.models.join_request import GroupJoinRequest  # noqa: F401

from app.api.error_handlers import register_error_handlers
from app.api.routes.auth import router as auth_router
from app.api.routes.groups import router as groups_router

# SSE
from app.realtime.sse import router as sse_router


setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Group Membership API", version="0.1.0")

# CORS first
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=False,
)

register_error_handlers(app)

app.include_router(auth_router)
app.include_router(groups_router)
app.include_router(sse_router)


@app.get("/health")
def health():
    return {"ok": True}
