# searchtool/main.py
import logging
import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import exc as sa_exc

from searchtool.config import settings
from searchtool.database import engine, Base
from searchtool.routers import auth, users, consultants, permissions, reviews

# register tables on Base.metadata
from searchtool.models.user import User  # noqa: F401
from searchtool.models.permission import Permission  # noqa: F401
from searchtool.models.consultant import Consultant, Review  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Searchtool - Consultant Directory", version="1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Authorization"],
)

# Include Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(consultants.router)
app.include_router(permissions.router)
app.include_router(reviews.router)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# Create DB Tables (use Alembic in prod)
@app.on_event("startup")
async def startup_event():
    # ignore duplicate-object errors from previous partial runs
    async with engine.begin() as conn:
        try:
            await conn.run_sync(Base.metadata.create_all)
        except sa_exc.IntegrityError as e:
            msg = str(getattr(e, "orig", e))
            if "duplicate key value violates unique constraint" in msg or "already exists" in msg:
                logger.warning("Ignored duplicate DDL error during create_all: %s", msg)
            else:
                raise
    logger.info("Database tables ready")

@app.get("/")
def read_root():
    return {"message": "Welcome to the Searchtool API"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("searchtool.main:app", host="0.0.0.0", port=8081, reload=True)
