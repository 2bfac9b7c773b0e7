import os
import sys

# Ensure this directory is in the path for uvicorn and other runners
current_dir = os.path.dirname(os.path.abspath(__file__))
if current_dir not in sys.path:
    sys.path.append(current_dir)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import APP_NAME
from database import init_db
from routes.auth_routes import router as auth_router
from routes.journal_routes import router as journal_router
from routes.tag_routes import router as tag_router
from routes.analytics_routes import router as analytics_router
from routes.security_routes import router as security_router
from routes.export_routes import router as export_router

# Initialize db configuration
init_db()

app = FastAPI(title=f"{APP_NAME} Journal API")


@app.get("/api/v1/health-check")
async def health():
    return {"status": "ok", "message": "Backend is alive!"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # restrict to the client origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (auth_router, journal_router, tag_router, analytics_router, security_router, export_router):
    app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
