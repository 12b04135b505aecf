# genstudio/main.py

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from genstudio.core.config import get_settings
from genstudio.core.errors import StudioError, studio_error_handler
from genstudio.core.logs import configure_logging

from genstudio.auth.routes import router as auth_router
from genstudio.dashboard.routes import router as dashboard_router
from genstudio.plans.routes import router as plans_router
from genstudio.generations.routes import router as generations_router
from genstudio.projects.routes import router as projects_router
from genstudio.admin.routes import router as admin_router

logger = logging.getLogger("genstudio")

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title="Generation Studio API")


# CORS (Frontend -> Backend)
# FRONTEND_ORIGIN = https://studio.example.com
# Or multiple: https://...,http://localhost:5173
raw_origins = settings.frontend_origin

if raw_origins == "*":
    allow_origins = ["*"]
    allow_credentials = False  # can't use credentials with "*"
else:
    allow_origins = [o.strip().rstrip("/") for o in raw_origins.split(",") if o.strip()]
    allow_credentials = True

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StudioError, studio_error_handler)


@app.on_event("startup")
async def on_startup():
    s = get_settings()
    missing = s.missing()
    if missing:
        logger.error("[startup] configuration missing: %s; backend routes will answer 503", ", ".join(missing))
    if not s.generation_configured:
        logger.warning("[startup] GENERATION_API_URL not set; generations use the simulated result path")


app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(plans_router)
app.include_router(generations_router)
app.include_router(projects_router)
app.include_router(admin_router)


@app.get("/health")
def health():
    s = get_settings()
    return {
        "ok": True,
        "configured": s.backend_configured,
        "missing": s.missing(),
        "generation": "endpoint" if s.generation_configured else "simulated",
    }


@app.get("/")
def root():
    return {"ok": True, "message": "Generation Studio API is running", "docs": "/docs"}
