# src/hiremind_backend/app/main.py
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from dotenv import load_dotenv

# Load .env before any auth modules read environment variables
load_dotenv()

from hiremind_backend.app.core.logging import setup_logging
setup_logging()

from .api.routes.auth import router as auth_router
from .db.session import init_models, test_connection
from .errors import register_exception_handlers
from .security.base import auth_mode


@asynccontextmanager
async def lifespan(_: FastAPI):
    await init_models()
    await test_connection()
    yield


app = FastAPI(title="HireMind Auth Sync API", version="0.1.0", lifespan=lifespan)

# Vite & CRA dev servers by default
CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# 1) Health check (open)
@app.get("/health", tags=["health"])
def health():
    return {"status": "ok", "message": "Server is running", "auth_mode": auth_mode()}

# 2) Login / sync + profile
app.include_router(auth_router)


# --- Swagger/OpenAPI: Add Bearer "Authorize" button ---
def _add_bearer_security_to_openapi(app: FastAPI) -> None:
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=getattr(app, "description", None),
            routes=app.routes,
        )
        components = openapi_schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes["BearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": (
                "Paste a Firebase ID token (AUTH_MODE=FIREBASE) or a development "
                "credential (AUTH_MODE=HS256). Swagger adds the 'Bearer ' prefix."
            ),
        }

        # Only the /api/auth routes need a credential
        for path, path_item in openapi_schema.get("paths", {}).items():
            if not path.startswith("/api/auth"):
                continue
            for op in path_item.values():
                if isinstance(op, dict):
                    op.setdefault("security", [{"BearerAuth": []}])

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi

_add_bearer_security_to_openapi(app)
