# src/backend/app.py
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException as FastAPIHTTPException

from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from src.backend.middleware.security_headers import security_headers_middleware
from src.backend.utils.error_handler import custom_exception_handler
from src.backend.utils.menu_errors import MenuError

from src.backend.routes.menu_admin_api import router as menu_admin_router
from src.backend.routes.navigation_api import router as navigation_router

app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)

# ----------------------------------------------------------
# SECURITY HEADERS
# ----------------------------------------------------------
app.middleware("http")(security_headers_middleware)

# ----------------------------------------------------------
# CUSTOM ERROR HANDLERS (clean coverage)
# ----------------------------------------------------------
# 1) Starlette HTTPException (routing 404 etc.)
app.add_exception_handler(StarletteHTTPException, custom_exception_handler)

# 2) FastAPI HTTPException (ones you raise yourself)
app.add_exception_handler(FastAPIHTTPException, custom_exception_handler)

# 3) Validation errors
app.add_exception_handler(RequestValidationError, custom_exception_handler)

# 4) Menu tree violations (cycle, immutable field, unknown menu)
app.add_exception_handler(MenuError, custom_exception_handler)

# 5) Catch-all
app.add_exception_handler(Exception, custom_exception_handler)

# ----------------------------------------------------------
# ROUTERS
# ----------------------------------------------------------
app.include_router(menu_admin_router)
app.include_router(navigation_router)


@app.get("/health", include_in_schema=False)
async def health():
    return {"status": "ok"}
