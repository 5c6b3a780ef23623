"""FastAPI application entry point for the test generation service."""
from pathlib import Path
from dotenv import load_dotenv

# .env lives in the project root, one level above server_py
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env")

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.llm_config import get_llm_config
from core.logging import setup_logging, log_info, log_warning
from middleware.logging import LoggingMiddleware
from utils.exceptions import RepoTestGenException, to_http_exception

from api.v1 import github, workspace

settings = get_settings()
setup_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Browse a GitHub repository, generate test plans and test code with a language model, "
                "and open the results as a pull request.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)

app.include_router(github.router, prefix="/api/v1")       # Stateless repository browsing
app.include_router(workspace.router, prefix="/api/v1")    # Session tree, selection, pipeline, submission


@app.exception_handler(RepoTestGenException)
async def domain_exception_handler(request: Request, exc: RepoTestGenException):
    """Domain errors that escape a router get the same status mapping as handled ones."""
    http_exc = to_http_exception(exc)
    log_warning(f"{request.method} {request.url.path}: {type(exc).__name__}: {exc.message}", "app")
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


@app.on_event("startup")
async def startup_event():
    log_info(f"{settings.app_name} v{settings.app_version} starting ({settings.environment})", "app")
    log_info(f"GitHub API: {settings.github_api_url}", "app")
    log_info(f"GenAI endpoint: {settings.genai_endpoint_url} (model {settings.genai_model})", "app")
    log_info(f"LLM tasks configured: {', '.join(get_llm_config().list_tasks()) or 'none'}", "app")


@app.on_event("shutdown")
async def shutdown_event():
    log_info("Application shutting down", "app")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
