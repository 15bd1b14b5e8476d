"""
Reference assessment/chat service.

GOVERNANCE:
- Implements the request/response contract the client consumes
- For local development and end-to-end tests only
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import assessment_router, chat_router
from config import configure_logging, get_settings

settings = get_settings()

app = FastAPI(
    title="Health Assessment Reference API",
    description="Scripted questionnaire, report generation and chat",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(assessment_router)
app.include_router(chat_router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "health_assessment"}


if __name__ == "__main__":
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
