from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from copilotkit_bridge.api.middleware.exception_handlers import register_exception_handlers
from copilotkit_bridge.api.middleware.request_context import RequestContextMiddleware
from copilotkit_bridge.api.routes import copilotkit, health
from copilotkit_bridge.api.services.copilot_service import CopilotService
from copilotkit_bridge.core.constants import Settings, get_settings
from copilotkit_bridge.integrations.openai_chat import ChatModel, OpenAIChatModel
from copilotkit_bridge.tools.registry import ToolRegistry, build_default_registry
from copilotkit_bridge.utils.client_factory import create_http_client, create_openai_client
from copilotkit_bridge.utils.logger import configure_uvicorn_logging, logger


def create_app(
    settings: Settings | None = None,
    chat_model: ChatModel | None = None,
    registry: ToolRegistry | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings (default: validated global settings)
        chat_model: Model capability override; an OpenAI client is created when omitted
        registry: Tool registry override (default: frozen registry with the demo tools)

    Raises:
        ValueError: If the OpenAI credential is missing from the configuration
    """
    settings = settings or get_settings()
    registry = registry or build_default_registry()

    if settings.debug:
        from copilotkit_bridge.core.constants import _get_env_files

        logger.info(f"Env files: {[f.name for f in _get_env_files()]}")
        logger.info(f"Settings: app_env={settings.app_env}, model={settings.openai_model}")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan: build the model client on startup, close it on shutdown."""
        http_client = None
        model = chat_model
        if model is None:
            http_client = create_http_client(read_timeout=settings.http_read_timeout)
            client = create_openai_client(
                settings.openai_api_key or "",
                base_url=settings.openai_base_url,
                http_client=http_client,
            )
            model = OpenAIChatModel(client, settings.openai_model)
            logger.info(f"Configured OpenAI client (model: {settings.openai_model})")

        app.state.copilot_service = CopilotService(model=model, registry=registry, settings=settings)
        logger.info(f"Registered tools: {registry.names()}")

        try:
            yield
        finally:
            if http_client is not None:
                await http_client.aclose()
            logger.info("Shutdown complete")

    app = FastAPI(
        title="CopilotKit Bridge API",
        description="""
## CopilotKit Bridge API

Serves the CopilotKit runtime protocol on top of OpenAI chat completions
with server-side tool calling.

### Features
- **Streaming chat**: Server-Sent-Events token stream for plain chat payloads
- **GraphQL**: `availableAgents`, `loadAgentState` and `generateCopilotResponse`
- **Tool calling**: Model-requested tools run server-side before the final answer
""",
        version=settings.app_version,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Health check endpoints for monitoring and orchestration"},
            {"name": "CopilotKit", "description": "CopilotKit runtime endpoint"},
        ],
    )
    app.state.settings = settings
    app.state.tool_registry = registry

    # Register global exception handlers for consistent error responses
    register_exception_handlers(app)

    # Request context middleware (adds request ID tracking)
    # Note: Middleware is executed in reverse order of registration
    app.add_middleware(RequestContextMiddleware)

    # CORS configuration (frontend dev server origins by default)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
    )

    app.include_router(health.router)
    app.include_router(copilotkit.router)
    return app


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_uvicorn_logging()
    uvicorn.run(
        "copilotkit_bridge.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
