"""FastAPI application entry point for filechat_bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.kb.KBClientManager import KBClientManager
from shared.clients.datastore.DataStoreClientManager import DataStoreClientManager
from shared.clients.datastore.DataStoreClientInterface import DataStoreError
from shared.storage.CredentialStoreFile import CredentialStoreFile
from services.dashboard.DashboardService import DashboardService
from services.api_keys.ApiKeyService import ApiKeyService
from services.resumes.ResumeService import ResumeService
from server.routers.DashboardRouter import router as dashboard_router
from server.routers.ApiKeyRouter import router as api_key_router
from server.routers.ResumeRouter import router as resume_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)

    kb_client = KBClientManager(helper_config=app.state.helper_config).get_client()
    datastore_client = DataStoreClientManager(helper_config=app.state.helper_config).get_client()
    clients: list[ClientInterface] = [kb_client]
    if datastore_client is not None:
        clients.append(datastore_client)

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.", color="green")

    app.state.kb_client = kb_client
    app.state.datastore_client = datastore_client

    app.state.dashboard_service = DashboardService(
        helper_config=app.state.helper_config,
        kb_client=kb_client,
        credential_store=CredentialStoreFile(app.state.helper_config),
    )
    if datastore_client is not None:
        app.state.api_key_service = ApiKeyService(app.state.helper_config, datastore_client=datastore_client)
        app.state.resume_service = ResumeService(app.state.helper_config, datastore_client=datastore_client)
        await check_connections(datastore_client)

    await app.state.dashboard_service.do_startup()

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="filechat_bridge",
    description=(
        "Chat with your documents through a hosted knowledge service (ElevenLabs). "
        "Set an API key via POST /dashboard/api-key, upload files via POST /dashboard/documents "
        "and ask questions via POST /dashboard/messages. "
        "Stored service keys and generated resumes live in an optional data store (Supabase)."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(dashboard_router)
app.include_router(api_key_router)
app.include_router(resume_router)


@app.exception_handler(DataStoreError)
async def handle_datastore_error(request: Request, exc: DataStoreError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


async def check_connections(datastore_client: ClientInterface) -> None:
    """Check connectivity to the data store on startup.

    Failures are non-fatal: the dashboard works without the data store, only the
    resume and API key routes will fail.
    """
    try:
        result: httpx.Response = await datastore_client.do_healthcheck()
    except httpx.HTTPError as e:
        logging.warning("Data store is not reachable (%s). Resume and API key routes may fail.", e)
        return
    if not result.is_success:
        logging.warning(
            "Data store client '%s' is not reachable (status %d). Resume and API key routes may fail.",
            datastore_client.__class__.__name__,
            result.status_code,
        )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting filechat_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
