from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tuition_ledger.api.v1.fees.router import router as fees_router
from tuition_ledger.api.v1.finance.router import router as finance_router
from tuition_ledger.api.v1.payments.router import router as payments_router
from tuition_ledger.api.v1.registration_requests.router import router as registration_requests_router
from tuition_ledger.api.v1.snapshot.router import router as snapshot_router
from tuition_ledger.api.v1.students.router import router as students_router
from tuition_ledger.core.config import Settings, settings as default_settings
from tuition_ledger.core.logging_config import configure_logging
from tuition_ledger.core.runtime import build_runtime, start_runtime
from tuition_ledger.ledger.settlement import TransferGateway


def create_app(
    app_settings: Optional[Settings] = None,
    gateway: Optional[TransferGateway] = None,
) -> FastAPI:
    app_settings = app_settings or default_settings
    configure_logging(app_settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # The snapshot is replayed before the app starts taking requests.
        runtime = build_runtime(app_settings, gateway=gateway)
        await start_runtime(runtime)
        app.state.runtime = runtime
        yield

    app = FastAPI(title="Tuition Ledger", lifespan=lifespan)
    app.state.settings = app_settings

    # CORS: the wallet front end calls this API from the browser
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(students_router)
    app.include_router(fees_router)
    app.include_router(payments_router)
    app.include_router(finance_router)
    app.include_router(registration_requests_router)
    app.include_router(snapshot_router)

    return app


app = create_app()
