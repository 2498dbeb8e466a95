"""HTTP scan service (requires the ``web`` extra)."""

import logging
import os
import shutil
import tempfile
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response
from starlette.datastructures import UploadFile

from mcafee_av.config import Settings, get_settings
from mcafee_av.exceptions import (
    EngineProcessError,
    EngineTimeoutError,
    MalformedOutputError,
    McAfeeError,
)
from mcafee_av.log import scan_fields
from mcafee_av.models import Verdict
from mcafee_av.render import to_json
from mcafee_av.scanner import Scanner
from mcafee_av.version import __version__

logger = logging.getLogger(__name__)

MISSING_FILE_MESSAGE = "Please supply a valid file to scan."


def status_for(exc: McAfeeError) -> int:
    if isinstance(exc, EngineTimeoutError):
        return 504
    if isinstance(exc, (EngineProcessError, MalformedOutputError)):
        return 502
    return 500


def create_app(settings: Optional[Settings] = None, scanner: Optional[Scanner] = None) -> FastAPI:
    """Build the scan service.

    Every request writes its upload to its own temporary file and runs its
    own scan; the file is removed whatever the outcome.
    """
    settings = settings or get_settings()
    scanner = scanner or Scanner.from_settings(settings)

    app = FastAPI(title="Malice McAfee AntiVirus Plugin", version=__version__)

    @app.exception_handler(McAfeeError)
    async def scan_error_handler(request: Request, exc: McAfeeError):
        logger.error(exc.message, extra=exc.fields())
        return PlainTextResponse(exc.message, status_code=status_for(exc))

    def scan_upload(malware: UploadFile) -> Verdict:
        settings.upload_dir.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(dir=settings.upload_dir, prefix="web_", delete=False)
        try:
            with tmp:
                shutil.copyfileobj(malware.file, tmp)
            return scanner.scan(tmp.name, timeout=settings.web_timeout)
        finally:
            os.remove(tmp.name)

    @app.post("/scan")
    async def scan(request: Request):
        form = await request.form()
        malware = form.get("malware")
        if not isinstance(malware, UploadFile):
            logger.error("no malware file in upload", extra=scan_fields())
            return PlainTextResponse(MISSING_FILE_MESSAGE, status_code=400)

        logger.debug("Uploaded fileName: %s", malware.filename, extra=scan_fields())
        verdict = await run_in_threadpool(scan_upload, malware)
        return Response(content=to_json(verdict), media_type="application/json")

    return app


def serve(settings: Optional[Settings] = None) -> None:
    """Run the service with uvicorn on ``web_host:web_port``."""
    import uvicorn

    settings = settings or get_settings()
    logger.info(
        "web service listening on port :%d", settings.web_port, extra=scan_fields()
    )
    uvicorn.run(create_app(settings), host=settings.web_host, port=settings.web_port)
