import uuid
import logging
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from config import Settings, get_settings
from errors import ConfigurationError, RelayError, RequestValidationFailed
from llm_service import (
    GENERIC_ERROR,
    XAIChatClient,
    build_chat_payload,
    build_summary_payload,
    extract_message_content,
)
from logging_setup import setup_logging
from mail_service import Recording, SMTPMailer, compose_message
from Models.ChatRequest import ChatRequest
from Models.ChatResponse import ChatResponse
from Models.EmailResponse import EmailResponse
from Models.ErrorResponse import ErrorResponse
from Models.SummaryRequest import SummaryRequest
from Models.SummaryResponse import SummaryResponse

setup_logging()
logger = logging.getLogger("voice-relay")

app = FastAPI(
    title="Omni Mortgage Voice Relay",
    description="Relays voice-agent conversations to the LLM provider and mails call summaries.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)

JSON_ENDPOINTS = {"/api/chat", "/api/summary"}
ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def get_chat_client(settings: Settings = Depends(get_settings)) -> XAIChatClient:
    return XAIChatClient(settings)


def get_mailer(settings: Settings = Depends(get_settings)) -> SMTPMailer:
    return SMTPMailer(settings)


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    if request.method == "POST" and request.url.path in JSON_ENDPOINTS:
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > config.settings.MAX_BODY_BYTES:
            return JSONResponse(status_code=413, content={"error": "Request entity too large"})
    return await call_next(request)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    logger.warning(f"{request.url.path} rejected (400): {message}")
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


@app.get("/")
async def root():
    return {"message": "Voice relay service is running"}

@app.get("/health")
async def health_check():
    return {"status": "ok"}

@app.post("/api/chat", response_model=ChatResponse, responses=ERROR_RESPONSES, summary="Relays a conversation to the assistant")
async def chat_endpoint(
    payload: Optional[ChatRequest] = None,
    settings: Settings = Depends(get_settings),
    client: XAIChatClient = Depends(get_chat_client),
):
    request_id = str(uuid.uuid4())
    payload = payload or ChatRequest()
    logger.info(f"New chat request with {len(payload.messages)} messages. requestId: {request_id}")

    data = await client.complete(build_chat_payload(payload, settings))
    assistant = extract_message_content(data)

    logger.info(f"Chat reply relayed ({len(assistant)} chars). requestId: {request_id}")
    return ChatResponse(assistant=assistant, raw=data)

@app.post("/api/summary", response_model=SummaryResponse, responses=ERROR_RESPONSES, summary="Summarizes a call transcript")
async def summary_endpoint(
    payload: Optional[SummaryRequest] = None,
    settings: Settings = Depends(get_settings),
    client: XAIChatClient = Depends(get_chat_client),
):
    request_id = str(uuid.uuid4())
    transcript = (payload.transcript if payload else None) or ""
    if not transcript.strip():
        raise RequestValidationFailed("transcript is required and cannot be empty")

    logger.info(f"New summary request ({len(transcript)} chars). requestId: {request_id}")
    data = await client.complete(build_summary_payload(transcript, settings))
    summary = extract_message_content(data)

    logger.info(f"Summary relayed ({len(summary)} chars). requestId: {request_id}")
    return SummaryResponse(summary=summary, raw=data)

@app.post("/api/email", response_model=EmailResponse, responses=ERROR_RESPONSES, summary="Emails the transcript, summary and recording")
async def email_endpoint(
    transcript: str = Form(""),
    summary: str = Form(""),
    recording: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_settings),
    mailer: SMTPMailer = Depends(get_mailer),
):
    request_id = str(uuid.uuid4())
    missing = settings.missing_smtp_settings()
    if missing:
        raise ConfigurationError(
            f"SMTP environment variables must be set: {', '.join(missing)}",
            status_code=400,
        )

    audio = None
    if recording is not None:
        audio = Recording(
            content=await recording.read(),
            filename=recording.filename,
            content_type=recording.content_type,
        )
    logger.info(
        f"New email request (recording={bool(audio and audio.content)}, "
        f"transcript={len(transcript)} chars, summary={len(summary)} chars). requestId: {request_id}"
    )

    msg = compose_message(
        transcript,
        summary,
        audio,
        from_addr=settings.EMAIL_FROM,
        to_addr=settings.EMAIL_TO,
        subject=settings.EMAIL_SUBJECT,
    )
    message_id = await run_in_threadpool(mailer.send, msg)
    return EmailResponse(ok=True, messageId=message_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=config.settings.PORT)
