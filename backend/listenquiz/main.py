import logging
import sys

from .settings import settings

# Logging is configured once, before the routers are imported
_fmt = logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
_stream_handler = logging.StreamHandler(sys.stdout)
_stream_handler.setFormatter(_fmt)
logging.basicConfig(level=settings.log_level.upper(), handlers=[_stream_handler])
for _noisy in ("httpx", "httpcore"):
	logging.getLogger(_noisy).setLevel(logging.WARNING)

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .errors import UpstreamConfigError
from .gemini_client import GeminiClient
from .routers import listen, quiz

logger = logging.getLogger(__name__)

app = FastAPI(title="Luisteroefening & Quiz API")
app.state.gemini_client = None
app.include_router(quiz.router)
app.include_router(listen.router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
	# The frontend only reads {error}; keep FastAPI's details for debugging
	return JSONResponse(status_code=400, content={"error": "Ongeldig verzoek", "details": jsonable_encoder(exc.errors())})


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": app.state.gemini_client is not None}


@app.on_event("startup")
async def startup_event():
	if app.state.gemini_client is not None:
		return
	try:
		app.state.gemini_client = GeminiClient()
	except UpstreamConfigError:
		# Routes answer 500 with a hint until a key is configured
		logger.error("GEMINI_API_KEY not found in environment variables")


@app.on_event("shutdown")
async def shutdown_event():
	client = app.state.gemini_client
	if client is not None:
		await client.aclose()
		app.state.gemini_client = None
