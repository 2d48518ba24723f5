from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from . import graph
from .config import PACKAGE_DIR, SETTINGS
from .errors import BlockedInputError, EvaluationError
from .models import EvaluateRequest, EvaluationResult

logging.basicConfig(
    level=SETTINGS.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
)
logger = logging.getLogger("veracity_graph")

app = FastAPI(title="Veracity Graph API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=SETTINGS.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(EvaluationError)
async def evaluation_error_handler(request: Request, exc: EvaluationError):
    if isinstance(exc, BlockedInputError):
        logger.warning("Blocked input: %s", exc.detail)
    else:
        logger.error("Error evaluating input with AI: %s", exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.user_message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("Rejected request body: %s", exc.errors())
    return JSONResponse(status_code=400, content={"error": "Please provide an input statement."})


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/api/evaluateInput", response_model=EvaluationResult)
def evaluate_input(req: EvaluateRequest):
    start = time.time()
    result = graph.evaluate(req.input)
    elapsed = int((time.time() - start) * 1000)
    logger.info("Evaluated input in %d ms: score %s, %d sources.", elapsed, result.score, len(result.breakdown))
    return result


app.mount("/", StaticFiles(directory=PACKAGE_DIR / "static", html=True), name="static")
