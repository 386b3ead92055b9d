"""
HTTP API -- FastAPI application factory and routes.

  POST /api/solve         -- Run the team to completion, return one JSON result
  POST /api/solve_stream  -- Run the team, stream every turn as server-sent events
  GET  /health            -- Liveness probe with the configured team roster

Run with:

    ai-team serve
    uvicorn src.api:create_app --factory --port 8000
"""

import logging
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from config.config_loader import AppConfig, load_config
from src.coordinator import run_team
from src.emitter import collect_result, conversation_payload, stream_events
from src.models import OutcomeKind, Team
from src.providers.base import AIProvider, ProviderError
from src.team import build_providers, build_team
from src.validation import ProblemValidationError, validate_problem

logger = logging.getLogger(__name__)


class SolveRequest(BaseModel):
    """Submit a problem to the team."""

    problem: str | None = Field(None, description="The problem to solve")


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _team_and_providers(request: Request) -> tuple[Team, dict[str, AIProvider]] | None:
    providers = request.app.state.providers
    if not providers:
        return None
    return request.app.state.team, providers


def create_app(
    config: AppConfig | None = None,
    providers: dict[str, AIProvider] | None = None,
) -> FastAPI:
    """
    Application factory -- creates and configures the FastAPI app.

    Args:
        config: Loaded settings (loads config/settings.yaml if None).
        providers: Pre-built backends keyed by sdk name (built from config if None).
    """
    if config is None:
        load_dotenv()
        config = load_config()

    team = build_team(config)
    if providers is None:
        try:
            providers = build_providers(config, team)
        except (ProviderError, ValueError) as e:
            logger.warning("[API] Backend init failed (non-fatal, requests will get 503): %s", e)
            providers = {}

    application = FastAPI(
        title="AI Team Solver API",
        description="Leader and two members negotiate a ratified answer",
        version="0.1.0",
    )
    application.state.config = config
    application.state.team = team
    application.state.providers = providers
    application.state.start_time = time.time()

    @application.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("[API] Rejected malformed request body: %s", exc.errors())
        return _error("Request body must be JSON with a string 'problem' field", 400)

    @application.get("/health")
    async def health(request: Request) -> dict:
        """Liveness probe -- returns 200 if the process is running."""
        return {
            "status": "healthy",
            "team": [
                {"member": m.display_name, "model": m.model, "sdk": m.sdk}
                for m in request.app.state.team.roster()
            ],
            "backends_ready": sorted(request.app.state.providers),
            "uptime_seconds": round(time.time() - request.app.state.start_time, 1),
        }

    @application.post("/api/solve")
    async def solve(body: SolveRequest, request: Request) -> JSONResponse:
        """Run the full negotiation and return the final (or fallback) solution."""
        try:
            problem = validate_problem(body.problem)
        except ProblemValidationError as e:
            return _error(str(e), 400)

        resolved = _team_and_providers(request)
        if resolved is None:
            return _error("No chat backend available", 503)
        team, backends = resolved
        cfg: AppConfig = request.app.state.config

        result = await collect_result(
            problem,
            run_team(
                problem,
                team,
                backends,
                cfg.prompts,
                max_rounds=cfg.protocol.max_rounds,
                require_approval=cfg.protocol.require_approval,
            ),
            team=team,
        )

        if result.outcome.kind is OutcomeKind.ERROR:
            return _error(result.outcome.text, 500)

        logger.info(
            "[API] Solve finished: %s after %d rounds (%.1fs)",
            result.outcome.kind.value, result.rounds_run, result.total_duration_sec,
        )
        return JSONResponse({
            "final_solution": result.outcome.final_solution,
            "conversation": conversation_payload(result.transcript),
        })

    @application.post("/api/solve_stream")
    async def solve_stream(body: SolveRequest, request: Request):
        """
        Run the negotiation and stream it as Server-Sent Events.

        Events (each a JSON object on a `data:` line):
          - {member, content}: every Leader and Member turn, in transcript order
          - {final_solution}: the ratified solution
          - {error}: a Leader miss, exhaustion, or a fatal Leader failure
          - {status: "completed"}: always last
        """
        cfg: AppConfig = request.app.state.config
        try:
            problem = validate_problem(body.problem, max_chars=cfg.protocol.max_problem_chars)
        except ProblemValidationError as e:
            return _error(str(e), 400)

        resolved = _team_and_providers(request)
        if resolved is None:
            return _error("No chat backend available", 503)
        team, backends = resolved

        events = run_team(
            problem,
            team,
            backends,
            cfg.prompts,
            max_rounds=cfg.protocol.max_rounds,
            require_approval=cfg.protocol.require_approval,
        )
        return StreamingResponse(
            stream_events(events),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    logger.info("[API] Team solver initialized: %s", ", ".join(m.display_name for m in team.roster()))
    return application
