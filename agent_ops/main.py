"""Agent ops service: FastAPI application entry point.

Serves health and readiness probes for the managed deployment target,
invokes the registered agent tools behind API-key auth and the
deployment config's rate limits, and exposes monitoring and
troubleshooting lookups.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from agent_ops.config.store import get_config_store
from agent_ops.errors import ConfigError, ToolError
from agent_ops.logging.audit import (
    RequestTimer,
    generate_request_id,
    get_audit_logger,
    request_id_var,
    setup_logging,
)
from agent_ops.monitoring.metrics import get_recorder
from agent_ops.ops.troubleshooting import diagnose
from agent_ops.security.auth import verify_api_key
from agent_ops.security.ratelimit import check_rate_limit
from agent_ops.tools.registry import get_tool, list_tools

VERSION = "0.3.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    try:
        enabled = get_config_store().get().monitoring.enable_logging
    except ConfigError:
        enabled = True
    setup_logging(enabled=enabled)
    get_audit_logger().info("Agent service started", extra={"audit_data": {"version": VERSION}})
    yield
    get_audit_logger().info("Agent service stopped")


app = FastAPI(
    title="Agent Ops",
    description="Operations surface for a deployed agent",
    version=VERSION,
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}


@app.get("/ready")
async def ready():
    """Readiness: the deployment config must load and validate."""
    store = get_config_store()
    try:
        config = store.get()
    except ConfigError as e:
        get_audit_logger().warning(
            "Readiness check failed",
            extra={"audit_data": {"config_path": store.path, "problems": e.problems or [str(e)]}},
        )
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "error": str(e).splitlines()[0], "problems": e.problems},
        )

    return {
        "status": "ready",
        "agent": config.agent.name,
        "model": config.agent.model.value,
        "version": config.version,
    }


@app.get("/v1/tools")
async def tools():
    return {
        "tools": [
            {"name": t.name, "description": t.description, "parameters": t.parameters}
            for t in list_tools()
        ]
    }


@app.post("/v1/tools/{name}")
async def invoke(name: str, request: Request, caller_id: str = Depends(verify_api_key)):
    """Run a registered tool.

    Pipeline: Auth -> Config -> Rate Limit -> Tool lookup -> Invoke -> Metrics -> Log
    """
    logger = get_audit_logger()
    rid = generate_request_id()
    request_id_var.set(rid)

    try:
        config = get_config_store().get()
    except ConfigError as e:
        logger.error("Tool call rejected: deployment config unavailable", extra={"audit_data": {"error": str(e)}})
        return JSONResponse(status_code=503, content={"error": "Service not configured"})

    limits = config.agent.rate_limit
    rate_result = await check_rate_limit(caller_id, limits.requests_per_minute, limits.requests_per_day)
    if not rate_result.allowed:
        logger.warning(
            "Rate limit exceeded",
            extra={"audit_data": {
                "caller_id": caller_id,
                "window": rate_result.window,
                "rate_limit": rate_result.limit,
                "retry_after": rate_result.reset_seconds,
            }},
        )
        return JSONResponse(
            status_code=429,
            content={"error": f"Rate limit exceeded ({rate_result.window})"},
            headers={
                "Retry-After": str(int(rate_result.reset_seconds)),
                "X-RateLimit-Limit": str(rate_result.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(rate_result.reset_seconds)),
            },
        )

    try:
        spec = get_tool(name)
    except KeyError:
        return JSONResponse(status_code=404, content={"error": f"Unknown tool '{name}'"})

    try:
        arguments = await request.json()
    except ValueError:
        arguments = None
    if not isinstance(arguments, dict):
        return JSONResponse(status_code=400, content={"error": "Body must be a JSON object of tool arguments"})

    recorder = get_recorder()
    with RequestTimer() as timer:
        try:
            result = spec.func(**arguments)
            error = None
        except (ToolError, TypeError) as e:
            result = None
            error = str(e)

    recorder.record(success=error is None, latency_ms=timer.elapsed_ms)
    snapshot = recorder.evaluate(config.monitoring)
    if snapshot.breaches:
        logger.warning("Alert threshold breached", extra={"audit_data": {"breaches": snapshot.breaches}})

    logger.info(
        "Tool invoked",
        extra={"audit_data": {
            "caller_id": caller_id,
            "agent": config.agent.name,
            "tool": name,
            "ok": error is None,
            "latency_ms": timer.elapsed_ms,
            "rate_limit_remaining": rate_result.remaining,
        }},
    )

    headers = {
        "X-RateLimit-Limit": str(rate_result.limit),
        "X-RateLimit-Remaining": str(rate_result.remaining),
        "X-RateLimit-Reset": str(int(rate_result.reset_seconds)),
        "X-Request-Id": rid,
    }
    if error is not None:
        return JSONResponse(status_code=400, content={"tool": name, "error": error}, headers=headers)
    return JSONResponse(status_code=200, content={"tool": name, "result": result}, headers=headers)


@app.post("/v1/diagnose")
async def diagnose_error(request: Request):
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Body must be valid JSON"})
    message = body.get("error") if isinstance(body, dict) else None
    if not isinstance(message, str) or not message.strip():
        return JSONResponse(status_code=400, content={"error": "Field 'error' must be a non-empty string"})

    entry = diagnose(message)
    if entry is None:
        return {"matched": False}
    return {
        "matched": True,
        "scenario": entry.key,
        "symptom": entry.symptom,
        "remediation": entry.remediation,
    }


@app.get("/v1/metrics")
async def metrics():
    recorder = get_recorder()
    try:
        monitoring = get_config_store().get().monitoring
    except ConfigError:
        return recorder.snapshot().to_dict()
    return recorder.evaluate(monitoring).to_dict(monitoring.metrics or None)
