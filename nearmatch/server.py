"""
FastAPI server for the NearMatch proximity service.

Exposes:
  - GET /health - Health check
  - POST /run-graph - Execute a graph (nearby_users, nearby_places)
  - POST /distance - Distance, radius check and direction between two points
  - POST /similarity - Compatibility score breakdown for two users
  - GET /docs - Interactive API documentation (Swagger UI)
  - GET /openapi.json - OpenAPI schema
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, HTTPException, Request, status, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Dict, Any, Optional, Annotated
import sys
import time

from nearmatch.config import config, validate_config
from nearmatch.utils.logging_config import logger, setup_logging
from nearmatch.models import Coordinate
from nearmatch.tools.scoring_tools import score_breakdown
from nearmatch.utils.errors import GraphExecutionError, InvalidInputError
from nearmatch.utils.geo import (
    distance_between,
    format_distance,
    get_bearing,
    get_cardinal_direction,
)

from nearmatch.graphs.nearby_users import create_nearby_users_graph
from nearmatch.graphs.nearby_places import create_nearby_places_graph

setup_logging(debug=config.DEBUG)

# ============================================================
# VALIDATE CONFIGURATION AT STARTUP
# ============================================================
try:
    config_status = validate_config()
    logger.info("Configuration validated successfully")
    for key, value in config_status.items():
        logger.info(f"  {key}: {value}")
except ValueError as e:
    logger.error(f"Configuration error: {e}")
    sys.exit(1)

VALID_GRAPHS = ("nearby_users", "nearby_places")

# ============================================================
# FASTAPI APPLICATION
# ============================================================
app = FastAPI(
    title="NearMatch Proximity Service",
    description="Distance, nearby filtering and compatibility scoring for the NearMatch app",
    version="1.0.0",
)

# ============================================================
# CORS CONFIGURATION
# ============================================================
origins = [
    "http://localhost:8081",  # Expo dev server
    "http://localhost:19006",  # Expo web
    "http://localhost:3000",  # App backend dev
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================
# REQUEST/RESPONSE MODELS
# ============================================================
class GraphRequest(BaseModel):
    """
    Request body for /run-graph endpoint.

    Attributes:
        graph (str): Name of graph to execute: 'nearby_users' or 'nearby_places'
        input (dict): Input state for the graph.
    """
    graph: str
    input: Dict[str, Any]


class GraphResponse(BaseModel):
    """
    Response body for /run-graph endpoint.

    Attributes:
        success (bool): Whether graph executed successfully
        graph (str): Name of the graph that was executed
        data (dict): Output from the graph
        error (Optional[str]): Error message if something went wrong
    """
    success: bool
    graph: str
    data: Dict[str, Any] = {}
    error: Optional[str] = None


class DistanceRequest(BaseModel):
    """Two points and an optional radius to test against."""
    origin: Coordinate
    destination: Coordinate
    radius_km: Optional[float] = None


class DistanceResponse(BaseModel):
    distance_km: float
    distance_label: str
    bearing: float
    direction: str
    within_radius: Optional[bool] = None


class SimilarityRequest(BaseModel):
    """Two user profiles; each needs age and location."""
    user_a: Dict[str, Any]
    user_b: Dict[str, Any]


class SimilarityResponse(BaseModel):
    score: float
    components: Dict[str, float]


# ============================================================
# MIDDLEWARE
# ============================================================
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header showing how long the request took."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


def _check_token(authorization: Optional[str]) -> None:
    """Reject the request unless it carries the configured bearer token."""
    if not config.SERVICE_TOKEN:
        return
    if authorization != f"Bearer {config.SERVICE_TOKEN}":
        logger.warning("Unauthorized request: invalid or missing token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


# ============================================================
# ROUTES
# ============================================================

@app.get("/health", tags=["System"])
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        dict: {"status": "healthy"}
    """
    return {"status": "healthy"}


@app.post("/run-graph", response_model=GraphResponse, tags=["Graphs"])
async def run_graph(
    request: GraphRequest,
    authorization: Annotated[Optional[str], Header()] = None,
) -> GraphResponse:
    """
    Execute a LangGraph graph and return results.

    Supported graphs:
      - nearby_users: Users inside a radius, with similarity, closest first
      - nearby_places: Places inside a radius, optionally by category

    Raises:
        HTTPException: If the graph doesn't exist or fails to execute
    """
    try:
        _check_token(authorization)

        logger.info(f"Received request for graph: {request.graph}")
        logger.debug(f"Input keys: {list(request.input.keys())}")

        # ============================================================
        # ROUTE TO CORRECT GRAPH
        # ============================================================
        if request.graph == "nearby_users":
            graph = create_nearby_users_graph()
            logger.debug("Created nearby_users graph")

        elif request.graph == "nearby_places":
            graph = create_nearby_places_graph()
            logger.debug("Created nearby_places graph")

        else:
            logger.error(f"Unknown graph: {request.graph}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown graph: {request.graph}. "
                       f"Valid options: {', '.join(VALID_GRAPHS)}"
            )

        # ============================================================
        # EXECUTE GRAPH
        # ============================================================
        start_time = time.time()

        try:
            result = graph.invoke(request.input)

            execution_time = time.time() - start_time
            logger.info(
                "run-graph summary: graph=%s input_keys=%s success=%s time=%.2fs",
                request.graph,
                list(request.input.keys()),
                True,
                execution_time,
            )

            metadata = result.get("response_metadata") or {}
            return GraphResponse(
                success=bool(metadata.get("success", True)),
                graph=request.graph,
                data=result,
                error=metadata.get("error"),
            )

        except Exception as e:
            execution_time = time.time() - start_time
            logger.error(f"{request.graph} graph failed after {execution_time:.2f}s: {str(e)}")
            logger.exception("Full traceback:")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Graph execution failed: {str(e)}"
            )

    except HTTPException:
        raise

    except GraphExecutionError as e:
        logger.error(f"Could not build {request.graph} graph: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Graph unavailable: {str(e)}"
        )

    except Exception as e:
        logger.error(f"Unexpected error in /run-graph: {str(e)}")
        logger.exception("Full traceback:")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )


@app.post("/distance", response_model=DistanceResponse, tags=["Engine"])
async def distance(
    request: DistanceRequest,
    authorization: Annotated[Optional[str], Header()] = None,
) -> DistanceResponse:
    """Great-circle distance between two points, rounded to 0.1 km."""
    _check_token(authorization)

    distance_km = distance_between(request.origin, request.destination)
    bearing = get_bearing(
        request.origin.latitude,
        request.origin.longitude,
        request.destination.latitude,
        request.destination.longitude,
    )
    within = None
    if request.radius_km is not None:
        within = distance_km <= request.radius_km

    return DistanceResponse(
        distance_km=distance_km,
        distance_label=format_distance(distance_km),
        bearing=bearing,
        direction=get_cardinal_direction(bearing),
        within_radius=within,
    )


@app.post("/similarity", response_model=SimilarityResponse, tags=["Engine"])
async def similarity(
    request: SimilarityRequest,
    authorization: Annotated[Optional[str], Header()] = None,
) -> SimilarityResponse:
    """Compatibility score of two users with its weighted components."""
    _check_token(authorization)

    try:
        components = score_breakdown(request.user_a, request.user_b)
    except InvalidInputError as e:
        raise HTTPException(
            status_code=422,
            detail=str(e),
        )

    total = components.pop("total")
    return SimilarityResponse(score=total, components=components)


@app.get("/", tags=["System"])
async def root() -> Dict[str, str]:
    """Information about the API and where its documentation lives."""
    return {
        "service": "NearMatch Proximity Service",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Return HTTP exceptions in a consistent error format."""
    logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch anything unhandled and return a generic 500 without internals."""
    logger.error(f"Unhandled exception: {str(exc)}")
    logger.exception("Full traceback:")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "status_code": 500
        }
    )


# ============================================================
# STARTUP EVENTS
# ============================================================

@app.on_event("startup")
async def startup_event():
    """Log effective settings once the application starts."""
    logger.info("=" * 60)
    logger.info("NearMatch Proximity Service Starting Up")
    logger.info("=" * 60)
    logger.info(f"Default Radius: {config.DEFAULT_RADIUS_KM} km (max {config.MAX_RADIUS_KM} km)")
    logger.info(f"Max Results: {config.MAX_RESULTS}")
    logger.info(f"Debug Mode: {config.DEBUG}")
    logger.info(f"Graph Timeout: {config.GRAPH_TIMEOUT}s")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("NearMatch Proximity Service Shutting Down")


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    """Run with: python -m uvicorn nearmatch.server:app --reload"""
    import uvicorn
    uvicorn.run(
        app,
        host=config.HOST,
        port=config.PORT,
        log_level="info" if not config.DEBUG else "debug"
    )
