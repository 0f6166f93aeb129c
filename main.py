from fastapi import FastAPI, HTTPException, Request, Depends, Security
from fastapi.responses import JSONResponse, Response
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import uvicorn
import logging

import config
from schemas import TryOnRequest, TryOnErrorResponse, ModelStatusResponse
from services.image_fetcher import guess_image_mime
from services.session_manager import SessionManager
from services.tryon_service import TryOnService

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI()

# API Key for authentication
API_KEY = config.API_KEY
security = HTTPBearer()

# One Gradio session per process, shared by every request
session_manager = SessionManager()
tryon_service = TryOnService(session_manager)


def get_tryon_service() -> TryOnService:
    return tryon_service


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Security(security)):
    """Verify API key from Bearer token"""
    if not API_KEY:
        logger.warning("API_KEY not configured. Authentication disabled.")
        return True

    if credentials.credentials != API_KEY:
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return True


@app.post(
    "/api/v1/tryon",
    responses={200: {"content": {"image/png": {}}}, 502: {"model": TryOnErrorResponse}},
)
async def virtual_tryon(
    request: TryOnRequest,
    verified: bool = Depends(verify_api_key),
    service: TryOnService = Depends(get_tryon_service),
):
    """Run a try-on and return the generated image"""
    logger.info("TRYON ENDPOINT HIT")
    logger.info(f"Person Image URL: {request.person_image_url}")
    logger.info(f"Garment Image URL: {request.garment_image_url}")

    result = await service.perform_tryon(request.person_image_url, request.garment_image_url)
    if not result.success:
        return JSONResponse(status_code=502, content=result.to_dict())

    return Response(
        content=result.image_buffer,
        media_type=guess_image_mime(result.image_buffer),
        headers={"X-Processing-Time": str(result.processing_time)},
    )


@app.get("/api/v1/model-status", response_model=ModelStatusResponse, response_model_exclude_none=True)
async def model_status(
    verified: bool = Depends(verify_api_key),
    service: TryOnService = Depends(get_tryon_service),
):
    """Report whether the hosted try-on model is reachable"""
    status = await service.check_model_status()
    return status.to_dict()


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "body": str(exc.body)}
    )


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
