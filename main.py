from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse
from starlette.requests import Request
from dotenv import load_dotenv
import logging
import sys

from routes.generation_routes import router as generation_router
from routes.course_routes import router as course_router
from routes.question_routes import router as question_router
from routes.quiz_routes import router as quiz_router
from utils.exceptions import LmsError

# Configure logging
logger = logging.getLogger(__name__)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler('app.log')
    ]
)

load_dotenv()

GENERATION_PATHS = {"/api/generate-question", "/api/auto-generate-question"}

# FastAPI App
app = FastAPI()

# Add the custom exception handlers
@app.exception_handler(LmsError)
async def lms_exception_handler(request: Request, exc: LmsError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed [{exc.error_code}]: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected [{exc.error_code}]: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "error_code": exc.error_code},
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error_code = "METHOD_NOT_ALLOWED" if exc.status_code == 405 else "HTTP_ERROR"
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message, "error_code": error_code},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if request.url.path in GENERATION_PATHS:
        # Generation clients only understand {error, error_code}
        logger.warning(f"{request.method} {request.url.path} rejected [MISSING_FIELDS]: unreadable body")
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields", "error_code": "MISSING_FIELDS"},
        )

    try:
        detail = jsonable_encoder(exc.errors())
    except UnicodeDecodeError:
        detail = [
            {
                "loc": ["binary_content"],
                "msg": "Binary data cannot be properly decoded as UTF-8",
                "type": "binary_data_error",
            }
        ]

    return JSONResponse(
        status_code=422,
        content={"detail": detail},
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generation_router)
app.include_router(course_router)
app.include_router(question_router)
app.include_router(quiz_router)

@app.get("/")
async def root():
    return {"greeting": "Hello!", "message": "Welcome to the LMS assessment API!"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
