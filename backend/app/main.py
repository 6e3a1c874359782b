"""
تطبيق SafeFood - منصة إنقاذ فائض الطعام
"""
import logging
import traceback
from contextlib import asynccontextmanager

from starlette.requests import Request

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.api.router import api_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """إدارة دورة حياة التطبيق"""
    # Startup
    logger.info("🚀 SafeFood Backend is starting...")
    yield
    # Shutdown
    logger.info("👋 SafeFood Backend is shutting down...")


app = FastAPI(
    title="SafeFood - منصة إنقاذ الطعام",
    description="""
    ## منصة تنسيق إنقاذ فائض الطعام

    ### الميزات:
    - **التبرعات**: تنشر الجهات المتبرعة فائض الطعام مع نافذة الاستلام
    - **المطابقة**: اختيار أقرب متطوع متاح وجمعية موثقة
    - **التتبع**: تأكيد الاستلام والتسليم مع الإثباتات والتقييم
    - **الأثر**: وجبات وكيلوغرامات وثاني أكسيد الكربون يومياً

    ### الأدوار:
    - **متبرع**: نشر التبرعات وإلغاؤها
    - **جمعية**: استلام التبرعات وتأكيد التسليم
    - **متطوع**: نقل التبرعات
    - **إدارة**: التوثيق والتحكم الكامل
    """,
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Retry-After"],
)


# معالج أخطاء التحقق (422) - تسجيل البيانات المرسلة لتسهيل التشخيص
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        "Validation error on %s %s\nErrors: %s",
        request.method,
        request.url.path,
        exc.errors(),
    )
    return JSONResponse(
        status_code=422,
        content={
            "detail": {
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "البيانات المرسلة غير صالحة",
                    "details": jsonable_errors(exc),
                    "retryable": False,
                }
            }
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


# معالج الأخطاء العام
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method,
        request.url.path,
        exc,
        traceback.format_exc(),
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": {
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "حدث خطأ داخلي. يرجى المحاولة لاحقاً.",
                    "details": None,
                    "retryable": False,
                }
            }
        },
    )


# Health check
@app.get("/health")
async def health_check():
    """فحص صحة الخدمة"""
    return {"status": "healthy", "service": "safefood-backend", "version": "1.0.0"}


# Include API routes
app.include_router(api_router)


# Root endpoint
@app.get("/")
async def root():
    """الصفحة الرئيسية"""
    return {
        "name": "SafeFood - منصة إنقاذ الطعام",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
