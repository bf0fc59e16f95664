import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from natours.core import config
from natours.core.error_handlers import register_exception_handlers
from natours.core.logging_config import setup_logging
from natours.database import init_db
from natours.routes import review_routes, tour_routes, user_routes

setup_logging()
config.validate_runtime_config()

app = FastAPI(title="Natours API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)

logger = logging.getLogger(__name__)
request_logger = logging.getLogger('natours.requests')


if config.is_development():
    @app.middleware('http')
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        request_logger.info(
            '%s %s %d %.1f ms',
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response


@app.on_event('startup')
def initialize_database() -> None:
    try:
        init_db()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.get('/')
def root():
    return {'status': 'Natours API Running'}


app.include_router(tour_routes.router, prefix='/api/v1/tours')
app.include_router(user_routes.router, prefix='/api/v1/users')
app.include_router(review_routes.router, prefix='/api/v1/reviews')


if __name__ == '__main__':
    import uvicorn

    uvicorn.run('natours.main:app', host=config.API_HOST, port=config.API_PORT, reload=config.is_development())
