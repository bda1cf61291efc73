import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS, LOG_LEVEL
from database import Base, engine
from routers.orders import orders_router
from routers.quote import quote_router
from routers.requirement import requirement_router
from routers.user import user_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Cashew Sourcing Marketplace")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(user_router)
app.include_router(requirement_router)
app.include_router(quote_router)
app.include_router(orders_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
